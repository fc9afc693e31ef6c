"""End-to-end feature pipeline: PCM -> segments -> log-Mel -> normalized spectrograms.

Batch: build a (features, labels) dataset from a SampleStore.
Live: analyze the most recent segment of a growing buffer.

Components are injected so tests can use in-memory PCM and a fake decoder.
"""

from __future__ import annotations

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Tuple

import numpy as np

from audio_classifier.audio.config import SpectrogramConfig
from audio_classifier.audio.decoding import PcmBuffer
from audio_classifier.audio.features import FrameAnalyzer, normalize_spectrogram
from audio_classifier.audio.segmenter import RingBuffer, last_segment, segment_audio
from audio_classifier.errors import DecodeError, DecodeFailure
from audio_classifier.pipeline.dataset import LabeledSample, SampleStore, decode_sample

logger = logging.getLogger(__name__)

Decoder = Callable[[LabeledSample], PcmBuffer]

# Decoder errors that skip a sample instead of aborting the batch
DECODE_ERRORS = (DecodeError, OSError, ValueError)


@dataclass
class DatasetResult:
    """Parallel spectrogram/label lists plus the samples that were skipped."""

    features: List[np.ndarray] = field(default_factory=list)
    labels: List[int] = field(default_factory=list)
    failures: List[DecodeFailure] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.features)

    def as_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        """Stack into X (n, n_frames, n_mels) float32 and y (n,) int64.

        Raises:
            ValueError: if the spectrograms differ in shape, e.g. when the
                samples were decoded at different sample rates.
        """
        if not self.features:
            return np.zeros((0, 0, 0), dtype=np.float32), np.zeros(0, dtype=np.int64)
        shapes = Counter(spec.shape for spec in self.features)
        if len(shapes) > 1:
            summary = ", ".join(f"{shape} x{count}" for shape, count in sorted(shapes.items()))
            raise ValueError(f"Cannot stack spectrograms of different shapes: {summary}")
        return (
            np.stack(self.features).astype(np.float32),
            np.asarray(self.labels, dtype=np.int64),
        )


class SpectrogramPipeline:
    """Runs segmentation, frame analysis and normalization for batch and live use.

    Interface:
      pipeline = SpectrogramPipeline(SpectrogramConfig())
      result = pipeline.build_dataset(store)      # DatasetResult
      spec = pipeline.analyze_latest(samples, sample_rate=48_000)
    """

    def __init__(
        self,
        config: Optional[SpectrogramConfig] = None,
        analyzer: Optional[FrameAnalyzer] = None,
        decoder: Optional[Decoder] = None,
        max_workers: Optional[int] = None,
    ):
        self.config = config or (analyzer.config if analyzer else SpectrogramConfig())
        self.analyzer = analyzer or FrameAnalyzer(self.config)
        self.decoder = decoder or decode_sample
        self.max_workers = max_workers

    def _finish(self, spectrogram: np.ndarray) -> np.ndarray:
        return normalize_spectrogram(spectrogram, eps=self.config.norm_eps)

    def process_buffer(self, pcm: PcmBuffer) -> List[np.ndarray]:
        """Normalized spectrogram for every full segment of a decoded buffer."""
        segments = segment_audio(pcm.samples, pcm.sample_rate, self.config.segment_sec)
        if not segments:
            return []
        filters = self.analyzer.filters(pcm.sample_rate)
        return [
            self._finish(self.analyzer.analyze(seg, pcm.sample_rate, filters=filters))
            for seg in segments
        ]

    def _process_sample(
        self,
        class_index: int,
        sample: LabeledSample,
    ) -> Tuple[List[np.ndarray], Optional[DecodeFailure]]:
        try:
            pcm = self.decoder(sample)
        except DECODE_ERRORS as exc:
            logger.warning("Skipping %r in class %d: %s", sample, class_index, exc)
            return [], DecodeFailure(class_index, sample, exc)
        return self.process_buffer(pcm), None

    def _jobs(self, store: SampleStore) -> Iterator[Tuple[int, LabeledSample]]:
        for class_index, audio_class in store:
            for sample in audio_class.samples:
                yield class_index, sample

    def build_dataset(self, store: SampleStore) -> DatasetResult:
        """Build one (spectrogram, class_index) pair per segment of every sample.

        Samples the decoder cannot read are reported in result.failures and
        skipped. Pair order follows class order, then sample order, then
        segment order, with or without worker threads.
        """
        jobs = list(self._jobs(store))
        if self.max_workers and self.max_workers > 1 and len(jobs) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outputs = list(pool.map(lambda job: self._process_sample(*job), jobs))
        else:
            outputs = [self._process_sample(*job) for job in jobs]

        result = DatasetResult()
        for (class_index, _), (spectrograms, failure) in zip(jobs, outputs):
            if failure is not None:
                result.failures.append(failure)
                continue
            result.features.extend(spectrograms)
            result.labels.extend([class_index] * len(spectrograms))

        logger.info(
            "Built %d spectrograms from %d samples across %d classes (%d skipped)",
            len(result),
            len(jobs),
            len(store),
            len(result.failures),
        )
        return result

    def analyze_latest(
        self,
        samples: np.ndarray,
        sample_rate: Optional[int] = None,
        normalize: bool = True,
    ) -> np.ndarray:
        """Spectrogram of the most recent segment, zero-padded if the buffer is short."""
        rate = self.config.resolve_sample_rate(sample_rate)
        segment = last_segment(samples, rate, self.config.segment_sec)
        spectrogram = self.analyzer.analyze(segment, rate)
        return self._finish(spectrogram) if normalize else spectrogram


class LiveSpectrogramStream:
    """Keeps the last segment of live audio and analyzes it on demand.

    Interface:
      stream = LiveSpectrogramStream(pipeline, sample_rate=48_000)
      for chunk in collector.record_stream():
          stream.push(chunk)
          spec = stream.latest()
    """

    def __init__(
        self,
        pipeline: Optional[SpectrogramPipeline] = None,
        sample_rate: Optional[int] = None,
        normalize: bool = True,
    ):
        self.pipeline = pipeline or SpectrogramPipeline()
        self.sample_rate = self.pipeline.config.resolve_sample_rate(sample_rate)
        self.normalize = normalize
        self._ring = RingBuffer(self.pipeline.config.segment_length(self.sample_rate))

    @property
    def buffered_samples(self) -> int:
        return len(self._ring)

    def push(self, chunk: np.ndarray) -> None:
        self._ring.push(np.asarray(chunk, dtype=np.float32))

    def latest(self) -> np.ndarray:
        return self.pipeline.analyze_latest(
            self._ring.get_all(), self.sample_rate, normalize=self.normalize
        )

    def reset(self) -> None:
        self._ring.clear()
