"""Microphone capture into PcmBuffers for labeled samples and live analysis."""

import queue
from typing import Iterator, Optional

import numpy as np

try:
    import sounddevice as sd
except ImportError:
    sd = None  # type: ignore

from audio_classifier.audio.config import SpectrogramConfig
from audio_classifier.audio.decoding import PcmBuffer, write_wav


def _require_sounddevice() -> None:
    if sd is None:
        raise ImportError("sounddevice is required for recording. pip install sounddevice")


class AudioCollector:
    """Records mono float32 audio at a fixed rate."""

    def __init__(
        self,
        sample_rate: Optional[int] = None,
        config: Optional[SpectrogramConfig] = None,
    ):
        self.config = config or SpectrogramConfig()
        self.sample_rate = self.config.resolve_sample_rate(sample_rate)
        self.channels = 1

    def record_chunk(
        self,
        duration_sec: float,
        device: Optional[int] = None,
    ) -> PcmBuffer:
        """Record a single clip.

        Args:
            duration_sec: Recording duration in seconds.
            device: Input device index (None = default).
        """
        _require_sounddevice()

        samples = int(duration_sec * self.sample_rate)
        rec = sd.rec(
            samples,
            samplerate=self.sample_rate,
            channels=self.channels,
            dtype="float32",
            device=device,
        )
        sd.wait()
        return PcmBuffer(samples=rec.reshape(-1), sample_rate=self.sample_rate)

    def record_stream(
        self,
        chunk_duration_sec: float = 0.1,
        device: Optional[int] = None,
    ) -> Iterator[np.ndarray]:
        """Stream audio chunks continuously.

        Yields:
            Mono float32 chunks, shape (n_samples,).
        """
        _require_sounddevice()

        chunk_samples = int(chunk_duration_sec * self.sample_rate)
        q: queue.Queue[np.ndarray] = queue.Queue()

        def callback(indata: np.ndarray, _frames: int, _time: object, _status: object) -> None:
            q.put(indata.copy().reshape(-1))

        with sd.InputStream(
            samplerate=self.sample_rate,
            channels=self.channels,
            dtype="float32",
            blocksize=chunk_samples,
            device=device,
            callback=callback,
        ):
            while True:
                yield q.get()

    def record_to_file(
        self,
        filepath: str,
        duration_sec: float,
        device: Optional[int] = None,
    ) -> PcmBuffer:
        """Record a clip, save it as 16-bit WAV and return it."""
        pcm = self.record_chunk(duration_sec, device=device)
        write_wav(filepath, pcm)
        return pcm
