"""Feature extraction: Hann-windowed frames, FFT magnitude, 128-bin log-Mel, z-score."""

from __future__ import annotations

from typing import Optional

import numpy as np

from audio_classifier.audio.config import SpectrogramConfig
from audio_classifier.audio.fft import FFTEngine
from audio_classifier.audio.mel import MelFilterBankCache


def hann_window(size: int) -> np.ndarray:
    """Symmetric Hann window: 0.5 - 0.5*cos(2*pi*j/(size-1))."""
    if size == 1:
        return np.ones(1)
    j = np.arange(size)
    return 0.5 - 0.5 * np.cos(2 * np.pi * j / (size - 1))


def magnitude(spectrum: np.ndarray) -> np.ndarray:
    """Per-bin sqrt(re^2 + im^2)."""
    spectrum = np.asarray(spectrum)
    return np.sqrt(spectrum.real * spectrum.real + spectrum.imag * spectrum.imag)


def normalize_spectrogram(spectrogram: np.ndarray, eps: float = 1e-8) -> np.ndarray:
    """Zero-mean / unit-variance over every value of the spectrogram.

    Uses the population standard deviation. An empty spectrogram is returned
    as an empty copy.
    """
    spec = np.asarray(spectrogram, dtype=np.float64)
    if spec.size == 0:
        return spec.copy()
    mean = spec.mean()
    std = np.sqrt(np.mean((spec - mean) ** 2))
    return (spec - mean) / (std + eps)


class FrameAnalyzer:
    """Turn one segment into a log-Mel spectrogram of shape (n_frames, n_mels).

    Interface:
      analyzer = FrameAnalyzer(SpectrogramConfig())
      spec = analyzer.analyze(segment, sample_rate=48_000)
    """

    def __init__(
        self,
        config: Optional[SpectrogramConfig] = None,
        cache: Optional[MelFilterBankCache] = None,
    ):
        self.config = config or SpectrogramConfig()
        self.cache = cache if cache is not None else MelFilterBankCache()
        self.window = hann_window(self.config.fft_size)
        self._engine = FFTEngine(self.config.fft_size)

    def filters(self, sample_rate: Optional[int] = None) -> np.ndarray:
        """Cached filterbank over the full fft_size-bin magnitude vector."""
        return self.cache.get(
            self.config.n_mels,
            self.config.fft_size,
            self.config.resolve_sample_rate(sample_rate),
        )

    def frames(self, segment: np.ndarray) -> np.ndarray:
        """Hop-spaced fft_size slices, shape (n_frames, fft_size)."""
        audio = np.asarray(segment, dtype=np.float32)
        size, hop = self.config.fft_size, self.config.hop_size
        if len(audio) < size:
            return np.zeros((0, size), dtype=np.float32)
        starts = range(0, len(audio) - size + 1, hop)
        return np.stack([audio[s : s + size] for s in starts])

    def power_to_mel(self, magnitudes: np.ndarray, filters: np.ndarray) -> np.ndarray:
        """Apply the filterbank and log-compress with the configured floor."""
        energies = np.dot(magnitudes, filters.T)
        return np.log(np.maximum(energies, self.config.log_floor))

    def analyze(
        self,
        segment: np.ndarray,
        sample_rate: Optional[int] = None,
        filters: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Compute the raw (un-normalized) log-Mel spectrogram of a segment.

        Args:
            segment: Mono samples.
            sample_rate: Decoder-reported rate; selects the filterbank.
            filters: Optional explicit (n_mels, fft_size) filterbank.

        Returns:
            float64 array (n_frames, n_mels) in time order; (0, n_mels) if the
            segment is shorter than one frame.
        """
        if filters is None:
            filters = self.filters(sample_rate)
        frames = self.frames(segment)
        if frames.shape[0] == 0:
            return np.zeros((0, filters.shape[0]))
        # Windowed samples are held at float32 precision
        windowed = (frames * self.window).astype(np.float32)
        spectra = self._engine.transform_frames(windowed)
        return self.power_to_mel(magnitude(spectra), filters)
