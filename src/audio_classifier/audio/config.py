"""Centralized spectrogram feature configuration.

Encoding standards:
- Segments: 1 s, 50% overlap
- STFT: 1024-sample Hann window / 512-sample hop, FFT 1024
- Features: 128-bin log-Mel filterbanks, per-spectrogram z-score
"""

from dataclasses import dataclass

from audio_classifier.audio.fft import is_power_of_two


@dataclass(frozen=True)
class SpectrogramConfig:
    """Segmentation and log-Mel extraction configuration."""

    # Segmentation
    segment_sec: float = 1.0

    # STFT
    fft_size: int = 1024
    hop_size: int = 512

    # Mel filterbanks
    n_mels: int = 128

    # Used only when the decoder does not report a rate
    default_sample_rate: int = 44_100

    # Numerical floors
    log_floor: float = 1e-10
    norm_eps: float = 1e-8

    def __post_init__(self) -> None:
        if not is_power_of_two(self.fft_size):
            raise ValueError(f"fft_size must be a power of two, got {self.fft_size}")
        if self.hop_size <= 0 or self.hop_size > self.fft_size:
            raise ValueError(
                f"hop_size must be in (0, fft_size], got {self.hop_size}"
            )
        if self.n_mels <= 0:
            raise ValueError(f"n_mels must be positive, got {self.n_mels}")
        if self.segment_sec <= 0:
            raise ValueError(f"segment_sec must be positive, got {self.segment_sec}")
        if self.default_sample_rate <= 0:
            raise ValueError(
                f"default_sample_rate must be positive, got {self.default_sample_rate}"
            )

    def resolve_sample_rate(self, sample_rate=None) -> int:
        """Decoder-reported rate, or the configured fallback."""
        if sample_rate is None:
            return self.default_sample_rate
        return int(sample_rate)

    def segment_length(self, sample_rate=None) -> int:
        """Segment length in samples."""
        return int(self.resolve_sample_rate(sample_rate) * self.segment_sec)

    def frames_per_segment(self, sample_rate=None) -> int:
        """Number of STFT frames in one segment."""
        length = self.segment_length(sample_rate)
        if length < self.fft_size:
            return 0
        return (length - self.fft_size) // self.hop_size + 1
