"""Decoded PCM buffers and the WAV I/O boundary.

Everything downstream of this module takes a PcmBuffer, never a file path.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np

from audio_classifier.errors import DecodeError

# Integer PCM full-scale values
_INT_SCALE = {
    np.dtype(np.int16): 32768.0,
    np.dtype(np.int32): 2147483648.0,
}


@dataclass(frozen=True, eq=False)
class PcmBuffer:
    """Mono float PCM samples in [-1, 1] with the decoder-reported rate."""

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        samples = np.array(self.samples, dtype=np.float32)
        if samples.ndim != 1:
            raise ValueError(f"PCM samples must be 1-D, got shape {samples.shape}")
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        samples.setflags(write=False)
        object.__setattr__(self, "samples", samples)

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return len(self.samples) / self.sample_rate


def _to_float(audio: np.ndarray) -> np.ndarray:
    if audio.dtype in _INT_SCALE:
        return audio.astype(np.float32) / _INT_SCALE[audio.dtype]
    if audio.dtype == np.uint8:
        return (audio.astype(np.float32) - 128.0) / 128.0
    return audio.astype(np.float32)


def read_wav(path: Union[str, Path]) -> PcmBuffer:
    """Read a WAV file; multichannel input keeps the first channel.

    Raises:
        DecodeError: File is missing, truncated or not a WAV file.
    """
    import scipy.io.wavfile as wavfile

    try:
        sr, audio = wavfile.read(str(path))
    except (OSError, ValueError) as exc:
        raise DecodeError(f"Could not decode {path}: {exc}") from exc
    if audio.ndim > 1:
        audio = audio[:, 0]
    return PcmBuffer(samples=_to_float(audio), sample_rate=int(sr))


def write_wav(path: Union[str, Path], pcm: PcmBuffer) -> None:
    """Write mono 16-bit WAV, clamping samples to [-1, 1]."""
    import scipy.io.wavfile as wavfile

    clipped = np.clip(pcm.samples, -1.0, 1.0)
    wavfile.write(str(path), pcm.sample_rate, (clipped * 32767).astype(np.int16))
