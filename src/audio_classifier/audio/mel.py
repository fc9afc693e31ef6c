"""HTK mel scale and triangular mel filterbanks with an explicit cache."""

from __future__ import annotations

import logging
import threading
from typing import Dict, Tuple

import numpy as np

logger = logging.getLogger(__name__)


def hz_to_mel(hz):
    return 2595 * np.log10(1 + np.asarray(hz, dtype=np.float64) / 700)


def mel_to_hz(mel):
    return 700 * (10 ** (np.asarray(mel, dtype=np.float64) / 2595) - 1)


def mel_bin_points(n_mels: int, fft_bins: int, sample_rate: float) -> np.ndarray:
    """Bin index of each of the n_mels + 2 mel-spaced edge frequencies."""
    nyquist = sample_rate / 2
    min_mel = hz_to_mel(0.0)
    max_mel = hz_to_mel(nyquist)
    mel_points = min_mel + (max_mel - min_mel) * np.arange(n_mels + 2) / (n_mels + 1)
    hz_points = mel_to_hz(mel_points)
    return np.floor((fft_bins + 1) * hz_points / nyquist).astype(np.int64)


def mel_filterbank(n_mels: int, fft_bins: int, sample_rate: float) -> np.ndarray:
    """Build a (n_mels, fft_bins) matrix of triangular filters.

    Filter i rises linearly from bin[i] to bin[i + 1] and falls back to zero
    at bin[i + 2]. Bins at or beyond fft_bins are not written. A ramp whose
    edges land on the same bin contributes nothing.
    """
    if n_mels <= 0 or fft_bins <= 0 or sample_rate <= 0:
        raise ValueError(
            f"Invalid filterbank shape: n_mels={n_mels}, fft_bins={fft_bins}, "
            f"sample_rate={sample_rate}"
        )
    bin_points = mel_bin_points(n_mels, fft_bins, sample_rate)

    filters = np.zeros((n_mels, fft_bins))
    for i in range(n_mels):
        left, center, right = bin_points[i], bin_points[i + 1], bin_points[i + 2]
        if center > left:
            j = np.arange(left, min(center, fft_bins))
            filters[i, j] = (j - left) / (center - left)
        if right > center:
            j = np.arange(center, min(right, fft_bins))
            filters[i, j] = (right - j) / (right - center)
    return filters


FilterKey = Tuple[int, int, int]


class MelFilterBankCache:
    """Filterbanks keyed by (n_mels, fft_bins, sample_rate).

    Entries are never invalidated; cached arrays are read-only so they can be
    shared between threads.
    """

    def __init__(self) -> None:
        self._filters: Dict[FilterKey, np.ndarray] = {}
        self._lock = threading.Lock()

    def get(self, n_mels: int, fft_bins: int, sample_rate: int) -> np.ndarray:
        key = (int(n_mels), int(fft_bins), int(sample_rate))
        filters = self._filters.get(key)
        if filters is not None:
            return filters
        with self._lock:
            filters = self._filters.get(key)
            if filters is None:
                logger.debug(
                    "Building mel filterbank n_mels=%d fft_bins=%d sample_rate=%d",
                    *key,
                )
                filters = mel_filterbank(*key)
                filters.setflags(write=False)
                self._filters[key] = filters
        return filters

    def __contains__(self, key: object) -> bool:
        return key in self._filters

    def __len__(self) -> int:
        return len(self._filters)

    def clear(self) -> None:
        with self._lock:
            self._filters.clear()
