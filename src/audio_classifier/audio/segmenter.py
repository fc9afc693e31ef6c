"""Fixed-duration segmentation and a ring buffer for live audio."""

from __future__ import annotations

from typing import List

import numpy as np


def _segment_length(sample_rate: float, segment_sec: float) -> int:
    return max(int(np.floor(sample_rate * segment_sec)), 0)


def segment_audio(
    samples: np.ndarray,
    sample_rate: float,
    segment_sec: float = 1.0,
) -> List[np.ndarray]:
    """Split a buffer into 50%-overlapping segments of segment_sec.

    A trailing partial window is dropped, so a buffer shorter than one
    segment yields no segments. So does a rate/duration pair whose segment
    rounds down to zero samples.

    Returns:
        List of float32 arrays, each of shape (segment_length,).
    """
    audio = np.asarray(samples, dtype=np.float32)
    length = _segment_length(sample_rate, segment_sec)
    if length == 0:
        return []
    stride = max(length // 2, 1)
    return [
        audio[start : start + length].copy()
        for start in range(0, len(audio) - length + 1, stride)
    ]


def last_segment(
    samples: np.ndarray,
    sample_rate: float,
    segment_sec: float = 1.0,
) -> np.ndarray:
    """Most recent segment_sec of audio, zero-padded on the right if short."""
    audio = np.asarray(samples, dtype=np.float32)
    length = _segment_length(sample_rate, segment_sec)
    if len(audio) >= length:
        return audio[len(audio) - length :].copy()
    padded = np.zeros(length, dtype=np.float32)
    padded[: len(audio)] = audio
    return padded


class RingBuffer:
    """Fixed-capacity window over the newest live samples.

    Writes wrap modulo the capacity; reads unroll from the oldest retained
    sample, so get_all() is always in arrival order.
    """

    def __init__(self, size: int, dtype: type = np.float32):
        if size <= 0:
            raise ValueError(f"size must be positive, got {size}")
        self.size = size
        self.dtype = dtype
        self._slots = np.zeros(size, dtype=dtype)
        self._head = 0  # next slot to write
        self._filled = 0

    def __len__(self) -> int:
        return self._filled

    @property
    def full(self) -> bool:
        return self._filled == self.size

    def _positions(self, start: int, count: int) -> np.ndarray:
        return (start + np.arange(count)) % self.size

    def push(self, chunk: np.ndarray) -> None:
        """Append a chunk, evicting the oldest samples once at capacity."""
        incoming = np.asarray(chunk, dtype=self.dtype)[-self.size :]
        if incoming.size == 0:
            return
        self._slots[self._positions(self._head, incoming.size)] = incoming
        self._head = (self._head + incoming.size) % self.size
        self._filled = min(self._filled + incoming.size, self.size)

    def get_all(self) -> np.ndarray:
        """Buffered samples, oldest first, as a new array."""
        oldest = (self._head - self._filled) % self.size
        return self._slots[self._positions(oldest, self._filled)]

    def clear(self) -> None:
        self._head = 0
        self._filled = 0
