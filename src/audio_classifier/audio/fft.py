"""Radix-2 FFT: recursive reference and iterative in-place engine.

Both paths share the twiddle table and the butterfly arithmetic, so for a
given power-of-two input the engine reproduces the recursive reference
exactly.
"""

from __future__ import annotations

import threading
from typing import List, Tuple

import numpy as np

from audio_classifier.errors import InvalidLengthError


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def _twiddles(n: int) -> Tuple[np.ndarray, np.ndarray]:
    """(cos, sin) of -2*pi*k/n for k in [0, n/2)."""
    angle = -2 * np.pi * np.arange(n // 2) / n
    return np.cos(angle), np.sin(angle)


def _butterfly(even_re, even_im, odd_re, odd_im, cos, sin):
    """Combine half-size transforms into the first and second output halves."""
    t_re = cos * odd_re - sin * odd_im
    t_im = sin * odd_re + cos * odd_im
    return (
        even_re + t_re,
        even_im + t_im,
        even_re - t_re,
        even_im - t_im,
    )


def _fft_parts(x: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    n = x.shape[0]
    if n == 1:
        return x.copy(), np.zeros(1)
    if n % 2 != 0:
        raise InvalidLengthError(f"FFT size must be a power of 2, got {n}")

    even_re, even_im = _fft_parts(x[0::2])
    odd_re, odd_im = _fft_parts(x[1::2])
    lo_re, lo_im, hi_re, hi_im = _butterfly(
        even_re, even_im, odd_re, odd_im, *_twiddles(n)
    )
    return np.concatenate([lo_re, hi_re]), np.concatenate([lo_im, hi_im])


def fft(signal) -> np.ndarray:
    """Recursive decimation-in-time Cooley-Tukey transform.

    Args:
        signal: Real sequence of length N (power of two).

    Returns:
        complex128 array of length N.

    Raises:
        InvalidLengthError: N is zero, or N > 1 and odd at any recursion level.
    """
    x = np.asarray(signal, dtype=np.float64)
    if x.ndim != 1 or x.shape[0] == 0:
        raise InvalidLengthError(f"FFT input must be a non-empty 1-D signal, got shape {x.shape}")
    re, im = _fft_parts(x)
    out = np.empty(x.shape[0], dtype=np.complex128)
    out.real = re
    out.imag = im
    return out


def _bit_reversal(n: int) -> np.ndarray:
    bits = n.bit_length() - 1
    idx = np.arange(n)
    rev = np.zeros(n, dtype=np.int64)
    for _ in range(bits):
        rev = (rev << 1) | (idx & 1)
        idx >>= 1
    return rev


class FFTEngine:
    """Iterative radix-2 FFT over preallocated buffers for one fixed size.

    Interface:
      engine = FFTEngine(1024)
      spectrum = engine.transform(frame)          # (1024,) complex
      spectra = engine.transform_frames(frames)   # (n_frames, 1024) complex
    """

    def __init__(self, size: int):
        if not is_power_of_two(size):
            raise InvalidLengthError(f"FFT size must be a power of 2, got {size}")
        self.size = size
        self._order = _bit_reversal(size)
        # Stage widths 2, 4, ..., size with the twiddles of a width-m sub-transform
        self._stages: List[Tuple[np.ndarray, np.ndarray]] = []
        m = 2
        while m <= size:
            self._stages.append(_twiddles(m))
            m *= 2
        # One pair of work buffers per thread
        self._local = threading.local()

    def _buffers(self, n_frames: int) -> Tuple[np.ndarray, np.ndarray]:
        bufs = getattr(self._local, "buffers", None)
        if bufs is None or bufs[0].shape[0] != n_frames:
            bufs = (
                np.zeros((n_frames, self.size)),
                np.zeros((n_frames, self.size)),
            )
            self._local.buffers = bufs
        return bufs

    def transform_frames(self, frames) -> np.ndarray:
        """Transform each row of a (n_frames, size) real array.

        Returns a new complex128 array; the calling thread's work buffers are
        reused between calls.
        """
        data = np.asarray(frames, dtype=np.float64)
        if data.ndim != 2 or data.shape[1] != self.size:
            raise InvalidLengthError(
                f"Expected frames of length {self.size}, got shape {data.shape}"
            )
        n_frames = data.shape[0]
        if n_frames == 0:
            return np.zeros((0, self.size), dtype=np.complex128)

        re, im = self._buffers(n_frames)
        re[:] = data[:, self._order]
        im[:] = 0.0

        for cos, sin in self._stages:
            half = cos.shape[0]
            re_blocks = re.reshape(n_frames, -1, 2 * half)
            im_blocks = im.reshape(n_frames, -1, 2 * half)
            lo_re, lo_im, hi_re, hi_im = _butterfly(
                re_blocks[:, :, :half],
                im_blocks[:, :, :half],
                re_blocks[:, :, half:],
                im_blocks[:, :, half:],
                cos,
                sin,
            )
            re_blocks[:, :, :half] = lo_re
            im_blocks[:, :, :half] = lo_im
            re_blocks[:, :, half:] = hi_re
            im_blocks[:, :, half:] = hi_im

        out = np.empty((n_frames, self.size), dtype=np.complex128)
        out.real = re
        out.imag = im
        return out

    def transform(self, frame) -> np.ndarray:
        """Transform a single real frame of length size."""
        data = np.asarray(frame, dtype=np.float64)
        if data.ndim != 1:
            raise InvalidLengthError(f"Expected a 1-D frame, got shape {data.shape}")
        return self.transform_frames(data[np.newaxis, :])[0]
