"""Error types shared by the feature pipeline."""

from __future__ import annotations

from dataclasses import dataclass


class InvalidLengthError(ValueError):
    """Signal length cannot be transformed by the radix-2 FFT."""


class DecodeError(RuntimeError):
    """An audio sample could not be decoded to PCM."""


@dataclass(frozen=True)
class DecodeFailure:
    """A sample skipped while building a dataset."""

    class_index: int
    sample: object
    error: Exception

    def __str__(self) -> str:
        return f"class {self.class_index}: {self.sample!r}: {self.error}"
