"""Labeled-sample store: per-class audio clips owned by the caller."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from audio_classifier.audio.decoding import PcmBuffer, read_wav

SampleSource = Union[str, Path, PcmBuffer]


@dataclass(frozen=True, eq=False)
class LabeledSample:
    """One recorded or uploaded clip: a file path or an already-decoded buffer."""

    source: SampleSource
    duration: Optional[float] = None
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.duration is None and isinstance(self.source, PcmBuffer):
            object.__setattr__(self, "duration", self.source.duration)

    def __repr__(self) -> str:
        label = self.name or (
            str(self.source) if not isinstance(self.source, PcmBuffer) else "<pcm>"
        )
        return f"LabeledSample({label})"


@dataclass
class AudioClass:
    """A named class and its clips, in insertion order."""

    name: str
    samples: List[LabeledSample] = field(default_factory=list)

    @property
    def total_duration(self) -> float:
        return sum(s.duration or 0.0 for s in self.samples)


class SampleStore:
    """Ordered classes of labeled samples; the class index is the label.

    Interface:
      store = SampleStore(["dog", "cat"])
      store.add_sample(0, LabeledSample("bark.wav"))
      for class_index, audio_class in store: ...
    """

    def __init__(self, class_names: Optional[List[str]] = None):
        self._classes: List[AudioClass] = [AudioClass(n) for n in class_names or []]

    def __len__(self) -> int:
        return len(self._classes)

    def __iter__(self) -> Iterator[Tuple[int, AudioClass]]:
        return iter(enumerate(self._classes))

    def __getitem__(self, class_index: int) -> AudioClass:
        return self._classes[self._check_index(class_index)]

    @property
    def class_names(self) -> List[str]:
        return [c.name for c in self._classes]

    @property
    def sample_count(self) -> int:
        return sum(len(c.samples) for c in self._classes)

    def _check_index(self, class_index: int) -> int:
        if not 0 <= class_index < len(self._classes):
            raise IndexError(
                f"class index {class_index} out of range for {len(self._classes)} classes"
            )
        return class_index

    def add_class(self, name: Optional[str] = None) -> int:
        """Append a class; unnamed classes get 'Class N'. Returns its index."""
        index = len(self._classes)
        self._classes.append(AudioClass(name or f"Class {index + 1}"))
        return index

    def add_sample(self, class_index: int, sample: Union[LabeledSample, SampleSource]) -> None:
        if not isinstance(sample, LabeledSample):
            sample = LabeledSample(sample)
        self[class_index].samples.append(sample)

    def remove_sample(self, class_index: int, sample_index: int) -> LabeledSample:
        samples = self[class_index].samples
        if not 0 <= sample_index < len(samples):
            raise IndexError(
                f"sample index {sample_index} out of range for class {class_index}"
            )
        return samples.pop(sample_index)

    @classmethod
    def from_directory(cls, root: Union[str, Path], pattern: str = "*.wav") -> "SampleStore":
        """One class per subdirectory (sorted by name), one sample per matching file."""
        root = Path(root)
        store = cls()
        for class_dir in sorted(p for p in root.iterdir() if p.is_dir()):
            index = store.add_class(class_dir.name)
            for path in sorted(class_dir.glob(pattern)):
                store.add_sample(index, LabeledSample(path, name=path.name))
        return store


def decode_sample(sample: LabeledSample) -> PcmBuffer:
    """Default decoder: pass PcmBuffers through, read paths as WAV."""
    if isinstance(sample.source, PcmBuffer):
        return sample.source
    return read_wav(sample.source)
