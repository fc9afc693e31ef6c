"""Batch dataset building and live spectrogram analysis."""

from audio_classifier.pipeline.dataset import AudioClass, LabeledSample, SampleStore, decode_sample
from audio_classifier.pipeline.spectrogram_pipeline import (
    DatasetResult,
    LiveSpectrogramStream,
    SpectrogramPipeline,
)

__all__ = [
    "AudioClass",
    "DatasetResult",
    "LabeledSample",
    "LiveSpectrogramStream",
    "SampleStore",
    "SpectrogramPipeline",
    "decode_sample",
]
