"""Audio classifier features - segmentation, FFT, log-Mel spectrograms, dataset building."""

from audio_classifier.audio.config import SpectrogramConfig
from audio_classifier.pipeline import SampleStore, SpectrogramPipeline

__all__ = ["SampleStore", "SpectrogramConfig", "SpectrogramPipeline"]
