"""Audio decoding, capture and feature extraction modules."""

from audio_classifier.audio.collector import AudioCollector
from audio_classifier.audio.config import SpectrogramConfig
from audio_classifier.audio.decoding import PcmBuffer, read_wav, write_wav
from audio_classifier.audio.features import (
    FrameAnalyzer,
    hann_window,
    magnitude,
    normalize_spectrogram,
)
from audio_classifier.audio.fft import FFTEngine, fft
from audio_classifier.audio.mel import MelFilterBankCache, hz_to_mel, mel_filterbank, mel_to_hz
from audio_classifier.audio.segmenter import RingBuffer, last_segment, segment_audio

__all__ = [
    "AudioCollector",
    "FFTEngine",
    "FrameAnalyzer",
    "MelFilterBankCache",
    "PcmBuffer",
    "RingBuffer",
    "SpectrogramConfig",
    "fft",
    "hann_window",
    "hz_to_mel",
    "last_segment",
    "magnitude",
    "mel_filterbank",
    "mel_to_hz",
    "normalize_spectrogram",
    "read_wav",
    "segment_audio",
    "write_wav",
]
