"""Unit tests for windowing, frame analysis and spectrogram normalization."""

from __future__ import annotations

import math
import unittest

import numpy as np

from audio_classifier.audio.config import SpectrogramConfig
from audio_classifier.audio.features import (
    FrameAnalyzer,
    hann_window,
    magnitude,
    normalize_spectrogram,
)
from audio_classifier.audio.fft import fft
from audio_classifier.audio.mel import MelFilterBankCache, mel_filterbank

LOG_FLOOR = math.log(1e-10)


def _reference_spectrogram(segment, fft_size, hop, n_mels, sample_rate):
    """Frame-by-frame loop over the recursive FFT."""
    filters = mel_filterbank(n_mels, fft_size, sample_rate)
    window = [0.5 - 0.5 * math.cos(2 * math.pi * j / (fft_size - 1)) for j in range(fft_size)]
    rows = []
    for start in range(0, len(segment) - fft_size + 1, hop):
        windowed = np.array(
            [float(segment[start + j]) * window[j] for j in range(fft_size)], dtype=np.float32
        )
        spectrum = fft(windowed)
        mags = [math.sqrt(c.real * c.real + c.imag * c.imag) for c in spectrum]
        row = []
        for i in range(n_mels):
            energy = sum(mags[j] * filters[i, j] for j in range(fft_size))
            row.append(math.log(max(energy, 1e-10)))
        rows.append(row)
    return np.array(rows)


class TestWindowAndMagnitude(unittest.TestCase):

    def test_hann_window_shape(self) -> None:
        w = hann_window(1024)
        self.assertEqual(w.shape, (1024,))
        self.assertAlmostEqual(w[0], 0.0)
        self.assertAlmostEqual(w[-1], 0.0)
        np.testing.assert_allclose(w, w[::-1], atol=1e-12)
        self.assertAlmostEqual(hann_window(5)[2], 1.0)

    def test_magnitude(self) -> None:
        np.testing.assert_allclose(magnitude(np.array([3 + 4j, -1j, 0])), [5.0, 1.0, 0.0])


class TestFrameAnalyzer(unittest.TestCase):
    """Segment -> (n_frames, n_mels) raw log-Mel spectrogram."""

    def setUp(self) -> None:
        self.config = SpectrogramConfig()
        self.analyzer = FrameAnalyzer(self.config)

    def test_frame_count(self) -> None:
        frames = self.analyzer.frames(np.zeros(44100, dtype=np.float32))
        self.assertEqual(frames.shape, (85, 1024))
        self.assertEqual(self.config.frames_per_segment(44100), 85)

    def test_frames_are_hop_spaced(self) -> None:
        audio = np.arange(2048, dtype=np.float32)
        frames = self.analyzer.frames(audio)
        self.assertEqual(frames.shape, (3, 1024))
        self.assertEqual([f[0] for f in frames], [0.0, 512.0, 1024.0])

    def test_silence_is_log_floor(self) -> None:
        spec = self.analyzer.analyze(np.zeros(44100, dtype=np.float32), 44100)
        self.assertEqual(spec.shape, (85, 128))
        np.testing.assert_allclose(spec, LOG_FLOOR, rtol=1e-12)

    def test_short_segment_gives_empty_spectrogram(self) -> None:
        spec = self.analyzer.analyze(np.zeros(1000, dtype=np.float32), 44100)
        self.assertEqual(spec.shape, (0, 128))

    def test_matches_frame_by_frame_reference(self) -> None:
        config = SpectrogramConfig(fft_size=16, hop_size=8, n_mels=6, segment_sec=1.0)
        analyzer = FrameAnalyzer(config)
        rng = np.random.default_rng(3)
        segment = rng.uniform(-1, 1, 64).astype(np.float32)
        spec = analyzer.analyze(segment, sample_rate=1000)
        expected = _reference_spectrogram(segment, 16, 8, 6, 1000)
        self.assertEqual(spec.shape, (7, 6))
        np.testing.assert_allclose(spec, expected, rtol=1e-5, atol=1e-6)

    def test_louder_signal_has_more_energy(self) -> None:
        rng = np.random.default_rng(4)
        noise = rng.uniform(-0.1, 0.1, 16000).astype(np.float32)
        quiet = self.analyzer.analyze(noise, 16000)
        loud = self.analyzer.analyze(noise * 4, 16000)
        active = quiet > LOG_FLOOR + 1.0
        self.assertTrue(np.any(active))
        np.testing.assert_allclose(loud[active] - quiet[active], math.log(4), atol=1e-4)

    def test_sample_rate_selects_filterbank(self) -> None:
        cache = MelFilterBankCache()
        analyzer = FrameAnalyzer(self.config, cache=cache)
        audio = np.zeros(16000, dtype=np.float32)
        analyzer.analyze(audio, 16000)
        analyzer.analyze(audio, 48000)
        analyzer.analyze(audio)
        self.assertEqual(len(cache), 3)
        self.assertIn((128, 1024, 44100), cache)

    def test_explicit_filters(self) -> None:
        filters = np.zeros((4, 1024))
        spec = self.analyzer.analyze(np.ones(2048, dtype=np.float32), filters=filters)
        self.assertEqual(spec.shape, (3, 4))
        np.testing.assert_allclose(spec, LOG_FLOOR, rtol=1e-12)


class TestNormalizeSpectrogram(unittest.TestCase):
    """Per-spectrogram zero-mean / unit-variance."""

    def test_non_constant_input(self) -> None:
        rng = np.random.default_rng(5)
        spec = rng.normal(-12.0, 3.0, (85, 128))
        out = normalize_spectrogram(spec)
        self.assertAlmostEqual(out.mean(), 0.0, delta=1e-6)
        self.assertAlmostEqual(out.std(), 1.0, delta=1e-6)

    def test_constant_input_is_zero_and_finite(self) -> None:
        spec = np.full((85, 128), LOG_FLOOR)
        out = normalize_spectrogram(spec)
        self.assertTrue(np.all(np.isfinite(out)))
        np.testing.assert_allclose(out, 0.0, atol=1e-4)

    def test_empty_input(self) -> None:
        with np.errstate(all="raise"):
            out = normalize_spectrogram(np.zeros((0, 128)))
        self.assertEqual(out.shape, (0, 128))

    def test_input_not_modified(self) -> None:
        spec = np.array([[1.0, 2.0], [3.0, 4.0]])
        normalize_spectrogram(spec)
        np.testing.assert_array_equal(spec, [[1.0, 2.0], [3.0, 4.0]])

    def test_uses_population_std(self) -> None:
        out = normalize_spectrogram(np.array([[1.0, 3.0]]))
        np.testing.assert_allclose(out, [[-1.0, 1.0]], atol=1e-7)


if __name__ == "__main__":
    unittest.main()
