"""Unit tests for segmentation and the live ring buffer."""

from __future__ import annotations

import unittest

import numpy as np

from audio_classifier.audio.segmenter import RingBuffer, last_segment, segment_audio

SR = 100  # 1 s segment = 100 samples


class TestSegmentAudio(unittest.TestCase):
    """Batch segmentation with 50% overlap."""

    def test_exactly_one_segment(self) -> None:
        audio = np.arange(SR, dtype=np.float32)
        segments = segment_audio(audio, SR)
        self.assertEqual(len(segments), 1)
        np.testing.assert_array_equal(segments[0], audio)

    def test_two_lengths_give_three_segments(self) -> None:
        audio = np.arange(2 * SR, dtype=np.float32)
        segments = segment_audio(audio, SR)
        self.assertEqual(len(segments), 3)
        self.assertEqual([s[0] for s in segments], [0.0, 50.0, 100.0])
        for s in segments:
            self.assertEqual(s.shape, (SR,))

    def test_trailing_partial_window_dropped(self) -> None:
        audio = np.arange(2 * SR + 49, dtype=np.float32)
        self.assertEqual(len(segment_audio(audio, SR)), 3)
        audio = np.arange(2 * SR + 50, dtype=np.float32)
        self.assertEqual(len(segment_audio(audio, SR)), 4)

    def test_shorter_than_segment_yields_nothing(self) -> None:
        self.assertEqual(segment_audio(np.zeros(SR - 1), SR), [])
        self.assertEqual(segment_audio(np.zeros(0), SR), [])

    def test_segment_duration(self) -> None:
        audio = np.zeros(SR)
        segments = segment_audio(audio, SR, segment_sec=0.5)
        self.assertEqual(len(segments), 3)
        self.assertEqual(segments[0].shape, (50,))

    def test_odd_segment_length_uses_integer_stride(self) -> None:
        audio = np.arange(202, dtype=np.float32)
        segments = segment_audio(audio, 101)
        self.assertEqual([s[0] for s in segments], [0.0, 50.0, 100.0])

    def test_segments_are_copies(self) -> None:
        audio = np.zeros(SR, dtype=np.float32)
        segments = segment_audio(audio, SR)
        segments[0][0] = 1.0
        self.assertEqual(audio[0], 0.0)

    def test_returns_float32(self) -> None:
        segments = segment_audio(np.zeros(SR, dtype=np.float64), SR)
        self.assertEqual(segments[0].dtype, np.float32)

    def test_zero_sample_segment_yields_nothing(self) -> None:
        """floor(100 * 0.001) == 0 samples per segment."""
        self.assertEqual(segment_audio(np.zeros(10), SR, segment_sec=0.001), [])
        self.assertEqual(segment_audio(np.zeros(10), 1, segment_sec=0.5), [])


class TestLastSegment(unittest.TestCase):
    """Single trailing segment for live use."""

    def test_long_buffer_returns_tail(self) -> None:
        audio = np.arange(250, dtype=np.float32)
        seg = last_segment(audio, SR)
        np.testing.assert_array_equal(seg, audio[-SR:])

    def test_exact_length(self) -> None:
        audio = np.arange(SR, dtype=np.float32)
        np.testing.assert_array_equal(last_segment(audio, SR), audio)

    def test_short_buffer_zero_padded_on_right(self) -> None:
        audio = np.ones(30, dtype=np.float32)
        seg = last_segment(audio, SR)
        self.assertEqual(seg.shape, (SR,))
        np.testing.assert_array_equal(seg[:30], np.ones(30))
        np.testing.assert_array_equal(seg[30:], np.zeros(70))

    def test_empty_buffer(self) -> None:
        np.testing.assert_array_equal(last_segment(np.zeros(0), SR), np.zeros(SR))

    def test_zero_sample_segment_is_empty(self) -> None:
        seg = last_segment(np.arange(10, dtype=np.float32), SR, segment_sec=0.001)
        self.assertEqual(seg.shape, (0,))
        self.assertEqual(seg.dtype, np.float32)


class TestRingBuffer(unittest.TestCase):
    """Fixed-size ring buffer."""

    def test_partial_fill(self) -> None:
        ring = RingBuffer(5)
        ring.push(np.array([1, 2]))
        np.testing.assert_array_equal(ring.get_all(), [1, 2])
        self.assertEqual(len(ring), 2)
        self.assertFalse(ring.full)

    def test_wraps_in_chronological_order(self) -> None:
        ring = RingBuffer(5)
        ring.push(np.array([1, 2, 3]))
        ring.push(np.array([4, 5, 6, 7]))
        np.testing.assert_array_equal(ring.get_all(), [3, 4, 5, 6, 7])
        self.assertTrue(ring.full)

    def test_oversized_chunk_keeps_tail(self) -> None:
        ring = RingBuffer(3)
        ring.push(np.arange(10))
        np.testing.assert_array_equal(ring.get_all(), [7, 8, 9])

    def test_many_small_pushes_wrap_repeatedly(self) -> None:
        ring = RingBuffer(4)
        for value in range(11):
            ring.push(np.array([value]))
        np.testing.assert_array_equal(ring.get_all(), [7, 8, 9, 10])

    def test_full_size_chunk_after_partial_fill(self) -> None:
        ring = RingBuffer(4)
        ring.push(np.array([1, 2, 3]))
        ring.push(np.array([10, 11, 12, 13]))
        np.testing.assert_array_equal(ring.get_all(), [10, 11, 12, 13])
        ring.push(np.array([14]))
        np.testing.assert_array_equal(ring.get_all(), [11, 12, 13, 14])

    def test_get_all_is_a_copy(self) -> None:
        ring = RingBuffer(3, dtype=np.float64)
        ring.push(np.array([1.0, 2.0]))
        out = ring.get_all()
        out[0] = 99.0
        np.testing.assert_array_equal(ring.get_all(), [1.0, 2.0])
        self.assertEqual(out.dtype, np.float64)

    def test_empty_push_is_noop(self) -> None:
        ring = RingBuffer(3)
        ring.push(np.array([]))
        self.assertEqual(len(ring), 0)
        self.assertEqual(ring.get_all().size, 0)

    def test_clear(self) -> None:
        ring = RingBuffer(3)
        ring.push(np.arange(3))
        ring.clear()
        self.assertEqual(len(ring), 0)

    def test_invalid_size(self) -> None:
        with self.assertRaises(ValueError):
            RingBuffer(0)


if __name__ == "__main__":
    unittest.main()
