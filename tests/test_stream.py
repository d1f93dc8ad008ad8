"""Tests for the PCM ring buffer."""

import numpy as np
import pytest

from beatscope.audio.stream import StreamBuffer


def test_latest_is_zero_padded_while_filling():
    buffer = StreamBuffer(capacity=8)
    buffer.append(np.array([1, 2, 3], dtype=np.float32))
    np.testing.assert_array_equal(buffer.latest(), [0, 0, 0, 0, 0, 1, 2, 3])
    np.testing.assert_array_equal(buffer.latest(2), [2, 3])
    assert len(buffer) == 3


def test_wraparound_keeps_chronological_order():
    buffer = StreamBuffer(capacity=5)
    for start in range(0, 12, 3):
        buffer.append(np.arange(start, start + 3, dtype=np.float32))
    np.testing.assert_array_equal(buffer.latest(), [7, 8, 9, 10, 11])
    np.testing.assert_array_equal(buffer.latest(3), [9, 10, 11])
    assert buffer.total_samples == 12


def test_oversized_chunk_keeps_tail():
    buffer = StreamBuffer(capacity=4)
    buffer.append(np.arange(10, dtype=np.float32))
    np.testing.assert_array_equal(buffer.latest(), [6, 7, 8, 9])
    assert buffer.total_samples == 10


def test_empty_chunk_is_ignored():
    buffer = StreamBuffer(capacity=4)
    buffer.append(np.array([], dtype=np.float32))
    assert len(buffer) == 0
    assert buffer.total_samples == 0


def test_clear():
    buffer = StreamBuffer(capacity=4)
    buffer.append(np.ones(3, dtype=np.float32))
    buffer.clear()
    assert len(buffer) == 0
    assert buffer.total_samples == 0
    assert not buffer.latest().any()


def test_invalid_sizes():
    with pytest.raises(ValueError):
        StreamBuffer(capacity=0)
    buffer = StreamBuffer(capacity=4)
    with pytest.raises(ValueError):
        buffer.latest(5)
    with pytest.raises(ValueError):
        buffer.latest(0)
