"""Unit tests for capture statistics."""

import numpy as np
import pytest

from rpi_capture.modules.Audio.domain import CaptureStats, SampleFormat
from rpi_capture.modules.Audio.domain.constants import DB_FLOOR


def test_counts_frames_and_buffers():
    stats = CaptureStats(SampleFormat.S16_LE, 44100, 1)
    stats.add(bytes(2 * 441), 441)
    stats.add(bytes(2 * 441), 441)

    assert stats.frames == 882
    assert stats.buffers == 2
    assert stats.duration == pytest.approx(0.02)


def test_silence_reports_floor():
    stats = CaptureStats(SampleFormat.S16_LE, 44100, 1)
    stats.add(bytes(64), 32)
    assert stats.peak_dbfs == DB_FLOOR


def test_full_scale_is_near_zero_dbfs():
    stats = CaptureStats(SampleFormat.S16_LE, 44100, 1)
    samples = np.array([0, -32768, 16384], dtype="<i2")
    stats.add(samples.tobytes(), 3)
    assert stats.peak_dbfs == pytest.approx(0.0, abs=0.01)


def test_half_scale_float():
    stats = CaptureStats(SampleFormat.FLOAT_LE, 48000, 2)
    stats.add(np.array([0.5, -0.25], dtype="<f4").tobytes(), 1)
    assert stats.peak_dbfs == pytest.approx(-6.02, abs=0.01)


def test_packed_24_bit_is_counted_but_not_metered():
    stats = CaptureStats(SampleFormat.S24_3LE, 44100, 1)
    stats.add(bytes(30), 10)

    assert not stats.metered
    assert stats.peak_dbfs is None
    assert stats.frames == 10
    assert "dBFS" not in stats.summary()
