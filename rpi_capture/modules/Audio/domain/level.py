"""Running capture statistics for one session."""

from __future__ import annotations

import math

import numpy as np

from .constants import DB_FLOOR
from .formats import SampleFormat

# Formats numpy can view directly; packed 24-bit is counted but not metered.
_NUMPY_DTYPES: dict[SampleFormat, tuple[str, float]] = {
    SampleFormat.S8: ("i1", 2.0 ** 7),
    SampleFormat.S16_LE: ("<i2", 2.0 ** 15),
    SampleFormat.S16_BE: (">i2", 2.0 ** 15),
    SampleFormat.S32_LE: ("<i4", 2.0 ** 31),
    SampleFormat.S32_BE: (">i4", 2.0 ** 31),
    SampleFormat.FLOAT_LE: ("<f4", 1.0),
    SampleFormat.FLOAT_BE: (">f4", 1.0),
    SampleFormat.FLOAT64_LE: ("<f8", 1.0),
    SampleFormat.FLOAT64_BE: (">f8", 1.0),
}


class CaptureStats:
    """Frame count, buffer count and peak level for a capture session."""

    def __init__(self, sample_format: SampleFormat, sample_rate: int, channels: int) -> None:
        self.sample_format = sample_format
        self.sample_rate = max(1, int(sample_rate))
        self.channels = max(1, int(channels))
        self.frames = 0
        self.buffers = 0
        self._peak = 0.0
        dtype = _NUMPY_DTYPES.get(sample_format)
        self._dtype = np.dtype(dtype[0]) if dtype else None
        self._full_scale = dtype[1] if dtype else 1.0

    @property
    def metered(self) -> bool:
        return self._dtype is not None

    def add(self, data: bytes | memoryview, frames: int) -> None:
        self.frames += frames
        self.buffers += 1
        if self._dtype is None or not frames:
            return
        samples = np.frombuffer(data, dtype=self._dtype)
        if samples.size == 0:
            return
        peak = float(np.max(np.abs(samples.astype(np.float64)))) / self._full_scale
        if peak > self._peak:
            self._peak = peak

    @property
    def duration(self) -> float:
        return self.frames / self.sample_rate

    @property
    def peak_dbfs(self) -> float | None:
        if self._dtype is None:
            return None
        if self._peak <= 0.0:
            return DB_FLOOR
        return max(DB_FLOOR, 20.0 * math.log10(self._peak))

    def summary(self) -> str:
        text = f"{self.frames} frames ({self.duration:.2f}s) in {self.buffers} buffers"
        peak = self.peak_dbfs
        if peak is not None:
            text += f", peak {peak:.1f} dBFS"
        return text


__all__ = ["CaptureStats"]
