"""WAV container sink for raw interleaved sample bytes."""

from __future__ import annotations

import wave
from pathlib import Path

from ..domain import NegotiatedFormat

_SUPPORTED_BITS = (8, 16, 24, 32)


class WavFormatError(ValueError):
    """The negotiated sample width cannot be stored in a PCM WAV file."""


class WavSink:
    """Write frames to ``path`` with a header fixed at open time.

    The ``fmt`` chunk (channels, rate, sample width) is written before any
    frame and never revised. Closing patches the RIFF and data sizes.
    """

    def __init__(self, path: Path, channels: int, sample_rate: int, significant_bits: int) -> None:
        if significant_bits not in _SUPPORTED_BITS:
            raise WavFormatError(f"cannot store {significant_bits}-bit samples in WAV")
        self.path = Path(path)
        self.channels = channels
        self.sample_rate = sample_rate
        self.significant_bits = significant_bits
        self.frames_written = 0
        self._frame_size = channels * (significant_bits // 8)
        # "xb" refuses to clobber an existing recording.
        self._file = open(self.path, "xb")
        try:
            self._wave = wave.open(self._file, "wb")
            self._wave.setnchannels(channels)
            self._wave.setsampwidth(significant_bits // 8)
            self._wave.setframerate(sample_rate)
            self._wave.writeframesraw(b"")
        except Exception:
            self._file.close()
            self.path.unlink(missing_ok=True)
            raise
        self._closed = False

    @classmethod
    def for_format(cls, path: Path, negotiated: NegotiatedFormat) -> "WavSink":
        return cls(path, negotiated.channels, negotiated.sample_rate, negotiated.significant_bits)

    def write(self, data: bytes | memoryview) -> int:
        if self._closed:
            raise ValueError(f"write to closed sink {self.path}")
        self._wave.writeframesraw(data)
        frames = len(data) // self._frame_size
        self.frames_written += frames
        return frames

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._wave.close()
        finally:
            self._file.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "WavSink":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = ["WavFormatError", "WavSink"]
