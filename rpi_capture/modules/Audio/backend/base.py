"""Device capability boundary consumed by discovery and capture."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..domain import AudioDeviceInfo, CardInfo, SampleFormat


class AudioDeviceError(RuntimeError):
    """Enumeration, negotiation or I/O failure reported by the audio backend."""


class DeviceHandle(ABC):
    """An opened device. Negotiation calls return the value the device accepted."""

    device: AudioDeviceInfo

    @abstractmethod
    def negotiate_channels(self, channels: int) -> int: ...

    @abstractmethod
    def negotiate_rate(self, sample_rate: int) -> int: ...

    @abstractmethod
    def negotiate_format(self, sample_format: SampleFormat) -> SampleFormat: ...

    @abstractmethod
    def negotiate_buffer_size(self, min_frames: int, max_frames: int) -> int: ...

    @abstractmethod
    def prepare(self) -> None:
        """Commit the negotiated parameters and make the device ready for reads."""

    @abstractmethod
    def bytes_per_frame(self) -> int: ...

    @abstractmethod
    def read(self, buffer: bytearray | memoryview, frames: int) -> int:
        """Block until ``frames`` frames are read into ``buffer``; return frames read."""

    @abstractmethod
    def close(self) -> None:
        """Release the device. Safe to call more than once."""

    @property
    def overflows(self) -> int:
        return 0

    def __enter__(self) -> "DeviceHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class AudioBackend(ABC):
    """Enumerates cards and opens devices."""

    @abstractmethod
    def cards(self) -> list[CardInfo]: ...

    @abstractmethod
    def open(self, device: AudioDeviceInfo) -> DeviceHandle: ...


__all__ = ["AudioBackend", "AudioDeviceError", "DeviceHandle"]
