"""Core data structures for the audio capture domain."""

from __future__ import annotations

from dataclasses import dataclass, field

from .formats import SampleFormat, bit_depth_of


@dataclass(slots=True, frozen=True)
class AudioDeviceInfo:
    """One record- and/or playback-capable endpoint on a card."""

    card_index: int
    card_name: str
    device_index: int
    name: str
    record: bool
    play: bool
    host_index: int | None = None
    default_sample_rate: float = 0.0

    @property
    def path(self) -> str:
        return f"hw:{self.card_index},{self.device_index}"

    def __str__(self) -> str:
        return f"{self.card_name} / {self.name} ({self.path})"


@dataclass(slots=True, frozen=True)
class CardInfo:
    index: int
    name: str
    devices: tuple[AudioDeviceInfo, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        return self.name


@dataclass(slots=True, frozen=True)
class DevicePair:
    record: AudioDeviceInfo
    playback: AudioDeviceInfo


@dataclass(slots=True, frozen=True)
class FormatRequest:
    """Values asked of the device during negotiation."""

    channels: int
    sample_rate: int
    sample_format: SampleFormat
    buffer_min_frames: int
    buffer_max_frames: int

    def __post_init__(self) -> None:
        if self.channels < 1:
            raise ValueError("channels must be >= 1")
        if self.sample_rate < 1:
            raise ValueError("sample_rate must be >= 1")
        if not 0 < self.buffer_min_frames <= self.buffer_max_frames:
            raise ValueError(
                f"invalid buffer range [{self.buffer_min_frames}, {self.buffer_max_frames}]"
            )


@dataclass(slots=True, frozen=True)
class NegotiatedFormat:
    """Parameters the device actually agreed to for one session."""

    channels: int
    sample_rate: int
    sample_format: SampleFormat
    buffer_frames: int
    bytes_per_frame: int

    def __post_init__(self) -> None:
        bit_depth_of(self.sample_format)
        if self.bytes_per_frame <= 0:
            raise ValueError(f"bytes per frame must be positive, got {self.bytes_per_frame}")
        if self.channels <= 0 or self.sample_rate <= 0 or self.buffer_frames <= 0:
            raise ValueError(f"invalid negotiated format {self!r}")

    @property
    def significant_bits(self) -> int:
        return bit_depth_of(self.sample_format)

    @property
    def buffer_bytes(self) -> int:
        return self.bytes_per_frame * self.buffer_frames

    @property
    def buffer_seconds(self) -> float:
        return self.buffer_frames / self.sample_rate

    def describe(self) -> str:
        return (
            f"{self.channels}ch {self.sample_rate}Hz {self.sample_format.value} "
            f"buffer={self.buffer_frames} frames ({self.bytes_per_frame} B/frame)"
        )


__all__ = [
    "AudioDeviceInfo",
    "CardInfo",
    "DevicePair",
    "FormatRequest",
    "NegotiatedFormat",
]
