"""Domain models and constants for the audio capture module."""

from .constants import (
    BUFFER_MAX_FRAMES,
    BUFFER_MIN_FRAMES,
    REQUESTED_CHANNELS,
    REQUESTED_SAMPLE_FORMAT,
    REQUESTED_SAMPLE_RATE,
    TARGET_CARD_NAME,
)
from .entities import AudioDeviceInfo, CardInfo, DevicePair, FormatRequest, NegotiatedFormat
from .formats import SampleFormat, UnknownSampleFormatError, bit_depth_of, known_formats
from .level import CaptureStats

__all__ = [
    "AudioDeviceInfo",
    "CardInfo",
    "CaptureStats",
    "DevicePair",
    "FormatRequest",
    "NegotiatedFormat",
    "SampleFormat",
    "UnknownSampleFormatError",
    "bit_depth_of",
    "known_formats",
    "BUFFER_MAX_FRAMES",
    "BUFFER_MIN_FRAMES",
    "REQUESTED_CHANNELS",
    "REQUESTED_SAMPLE_FORMAT",
    "REQUESTED_SAMPLE_RATE",
    "TARGET_CARD_NAME",
]
