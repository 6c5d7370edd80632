"""Service layer for the audio capture module."""

from .capture_loop import STATUS_STOPPED_RECORDING, CaptureLoop, CaptureResult
from .negotiator import NegotiationError, negotiate
from .playback import STATUS_STOPPED_PLAYING, play_stub
from .wav_sink import WavFormatError, WavSink

__all__ = [
    "CaptureLoop",
    "CaptureResult",
    "NegotiationError",
    "STATUS_STOPPED_PLAYING",
    "STATUS_STOPPED_RECORDING",
    "WavFormatError",
    "WavSink",
    "negotiate",
    "play_stub",
]
