"""Command handling and session orchestration for the audio capture module."""

from .application import CaptureAppliance
from .command_router import CommandDispatcher
from .commands import Command, CommandType, parse_command
from .session_manager import (
    STATUS_RECORD_FAILED,
    STATUS_STOP_FAILED,
    CancelToken,
    Session,
    SessionManager,
    recording_status,
)

__all__ = [
    "CancelToken",
    "CaptureAppliance",
    "Command",
    "CommandDispatcher",
    "CommandType",
    "STATUS_RECORD_FAILED",
    "STATUS_STOP_FAILED",
    "Session",
    "SessionManager",
    "parse_command",
    "recording_status",
]
