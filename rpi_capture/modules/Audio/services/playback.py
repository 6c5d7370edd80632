"""Playback handler. Decoding is not implemented; only the status is reported."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from rpi_capture.core.logging_utils import LoggerLike, ensure_structured_logger

from ..domain import AudioDeviceInfo

STATUS_STOPPED_PLAYING = "stopped playing"


async def play_stub(
    path: Path | str,
    device: AudioDeviceInfo,
    announce: Callable[[str], None],
    *,
    logger: LoggerLike = None,
) -> None:
    log = ensure_structured_logger(logger, fallback_name="Playback")
    log.warning("Playback not implemented (path=%s, device=%s)", path, device)
    announce(STATUS_STOPPED_PLAYING)


__all__ = ["STATUS_STOPPED_PLAYING", "play_stub"]
