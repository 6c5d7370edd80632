"""Single-session state machine driven by the command dispatcher."""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from rpi_capture.core.asyncio_utils import create_logged_task
from rpi_capture.core.logging_utils import LoggerLike, ensure_structured_logger
from rpi_capture.core.supervisor import FailSafeSupervisor

from ..backend.base import AudioBackend
from ..domain import AudioDeviceInfo, DevicePair, FormatRequest
from ..services import CaptureLoop, WavSink, play_stub
from ..services.capture_loop import SinkFactory

STATUS_STOP_FAILED = "stop failed"
STATUS_RECORD_FAILED = "record failed"


def recording_status(path: str | Path) -> str:
    return f"recording {path}"


class CancelToken:
    """One-shot cancellation signal with a non-blocking check."""

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> bool:
        """Fire the token. Returns False (and does nothing) if it already fired."""
        if self._event.is_set():
            return False
        self._event.set()
        return True


@dataclass(slots=True, eq=False)
class Session:
    path: Path
    device: AudioDeviceInfo
    token: CancelToken
    task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self.task is not None and not self.task.done()


class SessionManager:
    """Own the device pair and the one current capture session.

    Only the dispatcher task calls into this object, so the current session
    reference has a single writer; the capture task only polls its token.
    """

    def __init__(
        self,
        backend: AudioBackend,
        devices: DevicePair,
        announce: Callable[[str], None],
        supervisor: FailSafeSupervisor,
        request: FormatRequest,
        *,
        sink_factory: SinkFactory = WavSink.for_format,
        logger: LoggerLike = None,
    ) -> None:
        self.backend = backend
        self.devices = devices
        self._announce = announce
        self.supervisor = supervisor
        self.request = request
        self._sink_factory = sink_factory
        self.logger = ensure_structured_logger(logger, fallback_name="Sessions")
        self._current: Optional[Session] = None
        self._previous: Optional[Session] = None
        self._background: set[asyncio.Task] = set()

    @property
    def current(self) -> Optional[Session]:
        return self._current

    @property
    def recording(self) -> bool:
        return self._current is not None

    # ------------------------------------------------------------------
    # Commands

    async def start_recording(self, path: str) -> bool:
        if not path:
            self.logger.debug("Ignoring record command without a path")
            return False
        if self._current is not None:
            self.logger.warning(
                "Record %s rejected: still recording %s", path, self._current.path
            )
            self._announce(STATUS_RECORD_FAILED)
            return False

        session = Session(Path(path), self.devices.record, CancelToken())
        self._announce(recording_status(path))
        session.task = create_logged_task(
            self._run_capture(session, self._previous),
            logger=self.logger,
            context=f"capture {path}",
        )
        self._current = session
        self._previous = session
        return True

    def stop(self) -> bool:
        session = self._current
        if session is None:
            self.logger.info("Stop requested with no active session")
            self._announce(STATUS_STOP_FAILED)
            return False
        self._current = None
        session.token.cancel()
        self.logger.info("Stop requested for %s", session.path)
        return True

    async def start_playback(self, path: str) -> None:
        task = create_logged_task(
            play_stub(path, self.devices.playback, self._announce, logger=self.logger),
            logger=self.logger,
            context=f"playback {path}",
        )
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def shutdown(self) -> None:
        """Cancel any running session and wait for its task to release the device."""
        session = self._current or self._previous
        self._current = None
        if session is not None:
            session.token.cancel()
        tasks = {task for task in self._background if not task.done()}
        if session is not None and session.running:
            tasks.add(session.task)
        if tasks:
            await asyncio.wait(tasks)

    # ------------------------------------------------------------------
    # Internals

    async def _run_capture(self, session: Session, previous: Optional[Session]) -> None:
        if previous is not None and previous.running:
            # A stopped session holds the device until its in-flight read returns.
            self.logger.debug("Waiting for %s to release the device", previous.path)
            await asyncio.wait({previous.task})
        loop = CaptureLoop(
            self.backend,
            session.device,
            session.path,
            session.token,
            self.request,
            self._announce,
            sink_factory=self._sink_factory,
            logger=self.logger,
        )
        try:
            await loop.run()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            await self.supervisor.fail(exc)
        finally:
            if self._current is session:
                self._current = None


__all__ = [
    "CancelToken",
    "STATUS_RECORD_FAILED",
    "STATUS_STOP_FAILED",
    "Session",
    "SessionManager",
    "recording_status",
]
