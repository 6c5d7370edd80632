"""Wire the channel, supervisor, discovery, sessions and dispatcher together."""

from __future__ import annotations

import asyncio
from typing import Optional

from rpi_capture.core.logging_utils import LoggerLike, ensure_structured_logger
from rpi_capture.core.network import BroadcastChannel
from rpi_capture.core.supervisor import FailSafeSupervisor

from ..backend.base import AudioBackend
from ..config import CaptureSettings
from ..discovery import find_devices
from .command_router import CommandDispatcher
from .session_manager import SessionManager


def _default_backend(logger: LoggerLike) -> AudioBackend:
    # Imported here so a missing PortAudio library surfaces as a fatal error
    # that is announced, instead of an import failure before the socket exists.
    from ..backend.sounddevice_backend import SoundDeviceBackend

    return SoundDeviceBackend(logger)


class CaptureAppliance:
    """The whole appliance: startup, command loop and fatal-error routing."""

    def __init__(
        self,
        settings: CaptureSettings,
        *,
        backend: Optional[AudioBackend] = None,
        channel: Optional[BroadcastChannel] = None,
        supervisor: Optional[FailSafeSupervisor] = None,
        logger: LoggerLike = None,
    ) -> None:
        self.settings = settings
        self.logger = ensure_structured_logger(logger, fallback_name="Appliance")
        self.channel = channel or BroadcastChannel(
            port=settings.port,
            bind_host=settings.bind_host,
            broadcast_address=settings.broadcast_address,
            receive_buffer=settings.receive_buffer_size,
            logger=self.logger.getChild("Broadcast"),
        )
        self.supervisor = supervisor or FailSafeSupervisor(
            self.channel.announce,
            cooldown=settings.fatal_cooldown,
            logger=self.logger.getChild("Supervisor"),
        )
        self._backend = backend
        self.sessions: Optional[SessionManager] = None
        self.dispatcher: Optional[CommandDispatcher] = None

    async def start(self) -> bool:
        """Open the socket and discover the hardware. Returns False after a fatal error."""
        try:
            self.channel.open()
        except OSError as exc:
            await self.supervisor.fail(exc)
            return False

        try:
            backend = self._backend or _default_backend(self.logger)
            devices = await asyncio.to_thread(
                find_devices,
                backend,
                self.settings.card_name,
                logger=self.logger.getChild("Discovery"),
            )
            request = self.settings.format_request()
        except Exception as exc:
            await self.supervisor.fail(exc)
            return False

        self.sessions = SessionManager(
            backend,
            devices,
            self.channel.announce,
            self.supervisor,
            request,
            logger=self.logger.getChild("Sessions"),
        )
        self.dispatcher = CommandDispatcher(
            self.channel,
            self.sessions,
            self.supervisor,
            logger=self.logger.getChild("Dispatcher"),
        )
        return True

    async def run(self) -> None:
        if not await self.start():
            return
        try:
            await self.dispatcher.run()
        except Exception as exc:
            await self.supervisor.fail(exc)
        finally:
            await self.stop()

    async def stop(self) -> None:
        if self.sessions is not None:
            await self.sessions.shutdown()
        self.channel.close()


__all__ = ["CaptureAppliance"]
