"""Receive broadcast datagrams and route them to the session manager."""

from __future__ import annotations

from typing import Optional, Protocol

from rpi_capture.core.logging_utils import LoggerLike, ensure_structured_logger
from rpi_capture.core.network import ChannelClosed
from rpi_capture.core.supervisor import FailSafeSupervisor

from .commands import Command, CommandType, parse_command
from .session_manager import SessionManager


class CommandSource(Protocol):
    async def receive(self) -> bytes: ...


class CommandDispatcher:
    """Process commands strictly in receipt order."""

    def __init__(
        self,
        source: CommandSource,
        sessions: SessionManager,
        supervisor: FailSafeSupervisor,
        logger: LoggerLike = None,
    ) -> None:
        self.source = source
        self.sessions = sessions
        self.supervisor = supervisor
        self.logger = ensure_structured_logger(logger, fallback_name="Dispatcher")

    async def run(self) -> None:
        self.logger.info("Waiting for commands")
        while True:
            try:
                payload = await self.source.receive()
            except ChannelClosed:
                self.logger.info("Command channel closed")
                return
            except OSError as exc:
                await self.supervisor.fail(exc)
                return
            await self.dispatch(payload)

    async def dispatch(self, payload: bytes) -> Optional[Command]:
        command = parse_command(payload)
        if command is None:
            self.logger.debug("Ignoring datagram %r", payload[:32])
            return None

        self.logger.debug("Handling %s %s", command.type.value, command.path)
        if command.type is CommandType.RECORD:
            await self.sessions.start_recording(command.path)
        elif command.type is CommandType.PLAY:
            await self.sessions.start_playback(command.path)
        else:
            self.sessions.stop()
        return command


__all__ = ["CommandDispatcher", "CommandSource"]
