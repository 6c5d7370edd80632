"""Broadcast UDP channel shared by the command listener and status reports."""

from __future__ import annotations

import asyncio
import collections
import socket
import threading
from typing import Deque, Optional

from ..logging_utils import LoggerLike, ensure_structured_logger

DEFAULT_PORT = 7171
DEFAULT_BIND_HOST = "0.0.0.0"
DEFAULT_BROADCAST_ADDRESS = "255.255.255.255"
DEFAULT_RECEIVE_BUFFER = 255
STATUS_TERMINATOR = "\r"

_POLL_INTERVAL = 0.5
_ECHO_HISTORY = 32


class ChannelClosed(Exception):
    """Raised by :meth:`BroadcastChannel.receive` once the channel is closed."""


class BroadcastChannel:
    """One UDP socket used for inbound commands and outbound status strings.

    The socket receives its own broadcasts, so every payload sent through
    :meth:`announce` is remembered and dropped once when it comes back.
    """

    def __init__(
        self,
        *,
        port: int = DEFAULT_PORT,
        bind_host: str = DEFAULT_BIND_HOST,
        broadcast_address: str = DEFAULT_BROADCAST_ADDRESS,
        receive_buffer: int = DEFAULT_RECEIVE_BUFFER,
        logger: LoggerLike = None,
        sock: Optional[socket.socket] = None,
    ) -> None:
        self.port = int(port)
        self.bind_host = bind_host
        self.broadcast_address = broadcast_address
        self.receive_buffer = max(1, int(receive_buffer))
        self.logger = ensure_structured_logger(logger, fallback_name="Broadcast")
        self._sock = sock
        self._closed = False
        self._echoes: Deque[bytes] = collections.deque(maxlen=_ECHO_HISTORY)
        self._echo_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle

    def open(self) -> None:
        if self._sock is None:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            try:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
                sock.bind((self.bind_host, self.port))
            except OSError:
                sock.close()
                raise
            self._sock = sock
        self._sock.settimeout(_POLL_INTERVAL)
        self._closed = False
        self.logger.info(
            "Listening on %s:%d (broadcast to %s)",
            self.bind_host or "*",
            self.port,
            self.broadcast_address,
        )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._sock is not None:
            self._sock.close()
        self.logger.debug("Channel closed")

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Transmit

    def announce(self, text: str) -> None:
        """Broadcast ``text`` as a status datagram. Never raises."""
        if self._sock is None or self._closed:
            self.logger.warning("Cannot announce %r: channel not open", text)
            return
        payload = f"{text}{STATUS_TERMINATOR}".encode("utf-8", errors="replace")
        # Registered before sending: the loopback copy can reach the receive
        # thread before sendto() returns.
        echo = payload[: self.receive_buffer]
        with self._echo_lock:
            self._echoes.append(echo)
        try:
            self._sock.sendto(payload, (self.broadcast_address, self.port))
        except OSError as exc:
            self._discard_echo(echo)
            self.logger.warning("Announce %r failed: %s", text, exc)
            return
        self.logger.debug("Announced %r", text)

    def _discard_echo(self, data: bytes) -> bool:
        with self._echo_lock:
            try:
                self._echoes.remove(data)
            except ValueError:
                return False
            return True

    # ------------------------------------------------------------------
    # Receive

    def _recv_blocking(self) -> bytes:
        while True:
            if self._closed or self._sock is None:
                raise ChannelClosed()
            try:
                data, address = self._sock.recvfrom(self.receive_buffer)
            except socket.timeout:
                continue
            except OSError:
                if self._closed:
                    raise ChannelClosed() from None
                raise
            if self._discard_echo(data):
                continue
            if len(data) >= self.receive_buffer:
                self.logger.warning(
                    "Datagram from %s filled the %d byte receive buffer and may be truncated",
                    address,
                    self.receive_buffer,
                )
            self.logger.debug("Received %r from %s", data, address)
            return data

    async def receive(self) -> bytes:
        """Wait for the next datagram that this channel did not send itself."""
        return await asyncio.to_thread(self._recv_blocking)


__all__ = [
    "BroadcastChannel",
    "ChannelClosed",
    "DEFAULT_BIND_HOST",
    "DEFAULT_BROADCAST_ADDRESS",
    "DEFAULT_PORT",
    "DEFAULT_RECEIVE_BUFFER",
    "STATUS_TERMINATOR",
]
