"""Network transport for the capture appliance."""

from .broadcast import (
    DEFAULT_BIND_HOST,
    DEFAULT_BROADCAST_ADDRESS,
    DEFAULT_PORT,
    DEFAULT_RECEIVE_BUFFER,
    STATUS_TERMINATOR,
    BroadcastChannel,
    ChannelClosed,
)

__all__ = [
    "BroadcastChannel",
    "ChannelClosed",
    "DEFAULT_BIND_HOST",
    "DEFAULT_BROADCAST_ADDRESS",
    "DEFAULT_PORT",
    "DEFAULT_RECEIVE_BUFFER",
    "STATUS_TERMINATOR",
]
