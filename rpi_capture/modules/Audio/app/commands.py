"""Parse the three textual commands of the broadcast protocol."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CommandType(Enum):
    RECORD = "record"
    PLAY = "play"
    STOP = "stop"


@dataclass(slots=True, frozen=True)
class Command:
    type: CommandType
    path: str = ""


# Exact, case-sensitive prefixes; checked in this order.
_PREFIXES: tuple[tuple[str, CommandType], ...] = (
    ("record ", CommandType.RECORD),
    ("play ", CommandType.PLAY),
    ("stop", CommandType.STOP),
)
_TRAILING = "\x00\r\n"


def parse_command(payload: bytes) -> Optional[Command]:
    """Return the command carried by ``payload`` or ``None`` if it is not one."""
    text = payload.decode("utf-8", errors="replace")
    for prefix, command_type in _PREFIXES:
        if text.startswith(prefix):
            if command_type is CommandType.STOP:
                return Command(command_type)
            return Command(command_type, text[len(prefix):].rstrip(_TRAILING))
    return None


__all__ = ["Command", "CommandType", "parse_command"]
