"""Fail-safe supervisor: announce, cool down, terminate.

The appliance runs as PID 1, so terminating the process makes the kernel
panic and reboot the board. Every unrecoverable error in the program is
routed through :meth:`FailSafeSupervisor.fail`, which is the only place that
ends the process.
"""

from __future__ import annotations

import asyncio
import os
from typing import Awaitable, Callable, Optional

from .logging_utils import LoggerLike, ensure_structured_logger

FATAL_COOLDOWN_SECONDS = 10.0
FATAL_EXIT_CODE = 1


class FatalError(RuntimeError):
    """An error the appliance cannot recover from without a reboot."""

    def __init__(self, cause: BaseException | str) -> None:
        if isinstance(cause, BaseException):
            self.cause: Optional[BaseException] = cause
            description = describe_error(cause)
        else:
            self.cause = None
            description = str(cause)
        super().__init__(description)
        self.description = description


def describe_error(error: BaseException) -> str:
    """Return the text announced for ``error``."""
    if isinstance(error, FatalError):
        return error.description
    text = str(error).strip()
    return text or type(error).__name__


def _exit_process(code: int) -> None:
    # os._exit skips interpreter shutdown, which would otherwise wait on a
    # worker thread wedged in a device read.
    os._exit(code)


class FailSafeSupervisor:
    """Turn a fatal error into a network announcement followed by process exit."""

    def __init__(
        self,
        announce: Callable[[str], None],
        *,
        cooldown: float = FATAL_COOLDOWN_SECONDS,
        exit_code: int = FATAL_EXIT_CODE,
        terminate: Callable[[int], None] = _exit_process,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: LoggerLike = None,
    ) -> None:
        self._announce = announce
        self.cooldown = max(0.0, float(cooldown))
        self.exit_code = exit_code
        self._terminate = terminate
        self._sleep = sleep
        self.logger = ensure_structured_logger(logger, fallback_name="Supervisor")
        self._failing = False

    @property
    def failing(self) -> bool:
        return self._failing

    async def fail(self, error: BaseException) -> None:
        """Announce ``error``, wait for the cooldown, then terminate.

        Only the first call announces; errors raised while the cooldown is
        running are logged and otherwise ignored.
        """
        description = describe_error(error)
        if self._failing:
            self.logger.error("Additional fatal error during shutdown: %s", description)
            return
        self._failing = True

        self.logger.critical("Fatal error: %s", description, exc_info=error)
        try:
            self._announce(description)
        except Exception:
            self.logger.exception("Failed to announce fatal error")

        self.logger.critical(
            "Terminating in %.1fs (exit code %d)", self.cooldown, self.exit_code
        )
        await self._sleep(self.cooldown)
        self._terminate(self.exit_code)


__all__ = [
    "FATAL_COOLDOWN_SECONDS",
    "FATAL_EXIT_CODE",
    "FailSafeSupervisor",
    "FatalError",
    "describe_error",
]
