"""Asyncio helpers for fire-and-forget tasks."""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine, Optional

from .logging_utils import LoggerLike, ensure_structured_logger


def add_task_exception_logger(
    task: asyncio.Task[Any],
    *,
    logger: LoggerLike = None,
    context: Optional[str] = None,
) -> asyncio.Task[Any]:
    """Retrieve and log the exception of ``task`` when it finishes.

    Without this an exception that escapes a background task only shows up as
    "Task exception was never retrieved" when the task is garbage collected.
    """
    task_logger = ensure_structured_logger(logger, fallback_name="asyncio")
    label = context or task.get_name()

    def _done(done_task: asyncio.Task[Any]) -> None:
        if done_task.cancelled():
            task_logger.debug("%s cancelled", label)
            return
        exc = done_task.exception()
        if exc is not None:
            task_logger.error("Unhandled exception in %s", label, exc_info=exc)

    task.add_done_callback(_done)
    return task


def create_logged_task(
    coro: Coroutine[Any, Any, Any],
    *,
    logger: LoggerLike = None,
    context: Optional[str] = None,
) -> asyncio.Task[Any]:
    """Create a named task whose failure is always logged."""
    task = asyncio.get_running_loop().create_task(coro, name=context)
    return add_task_exception_logger(task, logger=logger, context=context)


__all__ = ["add_task_exception_logger", "create_logged_task"]
