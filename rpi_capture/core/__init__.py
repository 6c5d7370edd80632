"""Process-wide plumbing: logging, task helpers, transport and supervisor."""

from .asyncio_utils import create_logged_task
from .logging_config import configure_logging
from .logging_utils import StructuredLogger, get_module_logger
from .supervisor import FailSafeSupervisor, FatalError, describe_error

__all__ = [
    "FailSafeSupervisor",
    "FatalError",
    "StructuredLogger",
    "configure_logging",
    "create_logged_task",
    "describe_error",
    "get_module_logger",
]
