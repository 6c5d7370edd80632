"""Appliance entry point. Runs as PID 1 on the capture board."""

from __future__ import annotations

import asyncio
from typing import Optional

from rpi_capture.core.logging_config import configure_logging
from rpi_capture.core.logging_utils import get_module_logger
from rpi_capture.core.supervisor import FatalError
from rpi_capture.modules.Audio.app import CaptureAppliance
from rpi_capture.modules.Audio.config import CaptureSettings, load_settings

logger = get_module_logger("Master")


async def run_appliance(settings: CaptureSettings, appliance: Optional[CaptureAppliance] = None) -> None:
    appliance = appliance or CaptureAppliance(settings, logger=logger)
    await appliance.run()
    if not appliance.supervisor.failing:
        # Leaving the command loop for any reason ends in a reboot.
        await appliance.supervisor.fail(FatalError("command loop exited"))


def main(argv: Optional[list[str]] = None) -> None:
    settings = load_settings(argv)
    configure_logging(
        settings.log_level,
        console=settings.console_output,
        log_file=settings.log_file,
    )
    from rpi_capture import __version__

    logger.info(
        "rpi-capture %s starting (card=%r, port=%d)",
        __version__,
        settings.card_name,
        settings.port,
    )
    asyncio.run(run_appliance(settings))


__all__ = ["main", "run_appliance"]
