"""Locate the record and playback endpoints of the USB audio interface."""

from __future__ import annotations

import re
from typing import Optional

from rpi_capture.core.logging_utils import LoggerLike, ensure_structured_logger

from ..backend.base import AudioBackend, AudioDeviceError
from ..domain import TARGET_CARD_NAME, AudioDeviceInfo, DevicePair

# PortAudio names ALSA hardware devices "<card>: <device> (hw:<card>,<device>)".
_ALSA_NAME = re.compile(
    r"^(?P<card>.+?): (?P<device>.*?)\s*\(hw:(?P<card_index>\d+),(?P<device_index>\d+)\)\s*$"
)


class DiscoveryError(RuntimeError):
    """The expected audio hardware is missing or could not be enumerated."""


def parse_alsa_device_name(name: str) -> Optional[tuple[str, str, int, int]]:
    """Split an ALSA device name into ``(card, device, card_index, device_index)``.

    Plugin devices without a hardware address (``default``, ``pulse``,
    ``dmix`` ...) return ``None``.
    """
    match = _ALSA_NAME.match(name.strip())
    if match is None:
        return None
    device_name = match.group("device").strip().lstrip("-").strip()
    return (
        match.group("card").strip(),
        device_name,
        int(match.group("card_index")),
        int(match.group("device_index")),
    )


def find_devices(
    backend: AudioBackend,
    card_name: str = TARGET_CARD_NAME,
    *,
    logger: LoggerLike = None,
) -> DevicePair:
    """Select one record-capable and one playback-capable device on ``card_name``.

    The first matching device in enumeration order wins each role, so the
    selection is stable for the same hardware. Devices on cards with any
    other name are never selected.
    """
    log = ensure_structured_logger(logger, fallback_name="Discovery")

    try:
        cards = backend.cards()
    except AudioDeviceError as exc:
        raise DiscoveryError(f"audio card enumeration failed: {exc}") from exc

    record: AudioDeviceInfo | None = None
    playback: AudioDeviceInfo | None = None
    for card in cards:
        if card.name != card_name:
            log.debug("Skipping card %d (%s)", card.index, card.name)
            continue
        for device in card.devices:
            if device.record and record is None:
                record = device
            if device.play and playback is None:
                playback = device

    if record is None or playback is None:
        raise DiscoveryError("couldn't find both record and playback devices")

    log.info("Record device: %s", record)
    log.info("Playback device: %s", playback)
    return DevicePair(record=record, playback=playback)


__all__ = ["DiscoveryError", "find_devices", "parse_alsa_device_name"]
