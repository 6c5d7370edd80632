"""Negotiate capture parameters with an opened device."""

from __future__ import annotations

from rpi_capture.core.logging_utils import LoggerLike, ensure_structured_logger

from ..backend.base import DeviceHandle
from ..domain import FormatRequest, NegotiatedFormat, bit_depth_of


class NegotiationError(RuntimeError):
    """The device reported an unusable parameter set."""


def negotiate(
    handle: DeviceHandle,
    request: FormatRequest,
    *,
    logger: LoggerLike = None,
) -> NegotiatedFormat:
    """Negotiate channels, rate, format and buffer size, then prepare the device.

    The order is fixed. Each step may settle on a value other than the one
    requested; any step may raise, which aborts the session before an output
    file exists.
    """
    log = ensure_structured_logger(logger, fallback_name="Negotiator")

    channels = handle.negotiate_channels(request.channels)
    _note(log, "channels", request.channels, channels)
    sample_rate = handle.negotiate_rate(request.sample_rate)
    _note(log, "sample rate", request.sample_rate, sample_rate)
    sample_format = handle.negotiate_format(request.sample_format)
    _note(log, "sample format", request.sample_format.value, sample_format.value)
    # Unmapped formats stop here, before the device is prepared.
    bit_depth_of(sample_format)

    buffer_frames = handle.negotiate_buffer_size(request.buffer_min_frames, request.buffer_max_frames)
    if not request.buffer_min_frames <= buffer_frames <= request.buffer_max_frames:
        log.info(
            "buffer size %d outside requested range [%d, %d]",
            buffer_frames,
            request.buffer_min_frames,
            request.buffer_max_frames,
        )

    handle.prepare()
    bytes_per_frame = handle.bytes_per_frame()
    try:
        negotiated = NegotiatedFormat(
            channels=channels,
            sample_rate=sample_rate,
            sample_format=sample_format,
            buffer_frames=buffer_frames,
            bytes_per_frame=bytes_per_frame,
        )
    except ValueError as exc:
        raise NegotiationError(str(exc)) from exc

    log.info("Negotiated %s", negotiated.describe())
    return negotiated


def _note(log, label: str, requested: object, actual: object) -> None:
    if requested != actual:
        log.info("%s adjusted from %s to %s", label, requested, actual)


__all__ = ["NegotiationError", "negotiate"]
