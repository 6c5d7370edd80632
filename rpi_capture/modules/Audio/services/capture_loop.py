"""Stream frames from the record device into a WAV file until cancelled."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

from rpi_capture.core.logging_utils import LoggerLike, ensure_structured_logger

from ..backend.base import AudioBackend, DeviceHandle
from ..domain import AudioDeviceInfo, CaptureStats, FormatRequest, NegotiatedFormat
from .negotiator import negotiate
from .wav_sink import WavSink

STATUS_STOPPED_RECORDING = "stopped recording"


class CancellationFlag(Protocol):
    @property
    def cancelled(self) -> bool: ...


class FrameSink(Protocol):
    def write(self, data: bytes | memoryview) -> int: ...

    def close(self) -> None: ...


SinkFactory = Callable[[Path, NegotiatedFormat], FrameSink]


@dataclass(slots=True)
class CaptureResult:
    path: Path
    negotiated: NegotiatedFormat
    frames: int
    buffers: int
    overflows: int


class CaptureLoop:
    """One recording session.

    Owns the device handle and the output file from start to finish and
    releases both on every exit path. The token is polled before each read,
    so a stop takes effect within one buffer's capture time.
    """

    def __init__(
        self,
        backend: AudioBackend,
        device: AudioDeviceInfo,
        path: Path | str,
        token: CancellationFlag,
        request: FormatRequest,
        announce: Callable[[str], None],
        *,
        sink_factory: SinkFactory = WavSink.for_format,
        logger: LoggerLike = None,
    ) -> None:
        self.backend = backend
        self.device = device
        self.path = Path(path)
        self.token = token
        self.request = request
        self._announce = announce
        self._sink_factory = sink_factory
        self.logger = ensure_structured_logger(logger, fallback_name="CaptureLoop")

    async def run(self) -> CaptureResult:
        self.logger.info("Recording %s from %s", self.path, self.device)
        handle = await asyncio.to_thread(self.backend.open, self.device)
        try:
            negotiated = await asyncio.to_thread(negotiate, handle, self.request, logger=self.logger)
            sink = await asyncio.to_thread(self._sink_factory, self.path, negotiated)
            try:
                stats = await self._stream(handle, sink, negotiated)
            except BaseException:
                await self._release_quietly(sink.close, "output file")
                raise
            await asyncio.to_thread(sink.close)
        except BaseException:
            await self._release_quietly(handle.close, "device")
            raise
        await asyncio.to_thread(handle.close)

        self.logger.info("Stopped %s: %s", self.path, stats.summary())
        if handle.overflows:
            self.logger.warning("%d input overflow(s) during %s", handle.overflows, self.path)
        self._announce(STATUS_STOPPED_RECORDING)
        return CaptureResult(
            path=self.path,
            negotiated=negotiated,
            frames=stats.frames,
            buffers=stats.buffers,
            overflows=handle.overflows,
        )

    async def _stream(
        self,
        handle: DeviceHandle,
        sink: FrameSink,
        negotiated: NegotiatedFormat,
    ) -> CaptureStats:
        stats = CaptureStats(negotiated.sample_format, negotiated.sample_rate, negotiated.channels)
        buffer = bytearray(negotiated.buffer_bytes)
        view = memoryview(buffer)
        bytes_per_frame = negotiated.bytes_per_frame
        while not self.token.cancelled:
            frames = await asyncio.to_thread(handle.read, buffer, negotiated.buffer_frames)
            if frames <= 0:
                continue
            chunk = view[: min(frames, negotiated.buffer_frames) * bytes_per_frame]
            await asyncio.to_thread(sink.write, chunk)
            stats.add(chunk, frames)
        self.logger.debug("Cancellation observed after %d buffer(s)", stats.buffers)
        return stats

    async def _release_quietly(self, close: Callable[[], None], what: str) -> None:
        try:
            await asyncio.to_thread(close)
        except Exception:
            self.logger.warning("Failed to release %s after error", what, exc_info=True)


__all__ = ["CaptureLoop", "CaptureResult", "STATUS_STOPPED_RECORDING"]
