"""Audio backend over sounddevice (PortAudio's ALSA host API)."""

from __future__ import annotations

from typing import Any

import sounddevice as sd

from rpi_capture.core.logging_utils import LoggerLike, ensure_structured_logger

from ..discovery.scanner import parse_alsa_device_name
from ..domain import AudioDeviceInfo, CardInfo, SampleFormat
from .base import AudioBackend, AudioDeviceError, DeviceHandle

# PortAudio sample types are native-endian; the target boards are little-endian.
# "int24" is packed 3-byte samples (ALSA S24_3LE). Float and signed 8-bit
# capture are left out: a PCM WAV file cannot describe them.
_DTYPES: dict[SampleFormat, str] = {
    SampleFormat.S16_LE: "int16",
    SampleFormat.S32_LE: "int32",
    SampleFormat.S24_3LE: "int24",
    SampleFormat.U8: "uint8",
}
_FORMAT_FALLBACKS = tuple(_DTYPES)
_OVERFLOW_LOG_EVERY = 25
_PORTAUDIO_ERRORS = (sd.PortAudioError, ValueError)


class SoundDeviceHandle(DeviceHandle):
    """Capture endpoint backed by a blocking ``sd.RawInputStream``."""

    def __init__(self, device: AudioDeviceInfo, logger: LoggerLike = None) -> None:
        self.device = device
        self.logger = ensure_structured_logger(logger, fallback_name="SoundDevice").getChild(
            f"hw{device.card_index}_{device.device_index}"
        )
        self._info: dict[str, Any] = {}
        self._channels = 1
        self._sample_rate: int | None = None
        self._dtype: str | None = None
        self._blocksize: int | None = None
        self._stream: sd.RawInputStream | None = None
        self._overflows = 0
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle

    def open(self) -> None:
        if self.device.host_index is None:
            raise AudioDeviceError(f"{self.device.path} has no host device index")
        try:
            self._info = dict(sd.query_devices(self.device.host_index))
        except _PORTAUDIO_ERRORS as exc:
            raise AudioDeviceError(f"cannot open {self.device.path}: {exc}") from exc
        if int(self._info.get("max_input_channels", 0)) < 1:
            raise AudioDeviceError(f"cannot open {self.device.path}: no input channels")
        self.logger.debug("Opened %s", self.device)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except _PORTAUDIO_ERRORS as exc:
            self.logger.debug("Stream close error: %s", exc)
        self.logger.debug("Closed %s", self.device.path)

    # ------------------------------------------------------------------
    # Negotiation

    def _accepts(self, **overrides: Any) -> bool:
        params: dict[str, Any] = {
            "device": self.device.host_index,
            "channels": self._channels,
            "samplerate": self._sample_rate,
            "dtype": self._dtype,
        }
        params.update(overrides)
        try:
            sd.check_input_settings(**params)
        except _PORTAUDIO_ERRORS as exc:
            self.logger.debug("Rejected %s: %s", overrides, exc)
            return False
        return True

    def negotiate_channels(self, channels: int) -> int:
        available = int(self._info.get("max_input_channels", 0))
        effective = min(max(1, int(channels)), available)
        if effective < 1 or not self._accepts(channels=effective):
            raise AudioDeviceError(f"{self.device.path} rejected {channels} channel(s)")
        self._channels = effective
        return effective

    def negotiate_rate(self, sample_rate: int) -> int:
        candidates = [int(sample_rate)]
        default = int(float(self._info.get("default_samplerate") or 0))
        if default > 0 and default not in candidates:
            candidates.append(default)
        for rate in candidates:
            if self._accepts(samplerate=rate):
                self._sample_rate = rate
                return rate
        raise AudioDeviceError(f"{self.device.path} supports none of {candidates} Hz")

    def negotiate_format(self, sample_format: SampleFormat) -> SampleFormat:
        candidates = [sample_format] + [fmt for fmt in _FORMAT_FALLBACKS if fmt != sample_format]
        for candidate in candidates:
            dtype = _DTYPES.get(candidate)
            if dtype is not None and self._accepts(dtype=dtype):
                self._dtype = dtype
                return candidate
        raise AudioDeviceError(f"{self.device.path} supports no capture format")

    def negotiate_buffer_size(self, min_frames: int, max_frames: int) -> int:
        if not 0 < min_frames <= max_frames:
            raise AudioDeviceError(f"invalid buffer range [{min_frames}, {max_frames}]")
        rate = self._sample_rate or int(float(self._info.get("default_samplerate") or 0))
        latency = float(self._info.get("default_high_input_latency") or 0.0)
        preferred = int(round(latency * rate))
        self._blocksize = min(max(preferred, min_frames), max_frames)
        return self._blocksize

    def prepare(self) -> None:
        if self._sample_rate is None or self._dtype is None or self._blocksize is None:
            raise AudioDeviceError(f"{self.device.path} prepared before negotiation finished")
        try:
            stream = sd.RawInputStream(
                device=self.device.host_index,
                channels=self._channels,
                samplerate=self._sample_rate,
                dtype=self._dtype,
                blocksize=self._blocksize,
                latency="high",
            )
            stream.start()
        except _PORTAUDIO_ERRORS as exc:
            raise AudioDeviceError(f"cannot prepare {self.device.path}: {exc}") from exc
        self._stream = stream
        self.logger.info(
            "Stream ready: %d ch, %d Hz, %s, blocksize %d",
            self._channels,
            self._sample_rate,
            self._dtype,
            self._blocksize,
        )

    def bytes_per_frame(self) -> int:
        if self._stream is None:
            raise AudioDeviceError(f"{self.device.path} is not prepared")
        return int(self._stream.samplesize) * self._channels

    # ------------------------------------------------------------------
    # I/O

    def read(self, buffer: bytearray | memoryview, frames: int) -> int:
        stream = self._stream
        if stream is None:
            raise AudioDeviceError(f"{self.device.path} is not prepared")
        try:
            data, overflowed = stream.read(frames)
        except _PORTAUDIO_ERRORS as exc:
            raise AudioDeviceError(f"read from {self.device.path} failed: {exc}") from exc
        if overflowed:
            self._overflows += 1
            if self._overflows == 1 or self._overflows % _OVERFLOW_LOG_EVERY == 0:
                self.logger.warning("Input overflow (%d so far)", self._overflows)
        chunk = bytes(data)
        memoryview(buffer)[: len(chunk)] = chunk
        return len(chunk) // self.bytes_per_frame()

    @property
    def overflows(self) -> int:
        return self._overflows


class SoundDeviceBackend(AudioBackend):
    """Enumerate ALSA cards as PortAudio reports them."""

    def __init__(self, logger: LoggerLike = None) -> None:
        self.logger = ensure_structured_logger(logger, fallback_name="SoundDevice")

    def cards(self) -> list[CardInfo]:
        try:
            devices = sd.query_devices()
        except _PORTAUDIO_ERRORS as exc:
            raise AudioDeviceError(f"device enumeration failed: {exc}") from exc

        grouped: dict[int, tuple[str, list[AudioDeviceInfo]]] = {}
        for host_index, info in enumerate(devices):
            parsed = parse_alsa_device_name(str(info.get("name", "")))
            if parsed is None:
                continue
            card_name, device_name, card_index, device_index = parsed
            device = AudioDeviceInfo(
                card_index=card_index,
                card_name=card_name,
                device_index=device_index,
                name=device_name,
                record=int(info.get("max_input_channels", 0)) > 0,
                play=int(info.get("max_output_channels", 0)) > 0,
                host_index=host_index,
                default_sample_rate=float(info.get("default_samplerate") or 0.0),
            )
            grouped.setdefault(card_index, (card_name, []))[1].append(device)

        cards = [
            CardInfo(index=index, name=name, devices=tuple(found))
            for index, (name, found) in sorted(grouped.items())
        ]
        self.logger.debug("Enumerated %d card(s)", len(cards))
        return cards

    def open(self, device: AudioDeviceInfo) -> SoundDeviceHandle:
        handle = SoundDeviceHandle(device, self.logger)
        handle.open()
        return handle


__all__ = ["SoundDeviceBackend", "SoundDeviceHandle"]
