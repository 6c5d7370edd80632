"""Unit tests for the sounddevice backend with PortAudio replaced by fakes."""

from types import SimpleNamespace

import pytest

try:
    from rpi_capture.modules.Audio.backend import sounddevice_backend
except (ImportError, OSError) as exc:  # PortAudio missing on this machine
    pytest.skip(f"sounddevice unavailable: {exc}", allow_module_level=True)

from rpi_capture.modules.Audio.backend import AudioDeviceError
from rpi_capture.modules.Audio.discovery import find_devices
from rpi_capture.modules.Audio.domain import FormatRequest, SampleFormat
from rpi_capture.modules.Audio.services import negotiate

DEVICES = [
    {
        "name": "bcm2835 Headphones: - (hw:0,0)",
        "max_input_channels": 0,
        "max_output_channels": 8,
        "default_samplerate": 44100.0,
        "default_high_input_latency": 0.0,
    },
    {
        "name": "USB Audio Device: USB Audio (hw:1,0)",
        "max_input_channels": 1,
        "max_output_channels": 2,
        "default_samplerate": 48000.0,
        "default_high_input_latency": 0.2,
    },
    {
        "name": "default",
        "max_input_channels": 32,
        "max_output_channels": 32,
        "default_samplerate": 44100.0,
        "default_high_input_latency": 0.03,
    },
]


class FakeRawInputStream:
    instances = []

    def __init__(self, *, device, channels, samplerate, dtype, blocksize, latency):
        self.kwargs = dict(device=device, channels=channels, samplerate=samplerate, dtype=dtype, blocksize=blocksize)
        self.samplesize = {"int16": 2, "int32": 4, "int24": 3, "float32": 4}[dtype]
        self.started = False
        self.closed = False
        self.overflow_next = False
        FakeRawInputStream.instances.append(self)

    def start(self):
        self.started = True

    def stop(self):
        self.started = False

    def close(self):
        self.closed = True

    def read(self, frames):
        overflowed, self.overflow_next = self.overflow_next, False
        return b"\x01" * (frames * self.samplesize * self.kwargs["channels"]), overflowed


@pytest.fixture
def fake_sd(monkeypatch):
    rejected = {"samplerate": set(), "dtype": set()}

    def query_devices(device=None):
        if device is None:
            return list(DEVICES)
        return dict(DEVICES[device])

    def check_input_settings(device=None, channels=None, dtype=None, samplerate=None, **_):
        if samplerate in rejected["samplerate"]:
            raise ValueError(f"Invalid sample rate {samplerate}")
        if dtype in rejected["dtype"]:
            raise ValueError(f"Invalid dtype {dtype}")

    FakeRawInputStream.instances = []
    fake = SimpleNamespace(
        query_devices=query_devices,
        check_input_settings=check_input_settings,
        RawInputStream=FakeRawInputStream,
        rejected=rejected,
    )
    monkeypatch.setattr(sounddevice_backend, "sd", fake)
    return fake


REQUEST = FormatRequest(1, 44100, SampleFormat.S16_LE, 8192, 16384)


def test_cards_group_hardware_devices(fake_sd):
    cards = sounddevice_backend.SoundDeviceBackend().cards()

    assert [(card.index, card.name) for card in cards] == [
        (0, "bcm2835 Headphones"),
        (1, "USB Audio Device"),
    ]
    usb = cards[1].devices[0]
    assert usb.record and usb.play
    assert usb.host_index == 1
    assert usb.path == "hw:1,0"


def test_discovery_over_portaudio_names(fake_sd):
    pair = find_devices(sounddevice_backend.SoundDeviceBackend())
    assert pair.record.host_index == 1
    assert pair.playback.host_index == 1


def test_negotiation_falls_back_to_device_defaults(fake_sd):
    fake_sd.rejected["samplerate"].add(44100)
    fake_sd.rejected["dtype"].add("int16")
    backend = sounddevice_backend.SoundDeviceBackend()
    device = find_devices(backend).record

    handle = backend.open(device)
    negotiated = negotiate(handle, REQUEST)

    assert negotiated.sample_rate == 48000
    assert negotiated.sample_format is SampleFormat.S32_LE
    # 0.2 s of high latency at 48 kHz is 9600 frames, inside the range
    assert negotiated.buffer_frames == 9600
    assert negotiated.bytes_per_frame == 4
    assert FakeRawInputStream.instances[-1].started


def test_packed_24_bit_capture_maps_to_s24_3le(fake_sd):
    fake_sd.rejected["dtype"].update({"int16", "int32"})
    backend = sounddevice_backend.SoundDeviceBackend()

    negotiated = negotiate(backend.open(find_devices(backend).record), REQUEST)

    assert negotiated.sample_format is SampleFormat.S24_3LE
    assert negotiated.significant_bits == 24
    assert negotiated.bytes_per_frame == 3


def test_float_capture_is_never_negotiated(fake_sd):
    fake_sd.rejected["dtype"].update({"int16", "int32", "int24", "uint8"})
    backend = sounddevice_backend.SoundDeviceBackend()
    handle = backend.open(find_devices(backend).record)

    with pytest.raises(AudioDeviceError, match="no capture format"):
        negotiate(handle, FormatRequest(1, 44100, SampleFormat.FLOAT_LE, 8192, 16384))


def test_read_fills_buffer_and_counts_overflows(fake_sd):
    backend = sounddevice_backend.SoundDeviceBackend()
    handle = backend.open(find_devices(backend).record)
    negotiated = negotiate(handle, REQUEST)
    stream = FakeRawInputStream.instances[-1]
    stream.overflow_next = True
    buffer = bytearray(negotiated.buffer_bytes)

    frames = handle.read(buffer, negotiated.buffer_frames)

    assert frames == negotiated.buffer_frames
    assert buffer[0] == 1
    assert handle.overflows == 1
    handle.close()
    handle.close()
    assert stream.closed


def test_open_rejects_output_only_device(fake_sd):
    backend = sounddevice_backend.SoundDeviceBackend()
    headphones = backend.cards()[0].devices[0]
    with pytest.raises(AudioDeviceError, match="no input channels"):
        backend.open(headphones)


def test_read_before_prepare_raises(fake_sd):
    backend = sounddevice_backend.SoundDeviceBackend()
    handle = backend.open(find_devices(backend).record)
    with pytest.raises(AudioDeviceError, match="not prepared"):
        handle.read(bytearray(2), 1)


@pytest.mark.hardware
def test_real_usb_interface_is_discovered():
    backend = sounddevice_backend.SoundDeviceBackend()
    pair = find_devices(backend)
    assert pair.record.card_name == "USB Audio Device"
