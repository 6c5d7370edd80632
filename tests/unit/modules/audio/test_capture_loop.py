"""Unit tests for the capture loop."""

import asyncio
import time
import wave

import pytest

from rpi_capture.modules.Audio.app import CancelToken
from rpi_capture.modules.Audio.backend import AudioDeviceError
from rpi_capture.modules.Audio.domain import FormatRequest, SampleFormat
from rpi_capture.modules.Audio.services import STATUS_STOPPED_RECORDING, CaptureLoop
from tests.infrastructure.mocks.audio_mocks import (
    DeviceBehaviour,
    FakeBackend,
    FakeSink,
    make_device,
)

REQUEST = FormatRequest(1, 44100, SampleFormat.S16_LE, 256, 1024)


def _loop(backend, path, token, announcements, **kwargs):
    return CaptureLoop(
        backend,
        make_device(),
        path,
        token,
        REQUEST,
        announcements.append,
        **kwargs,
    )


async def _run_for(loop, token, seconds):
    task = asyncio.ensure_future(loop.run())
    await asyncio.sleep(seconds)
    token.cancel()
    return await asyncio.wait_for(task, timeout=2.0)


def test_record_then_stop_produces_valid_wav(tmp_path):
    backend = FakeBackend(behaviour=DeviceBehaviour(read_delay=0.005))
    token = CancelToken()
    announcements = []
    path = tmp_path / "take1.wav"

    result = asyncio.run(_run_for(_loop(backend, path, token, announcements), token, 0.05))

    assert announcements == [STATUS_STOPPED_RECORDING]
    assert result.frames > 0
    assert result.frames == result.buffers * 256
    with wave.open(str(path), "rb") as reader:
        assert reader.getnchannels() == 1
        assert reader.getframerate() == 44100
        assert reader.getsampwidth() == 2
        assert reader.getnframes() == result.frames
    assert backend.last_handle.closed


def test_cancel_before_first_read_still_finalizes(tmp_path):
    backend = FakeBackend()
    token = CancelToken()
    token.cancel()
    announcements = []
    path = tmp_path / "short.wav"

    result = asyncio.run(_loop(backend, path, token, announcements).run())

    assert result.frames == 0
    assert "read" not in backend.last_handle.calls
    assert announcements == [STATUS_STOPPED_RECORDING]
    with wave.open(str(path), "rb") as reader:
        assert reader.getnframes() == 0


def test_stop_takes_effect_within_one_read(tmp_path):
    backend = FakeBackend(behaviour=DeviceBehaviour(read_delay=0.1))
    token = CancelToken()

    async def _exercise():
        loop = _loop(backend, tmp_path / "slow.wav", token, [])
        task = asyncio.ensure_future(loop.run())
        await asyncio.sleep(0.15)
        token.cancel()
        started = time.monotonic()
        await asyncio.wait_for(task, timeout=2.0)
        return time.monotonic() - started

    elapsed = asyncio.run(_exercise())

    assert elapsed < 0.5
    reads_at_stop = backend.last_handle.reads
    assert reads_at_stop >= 1


def test_uses_negotiated_frame_size(tmp_path):
    backend = FakeBackend(
        behaviour=DeviceBehaviour(channels=2, sample_format=SampleFormat.S32_LE, buffer_frames=512)
    )
    sinks = []

    def _factory(path, negotiated):
        sink = FakeSink(path, negotiated)
        sinks.append(sink)
        return sink

    token = CancelToken()
    asyncio.run(
        _run_for(_loop(backend, tmp_path / "x.wav", token, [], sink_factory=_factory), token, 0.02)
    )

    sink = sinks[0]
    assert sink.closed
    assert sink.chunks
    assert all(len(chunk) == 512 * 8 for chunk in sink.chunks)


def test_read_error_propagates_and_releases_resources(tmp_path):
    error = AudioDeviceError("read failed: -EPIPE")
    backend = FakeBackend(behaviour=DeviceBehaviour(fail_read_after=2, failures={"read": error}))
    announcements = []
    path = tmp_path / "broken.wav"

    with pytest.raises(AudioDeviceError) as excinfo:
        asyncio.run(_loop(backend, path, CancelToken(), announcements).run())

    assert excinfo.value is error
    assert backend.last_handle.closed
    assert announcements == []
    # The partial file is finalized and still readable.
    with wave.open(str(path), "rb") as reader:
        assert reader.getnframes() == 2 * 256


def test_write_error_propagates(tmp_path):
    backend = FakeBackend()
    sinks = []

    def _factory(path, negotiated):
        sink = FakeSink(path, negotiated, write_error=OSError("No space left on device"))
        sinks.append(sink)
        return sink

    with pytest.raises(OSError, match="No space left"):
        asyncio.run(
            _loop(backend, tmp_path / "full.wav", CancelToken(), [], sink_factory=_factory).run()
        )

    assert sinks[0].closed
    assert backend.last_handle.closed


def test_open_error_propagates(tmp_path):
    backend = FakeBackend(open_error=AudioDeviceError("device busy"))
    path = tmp_path / "busy.wav"

    with pytest.raises(AudioDeviceError, match="device busy"):
        asyncio.run(_loop(backend, path, CancelToken(), []).run())

    assert not path.exists()


def test_negotiation_error_leaves_no_file(tmp_path):
    backend = FakeBackend(
        behaviour=DeviceBehaviour(failures={"format": AudioDeviceError("format rejected")})
    )
    path = tmp_path / "never.wav"

    with pytest.raises(AudioDeviceError, match="format rejected"):
        asyncio.run(_loop(backend, path, CancelToken(), []).run())

    assert not path.exists()
    assert backend.last_handle.closed


def test_file_collision_closes_device(tmp_path):
    path = tmp_path / "exists.wav"
    path.write_bytes(b"")
    backend = FakeBackend()

    with pytest.raises(FileExistsError):
        asyncio.run(_loop(backend, path, CancelToken(), []).run())

    assert backend.last_handle.close_calls == 1
