"""Tests for voice session resource ownership."""

from __future__ import annotations

import asyncio
import base64
import contextlib
from types import SimpleNamespace

import numpy as np
import pytest

from careeros.core.config import CareerConfig
from careeros.core.context import CareerSession
from careeros.core.session import ProfileStore
from careeros.voice.audio import INPUT_MIME_TYPE, OUTPUT_SAMPLE_RATE
from careeros.voice.session import GeminiLiveConnection, VoiceSession


class _Resource:
    def __init__(self, name: str, log: list, fail_close: bool = False):
        self.name = name
        self.log = log
        self.fail_close = fail_close
        self.closed = False

    async def close(self):
        self.closed = True
        self.log.append(self.name)
        if self.fail_close:
            raise RuntimeError(f"{self.name} stuck")


class _Output(_Resource):
    def __init__(self, log: list):
        super().__init__("output", log)
        self.current_time = 10.0
        self.played: list[tuple] = []

    def play(self, samples, sample_rate, start):
        self.played.append((samples.shape, sample_rate, start))


class _Microphone(_Resource):
    def __init__(self, log: list, frames: list):
        super().__init__("microphone", log)
        self._frames = frames

    async def frames(self):
        for frame in self._frames:
            yield frame
        await asyncio.Event().wait()


class _Connection(_Resource):
    def __init__(self, log: list, chunks: list):
        super().__init__("connection", log)
        self._chunks = chunks
        self.sent: list[tuple] = []

    async def send_audio(self, data, mime_type):
        self.sent.append((data, mime_type))

    async def receive_audio(self):
        for chunk in self._chunks:
            yield chunk
        await asyncio.Event().wait()


class _Backend:
    def __init__(self, fail_at: str = "", fail_close: str = ""):
        self.log: list[str] = []
        self.fail_at = fail_at
        self.fail_close = fail_close
        self.output = _Output(self.log)
        self.input = _Resource("input", self.log, fail_close=fail_close == "input")
        self.microphone = _Microphone(self.log, [np.zeros(160, dtype=np.float32)])

    async def open_input(self, sample_rate):
        if self.fail_at == "input":
            raise OSError("no input device")
        return self.input

    async def open_output(self, sample_rate):
        if self.fail_at == "output":
            raise OSError("no output device")
        return self.output

    async def open_microphone(self, device):
        if self.fail_at == "microphone":
            raise PermissionError("microphone denied")
        return self.microphone


class _Connector:
    def __init__(self, log: list, chunks: list, fail: bool = False):
        self.connection = _Connection(log, chunks)
        self.fail = fail
        self.models: list[str] = []

    async def connect(self, model):
        self.models.append(model)
        if self.fail:
            raise ConnectionError("live API unreachable")
        return self.connection


def _chunk(frames: int) -> bytes:
    return np.zeros(frames, dtype="<i2").tobytes()


async def _settle():
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_session_streams_both_ways_and_releases_everything():
    backend = _Backend()
    connector = _Connector(backend.log, [_chunk(OUTPUT_SAMPLE_RATE // 10), _chunk(OUTPUT_SAMPLE_RATE // 10)])

    async with VoiceSession(backend, connector, "live-model") as voice:
        await _settle()
        assert voice.is_active
        assert voice.state.is_speaking
        assert connector.models == ["live-model"]
        data, mime = connector.connection.sent[0]
        assert mime == INPUT_MIME_TYPE
        assert len(base64.b64decode(data)) == 320
        starts = [start for _, _, start in backend.output.played]
        assert starts == pytest.approx([10.0, 10.1])

    assert not voice.is_active
    assert backend.log == ["connection", "microphone", "output", "input"]


@pytest.mark.asyncio
async def test_close_releases_remaining_resources_when_one_fails():
    backend = _Backend(fail_close="input")
    connector = _Connector(backend.log, [])
    voice = VoiceSession(backend, connector, "live-model")
    await voice.start()

    await voice.close()
    await voice.close()

    assert sorted(backend.log) == ["connection", "input", "microphone", "output"]
    assert not voice.is_active


@pytest.mark.parametrize("fail_at,released", [("output", ["input"]), ("microphone", ["output", "input"])])
@pytest.mark.asyncio
async def test_failed_start_releases_what_was_acquired(fail_at, released):
    backend = _Backend(fail_at=fail_at)
    voice = VoiceSession(backend, _Connector(backend.log, []), "live-model")

    with pytest.raises(OSError):
        await voice.start()

    assert backend.log == released
    assert not voice.is_active


@pytest.mark.asyncio
async def test_failed_connect_releases_devices():
    backend = _Backend()
    voice = VoiceSession(backend, _Connector(backend.log, [], fail=True), "live-model")

    with pytest.raises(ConnectionError):
        await voice.start()

    assert backend.log == ["microphone", "output", "input"]


@pytest.mark.asyncio
async def test_second_start_is_rejected():
    backend = _Backend()
    voice = VoiceSession(backend, _Connector(backend.log, []), "live-model")
    await voice.start()
    try:
        with pytest.raises(RuntimeError):
            await voice.start()
    finally:
        await voice.close()


class _SilentProvider:
    async def generate(self, messages, tools, config):  # noqa: ANN001
        raise AssertionError("chat not expected")

    async def generate_image(self, prompt, aspect_ratio="16:9", model=""):  # noqa: ANN001
        raise AssertionError("images not expected")


@pytest.mark.asyncio
async def test_career_session_owns_one_voice_session(tmp_path):
    session = CareerSession.create(
        CareerConfig(api_key="k", live_model="live-model"),
        _SilentProvider(),
        profile_store=ProfileStore(tmp_path),
    )
    backend = _Backend()
    connector = _Connector(backend.log, [])

    voice = await session.start_voice(backend, connector)
    assert voice.is_active
    assert session.snapshot()["voice_active"] is True
    assert await session.start_voice(backend, connector) is voice
    assert connector.models == ["live-model"]

    await session.stop_voice()
    assert not voice.is_active
    assert session.voice is None
    assert session.snapshot()["voice_active"] is False
    assert sorted(backend.log) == ["connection", "input", "microphone", "output"]

    await session.stop_voice()


@pytest.mark.asyncio
async def test_career_session_close_stops_voice(tmp_path):
    session = CareerSession.create(
        CareerConfig(api_key="k", live_model="live-model"),
        _SilentProvider(),
        profile_store=ProfileStore(tmp_path),
    )
    backend = _Backend()
    voice = await session.start_voice(backend, _Connector(backend.log, []))

    await session.close()

    assert not voice.is_active
    assert "connection" in backend.log


def _message(*payloads, turn=True):
    if not turn:
        return SimpleNamespace(server_content=SimpleNamespace(model_turn=None))
    parts = [SimpleNamespace(inline_data=SimpleNamespace(data=p) if p is not None else None) for p in payloads]
    return SimpleNamespace(server_content=SimpleNamespace(model_turn=SimpleNamespace(parts=parts)))


class _LiveSession:
    def __init__(self, turns: list):
        self.inputs: list = []
        self._turns = turns

    async def send_realtime_input(self, **kwargs):
        self.inputs.append(kwargs)

    async def receive(self):
        messages = self._turns.pop(0) if self._turns else []
        for message in messages:
            yield message
        if not self._turns:
            await asyncio.Event().wait()


@pytest.mark.asyncio
async def test_live_connection_sends_decoded_blob():
    live = _LiveSession([])
    connection = GeminiLiveConnection(live, contextlib.AsyncExitStack())

    await connection.send_audio(base64.b64encode(b"\x01\x02").decode("ascii"), INPUT_MIME_TYPE)

    blob = live.inputs[0]["audio"]
    assert blob.data == b"\x01\x02"
    assert blob.mime_type == INPUT_MIME_TYPE


@pytest.mark.asyncio
async def test_live_connection_yields_audio_across_turns():
    live = _LiveSession(
        [
            [SimpleNamespace(server_content=None), _message(b"a", None), _message(turn=False)],
            [_message(b"", b"b")],
        ]
    )
    connection = GeminiLiveConnection(live, contextlib.AsyncExitStack())

    received = []
    async for chunk in connection.receive_audio():
        received.append(chunk)
        if len(received) == 2:
            break

    assert received == [b"a", b"b"]


@pytest.mark.asyncio
async def test_live_connection_close_exits_the_live_context():
    stack = contextlib.AsyncExitStack()
    exited = []

    async def exit_live():
        exited.append(True)

    stack.push_async_callback(exit_live)
    connection = GeminiLiveConnection(_LiveSession([]), stack)

    await connection.close()

    assert exited == [True]
