"""Realtime voice session against the model's live audio API.

Input device, output device, microphone stream and live connection are
acquired together and released together; closing the session never leaves
one of them open.
"""

from __future__ import annotations

import asyncio
import base64
import contextlib
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Protocol

import numpy as np
from google import genai
from google.genai import types

from .audio import (
    INPUT_MIME_TYPE,
    INPUT_SAMPLE_RATE,
    OUTPUT_SAMPLE_RATE,
    PlaybackScheduler,
    decode_pcm16,
    duration_of,
    encode_pcm16,
)

logger = logging.getLogger(__name__)


class AudioInput(Protocol):
    async def close(self) -> None: ...


class AudioOutput(Protocol):
    @property
    def current_time(self) -> float: ...

    def play(self, samples: np.ndarray, sample_rate: int, start: float) -> None: ...

    async def close(self) -> None: ...


class Microphone(Protocol):
    def frames(self) -> AsyncIterator[np.ndarray]: ...

    async def close(self) -> None: ...


class AudioBackend(Protocol):
    """Device access; the session never touches audio hardware directly."""

    async def open_input(self, sample_rate: int) -> AudioInput: ...

    async def open_output(self, sample_rate: int) -> AudioOutput: ...

    async def open_microphone(self, device: AudioInput) -> Microphone: ...


class LiveConnection(Protocol):
    async def send_audio(self, data: str, mime_type: str) -> None: ...

    def receive_audio(self) -> AsyncIterator[bytes]: ...

    async def close(self) -> None: ...


class LiveConnector(Protocol):
    async def connect(self, model: str) -> LiveConnection: ...


@dataclass
class VoiceState:
    is_active: bool = False
    is_listening: bool = False
    is_speaking: bool = False


class VoiceSession:
    """Scoped voice session.

    Example:
        async with VoiceSession(backend, connector, model) as voice:
            ...
    """

    def __init__(self, backend: AudioBackend, connector: LiveConnector, model: str):
        self.backend = backend
        self.connector = connector
        self.model = model
        self.state = VoiceState()
        self.scheduler = PlaybackScheduler()
        self._stack: Optional[contextlib.AsyncExitStack] = None
        self._tasks: List[asyncio.Task] = []
        self._output: Optional[AudioOutput] = None
        self._microphone: Optional[Microphone] = None
        self._connection: Optional[LiveConnection] = None

    @property
    def is_active(self) -> bool:
        return self.state.is_active

    async def __aenter__(self) -> "VoiceSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        if self.state.is_active:
            raise RuntimeError("Voice session already active")

        stack = contextlib.AsyncExitStack()
        try:
            input_device = await self.backend.open_input(INPUT_SAMPLE_RATE)
            stack.push_async_callback(_release, "input device", input_device.close)
            self._output = await self.backend.open_output(OUTPUT_SAMPLE_RATE)
            stack.push_async_callback(_release, "output device", self._output.close)
            self._microphone = await self.backend.open_microphone(input_device)
            stack.push_async_callback(_release, "microphone", self._microphone.close)
            self._connection = await self.connector.connect(self.model)
            stack.push_async_callback(_release, "live connection", self._connection.close)
        except BaseException:
            await stack.aclose()
            raise

        self._stack = stack
        self.scheduler.reset()
        self.state = VoiceState(is_active=True, is_listening=True)
        self._tasks = [
            asyncio.create_task(self._pump_microphone()),
            asyncio.create_task(self._pump_model_audio()),
        ]
        logger.info("Voice session started (%s)", self.model)

    async def close(self) -> None:
        """Stop streaming and release every audio resource. Safe to call twice."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        stack, self._stack = self._stack, None
        if stack is not None:
            await stack.aclose()
            logger.info("Voice session closed")
        self._output = self._microphone = self._connection = None
        self.state = VoiceState()

    async def _pump_microphone(self) -> None:
        assert self._microphone is not None and self._connection is not None
        async for frame in self._microphone.frames():
            await self._connection.send_audio(encode_pcm16(frame), INPUT_MIME_TYPE)

    async def _pump_model_audio(self) -> None:
        assert self._output is not None and self._connection is not None
        async for chunk in self._connection.receive_audio():
            self.play(chunk)

    def play(self, chunk: bytes) -> float:
        """Queue one inbound PCM16 buffer right after the previous one; returns its start time."""
        assert self._output is not None
        samples = decode_pcm16(chunk, channels=1)
        start = self.scheduler.schedule(duration_of(samples, OUTPUT_SAMPLE_RATE), now=self._output.current_time)
        self._output.play(samples, OUTPUT_SAMPLE_RATE, start)
        self.state.is_speaking = True
        return start


async def _release(name: str, close: Callable[[], Awaitable[Any]]) -> None:
    try:
        await close()
    except Exception as e:
        logger.warning("Failed to release %s: %s", name, e)


class GeminiLiveConnection:
    def __init__(self, session: Any, stack: contextlib.AsyncExitStack):
        self._session = session
        self._stack = stack

    async def send_audio(self, data: str, mime_type: str) -> None:
        await self._session.send_realtime_input(
            audio=types.Blob(data=base64.b64decode(data), mime_type=mime_type)
        )

    async def receive_audio(self) -> AsyncIterator[bytes]:
        while True:
            async for message in self._session.receive():
                content = message.server_content
                if not content or not content.model_turn:
                    continue
                for part in content.model_turn.parts or []:
                    if part.inline_data and part.inline_data.data:
                        yield part.inline_data.data

    async def close(self) -> None:
        await self._stack.aclose()


class GeminiLiveConnector:
    """Opens audio-only live sessions with google-genai."""

    def __init__(self, api_key: str, system_instruction: str = ""):
        self.client = genai.Client(api_key=api_key)
        self.system_instruction = system_instruction

    async def connect(self, model: str) -> GeminiLiveConnection:
        config = types.LiveConnectConfig(
            response_modalities=[types.Modality.AUDIO],
            system_instruction=self.system_instruction or None,
        )
        stack = contextlib.AsyncExitStack()
        session = await stack.enter_async_context(self.client.aio.live.connect(model=model, config=config))
        return GeminiLiveConnection(session, stack)
