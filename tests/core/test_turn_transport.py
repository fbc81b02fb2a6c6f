"""Tests for the turn transport: request packaging and failure handling."""

from __future__ import annotations

import base64

import pytest

from careeros.core.config import CareerConfig
from careeros.core.conversation import ConversationStore, TurnRole
from careeros.core.observability import ChatObserver
from careeros.core.retry import RetryConfig
from careeros.core.transport import Attachment, TurnTransport, history_to_messages
from careeros.domain.prompts import SYSTEM_INSTRUCTION
from careeros.providers.types import FunctionCall, LLMResponse
from careeros.tools.registry import ToolRegistry


class _FakeProvider:
    def __init__(self, responses: list):
        self._responses = list(responses)
        self.calls: list[dict] = []

    async def generate(self, messages, tools, config):  # noqa: ANN001
        self.calls.append({"messages": messages, "tools": tools, "config": config})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _transport(responses, **config_overrides) -> tuple[TurnTransport, _FakeProvider, ChatObserver]:
    provider = _FakeProvider(responses)
    observer = ChatObserver()
    config = CareerConfig(api_key="k", **config_overrides)
    transport = TurnTransport(provider, config, observer=observer)
    transport.retry_config = RetryConfig(max_attempts=config.retry_attempts, base_delay=0.0, jitter_factor=0.0)
    return transport, provider, observer


def test_history_mapping_skips_system_and_empty_turns():
    store = ConversationStore()
    store.append(TurnRole.USER, "hello")
    store.append(TurnRole.SYSTEM, "internal note")
    store.append(TurnRole.ASSISTANT, "")
    store.append(TurnRole.ASSISTANT, "hi there")
    store.append(TurnRole.USER, "silent follow-up", visible=False)

    messages = history_to_messages(store.turns())

    assert [(m.role, m.parts[0].text) for m in messages] == [
        ("user", "hello"),
        ("assistant", "hi there"),
        ("user", "silent follow-up"),
    ]


@pytest.mark.asyncio
async def test_request_carries_system_instruction_and_every_tool():
    transport, provider, _ = _transport([LLMResponse(text="ok")])

    result = await transport.send("hi", [])

    call = provider.calls[0]
    assert result.ok and result.text == "ok"
    assert call["config"].system_prompt == SYSTEM_INSTRUCTION
    assert call["config"].model == transport.config.model
    assert {schema.name for schema in call["tools"]} == ToolRegistry().names()


@pytest.mark.asyncio
async def test_fast_turn_uses_fast_model():
    transport, provider, _ = _transport([LLMResponse(text="ok")])

    await transport.send("check", [], fast=True)

    assert provider.calls[0]["config"].model == transport.config.fast_model


@pytest.mark.asyncio
async def test_attachment_is_sent_as_inline_part():
    transport, provider, _ = _transport([LLMResponse()])
    attachment = Attachment(data=b"%PDF-1.4", mime_type="application/pdf", name="job.pdf")

    await transport.send("", [], attachment=attachment)

    parts = provider.calls[0]["messages"][-1].parts
    assert len(parts) == 1
    assert parts[0].inline_data.data == b"%PDF-1.4"
    assert parts[0].inline_data.mime_type == "application/pdf"


@pytest.mark.asyncio
async def test_tool_calls_are_returned_in_order():
    transport, _, observer = _transport(
        [
            LLMResponse(
                text="On it",
                function_calls=[
                    FunctionCall(name="analyzeJob", arguments={"title": "SRE"}),
                    FunctionCall(name="navigateApp", arguments={"targetView": "roadmap"}),
                ],
                usage={"total_tokens": 42},
            )
        ]
    )

    result = await transport.send("go", [])

    assert [call.name for call in result.tool_calls] == ["analyzeJob", "navigateApp"]
    assert result.tool_calls[0].arguments == {"title": "SRE"}
    assert observer.get_session_stats()["total_tokens"] == 42


@pytest.mark.asyncio
async def test_failure_is_returned_not_raised():
    transport, _, observer = _transport([ValueError("invalid argument")])

    result = await transport.send("hi", [])

    assert not result.ok
    assert "invalid argument" in result.error
    stats = observer.get_session_stats()
    assert stats["failed_turns"] == 1
    assert stats["errors"] == 1


@pytest.mark.asyncio
async def test_transient_failure_is_retried():
    transport, provider, _ = _transport([ConnectionError("reset"), LLMResponse(text="recovered")], retry_attempts=3)

    result = await transport.send("hi", [])

    assert result.text == "recovered"
    assert len(provider.calls) == 2


@pytest.mark.asyncio
async def test_empty_turn_is_rejected():
    transport, provider, _ = _transport([])
    with pytest.raises(ValueError):
        await transport.send("", [])
    assert provider.calls == []


def test_attachment_from_base64_round_trip_and_rejects_garbage():
    attachment = Attachment.from_base64(base64.b64encode(b"png-bytes").decode(), "image/png", "shot.png")
    assert attachment.data == b"png-bytes"
    assert attachment.b64 == base64.b64encode(b"png-bytes").decode()

    with pytest.raises(ValueError):
        Attachment.from_base64("not base64!!", "image/png")
