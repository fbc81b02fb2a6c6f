"""Gemini provider conversion tests (no network)."""

from types import SimpleNamespace

import pytest
from google.genai import types

from careeros.providers.gemini import GeminiProvider
from careeros.providers.types import FunctionCall, Message, MessagePart
from careeros.tools.registry import DEFAULT_TOOLS, GENERATE_PROJECTS_PPT_TOOL, NAVIGATE_APP_TOOL


def _provider(**kwargs) -> GeminiProvider:
    return GeminiProvider(api_key="test-key", model="gemini-3-pro-preview", **kwargs)


def _part(text=None, function_call=None, inline_data=None):
    return SimpleNamespace(text=text, function_call=function_call, inline_data=inline_data)


def test_completion_normalizes_text_tool_calls_and_usage():
    provider = _provider()
    response = SimpleNamespace(
        candidates=[
            SimpleNamespace(
                content=SimpleNamespace(
                    parts=[
                        _part(text="Opening"),
                        _part(function_call=SimpleNamespace(name="navigateApp", args={"targetView": "ats"}, id="c1")),
                        _part(text="the ATS view"),
                    ]
                )
            )
        ],
        usage_metadata=SimpleNamespace(total_token_count=120),
    )

    normalized = provider._from_gemini_response(response)

    assert normalized.text == "Opening the ATS view"
    assert normalized.function_calls == [FunctionCall(name="navigateApp", arguments={"targetView": "ats"}, id="c1")]
    assert normalized.usage == {"total_tokens": 120}


def test_empty_candidates_raise():
    with pytest.raises(RuntimeError):
        _provider()._from_gemini_response(SimpleNamespace(candidates=[]))


def test_contents_map_roles_and_inline_data():
    contents = _provider()._to_gemini_contents(
        [
            Message.user("hi"),
            Message.assistant("hello"),
            Message(role="user", parts=[MessagePart.from_text("see file"), MessagePart.from_bytes(b"img", "image/png")]),
            Message(role="user", parts=[]),
        ]
    )

    assert [c.role for c in contents] == ["user", "model", "user"]
    assert contents[2].parts[1].inline_data.data == b"img"
    assert contents[2].parts[1].inline_data.mime_type == "image/png"


def test_declarations_keep_enums_and_nested_objects():
    provider = _provider()

    navigate = provider._to_gemini_declaration(NAVIGATE_APP_TOOL)
    assert navigate.parameters.required == ["targetView"]
    assert navigate.parameters.properties["targetView"].enum == [
        "dashboard",
        "resume",
        "roadmap",
        "ats",
        "projects",
        "interview",
        "profile",
    ]

    deck = provider._to_gemini_declaration(GENERATE_PROJECTS_PPT_TOOL)
    slide = deck.parameters.properties["slides"].items
    assert deck.parameters.properties["slides"].type == types.Type.ARRAY
    assert slide.type == types.Type.OBJECT
    assert slide.properties["imageType"].enum == ["AI", "BROWSER", "NONE"]
    assert slide.properties["content"].items.type == types.Type.STRING


def test_tools_include_search_grounding_when_enabled():
    assert len(_provider()._to_gemini_tools(list(DEFAULT_TOOLS))) == 1
    tools = _provider(search_grounding=True)._to_gemini_tools(list(DEFAULT_TOOLS))
    assert len(tools) == 2
    assert tools[1].google_search is not None
    assert _provider()._to_gemini_tools(None) is None


def test_image_response_becomes_data_uri():
    response = SimpleNamespace(
        candidates=[
            SimpleNamespace(
                content=SimpleNamespace(
                    parts=[
                        _part(text="here you go"),
                        _part(inline_data=SimpleNamespace(data=b"\x89PNG", mime_type="image/png")),
                    ]
                )
            )
        ]
    )

    assert _provider()._image_data_uri(response) == "data:image/png;base64,iVBORw=="
    assert _provider()._image_data_uri(SimpleNamespace(candidates=[])) is None


@pytest.mark.asyncio
async def test_image_failure_returns_none(monkeypatch):
    provider = _provider()

    def boom(**kwargs):
        raise RuntimeError("quota")

    monkeypatch.setattr(provider.client.models, "generate_content", boom)

    assert await provider.generate_image("a diagram") is None
