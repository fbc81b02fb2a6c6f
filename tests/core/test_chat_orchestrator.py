"""Tests for the chat orchestrator: chaining, serialization and failure handling."""

from __future__ import annotations

import asyncio

import pytest

from careeros.core.config import CareerConfig
from careeros.core.context import CareerSession
from careeros.core.conversation import TurnRole
from careeros.core.orchestrator import SessionBusyError
from careeros.core.session import ProfileStore
from careeros.core.state import AppView
from careeros.core.transport import Attachment
from careeros.domain.models import ExperienceEntry, UserProfile
from careeros.domain.prompts import SERVICE_ERROR_TEXT
from careeros.providers.types import FunctionCall, LLMResponse

RESUME_ARGS = {
    "personalInfo": {"name": "Ada", "email": "ada@example.com", "phone": "555"},
    "summary": "Engineer",
    "skills": ["Python"],
    "latexCode": "",
    "experience": [],
    "education": [],
    "mimicScore": 0,
}


def _call(name: str, **arguments) -> FunctionCall:
    return FunctionCall(name=name, arguments=arguments)


class _FakeProvider:
    def __init__(self, responses: list):
        self._responses = list(responses)
        self.calls: list[dict] = []

    async def generate(self, messages, tools, config):  # noqa: ANN001
        self.calls.append({"messages": messages, "tools": tools, "config": config})
        if self._responses:
            response = self._responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        return LLMResponse(text="done")

    async def generate_image(self, prompt, aspect_ratio="16:9", model=""):  # noqa: ANN001
        return None

    def last_text(self, index: int = -1) -> str:
        return self.calls[index]["messages"][-1].parts[0].text


def _session(tmp_path, responses) -> CareerSession:
    config = CareerConfig(api_key="test-key", retry_attempts=1, max_chain_turns=12)
    return CareerSession.create(config, _FakeProvider(responses), profile_store=ProfileStore(tmp_path))


@pytest.mark.asyncio
async def test_plain_text_reply_is_appended(tmp_path):
    session = _session(tmp_path, [LLMResponse(text="Hello!")])
    result = await session.orchestrator.send_message("hi")

    assert [t.text for t in result.turns] == ["hi", "Hello!"]
    assert result.model_turns == 1
    assert session.state.processing is False


@pytest.mark.asyncio
async def test_resume_generation_triggers_one_silent_ats_check(tmp_path):
    session = _session(
        tmp_path,
        [
            LLMResponse(function_calls=[_call("generateResume", **RESUME_ARGS)]),
            LLMResponse(text="ATS looks fine", function_calls=[_call("checkATS", score=91, missingSkills=[])]),
        ],
    )
    provider = session.provider

    result = await session.orchestrator.send_message("Build my resume")

    assert len(provider.calls) == 2
    assert "Perform an ATS check" in provider.last_text(1)
    assert provider.calls[1]["config"].model == session.config.fast_model
    assert provider.calls[0]["config"].model == session.config.model
    hidden = [t for t in result.turns if not t.visible]
    assert [t.text for t in hidden] == [provider.last_text(1)]
    assert session.state.active_view == AppView.ATS
    assert session.policy.attempts == 0


@pytest.mark.asyncio
async def test_optimization_loop_is_bounded(tmp_path):
    low = LLMResponse(function_calls=[_call("checkATS", score=60, missingSkills=["SQL", "Docker"])])
    regen = LLMResponse(function_calls=[_call("generateResume", **RESUME_ARGS)])
    session = _session(tmp_path, [regen, low, regen, low, regen, low, LLMResponse(text="unexpected")])
    provider = session.provider

    result = await session.orchestrator.send_message("Build my resume")

    # user turn, then ats / regen / ats / regen / ats
    assert len(provider.calls) == 6
    assert "Regenerate the resume with keywords: SQL, Docker." in provider.last_text(2)
    assert provider.calls[2]["config"].model == session.config.model
    assert session.policy.attempts == 0
    assert not session.policy.is_optimizing
    assert not result.truncated


@pytest.mark.asyncio
async def test_follow_ups_are_processed_depth_first(tmp_path):
    session = _session(
        tmp_path,
        [
            LLMResponse(
                function_calls=[
                    _call("generateResume", **RESUME_ARGS),
                    _call("checkATS", score=50, missingSkills=["Go"]),
                ]
            ),
            LLMResponse(text="nested", function_calls=[_call("navigateApp", targetView="roadmap")]),
            LLMResponse(text="second"),
        ],
    )
    provider = session.provider

    await session.orchestrator.send_message("go")

    assert "Perform an ATS check" in provider.last_text(1)
    assert "Regenerate the resume" in provider.last_text(2)
    # the navigation from the first follow-up landed before the second follow-up was sent
    texts = [t.text for t in session.conversation.turns()]
    assert texts.index("nested") < texts.index(provider.last_text(2))


@pytest.mark.asyncio
async def test_transport_failure_posts_single_error_message(tmp_path):
    session = _session(tmp_path, [ConnectionError("boom")])

    result = await session.orchestrator.send_message("hi")

    assistant = [t for t in result.turns if t.role == TurnRole.ASSISTANT]
    assert [t.text for t in assistant] == [SERVICE_ERROR_TEXT]
    assert result.error
    assert session.state.processing is False


@pytest.mark.asyncio
async def test_failure_mid_loop_clears_optimizing(tmp_path):
    session = _session(
        tmp_path,
        [
            LLMResponse(function_calls=[_call("checkATS", score=40, missingSkills=["SQL"])]),
            ValueError("bad request"),
        ],
    )

    await session.orchestrator.send_message("check")

    assert not session.policy.is_optimizing
    assert session.conversation.turns()[-1].text == SERVICE_ERROR_TEXT


@pytest.mark.asyncio
async def test_send_while_processing_is_rejected(tmp_path):
    gate = asyncio.Event()

    class _SlowProvider(_FakeProvider):
        async def generate(self, messages, tools, config):  # noqa: ANN001
            await gate.wait()
            return LLMResponse(text="late")

    config = CareerConfig(api_key="k", retry_attempts=1)
    session = CareerSession.create(config, _SlowProvider([]), profile_store=ProfileStore(tmp_path))

    first = asyncio.create_task(session.orchestrator.send_message("one"))
    await asyncio.sleep(0)
    assert session.orchestrator.processing

    with pytest.raises(SessionBusyError):
        await session.orchestrator.send_message("two")

    gate.set()
    await first
    assert not session.orchestrator.processing


@pytest.mark.asyncio
async def test_runaway_chain_is_cut_off(tmp_path):
    loop = LLMResponse(function_calls=[_call("generateResume", **RESUME_ARGS)])
    config = CareerConfig(api_key="k", retry_attempts=1, max_chain_turns=4)
    session = CareerSession.create(config, _FakeProvider([loop] * 10), profile_store=ProfileStore(tmp_path))

    result = await session.orchestrator.send_message("go")

    assert result.truncated
    assert result.model_turns == 4
    assert not session.policy.is_optimizing


@pytest.mark.asyncio
async def test_empty_message_without_attachment_is_rejected(tmp_path):
    session = _session(tmp_path, [])
    with pytest.raises(ValueError):
        await session.orchestrator.send_message("   ")


@pytest.mark.asyncio
async def test_generate_resume_requires_profile_name(tmp_path):
    session = _session(tmp_path, [])

    result = await session.orchestrator.generate_resume(UserProfile())

    assert result is None
    assert session.state.active_view == AppView.PROFILE
    assert session.provider.calls == []


@pytest.mark.asyncio
async def test_generate_resume_with_reference_is_silent(tmp_path):
    session = _session(tmp_path, [LLMResponse(text="ok")])
    profile = UserProfile(name="Ada", email="ada@example.com", experience=[ExperienceEntry(company="AE")])
    reference = Attachment(data=b"\x89PNG", mime_type="image/png", name="ref.png")

    await session.orchestrator.generate_resume(profile, reference=reference)

    sent = session.provider.calls[0]["messages"][-1]
    assert "mimics the VISUAL LAYOUT" in sent.parts[0].text
    assert sent.parts[1].inline_data.mime_type == "image/png"
    visible = [t.text for t in session.conversation.visible_turns()]
    assert visible[0].startswith("Analyzing layout of ref.png")
    assert not any("RESUME ARCHITECT" in text for text in visible)


@pytest.mark.asyncio
async def test_generate_resume_without_reference_uses_style(tmp_path):
    session = _session(tmp_path, [LLMResponse(text="ok")])
    await session.orchestrator.generate_resume(UserProfile(name="Ada"), style="minimal")

    assert "Create a minimal style resume." in session.provider.last_text()


@pytest.mark.asyncio
async def test_analyze_job_post_sends_screenshot(tmp_path):
    session = _session(
        tmp_path,
        [LLMResponse(function_calls=[_call("analyzeJob", title="Data Engineer", company="Acme")])],
    )
    await session.orchestrator.analyze_job_post(Attachment(data=b"img", mime_type="image/jpeg"))

    assert session.provider.last_text() == "Analyze this job post screenshot."
    assert session.state.job.company == "Acme"
    assert session.state.active_view == AppView.DASHBOARD


def test_user_navigation_goes_through_dispatcher(tmp_path):
    session = _session(tmp_path, [])
    outcome = session.orchestrator.navigate(AppView.INTERVIEW)

    assert outcome.applied
    assert session.state.active_view == AppView.INTERVIEW
    assert session.observer.get_session_stats()["tool_dispatches"] == 1
