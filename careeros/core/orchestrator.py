"""Chat orchestrator: drives one user request through the model and the dispatcher.

A request can fan out into automatic follow-up turns (ATS check, keyword
regeneration). Follow-ups are processed depth first: each one, together with
every follow-up its own tool calls produce, finishes before the next
follow-up from the same batch is sent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from careeros.domain.models import UserProfile
from careeros.domain.prompts import (
    DEFAULT_RESUME_STYLE,
    JOB_POST_SCREENSHOT_PROMPT,
    SERVICE_ERROR_TEXT,
    resume_architect_prompt,
)
from careeros.tools.registry import NAVIGATE_APP

from .conversation import ConversationTurn, TurnKind, TurnRole
from .dispatcher import DispatchOutcome, ToolDispatcher, ToolInvocation
from .observability import ChatObserver
from .state import AppView
from .transport import Attachment, TurnTransport

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHAIN_TURNS = 12


class SessionBusyError(Exception):
    """A user-initiated send arrived while a previous chain is still running."""


@dataclass
class PendingTurn:
    text: str
    attachment: Optional[Attachment] = None
    fast: bool = False
    silent: bool = False
    automatic: bool = False  # produced by the continuation policy, not the user


@dataclass
class ChainResult:
    """Everything one request appended to the conversation."""

    turns: List[ConversationTurn] = field(default_factory=list)
    model_turns: int = 0
    error: Optional[str] = None
    truncated: bool = False

    @property
    def visible_turns(self) -> List[ConversationTurn]:
        return [turn for turn in self.turns if turn.visible]


class ChatOrchestrator:
    """Serializes requests and runs each one until its chain of follow-ups settles."""

    def __init__(
        self,
        transport: TurnTransport,
        dispatcher: ToolDispatcher,
        observer: Optional[ChatObserver] = None,
        max_chain_turns: int = DEFAULT_MAX_CHAIN_TURNS,
    ) -> None:
        self.transport = transport
        self.dispatcher = dispatcher
        self.observer = observer or dispatcher.observer
        self.max_chain_turns = max_chain_turns

    @property
    def state(self):
        return self.dispatcher.state

    @property
    def conversation(self):
        return self.dispatcher.conversation

    @property
    def policy(self):
        return self.dispatcher.policy

    @property
    def processing(self) -> bool:
        return self.state.processing

    async def send_message(
        self,
        text: str,
        attachment: Optional[Attachment] = None,
        silent: bool = False,
        fast: bool = False,
    ) -> ChainResult:
        """Send a user-initiated turn and process everything it triggers.

        Raises:
            SessionBusyError: A previous chain has not settled yet
            ValueError: Neither text nor attachment was given
        """
        if self.state.processing:
            raise SessionBusyError("A request is already being processed")
        text = (text or "").strip()
        if not text and attachment is None:
            raise ValueError("Message needs text or an attachment")

        start_index = len(self.conversation)
        self.state.processing = True
        try:
            result = await self._run_chain(PendingTurn(text=text, attachment=attachment, fast=fast, silent=silent))
        finally:
            # a chain that stopped mid-loop must not leave the optimizing indicator on
            self.policy.abandon()
            self.state.processing = False

        result.turns = self.conversation.since(start_index)
        return result

    async def _run_chain(self, first: PendingTurn) -> ChainResult:
        result = ChainResult()
        stack: List[PendingTurn] = [first]

        while stack:
            if result.model_turns >= self.max_chain_turns:
                result.truncated = True
                self.observer.log_error(
                    error_type="chain_limit",
                    message=f"Stopped after {result.model_turns} model turns with {len(stack)} follow-ups pending",
                )
                break

            pending = stack.pop()
            history = self.conversation.turns()
            self.conversation.append(
                TurnRole.USER,
                pending.text or _attachment_label(pending.attachment),
                visible=not pending.silent,
            )
            result.model_turns += 1

            reply = await self.transport.send(
                pending.text,
                history,
                attachment=pending.attachment,
                fast=pending.fast,
                silent=pending.silent,
            )
            if not reply.ok:
                self.conversation.append(TurnRole.ASSISTANT, SERVICE_ERROR_TEXT, payload={"error": reply.error})
                result.error = reply.error
                break

            if reply.text:
                self.conversation.append(TurnRole.ASSISTANT, reply.text)

            follow_ups: List[PendingTurn] = []
            for invocation in reply.tool_calls:
                outcome = self.dispatcher.apply(invocation, automatic=pending.automatic)
                follow_up = self._follow_up(outcome)
                if follow_up is not None:
                    follow_ups.append(follow_up)
            stack.extend(reversed(follow_ups))

        return result

    def _follow_up(self, outcome: DispatchOutcome) -> Optional[PendingTurn]:
        if outcome.follow_up is None:
            return None
        self.observer.log_continuation(outcome.follow_up.reason, outcome.follow_up.text, outcome.follow_up.attempt)
        return PendingTurn(text=outcome.follow_up.text, fast=outcome.follow_up.fast, silent=True, automatic=True)

    def navigate(self, view: AppView) -> DispatchOutcome:
        """User-driven view change, routed through the dispatcher like a model request."""
        return self.dispatcher.apply(ToolInvocation(NAVIGATE_APP, {"targetView": AppView(view).value}))

    async def generate_resume(
        self,
        profile: UserProfile,
        reference: Optional[Attachment] = None,
        style: str = DEFAULT_RESUME_STYLE,
    ) -> Optional[ChainResult]:
        """Ask the model for a resume built from the user's profile.

        With a reference resume the request is sent silently along with the
        file and the model is asked to mimic its layout. Returns None when the
        profile has no name yet; the profile editor is opened instead.
        """
        if self.state.processing:
            raise SessionBusyError("A request is already being processed")
        if not profile.name:
            logger.info("Resume generation needs a profile name; opening profile editor")
            self.navigate(AppView.PROFILE)
            return None

        self.policy.begin_cycle()
        prompt = resume_architect_prompt(profile, style=style, with_reference=reference is not None)
        if reference is None:
            return await self.send_message(prompt)

        self.conversation.append(
            TurnRole.ASSISTANT,
            f"Analyzing layout of {reference.name or 'your reference resume'} and injecting your profile data...",
            kind=TurnKind.ACTION,
        )
        return await self.send_message(prompt, attachment=reference, silent=True)

    async def analyze_job_post(self, attachment: Attachment) -> ChainResult:
        """Send an uploaded job-post screenshot for analysis."""
        return await self.send_message(JOB_POST_SCREENSHOT_PROMPT, attachment=attachment)


def _attachment_label(attachment: Optional[Attachment]) -> str:
    if attachment is None:
        return ""
    return f"[attachment: {attachment.name or attachment.mime_type}]"
