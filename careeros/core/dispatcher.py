"""Tool dispatcher: turns one model tool call into one local effect."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from pydantic import ValidationError

from careeros.domain.models import (
    ATSResult,
    CareerModel,
    InterviewPrepData,
    JobData,
    PPTContent,
    ProfileSyncData,
    ResumeData,
    RoadmapData,
)
from careeros.domain.prompts import format_score
from careeros.providers.types import FunctionCall
from careeros.tools import registry as tools
from careeros.tools.registry import ToolRegistry
from careeros.tools.validation import MalformedToolCall, coerce_arguments

from .continuation import AutoContinuationPolicy, FollowUp
from .conversation import ConversationStore, ConversationTurn, TurnKind, TurnRole
from .observability import ChatObserver
from .state import AppView, ApplicationState, Slice

M = TypeVar("M", bound=CareerModel)

ProfileSyncHandler = Callable[[ProfileSyncData], str]


class ToolRegistryMismatch(Exception):
    """Handler table and schema registry do not cover the same tool names."""


@dataclass(frozen=True)
class ToolInvocation:
    """A tool call requested by the model; consumed once, never persisted."""

    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_function_call(cls, call: FunctionCall) -> "ToolInvocation":
        return cls(name=call.name, arguments=dict(call.arguments) if call.arguments else {})


@dataclass
class Effect:
    """What a handler asks for; the dispatcher performs it."""

    slice: Optional[Slice] = None
    value: Any = None
    view: Optional[AppView] = None
    message: Optional[str] = None
    message_kind: TurnKind = TurnKind.TEXT
    follow_up: Optional[FollowUp] = None


@dataclass
class DispatchOutcome:
    tool: str
    applied: bool
    slice: Optional[Slice] = None
    view: Optional[AppView] = None
    message: Optional[ConversationTurn] = None
    follow_up: Optional[FollowUp] = None
    issues: List[str] = field(default_factory=list)


Handler = Callable[[Dict[str, Any], bool], Effect]


class ToolDispatcher:
    """Lookup table from tool name to handler, checked against the registry at startup."""

    def __init__(
        self,
        state: ApplicationState,
        conversation: ConversationStore,
        policy: AutoContinuationPolicy,
        registry: Optional[ToolRegistry] = None,
        observer: Optional[ChatObserver] = None,
        profile_sync: Optional[ProfileSyncHandler] = None,
    ) -> None:
        self.state = state
        self.conversation = conversation
        self.policy = policy
        self.registry = registry or ToolRegistry()
        self.observer = observer or ChatObserver()
        self.profile_sync = profile_sync

        self._handlers: Dict[str, Handler] = {
            tools.NAVIGATE_APP: self._navigate_app,
            tools.ANALYZE_JOB: self._analyze_job,
            tools.GENERATE_RESUME: self._generate_resume,
            tools.GENERATE_ROADMAP: self._generate_roadmap,
            tools.CHECK_ATS: self._check_ats,
            tools.PREPARE_INTERVIEW: self._prepare_interview,
            tools.GENERATE_PROJECTS_PPT: self._generate_projects_ppt,
            tools.SYNC_PROFILE_DATA: self._sync_profile_data,
        }
        self._check_lockstep()

    def _check_lockstep(self) -> None:
        handled = set(self._handlers)
        declared = set(self.registry.names())
        if handled != declared:
            raise ToolRegistryMismatch(
                f"no handler for {sorted(declared - handled)}; no schema for {sorted(handled - declared)}"
            )

    @property
    def tool_names(self) -> frozenset:
        return frozenset(self._handlers)

    def apply(self, invocation: ToolInvocation, automatic: bool = False) -> DispatchOutcome:
        """Apply one invocation. Unknown names and malformed payloads are logged no-ops.

        ``automatic`` marks invocations that came back from a silent follow-up turn.
        """
        start = time.time()
        schema = self.registry.get(invocation.name)
        handler = self._handlers.get(invocation.name)
        if schema is None or handler is None:
            self.observer.log_error(
                error_type="unknown_tool",
                message=f"Tool '{invocation.name}' is not registered",
                context={"tool": invocation.name},
            )
            return DispatchOutcome(tool=invocation.name, applied=False)

        coerced = coerce_arguments(schema, invocation.arguments)
        try:
            effect = handler(coerced.values, automatic)
        except MalformedToolCall as e:
            self.observer.log_error(
                error_type="malformed_tool_arguments",
                message=str(e),
                context={"tool": invocation.name, "issues": coerced.issues + e.issues},
            )
            return DispatchOutcome(tool=invocation.name, applied=False, issues=coerced.issues + e.issues)

        outcome = self._perform(invocation.name, effect)
        outcome.issues = coerced.issues
        self.observer.log_tool_dispatch(
            tool_name=invocation.name,
            applied=True,
            view=self.state.active_view.value,
            issues=coerced.issues,
            duration_ms=(time.time() - start) * 1000,
        )
        return outcome

    def _perform(self, tool_name: str, effect: Effect) -> DispatchOutcome:
        outcome = DispatchOutcome(tool=tool_name, applied=True, follow_up=effect.follow_up)
        if effect.slice is not None:
            self.state.write(effect.slice, effect.value)
            outcome.slice = effect.slice
        if effect.view is not None:
            self.state.switch_view(effect.view)
            outcome.view = effect.view
        if effect.message:
            outcome.message = self.conversation.append(
                TurnRole.ASSISTANT,
                effect.message,
                kind=effect.message_kind,
                payload={"tool": tool_name},
            )
        return outcome

    @staticmethod
    def _validate(model: Type[M], tool_name: str, values: Dict[str, Any]) -> M:
        try:
            return model.model_validate(values)
        except ValidationError as e:
            raise MalformedToolCall(tool_name, "arguments do not fit the payload model", [str(e)]) from e

    # --- Handlers ---

    def _navigate_app(self, values: Dict[str, Any], automatic: bool) -> Effect:
        target = values.get("targetView")
        if not target:
            raise MalformedToolCall(tools.NAVIGATE_APP, "targetView is missing or not a known view")
        return Effect(view=AppView(target))

    def _analyze_job(self, values: Dict[str, Any], automatic: bool) -> Effect:
        job = self._validate(JobData, tools.ANALYZE_JOB, values)
        return Effect(
            slice=Slice.JOB,
            value=job,
            view=AppView.DASHBOARD,
            message=f"Analyzing opportunity at {job.company or 'this company'}...",
            message_kind=TurnKind.RESULT,
        )

    def _generate_resume(self, values: Dict[str, Any], automatic: bool) -> Effect:
        resume = self._validate(ResumeData, tools.GENERATE_RESUME, values)
        return Effect(
            slice=Slice.RESUME,
            value=resume,
            view=AppView.RESUME,
            message="Resume generated. Running automatic ATS screening...",
            follow_up=self.policy.on_resume_generated(automatic=automatic),
        )

    def _generate_roadmap(self, values: Dict[str, Any], automatic: bool) -> Effect:
        roadmap = self._validate(RoadmapData, tools.GENERATE_ROADMAP, values)
        return Effect(slice=Slice.ROADMAP, value=roadmap, view=AppView.ROADMAP)

    def _check_ats(self, values: Dict[str, Any], automatic: bool) -> Effect:
        result = self._validate(ATSResult, tools.CHECK_ATS, values)
        effect = Effect(slice=Slice.ATS, value=result, view=AppView.ATS)

        if "score" not in values:
            # nothing to decide on; show what arrived and stop any running loop
            self.policy.abandon()
            return effect

        below_threshold = result.score < self.policy.threshold
        effect.follow_up = self.policy.on_ats_checked(result.score, result.missing_skills)
        score = format_score(result.score)
        if effect.follow_up is not None:
            effect.message = f"ATS score is {score}%. Auto-optimizing keywords..."
        elif below_threshold:
            effect.message = (
                f"ATS score is {score}% after {self.policy.max_attempts} automatic optimization attempts. "
                "Review the suggestions to keep improving it."
            )
        return effect

    def _prepare_interview(self, values: Dict[str, Any], automatic: bool) -> Effect:
        prep = self._validate(InterviewPrepData, tools.PREPARE_INTERVIEW, values)
        return Effect(slice=Slice.INTERVIEW, value=prep, view=AppView.INTERVIEW)

    def _generate_projects_ppt(self, values: Dict[str, Any], automatic: bool) -> Effect:
        deck = self._validate(PPTContent, tools.GENERATE_PROJECTS_PPT, values)
        return Effect(slice=Slice.DECK, value=deck, view=AppView.PROJECTS)

    def _sync_profile_data(self, values: Dict[str, Any], automatic: bool) -> Effect:
        data = self._validate(ProfileSyncData, tools.SYNC_PROFILE_DATA, values)
        if self.profile_sync is None:
            self.observer.log_error(
                error_type="profile_sync_unavailable",
                message="syncProfileData requested but no profile is attached to this session",
            )
            return Effect()
        return Effect(message=self.profile_sync(data), message_kind=TurnKind.RESULT)
