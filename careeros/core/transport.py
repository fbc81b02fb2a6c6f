"""Turn transport: one request to the model per call, failures returned as data."""

from __future__ import annotations

import base64
import binascii
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from careeros.domain.prompts import SYSTEM_INSTRUCTION
from careeros.providers.base import ChatProvider
from careeros.providers.types import GenerationConfig, LLMResponse, Message, MessagePart
from careeros.tools.registry import ToolRegistry

from .config import CareerConfig
from .conversation import ConversationTurn, TurnRole
from .dispatcher import ToolInvocation
from .observability import ChatObserver
from .retry import RetryConfig, retry_with_backoff


@dataclass(frozen=True)
class Attachment:
    """Binary payload sent with a turn (job-post screenshot, reference resume)."""

    data: bytes
    mime_type: str
    name: str = ""

    @classmethod
    def from_base64(cls, data: str, mime_type: str, name: str = "") -> "Attachment":
        try:
            raw = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Attachment is not valid base64: {e}") from e
        return cls(data=raw, mime_type=mime_type, name=name)

    @property
    def b64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


@dataclass
class TurnResult:
    text: str = ""
    tool_calls: List[ToolInvocation] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def history_to_messages(history: Sequence[ConversationTurn]) -> List[Message]:
    """Map the conversation log to provider messages; assistant turns become model turns."""
    messages: List[Message] = []
    for turn in history:
        if not turn.text or turn.role == TurnRole.SYSTEM:
            continue
        if turn.role == TurnRole.ASSISTANT:
            messages.append(Message.assistant(turn.text))
        else:
            messages.append(Message.user(turn.text))
    return messages


class TurnTransport:
    """Packages a new turn plus history into a single model request."""

    def __init__(
        self,
        provider: ChatProvider,
        config: Optional[CareerConfig] = None,
        registry: Optional[ToolRegistry] = None,
        observer: Optional[ChatObserver] = None,
        system_instruction: str = SYSTEM_INSTRUCTION,
    ) -> None:
        self.provider = provider
        self.config = config or CareerConfig()
        self.registry = registry or ToolRegistry()
        self.observer = observer or ChatObserver()
        self.system_instruction = system_instruction
        self.retry_config = RetryConfig(max_attempts=self.config.retry_attempts)

    def model_for(self, fast: bool) -> str:
        return self.config.fast_model if fast else self.config.model

    async def send(
        self,
        text: str,
        history: Sequence[ConversationTurn],
        attachment: Optional[Attachment] = None,
        fast: bool = False,
        silent: bool = False,
    ) -> TurnResult:
        """Send one turn. Never raises for model-side failures; see ``TurnResult.error``."""
        if not text and attachment is None:
            raise ValueError("A turn needs text or an attachment")

        parts: List[MessagePart] = []
        if text:
            parts.append(MessagePart.from_text(text))
        if attachment is not None:
            parts.append(MessagePart.from_bytes(attachment.data, attachment.mime_type))

        messages = history_to_messages(history)
        messages.append(Message(role="user", parts=parts))

        model = self.model_for(fast)
        generation_config = GenerationConfig(
            system_prompt=self.system_instruction,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            model=model,
        )

        start = time.time()
        try:
            response: LLMResponse = await retry_with_backoff(
                self.provider.generate,
                self.retry_config,
                messages,
                self.registry.schemas(),
                generation_config,
            )
        except Exception as e:
            self.observer.log_turn_request(
                model=model, fast=fast, silent=silent, duration_ms=(time.time() - start) * 1000, success=False
            )
            self.observer.log_error(
                error_type="transport",
                message=str(e),
                context={"model": model, "silent": silent},
            )
            return TurnResult(error=str(e) or type(e).__name__)

        tokens = (response.usage or {}).get("total_tokens")
        self.observer.log_turn_request(
            model=model, fast=fast, silent=silent, duration_ms=(time.time() - start) * 1000, tokens=tokens
        )
        invocations = [ToolInvocation.from_function_call(call) for call in response.function_calls]
        self.observer.log_model_response(
            response.text,
            [{"name": inv.name, "arguments": inv.arguments} for inv in invocations],
        )
        return TurnResult(text=response.text or "", tool_calls=invocations)
