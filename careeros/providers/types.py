"""Provider-agnostic message and tool types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class FunctionCall:
    """Represents a tool/function call from the model."""

    name: str
    arguments: Dict[str, Any]
    id: Optional[str] = None


@dataclass
class InlineData:
    """Binary attachment sent alongside a turn (image, PDF, audio)."""

    data: bytes
    mime_type: str


@dataclass
class MessagePart:
    """A part of a message: text or inline binary data."""

    text: Optional[str] = None
    inline_data: Optional[InlineData] = None

    @classmethod
    def from_text(cls, text: str) -> "MessagePart":
        return cls(text=text)

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str) -> "MessagePart":
        return cls(inline_data=InlineData(data=data, mime_type=mime_type))


@dataclass
class Message:
    """Provider-agnostic chat message."""

    role: str  # "user" | "assistant"
    parts: List[MessagePart] = field(default_factory=list)

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(role="user", parts=[MessagePart.from_text(text)])

    @classmethod
    def assistant(cls, text: str) -> "Message":
        return cls(role="assistant", parts=[MessagePart.from_text(text)])


@dataclass
class ToolSchema:
    """Tool schema in JSON Schema format."""

    name: str
    description: str
    parameters: Dict[str, Any]


@dataclass
class GenerationConfig:
    """Common generation settings passed to providers."""

    system_prompt: str = ""
    max_tokens: int = 8192
    temperature: Optional[float] = 0.7
    model: str = ""  # overrides the provider default model when set


@dataclass
class LLMResponse:
    """Normalized response from a provider."""

    text: str = ""
    function_calls: List[FunctionCall] = field(default_factory=list)
    usage: Optional[Dict[str, int]] = None
    raw: Any = None
