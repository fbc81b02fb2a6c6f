"""Observability for the chat loop - structured events plus logging."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

LOGGER_NAME = "careeros"


@dataclass
class ChatEvent:
    """A single event in the orchestration loop."""

    timestamp: datetime
    event_type: str  # "turn_request", "model_response", "tool_dispatch", "continuation", "error"
    data: Dict[str, Any]
    duration_ms: Optional[float] = None
    tokens_used: Optional[int] = None


class ChatObserver:
    """
    Records what the orchestration loop did and mirrors it to the log.

    One observer per session; events stay in memory for the lifetime of the
    session and feed ``get_session_stats``.
    """

    def __init__(self, session_id: Optional[str] = None, verbose: bool = False):
        self.events: List[ChatEvent] = []
        self.logger = logging.getLogger(LOGGER_NAME)
        self.session_id = session_id
        self.verbose = verbose
        self._setup_logging()

    def _prefix(self) -> str:
        return f"[{self.session_id}] " if self.session_id else ""

    def _setup_logging(self):
        """Configure logging format and handlers."""
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)
        if self.verbose:
            self.logger.setLevel(logging.INFO)
        elif self.logger.level == logging.NOTSET:
            self.logger.setLevel(logging.WARNING)

    def _record(self, event_type: str, data: Dict[str, Any], **kwargs: Any) -> ChatEvent:
        event = ChatEvent(timestamp=datetime.now(), event_type=event_type, data=data, **kwargs)
        self.events.append(event)
        return event

    def log_turn_request(
        self,
        model: str,
        fast: bool,
        silent: bool,
        duration_ms: float,
        success: bool = True,
        tokens: Optional[int] = None,
    ):
        """
        Log one round-trip to the model.

        Args:
            model: Model variant that served the turn
            fast: Whether the low-latency variant was selected
            silent: Whether the turn was an automatic follow-up
            duration_ms: Round-trip time in milliseconds
            success: Whether the call produced a response
            tokens: Total tokens reported by the provider, if any
        """
        self._record(
            "turn_request",
            {"model": model, "fast": fast, "silent": silent, "success": success},
            duration_ms=duration_ms,
            tokens_used=tokens,
        )
        status = "ok" if success else "failed"
        kind = "silent" if silent else "user"
        self.logger.info(
            "%sModel turn %s | %s | %s | %.2fms", self._prefix(), status, model, kind, duration_ms
        )

    def log_model_response(self, text: str, tool_calls: List[Dict[str, Any]]):
        """Log the model's reply (text + requested tools)."""
        self._record("model_response", {"text": text, "tool_calls": tool_calls})
        try:
            tools_dump = json.dumps(tool_calls, ensure_ascii=True, default=str)
        except (TypeError, ValueError):
            tools_dump = str(tool_calls)
        self.logger.info("%sModel response | tools=%s", self._prefix(), tools_dump)
        if text:
            self.logger.info("%s-> text=%s", self._prefix(), text[:200])

    def log_tool_dispatch(
        self,
        tool_name: str,
        applied: bool,
        view: Optional[str] = None,
        issues: Optional[List[str]] = None,
        duration_ms: float = 0.0,
    ):
        """Log one dispatched tool invocation and the view it left active."""
        self._record(
            "tool_dispatch",
            {"tool": tool_name, "applied": applied, "view": view, "issues": issues or []},
            duration_ms=duration_ms,
        )
        status = "applied" if applied else "skipped"
        self.logger.info("%sTool %s %s (view=%s)", self._prefix(), tool_name, status, view or "-")
        if issues:
            self.logger.warning("%sTool %s argument issues: %s", self._prefix(), tool_name, "; ".join(issues))

    def log_continuation(self, reason: str, prompt: str, attempt: int):
        """Log an automatic follow-up turn queued by the continuation policy."""
        self._record("continuation", {"reason": reason, "prompt": prompt, "attempt": attempt})
        self.logger.info("%sAuto-continuation (%s, attempt %d)", self._prefix(), reason, attempt)

    def log_error(
        self,
        error_type: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Log an error or anomaly.

        Args:
            error_type: Kind of failure (e.g. "transport", "unknown_tool")
            message: Error message
            context: Additional context about the error
        """
        self._record("error", {"error_type": error_type, "message": message, "context": context or {}})
        self.logger.error("%sError (%s): %s", self._prefix(), error_type, message)

    def get_session_stats(self) -> Dict[str, Any]:
        """Aggregate counts and totals over everything recorded so far."""
        turns = [e for e in self.events if e.event_type == "turn_request"]
        dispatches = [e for e in self.events if e.event_type == "tool_dispatch"]
        return {
            "event_count": len(self.events),
            "model_turns": len(turns),
            "silent_turns": sum(1 for e in turns if e.data.get("silent")),
            "failed_turns": sum(1 for e in turns if not e.data.get("success")),
            "tool_dispatches": len(dispatches),
            "continuations": sum(1 for e in self.events if e.event_type == "continuation"),
            "errors": sum(1 for e in self.events if e.event_type == "error"),
            "total_tokens": sum(e.tokens_used or 0 for e in self.events),
            "total_duration_ms": sum(e.duration_ms or 0 for e in self.events),
        }

    def clear(self):
        """Clear all recorded events."""
        self.events.clear()
