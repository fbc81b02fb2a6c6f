"""Append-only conversation log."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple


class TurnRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class TurnKind(str, Enum):
    TEXT = "text"
    ACTION = "action"
    RESULT = "result"
    VOICE = "voice"


@dataclass(frozen=True)
class ConversationTurn:
    id: str
    role: TurnRole
    text: str
    kind: TurnKind
    timestamp: datetime
    visible: bool = True
    payload: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "text": self.text,
            "kind": self.kind.value,
            "timestamp": self.timestamp.isoformat(),
            "visible": self.visible,
            "payload": self.payload,
        }


class ConversationStore:
    """Ordered log of turns; turns are only ever appended."""

    def __init__(self) -> None:
        self._turns: List[ConversationTurn] = []

    def append(
        self,
        role: TurnRole,
        text: str,
        kind: TurnKind = TurnKind.TEXT,
        visible: bool = True,
        payload: Optional[Dict[str, Any]] = None,
    ) -> ConversationTurn:
        timestamp = datetime.now(timezone.utc)
        # keep timestamps non-decreasing in append order even if the clock steps back
        if self._turns and timestamp < self._turns[-1].timestamp:
            timestamp = self._turns[-1].timestamp
        turn = ConversationTurn(
            id=f"turn_{uuid.uuid4().hex[:10]}",
            role=TurnRole(role),
            text=text,
            kind=TurnKind(kind),
            timestamp=timestamp,
            visible=visible,
            payload=payload,
        )
        self._turns.append(turn)
        return turn

    def turns(self) -> Tuple[ConversationTurn, ...]:
        return tuple(self._turns)

    def visible_turns(self) -> List[ConversationTurn]:
        return [turn for turn in self._turns if turn.visible]

    def since(self, index: int) -> List[ConversationTurn]:
        """Turns appended after the log had ``index`` entries."""
        return list(self._turns[index:])

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[ConversationTurn]:
        return iter(tuple(self._turns))
