"""Self-correcting ATS loop: when to silently send the model another turn.

    Idle --resume generated--> AwaitingATSCheck      (request ATS check)
    AwaitingATSCheck/Optimizing --score >= threshold--> Settled
    AwaitingATSCheck/Optimizing --score < threshold, budget left--> Optimizing
                                                     (request keyword regeneration)
    AwaitingATSCheck/Optimizing --score < threshold, budget spent--> Settled

The retry counter is the only state carried between iterations and is checked
before it is incremented, so the loop ends after at most
``max_attempts`` regenerations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from careeros.domain.prompts import ATS_CHECK_PROMPT, keyword_optimization_prompt

logger = logging.getLogger(__name__)

# Product policy constants carried over unchanged; no rationale is documented for either.
ATS_ACCEPTANCE_THRESHOLD = 80.0
MAX_OPTIMIZATION_ATTEMPTS = 2


class LoopState(str, Enum):
    IDLE = "idle"
    AWAITING_ATS_CHECK = "awaiting_ats_check"
    OPTIMIZING = "optimizing"
    SETTLED = "settled"


@dataclass(frozen=True)
class FollowUp:
    """A silent turn the orchestrator must send after the current dispatch."""

    text: str
    reason: str
    fast: bool = False
    attempt: int = 0


class AutoContinuationPolicy:
    """Owns the retry counter and decides on automatic follow-up turns."""

    def __init__(
        self,
        threshold: float = ATS_ACCEPTANCE_THRESHOLD,
        max_attempts: int = MAX_OPTIMIZATION_ATTEMPTS,
    ) -> None:
        if max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")
        self.threshold = float(threshold)
        self.max_attempts = max_attempts
        self.state = LoopState.IDLE
        self._attempts = 0

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def is_optimizing(self) -> bool:
        return self.state == LoopState.OPTIMIZING

    def begin_cycle(self) -> None:
        """A user-initiated resume generation gets a full retry budget."""
        self._attempts = 0
        self.state = LoopState.IDLE

    def on_resume_generated(self, automatic: bool) -> FollowUp:
        if not automatic:
            self._attempts = 0
        self.state = LoopState.AWAITING_ATS_CHECK
        return FollowUp(text=ATS_CHECK_PROMPT, reason="ats_check", fast=True, attempt=self._attempts)

    def on_ats_checked(self, score: float, missing_skills: Sequence[str]) -> Optional[FollowUp]:
        if score >= self.threshold:
            self._settle()
            return None

        if self._attempts < self.max_attempts:
            self._attempts += 1
            self.state = LoopState.OPTIMIZING
            return FollowUp(
                text=keyword_optimization_prompt(score, missing_skills),
                reason="keyword_optimization",
                fast=False,
                attempt=self._attempts,
            )

        logger.info("ATS optimization budget of %d spent; leaving score %.1f", self.max_attempts, score)
        self._settle()
        return None

    def abandon(self) -> None:
        """The chain ended without closing the loop; hand control back to the user."""
        if self.state in (LoopState.AWAITING_ATS_CHECK, LoopState.OPTIMIZING):
            self._settle()

    def _settle(self) -> None:
        self._attempts = 0
        self.state = LoopState.SETTLED
