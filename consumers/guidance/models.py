"""
Models for the guide engine.

These are pure data structures owned by GuideEngine. They do not touch
the document.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from common.models.steps import Step


# --------------------------------------------------------------------------- #
# Session status
# --------------------------------------------------------------------------- #


class SessionStatus(str, Enum):
    """
    Overall status of a guide session.

    NOT_STARTED:
        No session yet, or the engine was reset before any step showed.
    RUNNING:
        Steps are being shown.
    COMPLETED:
        `complete()` ran; the success bubble is up until auto-stop.
    CANCELLED:
        Stopped before completion (Exit, Escape, restart).
    """

    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# --------------------------------------------------------------------------- #
# History
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class HistoryEntry:
    """One successfully shown step."""

    step_index: int
    timestamp: float
    step: Step

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_index": self.step_index,
            "timestamp": self.timestamp,
            "step": self.step.to_dict(),
        }


# --------------------------------------------------------------------------- #
# Session
# --------------------------------------------------------------------------- #


@dataclass
class GuideSession:
    """
    State of the (single) guide session of one engine.

    `current_index` is only meaningful while `is_active`; `history` is an
    append-only log cleared by `start()` and `stop()`.
    """

    steps: List[Step] = field(default_factory=list)
    current_index: int = 0
    is_active: bool = False
    status: SessionStatus = SessionStatus.NOT_STARTED
    history: List[HistoryEntry] = field(default_factory=list)

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def is_last(self) -> bool:
        return self.current_index >= len(self.steps) - 1

    def current_step(self) -> Optional[Step]:
        """Return the current Step, or None if the index is out of range."""
        if 0 <= self.current_index < len(self.steps):
            return self.steps[self.current_index]
        return None

    def record(self, index: int, step: Step, *, timestamp: Optional[float] = None) -> HistoryEntry:
        entry = HistoryEntry(
            step_index=index,
            timestamp=time.time() if timestamp is None else timestamp,
            step=step,
        )
        self.history.append(entry)
        return entry

    def begin(self, steps: List[Step]) -> None:
        self.steps = list(steps)
        self.current_index = 0
        self.is_active = True
        self.status = SessionStatus.RUNNING
        self.history = []

    def reset(self) -> None:
        if self.status is SessionStatus.RUNNING:
            self.status = SessionStatus.CANCELLED
        self.steps = []
        self.current_index = 0
        self.is_active = False
        self.history = []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "steps": [s.to_dict() for s in self.steps],
            "current_index": self.current_index,
            "is_active": self.is_active,
            "status": self.status.value,
            "history": [h.to_dict() for h in self.history],
        }


__all__ = [
    "SessionStatus",
    "HistoryEntry",
    "GuideSession",
]
