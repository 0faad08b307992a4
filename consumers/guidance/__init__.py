"""
Guide engine package.

This package contains the building blocks of the on-page guide:

- Session models (status, history).
- Step target resolution with fallback criteria.
- Overlay rendering and message placement.
- Synthetic actions for auto-executed steps.
- The epoch-guarded step runner and the GuideEngine state machine.
- Assistant glue tying the relevance engine, a step source and the guide.

Everything talks to the page through the document/layout interface in
`scout.drivers.web.document_interface`.
"""

from .models import (
    SessionStatus,
    HistoryEntry,
    GuideSession,
)
from .resolution import (
    find_step_element,
    resolve_by_selector,
    resolve_by_text,
    resolve_by_aria_label,
)
from .overlay import (
    RESERVED_CLASSES,
    Direction,
    calculate_best_position,
    choose_direction,
    OverlayRenderer,
)
from .actions import execute_action
from .runner import RunToken, StepRunner
from .engine import GuideEngine
from .assistant import run_guided_query

__all__ = [
    # models
    "SessionStatus",
    "HistoryEntry",
    "GuideSession",
    # resolution
    "find_step_element",
    "resolve_by_selector",
    "resolve_by_text",
    "resolve_by_aria_label",
    # overlay
    "RESERVED_CLASSES",
    "Direction",
    "calculate_best_position",
    "choose_direction",
    "OverlayRenderer",
    # actions
    "execute_action",
    # runner
    "RunToken",
    "StepRunner",
    # engine
    "GuideEngine",
    # assistant
    "run_guided_query",
]
