"""
Guide engine: the step-by-step overlay state machine.

States are Idle and Active(i). One engine drives one document, and at
most one guide may be active per document: `start()` refuses to run
while another guide's overlay is present.

Per step, the engine:

1. Updates the step indicator and the Previous / Next buttons.
2. Resolves the step target (see resolution.py). When nothing matches,
   it shows an error bubble, waits, and skips forward.
3. Scrolls the target into view and waits for the scroll to settle.
4. Renders the highlight, the message bubble and, for click / hover /
   type steps, the pointer glyph. The step is appended to the history.
5. For auto-executed steps, waits and performs the action.

After the last step, `complete()` shows a success bubble and the guide
stops by itself a little later.

Every wait goes through the StepRunner. A continuation only resumes its
work when its RunToken is still current, the session is still active
and still on the same step, so Previous / Next / Exit, keyboard input or
a restart during a wait never resurrect stale overlays.

Typical usage:

    engine = GuideEngine(document)
    await engine.start([
        {"selector": "#email", "message": "Type your email here"},
        {"text": "Sign in", "message": "Then click Sign in", "action": "click"},
    ])
    ...
    await engine.handle_key("ArrowRight")
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Union

from common.config import GuideTimings
from common.errors import (
    ActionExecutionError,
    ElementNotFoundError,
    InvalidStepIndexError,
    StepValidationError,
)
from common.models.steps import Step, step_from_dict
from scout.core.primitives import VIEWPORT_MARGIN
from scout.drivers.web.document_interface import DocumentLike
from .actions import execute_action, scroll_to_element
from .models import GuideSession, HistoryEntry, SessionStatus
from .overlay import OverlayRenderer
from .resolution import find_step_element
from .runner import RunToken, Sleep, StepRunner


LOG = logging.getLogger(__name__)

StepInput = Union[Step, Mapping[str, Any]]

NOT_FOUND_TEXT = "Could not find the element. Skipping to next step..."
COMPLETED_TEXT = "✅ Guide completed! Great job!"

KEY_EXIT = "Escape"
KEY_NEXT = "ArrowRight"
KEY_PREVIOUS = "ArrowLeft"


class GuideEngine:
    """
    Drives one guide session over one document.

    Args:
        document:
            The page, through the document/layout interface.
        timings:
            Delays; defaults to GuideTimings().
        sleep:
            Injectable sleep (seconds) for the runner; defaults to
            asyncio.sleep.
        viewport_margin:
            Margin used by the visibility predicate during resolution.
        clock:
            Timestamp source for history entries.
    """

    def __init__(
        self,
        document: DocumentLike,
        timings: Optional[GuideTimings] = None,
        *,
        sleep: Optional[Sleep] = None,
        viewport_margin: float = VIEWPORT_MARGIN,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.document = document
        self.timings = timings or GuideTimings()
        self.viewport_margin = viewport_margin
        self.session = GuideSession()
        self.runner = StepRunner(sleep)
        self.overlay = OverlayRenderer(document)
        self._clock = clock

    # ------------------------------------------------------------------ #
    # Read-only views
    # ------------------------------------------------------------------ #

    @property
    def is_active(self) -> bool:
        return self.session.is_active

    @property
    def current_index(self) -> int:
        return self.session.current_index

    @property
    def status(self) -> SessionStatus:
        return self.session.status

    @property
    def steps(self) -> List[Step]:
        return list(self.session.steps)

    @property
    def history(self) -> List[HistoryEntry]:
        return list(self.session.history)

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #

    async def start(self, steps: Sequence[StepInput]) -> bool:
        """
        Start a new session with `steps` and show the first one.

        Returns True when the guide started. Invalid or empty step lists,
        and documents already showing a guide, are refused with a log
        message and leave the engine Idle.
        """
        if self.session.is_active:
            self.stop()

        try:
            parsed = [s if isinstance(s, Step) else step_from_dict(s) for s in steps or []]
        except StepValidationError as exc:
            LOG.error("Guide not started, invalid steps: %s", exc)
            return False

        if not parsed:
            LOG.warning("Guide not started: no steps")
            return False

        if self.overlay.existing_overlay():
            LOG.warning("Guide not started: another guide is active in this document")
            return False

        self.runner.new_epoch()
        self.session.begin(parsed)
        self.overlay.build_scaffold(
            len(parsed),
            on_previous=lambda: self._dispatch(self.previous_step),
            on_next=lambda: self._dispatch(self.next_step),
            on_exit=self.stop,
        )
        LOG.info("Visual guide started step_count=%d url=%s", len(parsed), self.document.url)

        await self.show_step(0)
        return True

    async def show_step(self, index: int) -> None:
        """Show step `index`. Out-of-range indexes are ignored with a warning."""
        step_count = self.session.step_count
        if not self.session.is_active or not 0 <= index < step_count:
            LOG.warning("show_step ignored: %s", InvalidStepIndexError(index, step_count))
            return

        token = self.runner.issue(index)
        self.session.current_index = index
        self.session.status = SessionStatus.RUNNING
        step = self.session.steps[index]
        self.overlay.update_controls(index, step_count)
        LOG.debug("Showing step index=%d step=%s", index, step.to_dict())

        try:
            element = find_step_element(self.document, step.target, self.viewport_margin)
        except ElementNotFoundError as exc:
            LOG.warning("Element not found for step index=%d criteria=%s", index, exc.criteria)
            self.overlay.render_error(NOT_FOUND_TEXT)
            if await self._wait(self.timings.skip_delay_ms, token):
                await self.next_step()
            return

        scroll_to_element(element)
        if not await self._wait(self.timings.scroll_settle_ms, token):
            return

        self.overlay.clear_step()
        self.overlay.render_highlight(element)
        self.overlay.render_message(element, step.message)
        if step.shows_pointer:
            self.overlay.render_pointer(element)
        self.session.record(index, step, timestamp=self._clock())

        if not step.auto_execute:
            return
        if not await self._wait(self.timings.auto_execute_delay_ms, token):
            return
        if not element.is_connected:
            LOG.warning("Auto-execute skipped, target detached index=%d", index)
            return
        try:
            execute_action(element, step)
        except ActionExecutionError as exc:
            LOG.error("Failed to execute step action index=%d: %s", index, exc)

    async def next_step(self) -> None:
        if not self.session.is_active:
            return
        if self.session.current_index < self.session.step_count - 1:
            await self.show_step(self.session.current_index + 1)
        else:
            await self.complete()

    async def previous_step(self) -> None:
        if not self.session.is_active:
            return
        if self.session.current_index > 0:
            await self.show_step(self.session.current_index - 1)

    async def complete(self) -> None:
        """Show the success bubble and schedule the automatic stop."""
        if not self.session.is_active:
            return
        token = self.runner.issue(self.session.current_index)
        self.session.status = SessionStatus.COMPLETED
        self.overlay.render_success(COMPLETED_TEXT)
        LOG.info("Visual guide completed step_count=%d", self.session.step_count)
        self.runner.spawn(self._auto_stop(token))

    def stop(self) -> None:
        """
        Remove every overlay node and reset the session.

        Safe to call at any time, any number of times.
        """
        was_active = self.session.is_active
        self.runner.new_epoch()
        removed = self.overlay.clear()
        self.session.reset()
        if was_active:
            LOG.info("Visual guide stopped removed_nodes=%d", removed)

    async def handle_key(self, key: str) -> bool:
        """
        Keyboard shortcuts: Escape stops, ArrowRight / ArrowLeft move.

        Returns True when the key was handled. Ignored while Idle.
        """
        if not self.session.is_active:
            return False
        if key == KEY_EXIT:
            self.stop()
        elif key == KEY_NEXT:
            await self.next_step()
        elif key == KEY_PREVIOUS:
            await self.previous_step()
        else:
            return False
        return True

    async def drain(self) -> None:
        """Wait for spawned work (control clicks, auto-stop) to finish."""
        await self.runner.drain()

    def to_dict(self) -> Dict[str, Any]:
        return self.session.to_dict()

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _owns(self, token: RunToken) -> bool:
        return (
            self.runner.is_current(token)
            and self.session.is_active
            and self.session.current_index == token.index
        )

    async def _wait(self, ms: float, token: RunToken) -> bool:
        return await self.runner.delay(ms, token) and self._owns(token)

    async def _auto_stop(self, token: RunToken) -> None:
        if await self._wait(self.timings.complete_stop_delay_ms, token):
            self.stop()

    def _dispatch(self, operation: Callable[[], Awaitable[None]]) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            LOG.warning("Guide control ignored: no running event loop")
            return
        self.runner.spawn(operation())


__all__ = [
    "NOT_FOUND_TEXT",
    "COMPLETED_TEXT",
    "GuideEngine",
]
