"""
Synthetic DOM actions performed by auto-executed steps.

    click  -> element.click()
    type   -> focus, set value, dispatch "input" and "change"
    hover  -> dispatch "mouseenter" and "mouseover"
    scroll -> scroll the element into view again (center, smooth)
    focus  -> element.focus()

Any failure is wrapped in ActionExecutionError; the engine logs it and
leaves the step on screen.
"""

from __future__ import annotations

import logging

from common.errors import ActionExecutionError
from common.models.steps import Step, StepAction, TypeStep
from scout.drivers.web.document_interface import ElementLike


LOG = logging.getLogger(__name__)


def scroll_to_element(element: ElementLike) -> None:
    element.scroll_into_view(block="center", inline="center", behavior="smooth")


def execute_action(element: ElementLike, step: Step) -> None:
    """
    Perform `step.action` on `element`. Info steps do nothing.

    Raises:
        ActionExecutionError: if the document implementation fails.
    """
    action = step.action
    if action is None:
        return
    try:
        if action is StepAction.CLICK:
            element.click()
        elif action is StepAction.TYPE:
            value = step.value if isinstance(step, TypeStep) else ""
            element.focus()
            element.set_value(value or "")
            element.dispatch_event("input")
            element.dispatch_event("change")
        elif action is StepAction.HOVER:
            element.dispatch_event("mouseenter")
            element.dispatch_event("mouseover")
        elif action is StepAction.SCROLL:
            scroll_to_element(element)
        elif action is StepAction.FOCUS:
            element.focus()
    except Exception as exc:  # noqa: BLE001
        raise ActionExecutionError(action.value, str(exc)) from exc
    LOG.info("Step action executed action=%s", action.value)


__all__ = ["scroll_to_element", "execute_action"]
