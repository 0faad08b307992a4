"""
Step target resolution.

A step names its target loosely: a selector, a piece of visible text,
an aria-label, or several of these. The page may have changed since the
step was generated, so each criterion is tried in turn and the first
*visible* hit wins:

1. `selector`: direct query of the first match only; an invalid selector
   counts as no match.
2. `text`: case-insensitive substring of the text of buttons, links,
   inputs (their value), role=button nodes and labels.
3. `aria_label`: exact attribute match.

Visibility uses the same predicate as the relevance engine.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from common.errors import ElementNotFoundError, SelectorQueryError
from common.models.steps import StepTarget
from scout.core.primitives import VIEWPORT_MARGIN, is_element_interactive, visible_text
from scout.drivers.web.document_interface import DocumentLike, ElementLike


LOG = logging.getLogger(__name__)

TEXT_TARGET_SELECTOR = 'button, a, input, [role="button"], label'


def _visible(element: Optional[ElementLike], document: DocumentLike, margin: float) -> bool:
    return is_element_interactive(element, document.viewport(), margin)


def _query_all(document: DocumentLike, selector: str) -> List[ElementLike]:
    try:
        return document.query_selector_all(selector)
    except SelectorQueryError as exc:
        LOG.debug("Selector ignored: %s", exc)
        return []


def resolve_by_selector(
    document: DocumentLike, selector: str, margin: float = VIEWPORT_MARGIN
) -> Optional[ElementLike]:
    """Only the first match counts; if it is hidden, the selector misses."""
    try:
        el = document.query_selector(selector)
    except SelectorQueryError as exc:
        LOG.debug("Selector ignored: %s", exc)
        return None
    if el is not None and _visible(el, document, margin):
        return el
    return None


def resolve_by_text(
    document: DocumentLike, text: str, margin: float = VIEWPORT_MARGIN
) -> Optional[ElementLike]:
    needle = text.lower()
    for el in _query_all(document, TEXT_TARGET_SELECTOR):
        if needle in visible_text(el).lower() and _visible(el, document, margin):
            return el
    return None


def resolve_by_aria_label(
    document: DocumentLike, aria_label: str, margin: float = VIEWPORT_MARGIN
) -> Optional[ElementLike]:
    for el in _query_all(document, "[aria-label]"):
        if el.get_attribute("aria-label") == aria_label and _visible(el, document, margin):
            return el
    return None


def find_step_element(
    document: DocumentLike,
    target: StepTarget,
    margin: float = VIEWPORT_MARGIN,
) -> ElementLike:
    """
    Resolve `target` against the live document.

    Raises:
        ElementNotFoundError: if no criterion yields a visible element.
    """
    if target.selector:
        el = resolve_by_selector(document, target.selector, margin)
        if el is not None:
            return el
    if target.text:
        el = resolve_by_text(document, target.text, margin)
        if el is not None:
            return el
    if target.aria_label:
        el = resolve_by_aria_label(document, target.aria_label, margin)
        if el is not None:
            return el
    raise ElementNotFoundError("No visible element matches the step target", criteria=target.to_dict())


__all__ = [
    "TEXT_TARGET_SELECTOR",
    "resolve_by_selector",
    "resolve_by_text",
    "resolve_by_aria_label",
    "find_step_element",
]
