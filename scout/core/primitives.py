"""
Element-level predicates shared by the relevance and guide engines.

These are the building blocks both engines agree on:

- `is_element_interactive`: the visibility predicate. A node passes when
  it has a non-zero box, lies within the viewport plus a margin, is not
  hidden by style and is not disabled.
- `is_element_clickable` / `is_element_input`: coarse role flags used for
  ranking and for the candidate snapshot.
- `element_matches_keyword`: literal, case-insensitive substring match
  over a fixed set of textual surfaces. No stemming, no synonyms: "login"
  does not match "Sign in".
"""

from __future__ import annotations

from typing import FrozenSet, Iterable, List, Optional

from common.errors import SelectorQueryError
from common.models.geometry import Viewport
from scout.drivers.web.document_interface import DocumentLike, ElementLike
from .selectors import quote_attribute_value


VIEWPORT_MARGIN = 500.0

CLICKABLE_TAGS: FrozenSet[str] = frozenset({"a", "button", "input", "select"})
CLICKABLE_ROLES: FrozenSet[str] = frozenset({"button", "link", "tab", "menuitem"})
INPUT_TAGS: FrozenSet[str] = frozenset({"input", "textarea"})


# --------------------------------------------------------------------------- #
# Visibility
# --------------------------------------------------------------------------- #


def is_element_disabled(element: ElementLike) -> bool:
    return element.has_attribute("disabled")


def is_within_viewport(element: ElementLike, viewport: Viewport, margin: float = VIEWPORT_MARGIN) -> bool:
    rect = element.bounding_rect()
    return (
        rect.top < viewport.height + margin
        and rect.bottom > -margin
        and rect.left < viewport.width + margin
        and rect.right > -margin
    )


def is_element_interactive(
    element: Optional[ElementLike],
    viewport: Viewport,
    margin: float = VIEWPORT_MARGIN,
) -> bool:
    """Visibility predicate used for ranking and for step target resolution."""
    if element is None:
        return False
    if element.bounding_rect().is_empty:
        return False
    if not is_within_viewport(element, viewport, margin):
        return False
    if element.computed_style().is_hidden:
        return False
    return not is_element_disabled(element)


# --------------------------------------------------------------------------- #
# Role flags
# --------------------------------------------------------------------------- #


def is_element_clickable(element: ElementLike) -> bool:
    return (
        element.tag_name in CLICKABLE_TAGS
        or (element.get_attribute("role") or "") in CLICKABLE_ROLES
        or element.has_click_handler
        or element.computed_style().cursor == "pointer"
    )


def is_element_input(element: ElementLike) -> bool:
    return element.tag_name in INPUT_TAGS or element.is_content_editable


# --------------------------------------------------------------------------- #
# Text surfaces
# --------------------------------------------------------------------------- #


def keyword_surfaces(element: ElementLike) -> List[str]:
    """
    Lower-cased textual surfaces searched by `element_matches_keyword`:

    text, placeholder, aria-label, title, value, id, name, aria-describedby.
    """
    raw = [
        element.text_content,
        element.get_attribute("placeholder"),
        element.get_attribute("aria-label"),
        element.get_attribute("title"),
        element.value,
        element.get_attribute("id"),
        element.get_attribute("name"),
        element.get_attribute("aria-describedby"),
    ]
    return [(s or "").lower() for s in raw]


def element_matches_keyword(element: ElementLike, keyword: str) -> bool:
    needle = keyword.lower()
    return any(needle in surface for surface in keyword_surfaces(element))


def visible_text(element: ElementLike) -> str:
    """Text used for text-based matching; an input's text is its value."""
    if element.tag_name == "input":
        return element.value or ""
    return element.text_content or ""


def label_text(element: ElementLike, document: DocumentLike) -> Optional[str]:
    """
    Return the text of the <label> associated with `element`, if any.

    Looks for `label[for=id]` first, then for an enclosing <label>.
    """
    element_id = element.get_attribute("id")
    if element_id:
        try:
            label = document.query_selector(f"label[for={quote_attribute_value(element_id)}]")
        except SelectorQueryError:
            label = None
        if label is not None:
            return label.text_content.strip() or None

    current = element.parent
    while current is not None:
        if current.tag_name == "label":
            return current.text_content.strip() or None
        current = current.parent
    return None


def dedupe_by_identity(elements: Iterable[ElementLike]) -> List[ElementLike]:
    """Drop repeated handles, keeping first-occurrence order."""
    seen: set[int] = set()
    unique: List[ElementLike] = []
    for el in elements:
        if id(el) in seen:
            continue
        seen.add(id(el))
        unique.append(el)
    return unique


__all__ = [
    "VIEWPORT_MARGIN",
    "CLICKABLE_TAGS",
    "CLICKABLE_ROLES",
    "INPUT_TAGS",
    "is_element_disabled",
    "is_within_viewport",
    "is_element_interactive",
    "is_element_clickable",
    "is_element_input",
    "keyword_surfaces",
    "element_matches_keyword",
    "visible_text",
    "label_text",
    "dedupe_by_identity",
]
