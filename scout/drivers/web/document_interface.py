"""
Document / layout capability interface.

Both engines touch the page exclusively through the two protocols defined
here. A concrete implementation is responsible for:

- Answering CSS selector queries against the live document.
- Reporting layout (bounding rects, viewport, computed style).
- Creating and removing the guide's overlay nodes.
- Performing the handful of synthetic interactions a step may request.

Implementations must return *canonical* handles: querying the same node
twice yields the same ElementLike object, so node identity can be checked
with `is` and handles can be deduplicated by `id()`.

This module is deliberately dependency-free and contains no
platform-specific code. See `headless_document.py` for an implementation
that needs no browser.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol

from common.models.geometry import Rect, Viewport


EventListener = Callable[[str], Any]


@dataclass(frozen=True)
class ComputedStyle:
    """
    The subset of `getComputedStyle` the engines look at.

    Attributes:
        display:    e.g. "block", "inline", "none".
        visibility: "visible" or "hidden".
        opacity:    Serialized opacity, e.g. "1" or "0".
        cursor:     e.g. "auto", "pointer".
    """

    display: str = "inline"
    visibility: str = "visible"
    opacity: str = "1"
    cursor: str = "auto"

    @property
    def is_hidden(self) -> bool:
        if self.display == "none" or self.visibility == "hidden":
            return True
        try:
            return float(self.opacity) == 0.0
        except ValueError:
            return False

    def to_dict(self) -> Dict[str, str]:
        return {
            "display": self.display,
            "visibility": self.visibility,
            "opacity": self.opacity,
            "cursor": self.cursor,
        }


class ElementLike(Protocol):
    """A live node in the document."""

    @property
    def tag_name(self) -> str:
        """Lower-case tag name."""
        ...

    @property
    def text_content(self) -> str:
        """Concatenated text of the subtree."""
        ...

    @property
    def value(self) -> Optional[str]:
        """Current form value (inputs, textareas, selects), else None."""
        ...

    @property
    def parent(self) -> Optional["ElementLike"]:
        """Parent element, or None for the root / detached nodes."""
        ...

    @property
    def is_connected(self) -> bool:
        """True while the node is attached to its document."""
        ...

    @property
    def has_click_handler(self) -> bool:
        """True when an onclick handler or click listener is attached."""
        ...

    @property
    def is_content_editable(self) -> bool:
        ...

    def get_attribute(self, name: str) -> Optional[str]:
        ...

    def has_attribute(self, name: str) -> bool:
        ...

    def set_attribute(self, name: str, value: str) -> None:
        ...

    def bounding_rect(self) -> Rect:
        """Bounding rect in viewport space (zero rect when not laid out)."""
        ...

    def computed_style(self) -> ComputedStyle:
        ...

    def click(self) -> None:
        ...

    def focus(self) -> None:
        ...

    def set_value(self, value: str) -> None:
        ...

    def dispatch_event(self, event_type: str) -> None:
        ...

    def add_event_listener(self, event_type: str, listener: EventListener) -> None:
        ...

    def scroll_into_view(
        self,
        *,
        block: str = "center",
        inline: str = "center",
        behavior: str = "smooth",
    ) -> None:
        ...

    # Overlay helpers --------------------------------------------------------

    def append_child(self, child: "ElementLike") -> None:
        ...

    def remove(self) -> None:
        """Detach the node from the document. Removing twice is a no-op."""
        ...

    def set_text(self, text: str) -> None:
        ...

    def set_style(self, **properties: str) -> None:
        """Set inline style properties; keys use underscores for dashes."""
        ...

    def add_class(self, class_name: str) -> None:
        ...

    def remove_class(self, class_name: str) -> None:
        ...

    def set_disabled(self, disabled: bool) -> None:
        ...


class DocumentLike(Protocol):
    """A document plus the window it is displayed in."""

    @property
    def url(self) -> str:
        ...

    @property
    def title(self) -> str:
        ...

    def viewport(self) -> Viewport:
        ...

    def query_selector(self, selector: str) -> Optional[ElementLike]:
        """
        Return the first element matching `selector`, or None.

        Raises:
            SelectorQueryError: if the selector is syntactically invalid.
        """
        ...

    def query_selector_all(self, selector: str) -> List[ElementLike]:
        """
        Return every element matching `selector` in document order.

        Raises:
            SelectorQueryError: if the selector is syntactically invalid.
        """
        ...

    def get_element_by_id(self, element_id: str) -> Optional[ElementLike]:
        ...

    def create_element(
        self,
        tag: str,
        *,
        class_name: Optional[str] = None,
        text: Optional[str] = None,
    ) -> ElementLike:
        """Create a detached element."""
        ...

    def append_to_body(self, element: ElementLike) -> None:
        ...

    def append_to_head(self, element: ElementLike) -> None:
        ...


__all__ = [
    "EventListener",
    "ComputedStyle",
    "ElementLike",
    "DocumentLike",
]
