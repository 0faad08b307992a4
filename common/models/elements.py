"""
Candidate element and page context models.

These are the value types produced by the relevance engine. A
CandidateElement is a *snapshot*: its metadata is copied at scan time and
does not change when the page does. The live node is only held through a
weak reference, so a snapshot never keeps a node alive and must be
re-resolved (`CandidateElement.resolve`) before anything acts on it.
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from common.errors import SelectorQueryError
from common.models.geometry import Rect

if TYPE_CHECKING:
    from scout.drivers.web.document_interface import DocumentLike, ElementLike


ElementRef = Callable[[], Optional["ElementLike"]]


def _dead_ref() -> None:
    return None


@dataclass(frozen=True)
class CandidateElement:
    """
    Metadata snapshot of one element considered relevant to a query.

    Attributes:
        tag_name, element_id, classes:
            Identity of the node at scan time.
        text:
            Trimmed text content, truncated to 100 characters.
        aria_label, aria_describedby, label, name, value, placeholder,
        title, role, input_type, href:
            Textual / ARIA surfaces (None when absent). `label` is the
            text of an associated <label>, if any.
        selector:
            Selector generated for the node (see scout.core.selectors).
        path:
            Ancestor path, e.g. "form#login > div.row > button".
        rect:
            Bounding rect in viewport space.
        document_rect:
            Bounding rect in document space.
        is_visible, is_clickable, is_input, is_disabled, is_required:
            Flags evaluated at scan time.
    """

    tag_name: str
    selector: str
    rect: Rect
    document_rect: Rect
    element_id: Optional[str] = None
    classes: List[str] = field(default_factory=list)
    text: str = ""
    aria_label: Optional[str] = None
    aria_describedby: Optional[str] = None
    label: Optional[str] = None
    name: Optional[str] = None
    value: Optional[str] = None
    placeholder: Optional[str] = None
    title: Optional[str] = None
    role: Optional[str] = None
    input_type: Optional[str] = None
    href: Optional[str] = None
    path: str = ""
    is_visible: bool = False
    is_clickable: bool = False
    is_input: bool = False
    is_disabled: bool = False
    is_required: bool = False

    element_ref: ElementRef = field(default=_dead_ref, repr=False, compare=False)

    @staticmethod
    def make_ref(element: "ElementLike") -> ElementRef:
        """Build a non-owning reference to a live element handle."""
        return weakref.ref(element)

    @property
    def element(self) -> Optional["ElementLike"]:
        """The live node, if it is still alive. May be detached from the page."""
        return self.element_ref()

    def resolve(self, document: "DocumentLike") -> Optional["ElementLike"]:
        """
        Return a live, attached node for this snapshot.

        Prefers the original node while it is still connected; otherwise
        re-queries the document with the generated selector. Returns None
        when neither works.
        """
        element = self.element
        if element is not None and element.is_connected:
            return element
        if not self.selector:
            return None
        try:
            return document.query_selector(self.selector)
        except SelectorQueryError:
            return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tagName": self.tag_name,
            "id": self.element_id,
            "classes": list(self.classes),
            "text": self.text,
            "ariaLabel": self.aria_label,
            "ariaDescribedby": self.aria_describedby,
            "label": self.label,
            "name": self.name,
            "value": self.value,
            "placeholder": self.placeholder,
            "title": self.title,
            "role": self.role,
            "type": self.input_type,
            "href": self.href,
            "selector": self.selector,
            "path": self.path,
            "position": self.document_rect.to_dict(),
            "viewportRect": self.rect.to_dict(),
            "isVisible": self.is_visible,
            "isClickable": self.is_clickable,
            "isInput": self.is_input,
            "isDisabled": self.is_disabled,
            "isRequired": self.is_required,
        }


@dataclass(frozen=True)
class AccessibilityCounters:
    """Simple accessibility tallies collected with the page structure."""

    images_without_alt: int = 0
    unlabeled_fields: int = 0
    unnamed_buttons: int = 0
    aria_labelled_elements: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "imagesWithoutAlt": self.images_without_alt,
            "unlabeledFields": self.unlabeled_fields,
            "unnamedButtons": self.unnamed_buttons,
            "ariaLabelledElements": self.aria_labelled_elements,
        }


@dataclass(frozen=True)
class Heading:
    level: str
    text: str

    def to_dict(self) -> Dict[str, str]:
        return {"level": self.level, "text": self.text}


@dataclass(frozen=True)
class PageContext:
    """
    Page summary handed to the step generator as context.

    Attributes:
        url, title, domain:
            Location of the page.
        forms, links, buttons, inputs:
            Element counts.
        headings:
            h1-h3 headings in document order.
        has_login, has_search, has_cart, has_navigation:
            Feature flags detected from markup and text.
        accessibility:
            Accessibility counters.
    """

    url: str
    title: str
    domain: str
    forms: int = 0
    links: int = 0
    buttons: int = 0
    inputs: int = 0
    headings: List[Heading] = field(default_factory=list)
    has_login: bool = False
    has_search: bool = False
    has_cart: bool = False
    has_navigation: bool = False
    accessibility: AccessibilityCounters = field(default_factory=AccessibilityCounters)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "domain": self.domain,
            "forms": self.forms,
            "links": self.links,
            "buttons": self.buttons,
            "inputs": self.inputs,
            "headings": [h.to_dict() for h in self.headings],
            "hasLogin": self.has_login,
            "hasSearch": self.has_search,
            "hasCart": self.has_cart,
            "hasNavigation": self.has_navigation,
            "accessibility": self.accessibility.to_dict(),
        }


__all__ = [
    "CandidateElement",
    "AccessibilityCounters",
    "Heading",
    "PageContext",
]
