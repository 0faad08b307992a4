"""
Headless implementation of the document/layout capability interface.

HeadlessDocument wraps a BeautifulSoup tree (stdlib `html.parser`
backend, selector queries through soupsieve) and adds the small amount
of layout state the engines need:

- Bounding rects, in document space, supplied explicitly through a
  `data-rect="left,top,width,height"` attribute or a `{selector: Rect}`
  layout map. Nodes without layout report a zero rect.
- A viewport (size + scroll offsets). `scroll_into_view` moves the
  scroll offsets, so viewport-space rects change like in a browser.
- Inline-style based computed style (display / visibility / opacity /
  cursor), with `display:none` and the `hidden` attribute collapsing the
  rect of the node and its descendants.
- Event listeners and a per-element log of dispatched events.

It is NOT a browser: there is no CSS cascade, no script execution and
no automatic layout. It is good enough to exercise the engines in tests
and offline tools.

Typical usage:

    doc = HeadlessDocument(
        '<button id="ok" data-rect="100,200,80,30">OK</button>',
        url="https://example.com/",
    )
    el = doc.query_selector("#ok")
    el.bounding_rect()   # Rect(left=100, top=200, width=80, height=30)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import soupsieve
from bs4 import BeautifulSoup, Tag

from common.errors import SelectorQueryError
from common.models.geometry import Rect, Viewport
from .document_interface import ComputedStyle, EventListener

LOG = logging.getLogger(__name__)


DEFAULT_VIEWPORT_SIZE: Tuple[float, float] = (1280.0, 720.0)

_BLOCK_TAGS = frozenset(
    {
        "html", "body", "div", "p", "form", "section", "article", "nav",
        "header", "footer", "main", "aside", "ul", "ol", "li", "table",
        "h1", "h2", "h3", "h4", "h5", "h6", "fieldset",
    }
)
_INLINE_BLOCK_TAGS = frozenset({"input", "button", "select", "textarea", "img"})


def _parse_style(style: Optional[str]) -> Dict[str, str]:
    """Parse an inline style attribute into {property: value}."""
    props: Dict[str, str] = {}
    if not style:
        return props
    for decl in style.split(";"):
        if ":" not in decl:
            continue
        name, _, value = decl.partition(":")
        name = name.strip().lower()
        if name:
            props[name] = value.strip().lower()
    return props


def _format_style(props: Mapping[str, str]) -> str:
    return "; ".join(f"{k}: {v}" for k, v in props.items())


def parse_rect(raw: str) -> Rect:
    """
    Parse "left,top,width,height" into a Rect.

    Raises:
        ValueError: if the string does not hold four numbers.
    """
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != 4:
        raise ValueError(f"Expected 'left,top,width,height', got {raw!r}")
    left, top, width, height = (float(p) for p in parts)
    return Rect(left, top, width, height)


class HeadlessElement:
    """
    Element handle over a bs4 Tag.

    Handles are created and cached by HeadlessDocument; never construct
    one directly.
    """

    def __init__(self, document: "HeadlessDocument", tag: Tag) -> None:
        self._doc = document
        self._tag = tag
        self._listeners: Dict[str, List[EventListener]] = {}
        self._value_override: Optional[str] = None
        # Every event dispatched on this element, in order.
        self.events: List[str] = []

    def __repr__(self) -> str:
        ident = self._tag.get("id")
        suffix = f"#{ident}" if ident else ""
        return f"<HeadlessElement {self.tag_name}{suffix}>"

    # ------------------------------------------------------------------ #
    # Properties
    # ------------------------------------------------------------------ #

    @property
    def tag(self) -> Tag:
        return self._tag

    @property
    def tag_name(self) -> str:
        return (self._tag.name or "").lower()

    @property
    def text_content(self) -> str:
        return self._tag.get_text()

    @property
    def value(self) -> Optional[str]:
        if self._value_override is not None:
            return self._value_override
        tag = self.tag_name
        if tag in ("input", "button", "option"):
            return self.get_attribute("value") or ""
        if tag == "textarea":
            return self._tag.get_text()
        if tag == "select":
            options = self._tag.find_all("option")
            chosen = next((o for o in options if o.has_attr("selected")), None)
            if chosen is None and options:
                chosen = options[0]
            if chosen is None:
                return ""
            return chosen.get("value", chosen.get_text())
        return None

    @property
    def parent(self) -> Optional["HeadlessElement"]:
        parent = self._tag.parent
        if parent is None or parent is self._doc.soup:
            return None
        return self._doc.handle_for(parent)

    @property
    def is_connected(self) -> bool:
        node = self._tag
        while node is not None:
            if node is self._doc.soup:
                return True
            node = node.parent
        return False

    @property
    def has_click_handler(self) -> bool:
        return self._tag.has_attr("onclick") or bool(self._listeners.get("click"))

    @property
    def is_content_editable(self) -> bool:
        raw = self.get_attribute("contenteditable")
        return raw is not None and raw.lower() in ("", "true", "plaintext-only")

    # ------------------------------------------------------------------ #
    # Attributes
    # ------------------------------------------------------------------ #

    def get_attribute(self, name: str) -> Optional[str]:
        raw = self._tag.get(name)
        if raw is None:
            return None
        if isinstance(raw, list):
            return " ".join(raw)
        return str(raw)

    def has_attribute(self, name: str) -> bool:
        return self._tag.has_attr(name)

    def set_attribute(self, name: str, value: str) -> None:
        self._tag[name] = value

    def remove_attribute(self, name: str) -> None:
        if self._tag.has_attr(name):
            del self._tag[name]

    # ------------------------------------------------------------------ #
    # Layout
    # ------------------------------------------------------------------ #

    def bounding_rect(self) -> Rect:
        return self._doc.viewport_rect_for(self._tag)

    def computed_style(self) -> ComputedStyle:
        return self._doc.computed_style_for(self._tag)

    def scroll_into_view(
        self,
        *,
        block: str = "center",
        inline: str = "center",
        behavior: str = "smooth",
    ) -> None:
        self._doc.scroll_element_into_view(self._tag, block=block, inline=inline)

    # ------------------------------------------------------------------ #
    # Interaction
    # ------------------------------------------------------------------ #

    def add_event_listener(self, event_type: str, listener: EventListener) -> None:
        self._listeners.setdefault(event_type, []).append(listener)

    def dispatch_event(self, event_type: str) -> None:
        self.events.append(event_type)
        for listener in list(self._listeners.get(event_type, [])):
            listener(event_type)

    def click(self) -> None:
        # Disabled controls swallow clicks, like in a browser.
        if self._tag.has_attr("disabled"):
            return
        self.dispatch_event("click")

    def focus(self) -> None:
        self._doc.active_element = self
        self.dispatch_event("focus")

    def set_value(self, value: str) -> None:
        self._value_override = value

    # ------------------------------------------------------------------ #
    # Overlay helpers
    # ------------------------------------------------------------------ #

    def append_child(self, child: "HeadlessElement") -> None:
        self._tag.append(child.tag)
        self._doc.adopt(child)

    def remove(self) -> None:
        if self._tag.parent is not None:
            self._tag.extract()
        self._doc.release(self._tag)

    def set_text(self, text: str) -> None:
        self._tag.string = text

    def set_style(self, **properties: str) -> None:
        props = _parse_style(self.get_attribute("style"))
        for key, val in properties.items():
            props[key.replace("_", "-")] = str(val)
        self._tag["style"] = _format_style(props)

    def style_property(self, name: str) -> Optional[str]:
        """Return one inline style property (tests / debugging)."""
        return _parse_style(self.get_attribute("style")).get(name)

    @property
    def class_list(self) -> List[str]:
        raw = self._tag.get("class") or []
        if isinstance(raw, str):
            return raw.split()
        return list(raw)

    def add_class(self, class_name: str) -> None:
        classes = self.class_list
        if class_name not in classes:
            classes.append(class_name)
        self._tag["class"] = classes

    def remove_class(self, class_name: str) -> None:
        self._tag["class"] = [c for c in self.class_list if c != class_name]

    def set_disabled(self, disabled: bool) -> None:
        if disabled:
            self._tag["disabled"] = ""
        else:
            self.remove_attribute("disabled")


class HeadlessDocument:
    """
    DocumentLike implementation backed by BeautifulSoup.

    Args:
        html:
            Page markup. Fragments are wrapped in html/head/body.
        url:
            Page URL (reported by `url`; used for the page context).
        viewport_size:
            (width, height) of the simulated window.
        layout:
            Optional {selector: Rect} map of document-space rects, applied
            after `data-rect` attributes.
    """

    def __init__(
        self,
        html: str,
        *,
        url: str = "about:blank",
        viewport_size: Tuple[float, float] = DEFAULT_VIEWPORT_SIZE,
        layout: Optional[Mapping[str, Rect]] = None,
    ) -> None:
        soup = BeautifulSoup(html, "html.parser")
        if soup.body is None:
            soup = BeautifulSoup(
                f"<html><head></head><body>{html}</body></html>", "html.parser"
            )
        if soup.head is None:
            head = soup.new_tag("head")
            (soup.html or soup).insert(0, head)

        self.soup: BeautifulSoup = soup
        self._url = url
        self._width, self._height = viewport_size
        self._scroll_x = 0.0
        self._scroll_y = 0.0
        self._handles: Dict[int, HeadlessElement] = {}
        self._rects: Dict[int, Rect] = {}
        self.active_element: Optional[HeadlessElement] = None

        for tag in soup.find_all(attrs={"data-rect": True}):
            try:
                self._rects[id(tag)] = parse_rect(str(tag["data-rect"]))
            except ValueError:
                LOG.warning("Ignoring malformed data-rect=%r", tag.get("data-rect"))

        for selector, rect in (layout or {}).items():
            self.set_rect(selector, rect)

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs: Any) -> "HeadlessDocument":
        text = Path(path).read_text(encoding="utf-8")
        kwargs.setdefault("url", Path(path).resolve().as_uri())
        return cls(text, **kwargs)

    # ------------------------------------------------------------------ #
    # Handles
    # ------------------------------------------------------------------ #

    def handle_for(self, tag: Tag) -> HeadlessElement:
        """Return the canonical handle for a bs4 Tag."""
        key = id(tag)
        handle = self._handles.get(key)
        if handle is None:
            handle = HeadlessElement(self, tag)
            self._handles[key] = handle
        return handle

    def adopt(self, element: HeadlessElement) -> None:
        """Re-register `element` as the canonical handle of its tag."""
        self._handles[id(element.tag)] = element

    def release(self, tag: Tag) -> None:
        """Forget the handles of a detached subtree."""
        self._handles.pop(id(tag), None)
        for child in tag.find_all(True):
            self._handles.pop(id(child), None)

    # ------------------------------------------------------------------ #
    # DocumentLike API
    # ------------------------------------------------------------------ #

    @property
    def url(self) -> str:
        return self._url

    @property
    def title(self) -> str:
        if self.soup.title is None:
            return ""
        return self.soup.title.get_text().strip()

    def viewport(self) -> Viewport:
        return Viewport(self._width, self._height, self._scroll_x, self._scroll_y)

    def query_selector(self, selector: str) -> Optional[HeadlessElement]:
        try:
            tag = self.soup.select_one(selector)
        except (soupsieve.SelectorSyntaxError, NotImplementedError, ValueError, TypeError) as exc:
            raise SelectorQueryError(str(selector), str(exc)) from exc
        return self.handle_for(tag) if tag is not None else None

    def query_selector_all(self, selector: str) -> List[HeadlessElement]:
        try:
            tags = self.soup.select(selector)
        except (soupsieve.SelectorSyntaxError, NotImplementedError, ValueError, TypeError) as exc:
            raise SelectorQueryError(str(selector), str(exc)) from exc
        return [self.handle_for(t) for t in tags]

    def get_element_by_id(self, element_id: str) -> Optional[HeadlessElement]:
        tag = self.soup.find(id=element_id)
        return self.handle_for(tag) if isinstance(tag, Tag) else None

    def create_element(
        self,
        tag: str,
        *,
        class_name: Optional[str] = None,
        text: Optional[str] = None,
    ) -> HeadlessElement:
        node = self.soup.new_tag(tag)
        if class_name:
            node["class"] = class_name.split()
        if text is not None:
            node.string = text
        return self.handle_for(node)

    def append_to_body(self, element: HeadlessElement) -> None:
        self.soup.body.append(element.tag)
        self.adopt(element)

    def append_to_head(self, element: HeadlessElement) -> None:
        self.soup.head.append(element.tag)
        self.adopt(element)

    # ------------------------------------------------------------------ #
    # Layout control (test / tool side)
    # ------------------------------------------------------------------ #

    def set_rect(self, target: Union[str, HeadlessElement], rect: Rect) -> None:
        """Assign a document-space rect to an element or to every selector match."""
        if isinstance(target, HeadlessElement):
            self._rects[id(target.tag)] = rect
            return
        for el in self.query_selector_all(target):
            self._rects[id(el.tag)] = rect

    def set_viewport_size(self, width: float, height: float) -> None:
        self._width, self._height = width, height

    def scroll_to(self, x: float, y: float) -> None:
        max_x, max_y = self._max_scroll()
        self._scroll_x = min(max(0.0, x), max_x)
        self._scroll_y = min(max(0.0, y), max_y)

    def document_rect_for(self, tag: Tag) -> Rect:
        if not self.handle_for(tag).is_connected:
            return Rect.empty()
        node: Optional[Tag] = tag
        while isinstance(node, Tag) and node is not self.soup:
            if node.has_attr("hidden"):
                return Rect.empty()
            if _parse_style(node.get("style")).get("display") == "none":
                return Rect.empty()
            node = node.parent
        return self._rects.get(id(tag), Rect.empty())

    def viewport_rect_for(self, tag: Tag) -> Rect:
        return self.viewport().to_viewport(self.document_rect_for(tag))

    def computed_style_for(self, tag: Tag) -> ComputedStyle:
        own = _parse_style(tag.get("style"))
        name = (tag.name or "").lower()

        display = own.get("display")
        if display is None:
            if tag.has_attr("hidden"):
                display = "none"
            elif name in _BLOCK_TAGS:
                display = "block"
            elif name in _INLINE_BLOCK_TAGS:
                display = "inline-block"
            else:
                display = "inline"

        visibility = self._inherited(tag, "visibility") or "visible"
        cursor = self._inherited(tag, "cursor")
        if cursor is None:
            cursor = "pointer" if name == "a" and tag.has_attr("href") else "auto"

        return ComputedStyle(
            display=display,
            visibility=visibility,
            opacity=own.get("opacity", "1"),
            cursor=cursor,
        )

    def scroll_element_into_view(self, tag: Tag, *, block: str = "center", inline: str = "center") -> None:
        rect = self.document_rect_for(tag)
        if rect.is_empty:
            return
        x = self._aligned(rect.left, rect.width, self._width, self._scroll_x, inline)
        y = self._aligned(rect.top, rect.height, self._height, self._scroll_y, block)
        self.scroll_to(x, y)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _inherited(self, tag: Tag, prop: str) -> Optional[str]:
        node: Optional[Tag] = tag
        while isinstance(node, Tag) and node is not self.soup:
            val = _parse_style(node.get("style")).get(prop)
            if val is not None:
                return val
            node = node.parent
        return None

    def _max_scroll(self) -> Tuple[float, float]:
        right = max((r.right for r in self._rects.values()), default=0.0)
        bottom = max((r.bottom for r in self._rects.values()), default=0.0)
        return max(0.0, right - self._width), max(0.0, bottom - self._height)

    @staticmethod
    def _aligned(start: float, size: float, window: float, current: float, mode: str) -> float:
        if mode == "start":
            return start
        if mode == "end":
            return start + size - window
        if mode == "nearest":
            if start >= current and start + size <= current + window:
                return current
            return start if start < current else start + size - window
        return start + size / 2 - window / 2


__all__ = [
    "DEFAULT_VIEWPORT_SIZE",
    "parse_rect",
    "HeadlessElement",
    "HeadlessDocument",
]
