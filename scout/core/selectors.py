"""
Selector and path generation for candidate elements.

`generate_selector` produces a selector that is meant to find the node
again later (possibly after the page has changed), in priority order:

    #id  ->  [data-testid="..."]  ->  [aria-label="..."]  ->  [name="..."]
         ->  tag.class1.class2

Identifiers are escaped with the same rules as the browser's
`CSS.escape`, and attribute values are quoted, so generated selectors are
always syntactically valid. Only the `#id` form is guaranteed to be
unique.

`element_path` is a human-readable ancestor path ("form#login > div.row >
button") used for context, not for querying.
"""

from __future__ import annotations

from typing import List

from scout.drivers.web.document_interface import ElementLike


MAX_SELECTOR_CLASSES = 2


def css_escape(ident: str) -> str:
    """
    Escape `ident` for use as a CSS identifier (`CSS.escape` semantics).

    Example:
        css_escape("1st-item")  -> "\\31 st-item"
        css_escape("a.b")       -> "a\\.b"
    """
    out: List[str] = []
    for idx, ch in enumerate(ident):
        code = ord(ch)
        if code == 0:
            out.append("\ufffd")
        elif 0x01 <= code <= 0x1F or code == 0x7F:
            out.append(f"\\{code:x} ")
        elif idx == 0 and ch.isdigit() and ch.isascii():
            out.append(f"\\{code:x} ")
        elif idx == 1 and ch.isdigit() and ch.isascii() and ident[0] == "-":
            out.append(f"\\{code:x} ")
        elif idx == 0 and ch == "-" and len(ident) == 1:
            out.append("\\-")
        elif code >= 0x80 or ch in "-_" or (ch.isascii() and ch.isalnum()):
            out.append(ch)
        else:
            out.append("\\" + ch)
    return "".join(out)


def quote_attribute_value(value: str) -> str:
    """Return `value` as a double-quoted CSS string; control characters are hex-escaped."""
    out: List[str] = []
    for ch in value:
        code = ord(ch)
        if code == 0:
            out.append("\ufffd")
        elif 0x01 <= code <= 0x1F or code == 0x7F:
            out.append(f"\\{code:x} ")
        elif ch in '\\"':
            out.append("\\" + ch)
        else:
            out.append(ch)
    joined = "".join(out)
    return f'"{joined}"'


def element_classes(element: ElementLike) -> List[str]:
    raw = element.get_attribute("class") or ""
    return raw.split()


def generate_selector(element: ElementLike) -> str:
    """Build a re-query selector for `element` (see module docstring)."""
    element_id = element.get_attribute("id")
    if element_id:
        return "#" + css_escape(element_id)

    for attr in ("data-testid", "aria-label", "name"):
        value = element.get_attribute(attr)
        if value:
            return f"[{attr}={quote_attribute_value(value)}]"

    selector = css_escape(element.tag_name)
    classes = element_classes(element)[:MAX_SELECTOR_CLASSES]
    if classes:
        selector += "".join("." + css_escape(c) for c in classes)
    return selector


def element_path(element: ElementLike) -> str:
    """
    Return the ancestor path of `element`, stopping below <body>.

    Each segment is `tag#id` when the node has an id, otherwise
    `tag.firstclass` when it has a class, otherwise just `tag`.
    """
    parts: List[str] = []
    current = element
    while current is not None and current.tag_name not in ("body", "html"):
        segment = current.tag_name
        element_id = current.get_attribute("id")
        classes = element_classes(current)
        if element_id:
            segment += f"#{element_id}"
        elif classes:
            segment += f".{classes[0]}"
        parts.append(segment)
        current = current.parent
    return " > ".join(reversed(parts))


__all__ = [
    "MAX_SELECTOR_CLASSES",
    "css_escape",
    "quote_attribute_value",
    "element_classes",
    "generate_selector",
    "element_path",
]
