"""
Page structure summary (PageContext) with a short-lived cache.

The summary is handed to the step generator as context: where we are,
how many forms / links / buttons / inputs the page has, its top-level
headings, a few feature flags and some accessibility tallies.

Computing it walks the whole document, so results are cached for a few
seconds. The clock is injectable for tests.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlparse

from common.models.elements import AccessibilityCounters, Heading, PageContext
from scout.drivers.web.document_interface import DocumentLike, ElementLike
from .primitives import label_text


LOG = logging.getLogger(__name__)

Clock = Callable[[], float]

LOGIN_KEYWORDS: Tuple[str, ...] = ("login", "sign in", "signin", "log in")
CART_KEYWORDS: Tuple[str, ...] = ("cart", "basket", "bag")

SEARCH_SELECTOR = 'input[type="search"], [role="search"]'
NAVIGATION_SELECTOR = 'nav, [role="navigation"]'
FIELD_SELECTOR = "input, textarea, select"

# Input types that never need a visible label.
_UNLABELED_EXEMPT_TYPES = frozenset({"hidden", "submit", "button", "reset", "image"})


# --------------------------------------------------------------------------- #
# Feature detection
# --------------------------------------------------------------------------- #


def _body_text(document: DocumentLike) -> str:
    body = document.query_selector("body")
    return (body.text_content if body is not None else "").lower()


def _any_attribute_contains(document: DocumentLike, attr: str, keywords: Tuple[str, ...]) -> bool:
    for el in document.query_selector_all(f"[{attr}]"):
        value = (el.get_attribute(attr) or "").lower()
        if any(k in value for k in keywords):
            return True
    return False


def detect_login(document: DocumentLike) -> bool:
    """Password field, or a login keyword in text, ids or class names."""
    if document.query_selector('input[type="password"]') is not None:
        return True
    if any(k in _body_text(document) for k in LOGIN_KEYWORDS):
        return True
    return _any_attribute_contains(document, "id", LOGIN_KEYWORDS) or _any_attribute_contains(
        document, "class", LOGIN_KEYWORDS
    )


def detect_search(document: DocumentLike) -> bool:
    return document.query_selector(SEARCH_SELECTOR) is not None


def detect_cart(document: DocumentLike) -> bool:
    if any(k in _body_text(document) for k in CART_KEYWORDS):
        return True
    return _any_attribute_contains(document, "id", CART_KEYWORDS)


def detect_navigation(document: DocumentLike) -> bool:
    return document.query_selector(NAVIGATION_SELECTOR) is not None


# --------------------------------------------------------------------------- #
# Accessibility
# --------------------------------------------------------------------------- #


def _is_labelled(field_el: ElementLike, document: DocumentLike) -> bool:
    if field_el.get_attribute("aria-label") or field_el.get_attribute("aria-labelledby"):
        return True
    return label_text(field_el, document) is not None


def accessibility_counters(document: DocumentLike) -> AccessibilityCounters:
    images_without_alt = len(document.query_selector_all("img:not([alt])"))

    unlabeled = 0
    for field_el in document.query_selector_all(FIELD_SELECTOR):
        if (field_el.get_attribute("type") or "").lower() in _UNLABELED_EXEMPT_TYPES:
            continue
        if not _is_labelled(field_el, document):
            unlabeled += 1

    unnamed_buttons = 0
    for button in document.query_selector_all("button"):
        if button.text_content.strip():
            continue
        if button.get_attribute("aria-label") or button.get_attribute("title"):
            continue
        unnamed_buttons += 1

    return AccessibilityCounters(
        images_without_alt=images_without_alt,
        unlabeled_fields=unlabeled,
        unnamed_buttons=unnamed_buttons,
        aria_labelled_elements=len(document.query_selector_all("[aria-label]")),
    )


# --------------------------------------------------------------------------- #
# Builder
# --------------------------------------------------------------------------- #


def build_page_context(document: DocumentLike) -> PageContext:
    """Compute a fresh PageContext for `document` (no caching)."""
    url = document.url
    headings: List[Heading] = [
        Heading(level=h.tag_name.upper(), text=h.text_content.strip())
        for h in document.query_selector_all("h1, h2, h3")
    ]
    return PageContext(
        url=url,
        title=document.title,
        domain=urlparse(url).hostname or "",
        forms=len(document.query_selector_all("form")),
        links=len(document.query_selector_all("a")),
        buttons=len(document.query_selector_all("button")),
        inputs=len(document.query_selector_all("input")),
        headings=headings,
        has_login=detect_login(document),
        has_search=detect_search(document),
        has_cart=detect_cart(document),
        has_navigation=detect_navigation(document),
        accessibility=accessibility_counters(document),
    )


class PageStructureCache:
    """
    Caches the PageContext of one document for `ttl_s` seconds.

    Typical usage:

        cache = PageStructureCache(document, ttl_s=5.0)
        ctx = cache.get()      # computed
        ctx = cache.get()      # served from cache within 5 s
    """

    def __init__(self, document: DocumentLike, ttl_s: float = 5.0, *, clock: Optional[Clock] = None) -> None:
        self._document = document
        self._ttl_s = ttl_s
        self._clock: Clock = clock or time.monotonic
        self._cached: Optional[PageContext] = None
        self._computed_at = 0.0

    def get(self) -> PageContext:
        now = self._clock()
        if self._cached is not None and now - self._computed_at < self._ttl_s:
            return self._cached
        self._cached = build_page_context(self._document)
        self._computed_at = now
        LOG.debug("Page structure computed url=%s", self._cached.url)
        return self._cached

    def clear(self) -> None:
        self._cached = None


__all__ = [
    "LOGIN_KEYWORDS",
    "CART_KEYWORDS",
    "detect_login",
    "detect_search",
    "detect_cart",
    "detect_navigation",
    "accessibility_counters",
    "build_page_context",
    "PageStructureCache",
]
