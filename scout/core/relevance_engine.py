"""
Relevance engine: rank on-page elements for a natural-language query.

Given a query such as "where is the login button", the engine:

1. Classifies the query intent (find / act / fix / explain / general).
2. Extracts up to five literal keywords.
3. For each keyword, scans five fixed element pools in order (buttons,
   links, form fields, labels, ARIA-described elements) and keeps nodes
   whose textual surfaces contain the keyword.
4. Deduplicates by node identity, drops nodes that are not interactive
   (invisible, far off-screen, disabled), and stable-sorts clickable
   nodes first.
5. Snapshots each survivor into a CandidateElement.

The engine only reads the page, through the DocumentLike interface. It
is constructed per document; there is no module-level instance.

`analyze_for_query` fails soft: a bad query or an unexpected error
yields an empty list, never an exception.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from common.config import RelevanceConfig
from common.errors import MetadataExtractionError, SelectorQueryError
from common.models.elements import CandidateElement, PageContext
from common.models.intents import QueryIntent
from scout.drivers.web.document_interface import DocumentLike, ElementLike
from .page_structure import Clock, PageStructureCache
from .primitives import (
    dedupe_by_identity,
    element_matches_keyword,
    is_element_clickable,
    is_element_input,
    is_element_interactive,
    label_text,
)
from .query_analysis import detect_intent, extract_keywords
from .selectors import element_classes, element_path, generate_selector, quote_attribute_value


LOG = logging.getLogger(__name__)


# Scanned in this order for every keyword.
ELEMENT_POOLS: Sequence[str] = (
    'button, input[type="button"], input[type="submit"], [role="button"]',
    "a",
    "input, textarea, select",
    "label",
    "[aria-label], [aria-describedby]",
)

FORM_FIELD_SELECTOR = "input, textarea, select"
CLICKABLE_SELECTOR = 'a, button, [role="button"], [onclick]'


# --------------------------------------------------------------------------- #
# Result model
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class QueryAnalysis:
    """
    Everything the step generator needs for one query.

    Attributes:
        query:       Raw user text.
        intent:      Detected intent.
        keywords:    Extracted keywords, first-occurrence order.
        candidates:  Ranked candidates, best first.
        page_context: Page summary.
    """

    query: str
    intent: QueryIntent
    keywords: List[str] = field(default_factory=list)
    candidates: List[CandidateElement] = field(default_factory=list)
    page_context: Optional[PageContext] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userQuery": self.query,
            "intent": self.intent.value,
            "keywords": list(self.keywords),
            "elements": [c.to_dict() for c in self.candidates],
            "pageContext": self.page_context.to_dict() if self.page_context else None,
        }


# --------------------------------------------------------------------------- #
# Engine
# --------------------------------------------------------------------------- #


class RelevanceEngine:
    """
    Ranks candidate elements of one document.

    Typical usage:

        engine = RelevanceEngine(document)
        candidates = engine.analyze_for_query("where is the search box")
        for c in candidates:
            print(c.selector, c.text)
    """

    def __init__(
        self,
        document: DocumentLike,
        config: Optional[RelevanceConfig] = None,
        *,
        clock: Optional[Clock] = None,
    ) -> None:
        self.document = document
        self.config = config or RelevanceConfig()
        self._structure = PageStructureCache(document, self.config.cache_ttl_s, clock=clock or time.monotonic)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def analyze_for_query(self, query: Any) -> List[CandidateElement]:
        """Return up to `max_results` candidates for `query`, best first."""
        if not isinstance(query, str) or not query.strip():
            return []
        try:
            intent = self.detect_intent(query)
            keywords = self.extract_keywords(query)
            elements = self.find_relevant_elements(keywords, intent)
            candidates = self._snapshot_all(elements, limit=self.config.max_results)
        except Exception:  # noqa: BLE001
            LOG.exception("Relevance analysis failed query=%r", query)
            return []
        LOG.info(
            "Analyzed query intent=%s keywords=%s candidates=%d",
            intent.value,
            keywords,
            len(candidates),
        )
        return candidates

    def analyze(self, query: Any) -> QueryAnalysis:
        """Run the full analysis, including the page context."""
        text = query if isinstance(query, str) else ""
        intent = self.detect_intent(text) if text.strip() else QueryIntent.GENERAL
        keywords = self.extract_keywords(text) if text.strip() else []
        candidates = self.analyze_for_query(query)
        try:
            page_context = self.get_page_structure()
        except Exception:  # noqa: BLE001
            LOG.exception("Page structure failed url=%s", self.document.url)
            page_context = PageContext(url=self.document.url, title=self.document.title, domain="")
        return QueryAnalysis(
            query=text,
            intent=intent,
            keywords=keywords,
            candidates=candidates,
            page_context=page_context,
        )

    def detect_intent(self, query: str) -> QueryIntent:
        return detect_intent(query)

    def extract_keywords(self, query: str) -> List[str]:
        return extract_keywords(query, self.config.max_keywords)

    def find_relevant_elements(
        self,
        keywords: Sequence[str],
        intent: QueryIntent = QueryIntent.GENERAL,
    ) -> List[ElementLike]:
        """
        Scan the element pools for `keywords` and rank the matches.

        `intent` is accepted for downstream context; it does not change
        the ranking.
        """
        matches: List[ElementLike] = []
        for keyword in list(keywords)[: self.config.max_keywords]:
            for pool in ELEMENT_POOLS:
                for el in self.document.query_selector_all(pool):
                    if element_matches_keyword(el, keyword):
                        matches.append(el)

        unique = dedupe_by_identity(matches)
        interactive = [el for el in unique if self.is_element_interactive(el)]
        # sorted() is stable: ties keep scan order.
        return sorted(interactive, key=lambda el: 0 if is_element_clickable(el) else 1)

    def is_element_interactive(self, element: Optional[ElementLike]) -> bool:
        return is_element_interactive(element, self.document.viewport(), self.config.viewport_margin)

    def generate_selector(self, element: ElementLike) -> str:
        return generate_selector(element)

    def get_element_path(self, element: ElementLike) -> str:
        return element_path(element)

    def get_element_metadata(self, element: ElementLike) -> CandidateElement:
        """
        Snapshot `element` into a CandidateElement.

        Raises:
            MetadataExtractionError: if any part of the snapshot fails.
        """
        try:
            viewport = self.document.viewport()
            rect = element.bounding_rect()
            classes = element_classes(element)
            return CandidateElement(
                tag_name=element.tag_name,
                selector=generate_selector(element),
                rect=rect,
                document_rect=viewport.to_document(rect),
                element_id=element.get_attribute("id") or None,
                classes=classes,
                text=element.text_content.strip()[: self.config.text_prefix],
                aria_label=element.get_attribute("aria-label"),
                aria_describedby=element.get_attribute("aria-describedby"),
                label=label_text(element, self.document),
                name=element.get_attribute("name"),
                value=element.value,
                placeholder=element.get_attribute("placeholder"),
                title=element.get_attribute("title"),
                role=element.get_attribute("role"),
                input_type=element.get_attribute("type"),
                href=element.get_attribute("href"),
                path=element_path(element),
                is_visible=self.is_element_interactive(element),
                is_clickable=is_element_clickable(element),
                is_input=is_element_input(element),
                is_disabled=element.has_attribute("disabled"),
                is_required=element.has_attribute("required"),
                element_ref=CandidateElement.make_ref(element),
            )
        except Exception as exc:  # noqa: BLE001
            raise MetadataExtractionError(f"Could not snapshot <{getattr(element, 'tag_name', '?')}>: {exc}") from exc

    def get_page_structure(self) -> PageContext:
        return self._structure.get()

    def find_element(self, criteria: Mapping[str, Any]) -> Optional[ElementLike]:
        """
        Look up one element by criteria, tried in order:

        selector -> exact trimmed text -> aria-label -> id -> name.
        Visibility is not checked.
        """
        selector = criteria.get("selector")
        if selector:
            try:
                el = self.document.query_selector(selector)
            except SelectorQueryError:
                el = None
            if el is not None:
                return el

        text = criteria.get("text")
        if text:
            found = self._find_by_exact_text(text)
            if found is not None:
                return found

        aria_label = criteria.get("ariaLabel") or criteria.get("aria_label")
        if aria_label:
            el = self.document.query_selector(f"[aria-label={quote_attribute_value(aria_label)}]")
            if el is not None:
                return el

        element_id = criteria.get("id")
        if element_id:
            return self.document.get_element_by_id(element_id)

        name = criteria.get("name")
        if name:
            return self.document.query_selector(f"[name={quote_attribute_value(name)}]")
        return None

    def get_all_form_fields(self) -> List[CandidateElement]:
        fields_ = [el for el in self.document.query_selector_all(FORM_FIELD_SELECTOR) if self.is_element_interactive(el)]
        return self._snapshot_all(fields_)

    def get_all_clickable_elements(self) -> List[CandidateElement]:
        clickable = [el for el in self.document.query_selector_all(CLICKABLE_SELECTOR) if self.is_element_interactive(el)]
        return self._snapshot_all(clickable)

    def clear_cache(self) -> None:
        self._structure.clear()

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _find_by_exact_text(self, text: str) -> Optional[ElementLike]:
        # First match in document order, narrowed to its innermost matching
        # descendant so a wrapper <div> does not win over its <button>.
        best: Optional[ElementLike] = None
        for el in self.document.query_selector_all("body *"):
            if el.text_content.strip() != text:
                continue
            if best is None:
                best = el
            elif _is_descendant(el, best):
                best = el
        return best

    def _snapshot_all(
        self, elements: Sequence[ElementLike], limit: Optional[int] = None
    ) -> List[CandidateElement]:
        # Dropped snapshots are backfilled from further down the ranking.
        snapshots: List[CandidateElement] = []
        for el in elements:
            if limit is not None and len(snapshots) >= limit:
                break
            try:
                snapshots.append(self.get_element_metadata(el))
            except MetadataExtractionError as exc:
                LOG.warning("Dropping candidate: %s", exc)
        return snapshots


def _is_descendant(element: ElementLike, ancestor: ElementLike) -> bool:
    current = element.parent
    while current is not None:
        if current is ancestor:
            return True
        current = current.parent
    return False


__all__ = [
    "ELEMENT_POOLS",
    "QueryAnalysis",
    "RelevanceEngine",
]
