"""
Query analysis: intent detection and keyword extraction.

Both functions are pure and deterministic; they never look at the page.

Keyword extraction is deliberately literal:

- Whitespace tokenization only. Punctuation stays attached to the token
  ("button?" is a different keyword from "button").
- A fixed stopword list, and tokens of length <= 2 are dropped.
- Duplicates are dropped, then the first `max_keywords` tokens are kept
  in first-occurrence order. There is no frequency weighting.
"""

from __future__ import annotations

from typing import FrozenSet, List

from common.models.intents import QueryIntent, classify_query


STOPWORDS: FrozenSet[str] = frozenset(
    {"the", "a", "an", "where", "is", "how", "do", "i", "to", "can", "find"}
)

MIN_KEYWORD_LENGTH = 3
MAX_KEYWORDS = 5


def detect_intent(query: str) -> QueryIntent:
    """Classify `query` with the ordered intent phrase table."""
    return classify_query(query)


def extract_keywords(query: str, max_keywords: int = MAX_KEYWORDS) -> List[str]:
    """
    Return at most `max_keywords` lowercase keywords from `query`.

    Example:
        extract_keywords("Where is the Login button") -> ["login", "button"]
    """
    keywords: List[str] = []
    for token in query.lower().split():
        if token in STOPWORDS or len(token) < MIN_KEYWORD_LENGTH:
            continue
        if token in keywords:
            continue
        keywords.append(token)
        if len(keywords) >= max_keywords:
            break
    return keywords


__all__ = [
    "STOPWORDS",
    "MIN_KEYWORD_LENGTH",
    "MAX_KEYWORDS",
    "detect_intent",
    "extract_keywords",
]
