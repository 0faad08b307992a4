"""
Query intent model.

An intent is a coarse classification of what the user is asking for
("where is X", "how do I X", "X is broken", "what does X mean"). It is
attached to every query analysis so that downstream step generation can
be biased, but it does not change how candidate elements are ranked.

Classification is a fixed, ordered list of phrase rules: the first rule
with a phrase contained in the lower-cased query wins. The order is a
priority, not an exclusivity guarantee ("how do I find the error log"
is FIND_ELEMENT because that rule is checked first).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple


class QueryIntent(str, Enum):
    """High-level buckets for user requests."""

    FIND_ELEMENT = "find_element"
    DO_ACTION = "do_action"
    FIX_ERROR = "fix_error"
    EXPLAIN = "explain"
    GENERAL = "general"


@dataclass(frozen=True)
class IntentRule:
    """
    One entry of the ordered classification table.

    Attributes:
        intent: Intent returned when the rule fires.
        phrases: Lower-case phrases tested as substrings of the query.
    """

    intent: QueryIntent
    phrases: Tuple[str, ...] = field(default_factory=tuple)

    def matches(self, lowered_query: str) -> bool:
        return any(phrase in lowered_query for phrase in self.phrases)

    def to_dict(self) -> Dict[str, Any]:
        return {"intent": self.intent.value, "phrases": list(self.phrases)}


# Checked top to bottom. GENERAL has no rule; it is the fallback.
INTENT_RULES: Tuple[IntentRule, ...] = (
    IntentRule(
        QueryIntent.FIND_ELEMENT,
        (
            "where is",
            "where are",
            "where can i find",
            "find",
            "locate",
            "show me",
            "looking for",
        ),
    ),
    IntentRule(
        QueryIntent.DO_ACTION,
        (
            "how do i",
            "how can i",
            "how to",
            "i want to",
            "help me",
            "click",
            "submit",
            "sign in",
            "log in",
        ),
    ),
    IntentRule(
        QueryIntent.FIX_ERROR,
        (
            "error",
            "not working",
            "doesn't work",
            "broken",
            "fix",
            "failed",
            "issue",
            "problem",
        ),
    ),
    IntentRule(
        QueryIntent.EXPLAIN,
        (
            "what is",
            "what does",
            "what are",
            "explain",
            "why",
            "meaning",
        ),
    ),
)


def classify_query(query: str, rules: Tuple[IntentRule, ...] = INTENT_RULES) -> QueryIntent:
    """
    Return the intent of the first rule matching `query`, or GENERAL.

    Example:
        classify_query("Where is the login button?") -> QueryIntent.FIND_ELEMENT
    """
    lowered = query.lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule.intent
    return QueryIntent.GENERAL


def intent_phrases(intent: QueryIntent) -> List[str]:
    """Return the phrases of the rule for `intent` (empty for GENERAL)."""
    for rule in INTENT_RULES:
        if rule.intent is intent:
            return list(rule.phrases)
    return []


__all__ = [
    "QueryIntent",
    "IntentRule",
    "INTENT_RULES",
    "classify_query",
    "intent_phrases",
]
