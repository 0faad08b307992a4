from __future__ import annotations

import pytest

from common.models.intents import QueryIntent, classify_query, intent_phrases
from scout.core.query_analysis import MAX_KEYWORDS, STOPWORDS, detect_intent, extract_keywords


QUERIES = [
    "",
    "   ",
    "Where is the Login button",
    "how do I find the checkout page on this site please",
    "a an the is to do i can find where how",
    "password password password reset reset",
    "I can't submit the form, it says error 500",
    "Ünïcode ÄÖÜ query with MIXED case words and extra long tail of tokens here",
]


@pytest.mark.parametrize("query", QUERIES)
def test_keywords_have_no_stopwords_short_tokens_or_overflow(query: str) -> None:
    keywords = extract_keywords(query)
    assert len(keywords) <= MAX_KEYWORDS
    assert not any(k in STOPWORDS for k in keywords)
    assert all(len(k) > 2 for k in keywords)
    assert len(set(keywords)) == len(keywords)
    assert all(k == k.lower() for k in keywords)


def test_keywords_keep_first_occurrence_order() -> None:
    assert extract_keywords("Where is the Login button") == ["login", "button"]
    assert extract_keywords("reset password reset email") == ["reset", "password", "email"]


def test_keywords_are_capped_at_five() -> None:
    query = "alpha bravo charlie delta echo foxtrot golf"
    assert extract_keywords(query) == ["alpha", "bravo", "charlie", "delta", "echo"]


def test_keywords_keep_punctuation_attached() -> None:
    assert extract_keywords("where is login?") == ["login?"]


def test_find_is_a_stopword() -> None:
    assert extract_keywords("find login button") == ["login", "button"]


@pytest.mark.parametrize(
    "query, intent",
    [
        ("Where is the search box?", QueryIntent.FIND_ELEMENT),
        ("How do I sign in", QueryIntent.DO_ACTION),
        ("The checkout is broken", QueryIntent.FIX_ERROR),
        ("What does this toggle mean", QueryIntent.EXPLAIN),
        ("hello there", QueryIntent.GENERAL),
    ],
)
def test_detect_intent(query: str, intent: QueryIntent) -> None:
    assert detect_intent(query) is intent


def test_intent_priority_is_fixed_order() -> None:
    # Matches both the find and the action/fix tables; find wins.
    assert classify_query("how do I find the error log") is QueryIntent.FIND_ELEMENT
    # Action beats fix.
    assert classify_query("how do I fix this") is QueryIntent.DO_ACTION


def test_intent_phrases_lookup() -> None:
    assert "where is" in intent_phrases(QueryIntent.FIND_ELEMENT)
    assert intent_phrases(QueryIntent.GENERAL) == []
