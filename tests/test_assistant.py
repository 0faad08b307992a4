from __future__ import annotations

import asyncio

from common.errors import StepSourceError
from consumers.guidance import GuideEngine, run_guided_query
from consumers.sdk.client import StaticStepSource
from scout.core.relevance_engine import RelevanceEngine

from helpers import dark_voir_nodes, make_document, message_texts


PAGE = """
<form id="login-form">
  <input id="email" placeholder="Email" data-rect="100,100,200,30">
  <button id="login" data-rect="100,150,80,30">Login</button>
</form>
"""


class FailingSource:
    def request_steps(self, analysis):
        raise StepSourceError("generator offline", status=503)


def test_guided_query_starts_the_guide(recording_sleep) -> None:
    doc = make_document(PAGE)
    source = StaticStepSource(
        [
            {"selector": "#email", "message": "Enter your email"},
            {"text": "Login", "message": "Then log in", "action": "click"},
        ]
    )
    guide = GuideEngine(doc, sleep=recording_sleep)

    started = asyncio.run(run_guided_query("where is the login", RelevanceEngine(doc), source, guide))

    assert started
    assert guide.is_active
    assert message_texts(doc) == ["Enter your email"]
    (analysis,) = source.requests
    assert analysis.query == "where is the login"
    assert [c.element_id for c in analysis.candidates] == ["login"]
    assert analysis.page_context.has_login


def test_generator_failure_leaves_page_untouched(recording_sleep, caplog) -> None:
    doc = make_document(PAGE)
    guide = GuideEngine(doc, sleep=recording_sleep)

    started = asyncio.run(run_guided_query("login", RelevanceEngine(doc), FailingSource(), guide))

    assert not started
    assert "generator offline" in caplog.text
    assert dark_voir_nodes(doc) == []


def test_empty_guide_is_not_started(recording_sleep) -> None:
    doc = make_document(PAGE)
    guide = GuideEngine(doc, sleep=recording_sleep)
    started = asyncio.run(run_guided_query("login", RelevanceEngine(doc), StaticStepSource([]), guide))
    assert not started
    assert not guide.is_active
