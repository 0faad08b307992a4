from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest
import requests

from common.config import StepSourceConfig
from common.errors import StepSourceError
from common.models.steps import ClickStep, InfoStep
from consumers.sdk.client import StaticStepSource, StepSourceClient, build_request_payload
from scout.core.relevance_engine import RelevanceEngine

from helpers import make_document


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


def _analysis(query: str = "where do I login"):
    body = "".join(f'<button data-rect="0,{i * 40},80,30">Login {i}</button>' for i in range(4))
    return RelevanceEngine(make_document(body)).analyze(query)


def _client(session: FakeSession, **cfg: Any) -> StepSourceClient:
    return StepSourceClient(StepSourceConfig(endpoint="http://gen.test/guide", **cfg), session=session)


def test_request_payload_shape() -> None:
    payload = build_request_payload(_analysis(), max_elements=2)
    assert payload["userQuery"] == "where do I login"
    assert payload["pageContext"]["domain"] == "shop.example.com"
    assert [e["text"] for e in payload["elements"]] == ["Login 0", "Login 1"]


def test_request_steps_posts_analysis_and_parses_steps() -> None:
    session = FakeSession(
        FakeResponse(
            payload={
                "success": True,
                "guide": [
                    {"text": "Login 0", "message": "This is the login button"},
                    {"text": "Login 0", "message": "Click it", "action": "click"},
                ],
            }
        )
    )
    client = _client(session, api_key="k-123", max_elements=3, timeout=7)

    steps = client.request_steps(_analysis())

    assert isinstance(steps[0], InfoStep)
    assert isinstance(steps[1], ClickStep)
    (call,) = session.calls
    assert call["url"] == "http://gen.test/guide"
    assert call["timeout"] == 7.0
    assert call["headers"]["X-API-Key"] == "k-123"
    assert len(call["json"]["elements"]) == 3


def test_no_api_key_header_without_key() -> None:
    session = FakeSession(FakeResponse(payload={"success": True, "guide": []}))
    assert _client(session).request_steps(_analysis()) == []
    assert "X-API-Key" not in session.calls[0]["headers"]


def test_module_level_requests_is_used_without_session(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = {}

    def fake_post(url, **kwargs):
        seen["url"] = url
        return FakeResponse(payload={"success": True, "guide": [{"selector": "#a", "message": "m"}]})

    monkeypatch.setattr(requests, "post", fake_post)
    client = StepSourceClient(StepSourceConfig(endpoint="http://gen.test/guide"))
    assert len(client.request_steps(_analysis())) == 1
    assert seen["url"] == "http://gen.test/guide"


@pytest.mark.parametrize(
    "session, fragment, status",
    [
        (FakeSession(error=requests.ConnectionError("refused")), "failed", None),
        (FakeSession(FakeResponse(503, text="overloaded")), "HTTP 503", 503),
        (FakeSession(FakeResponse(200, payload=ValueError("no json"))), "Non-JSON", 200),
        (FakeSession(FakeResponse(200, payload=["not", "an", "object"])), "expected a JSON object", None),
        (FakeSession(FakeResponse(200, payload={"success": False, "error": "quota"})), "quota", None),
        (FakeSession(FakeResponse(200, payload={"success": True, "guide": {"a": 1}})), "must be a list", None),
        (
            FakeSession(FakeResponse(200, payload={"success": True, "guide": [{"message": "m", "action": "type"}]})),
            "Malformed step",
            None,
        ),
    ],
)
def test_failures_raise_step_source_error(session: FakeSession, fragment: str, status: Optional[int]) -> None:
    with pytest.raises(StepSourceError, match=fragment) as info:
        _client(session).request_steps(_analysis())
    assert info.value.status == status


def test_static_source_records_requests() -> None:
    source = StaticStepSource([{"selector": "#a", "message": "m"}])
    analysis = _analysis()
    assert len(source.request_steps(analysis)) == 1
    assert source.requests == [analysis]
