"""
Step source client SDK.

Guide steps are written by an external generator (usually a language
model behind an HTTP service). The generator receives the query
analysis and answers with a list of steps. This module provides:

- `StepSource`: the protocol the assistant glue depends on.
- `StaticStepSource`: a fixed list of steps (tests, demos, replays).
- `StepSourceClient`: a small `requests`-based HTTP client.

Wire format (POST body):

    {
      "userQuery": "where do I log in",
      "pageContext": { ...PageContext.to_dict()... },
      "elements": [ ...first N CandidateElement.to_dict()... ]
    }

Expected response:

    {"success": true, "guide": [ {step}, ... ]}

Typical usage:

    from common.config import StepSourceConfig
    from consumers.sdk.client import StepSourceClient

    client = StepSourceClient(StepSourceConfig(endpoint="http://localhost:8080/guide"))
    steps = client.request_steps(engine.analyze("where do I log in"))
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

import requests

from common.config import StepSourceConfig
from common.errors import StepSourceError, StepValidationError
from common.models.steps import Step, step_from_dict, steps_from_payload
from scout.core.relevance_engine import QueryAnalysis


LOG = logging.getLogger(__name__)

JSONDict = Dict[str, Any]


# --------------------------------------------------------------------------- #
# Protocol
# --------------------------------------------------------------------------- #


class StepSource(Protocol):
    """Anything that turns a query analysis into guide steps."""

    def request_steps(self, analysis: QueryAnalysis) -> List[Step]:
        """
        Return the steps for `analysis` (possibly empty).

        Raises:
            StepSourceError: if the generator cannot be reached or answers
            with something unusable.
        """
        ...


def build_request_payload(analysis: QueryAnalysis, max_elements: int = 10) -> JSONDict:
    """Serialize `analysis` into the generator request body."""
    return {
        "userQuery": analysis.query,
        "pageContext": analysis.page_context.to_dict() if analysis.page_context else None,
        "elements": [c.to_dict() for c in analysis.candidates[:max_elements]],
    }


# --------------------------------------------------------------------------- #
# Static source
# --------------------------------------------------------------------------- #


class StaticStepSource:
    """Returns the same steps for every query."""

    def __init__(self, steps: Iterable[Any]) -> None:
        self._steps: List[Step] = [s if isinstance(s, Step) else step_from_dict(s) for s in steps]
        self.requests: List[QueryAnalysis] = []

    def request_steps(self, analysis: QueryAnalysis) -> List[Step]:
        self.requests.append(analysis)
        return list(self._steps)


# --------------------------------------------------------------------------- #
# HTTP client
# --------------------------------------------------------------------------- #


class StepSourceClient:
    """
    HTTP client for a step generator service.

    Args:
        config:
            Endpoint, credentials and limits.
        session:
            Optional `requests.Session` (connection reuse, test doubles).
    """

    def __init__(self, config: StepSourceConfig, session: Optional[requests.Session] = None) -> None:
        self._cfg = config
        self._session = session

    @property
    def config(self) -> StepSourceConfig:
        return self._cfg

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self._cfg.api_key:
            headers[self._cfg.api_key_header] = self._cfg.api_key
        return headers

    def request_steps(self, analysis: QueryAnalysis) -> List[Step]:
        body = build_request_payload(analysis, self._cfg.max_elements)
        payload = self._post(body)

        if not payload.get("success"):
            error = payload.get("error") or "generator reported failure"
            raise StepSourceError(f"Step generator failed: {error}")

        guide = payload.get("guide") or []
        if not isinstance(guide, list):
            raise StepSourceError("Malformed response: 'guide' must be a list")
        try:
            steps = steps_from_payload(guide)
        except StepValidationError as exc:
            raise StepSourceError(f"Malformed step in response: {exc}") from exc

        LOG.info("Received steps count=%d query=%r", len(steps), analysis.query)
        return steps

    def _post(self, body: Mapping[str, Any]) -> JSONDict:
        http = self._session or requests
        url = self._cfg.endpoint
        try:
            resp = http.post(url, json=body, headers=self._headers(), timeout=self._cfg.timeout)
        except requests.RequestException as exc:
            raise StepSourceError(f"HTTP request to {url} failed: {exc}") from exc

        if resp.status_code >= 400:
            raise StepSourceError(
                f"HTTP {resp.status_code} from {url}: {resp.text[:200]}",
                status=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise StepSourceError(f"Non-JSON response from {url}: {exc}", status=resp.status_code) from exc
        if not isinstance(payload, dict):
            raise StepSourceError(f"Malformed response from {url}: expected a JSON object")
        return payload


__all__ = [
    "StepSource",
    "build_request_payload",
    "StaticStepSource",
    "StepSourceClient",
]
