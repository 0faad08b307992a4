"""
Assistant glue: query -> analysis -> steps -> guide.

This is the whole "ask for help on this page" flow in one call. The
step generator is an external collaborator; when it fails or returns
nothing, the flow reports False and the page is left untouched.
"""

from __future__ import annotations

import logging

from common.errors import StepSourceError
from consumers.sdk.client import StepSource
from scout.core.relevance_engine import RelevanceEngine
from .engine import GuideEngine


LOG = logging.getLogger(__name__)


async def run_guided_query(
    query: str,
    relevance: RelevanceEngine,
    step_source: StepSource,
    guide: GuideEngine,
) -> bool:
    """
    Analyze the page for `query`, ask `step_source` for steps and start
    the guide. Returns True when a guide started.
    """
    analysis = relevance.analyze(query)
    LOG.info(
        "Requesting guide intent=%s candidates=%d",
        analysis.intent.value,
        len(analysis.candidates),
    )
    try:
        steps = step_source.request_steps(analysis)
    except StepSourceError as exc:
        LOG.error("Could not generate a guide: %s", exc)
        return False

    if not steps:
        LOG.warning("Could not generate a guide: no steps for query=%r", query)
        return False
    return await guide.start(steps)


__all__ = ["run_guided_query"]
