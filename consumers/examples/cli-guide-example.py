"""
CLI example: analyze a page for a question and walk a guide headlessly.

This script shows how to:

- Load a page from a file or URL into a HeadlessDocument.
- Run the RelevanceEngine for a natural-language question and print the
  intent, keywords, ranked candidates and page context.
- Optionally obtain steps (from a JSON file or a step generator
  endpoint) and walk them with the GuideEngine, with all delays set to
  zero, printing which steps could be shown.

Static pages carry no layout, so elements are only "visible" when they
have a `data-rect="left,top,width,height"` attribute or an entry in the
`--layout` JSON file ({"selector": [left, top, width, height]}).

This is meant as a reference / demo, not a production tool.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from common.config import AppConfig, GuideTimings, StepSourceConfig, load_config
from common.errors import ConfigError, StepSourceError, StepValidationError
from common.models.geometry import Rect
from common.models.steps import Step, steps_from_payload
from consumers.guidance import GuideEngine, SessionStatus
from consumers.sdk.client import StepSourceClient
from scout.core.primitives import VIEWPORT_MARGIN
from scout.core.relevance_engine import QueryAnalysis, RelevanceEngine
from scout.drivers.web.headless_document import HeadlessDocument
from scout.drivers.web.page_loader import PageLoader


# --------------------------------------------------------------------------- #
# Input helpers
# --------------------------------------------------------------------------- #


def load_layout(path: Optional[Path]) -> Dict[str, Rect]:
    if path is None:
        return {}
    raw = json.loads(path.read_text(encoding="utf-8"))
    return {selector: Rect(*map(float, box)) for selector, box in raw.items()}


def load_steps_file(path: Path) -> List[Step]:
    data = json.loads(path.read_text(encoding="utf-8"))
    # Accept either a bare list or a generator response {"guide": [...]}.
    if isinstance(data, dict):
        data = data.get("guide") or []
    return steps_from_payload(data)


def pretty_print(obj: Any) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


# --------------------------------------------------------------------------- #
# Commands
# --------------------------------------------------------------------------- #


def print_analysis(analysis: QueryAnalysis, *, as_json: bool) -> None:
    if as_json:
        pretty_print(analysis.to_dict())
        return
    print(f"[query] {analysis.query!r}")
    print(f"[intent] {analysis.intent.value}")
    print(f"[keywords] {', '.join(analysis.keywords) or '-'}")
    if not analysis.candidates:
        print("[candidates] none")
    for idx, cand in enumerate(analysis.candidates, start=1):
        flag = "clickable" if cand.is_clickable else "other"
        print(f"  {idx:2d}. {cand.selector:<40} <{cand.tag_name}> {cand.text[:40]!r} ({flag})")
    if analysis.page_context is not None:
        print("[page]")
        pretty_print(analysis.page_context.to_dict())


async def walk_guide(
    document: HeadlessDocument,
    steps: List[Step],
    timings: GuideTimings,
    viewport_margin: float = VIEWPORT_MARGIN,
) -> int:
    engine = GuideEngine(document, timings, viewport_margin=viewport_margin)
    if not await engine.start(steps):
        print("[guide] not started", file=sys.stderr)
        return 1

    while engine.is_active and engine.status is SessionStatus.RUNNING:
        await engine.next_step()

    shown = {entry.step_index for entry in engine.history}
    await engine.drain()

    for idx, step in enumerate(steps):
        state = "shown" if idx in shown else "skipped (target not found)"
        action = step.action.value if step.action else "info"
        print(f"[step {idx + 1}/{len(steps)}] {state}: {step.message!r} action={action} target={step.target.to_dict()}")
    print(f"[guide] finished, {len(shown)}/{len(steps)} step(s) shown")
    return 0


def run_cli(args: argparse.Namespace, cfg: AppConfig) -> int:
    loader = PageLoader()
    try:
        document = loader.load(args.page, layout=load_layout(args.layout))
    except (OSError, ValueError, TypeError, requests.RequestException) as exc:
        print(f"[error] Could not load page {args.page!r}: {exc}", file=sys.stderr)
        return 1

    relevance = RelevanceEngine(document, cfg.relevance)
    analysis = relevance.analyze(args.query)
    print_analysis(analysis, as_json=args.json)

    steps: List[Step] = []
    if args.steps is not None:
        try:
            steps = load_steps_file(args.steps)
        except (OSError, ValueError, StepValidationError) as exc:
            print(f"[error] Could not read steps from {args.steps}: {exc}", file=sys.stderr)
            return 1
    elif args.endpoint or cfg.step_source is not None:
        source_cfg = cfg.step_source or StepSourceConfig(endpoint=args.endpoint)
        if args.endpoint:
            source_cfg.endpoint = args.endpoint
        try:
            steps = StepSourceClient(source_cfg).request_steps(analysis)
        except StepSourceError as exc:
            print(f"[error] {exc}", file=sys.stderr)
            return 1
    else:
        return 0

    return asyncio.run(
        walk_guide(document, steps, GuideTimings.immediate(), viewport_margin=cfg.relevance.viewport_margin)
    )


# --------------------------------------------------------------------------- #
# Entry point
# --------------------------------------------------------------------------- #


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Analyze a page for a question and optionally walk a guide headlessly."
    )
    parser.add_argument("page", help="HTML file path or http(s) URL of the page.")
    parser.add_argument("query", help="Natural-language question, e.g. 'where is the login button'.")
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Optional YAML config (root key 'guide').",
    )
    parser.add_argument(
        "--layout",
        type=Path,
        default=None,
        help="JSON file mapping selectors to [left, top, width, height].",
    )
    parser.add_argument("--steps", type=Path, default=None, help="JSON file with guide steps.")
    parser.add_argument("--endpoint", default=None, help="Step generator endpoint URL.")
    parser.add_argument("--json", action="store_true", help="Print the analysis as JSON.")
    parser.add_argument("--log-level", default=None, help="Override the configured log level.")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = load_config(args.config) if args.config else AppConfig()
    except ConfigError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(level=(args.log_level or cfg.log_level).upper())

    try:
        return run_cli(args, cfg)
    except KeyboardInterrupt:
        print("\n[info] Interrupted by user.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
