"""
Configuration for the relevance engine, the guide engine and the step
source client.

Every setting has a default matching the built-in behavior, so a config
file is optional. When one is used it is YAML, shaped like:

    guide:
      relevance:
        max_results: 10
        max_keywords: 5
        viewport_margin: 500
        text_prefix: 100
        cache_ttl_s: 5.0
      timings:
        scroll_settle_ms: 300
        auto_execute_delay_ms: 1500
        skip_delay_ms: 2000
        complete_stop_delay_ms: 2000
      step_source:
        endpoint: "http://localhost:8080/guide"
        api_key: null
        api_key_header: "X-API-Key"
        timeout: 30
        max_elements: 10
      logging:
        level: "INFO"

Unknown keys are rejected rather than ignored, so a typo does not
silently fall back to a default.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Type, TypeVar, Union

import yaml  # Requires PyYAML

from common.errors import ConfigError


# --------------------------------------------------------------------------- #
# Config sections
# --------------------------------------------------------------------------- #


@dataclass
class RelevanceConfig:
    """
    Configuration for RelevanceEngine.

    Attributes:
        max_results:
            Maximum number of candidates returned by `analyze_for_query`.
        max_keywords:
            Maximum number of keywords extracted from a query.
        viewport_margin:
            Elements farther than this many pixels outside the viewport
            are not considered interactive.
        text_prefix:
            Candidate text is truncated to this many characters.
        cache_ttl_s:
            Lifetime of the cached page structure, in seconds.
    """

    max_results: int = 10
    max_keywords: int = 5
    viewport_margin: float = 500.0
    text_prefix: int = 100
    cache_ttl_s: float = 5.0


@dataclass
class GuideTimings:
    """
    Delays used by the guide engine, in milliseconds.

    Attributes:
        scroll_settle_ms:
            Wait after scrolling the target into view, before rendering.
        auto_execute_delay_ms:
            Wait before performing an auto-executed action.
        skip_delay_ms:
            How long the "element not found" bubble stays before skipping.
        complete_stop_delay_ms:
            How long the success bubble stays before the guide stops.
    """

    scroll_settle_ms: int = 300
    auto_execute_delay_ms: int = 1500
    skip_delay_ms: int = 2000
    complete_stop_delay_ms: int = 2000

    @classmethod
    def immediate(cls) -> "GuideTimings":
        """All delays set to zero (headless walkthroughs)."""
        return cls(0, 0, 0, 0)


@dataclass
class StepSourceConfig:
    """
    Configuration for StepSourceClient.

    Attributes:
        endpoint:
            Full URL the analysis is POSTed to.
        api_key:
            Optional API key sent in `api_key_header`.
        api_key_header:
            Header carrying the API key.
        timeout:
            HTTP timeout in seconds.
        max_elements:
            Number of candidates included in the request.
    """

    endpoint: str
    api_key: Optional[str] = None
    api_key_header: str = "X-API-Key"
    timeout: float = 30.0
    max_elements: int = 10


@dataclass
class AppConfig:
    """Top-level configuration (the `guide` root key)."""

    relevance: RelevanceConfig = field(default_factory=RelevanceConfig)
    timings: GuideTimings = field(default_factory=GuideTimings)
    step_source: Optional[StepSourceConfig] = None
    log_level: str = "INFO"


# --------------------------------------------------------------------------- #
# Loading
# --------------------------------------------------------------------------- #


_T = TypeVar("_T")

_SECTIONS = ("relevance", "timings", "step_source", "logging")


def _build_section(cls: Type[_T], data: Any, section: str) -> _T:
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ConfigError(f"Section '{section}' must be a mapping")

    known = {f.name: f for f in fields(cls)}  # type: ignore[arg-type]
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ConfigError(f"Unknown key(s) in '{section}': {', '.join(map(str, unknown))}")

    kwargs: Dict[str, Any] = {}
    for name, value in data.items():
        default = getattr(cls, name, None)
        if isinstance(default, bool) or value is None:
            kwargs[name] = value
        elif isinstance(default, (int, float)) and not isinstance(value, bool):
            if not isinstance(value, (int, float)):
                raise ConfigError(f"'{section}.{name}' must be a number, got {value!r}")
            if isinstance(default, int) and isinstance(value, float) and not value.is_integer():
                raise ConfigError(f"'{section}.{name}' must be a whole number, got {value!r}")
            kwargs[name] = type(default)(value)
        else:
            kwargs[name] = value

    try:
        return cls(**kwargs)
    except TypeError as exc:
        raise ConfigError(f"Invalid '{section}' section: {exc}") from exc


def config_from_dict(data: Optional[Mapping[str, Any]]) -> AppConfig:
    """
    Build an AppConfig from the mapping under the `guide` root key.

    Raises:
        ConfigError: unknown sections/keys or wrongly typed values.
    """
    data = data or {}
    if not isinstance(data, Mapping):
        raise ConfigError("The 'guide' section must be a mapping")

    unknown = sorted(set(data) - set(_SECTIONS))
    if unknown:
        raise ConfigError(f"Unknown section(s): {', '.join(map(str, unknown))}")

    step_source: Optional[StepSourceConfig] = None
    if data.get("step_source") is not None:
        raw = data["step_source"]
        if not isinstance(raw, Mapping) or not raw.get("endpoint"):
            raise ConfigError("'step_source' requires an 'endpoint'")
        step_source = _build_section(StepSourceConfig, raw, "step_source")

    log_cfg = data.get("logging") or {}
    if not isinstance(log_cfg, Mapping):
        raise ConfigError("Section 'logging' must be a mapping")
    unknown_log = sorted(set(log_cfg) - {"level"})
    if unknown_log:
        raise ConfigError(f"Unknown key(s) in 'logging': {', '.join(map(str, unknown_log))}")

    return AppConfig(
        relevance=_build_section(RelevanceConfig, data.get("relevance"), "relevance"),
        timings=_build_section(GuideTimings, data.get("timings"), "timings"),
        step_source=step_source,
        log_level=str(log_cfg.get("level", "INFO")).upper(),
    )


def load_config(path: Union[str, Path]) -> AppConfig:
    """
    Load an AppConfig from a YAML file.

    Raises:
        ConfigError: missing file, invalid YAML, or a bad config shape.
    """
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {p}: {exc}") from exc

    if not isinstance(data, Mapping) or "guide" not in data:
        raise ConfigError("Config root must contain a 'guide' key")
    return config_from_dict(data["guide"])


__all__ = [
    "RelevanceConfig",
    "GuideTimings",
    "StepSourceConfig",
    "AppConfig",
    "config_from_dict",
    "load_config",
]
