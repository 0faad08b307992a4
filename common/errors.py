"""
Error taxonomy shared by the relevance and guide engines.

Nothing here is fatal to the hosting process. Callers at the fail-soft
seams (element resolution, metadata snapshots, action execution) catch
these and degrade to "skip, log, continue".
"""

from __future__ import annotations

from typing import Any, Optional


class GuidanceError(Exception):
    """Base class for every error raised by this project."""


class ElementNotFoundError(GuidanceError):
    """
    Raised when no visible element satisfies a step's target criteria.

    The guide engine recovers by showing a timed error bubble and
    skipping forward to the next step.
    """

    def __init__(self, message: str, *, criteria: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.criteria = dict(criteria or {})


class SelectorQueryError(GuidanceError):
    """
    Raised by a document implementation when a CSS selector is invalid.

    Resolution code treats it as "no match"; it never propagates out of
    the engines.
    """

    def __init__(self, selector: str, reason: str = "") -> None:
        msg = f"Invalid selector {selector!r}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
        self.selector = selector


class ActionExecutionError(GuidanceError):
    """Raised when a synthetic DOM action fails. Logged; the step stays shown."""

    def __init__(self, action: str, message: str) -> None:
        super().__init__(f"Action '{action}' failed: {message}")
        self.action = action


class InvalidStepIndexError(GuidanceError):
    """Programmer error: a step index outside the current session."""

    def __init__(self, index: int, step_count: int) -> None:
        super().__init__(f"Step index {index} out of range for {step_count} step(s)")
        self.index = index
        self.step_count = step_count


class MetadataExtractionError(GuidanceError):
    """Raised when a candidate snapshot cannot be built; the candidate is dropped."""


class StepValidationError(GuidanceError):
    """Raised when a step payload is malformed (e.g. `type` without `value`)."""


class StepSourceError(GuidanceError):
    """
    Raised when the external step generator fails.

    Attributes:
        status:
            HTTP status code, if the failure came from an HTTP response.
    """

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class ConfigError(GuidanceError):
    """Raised for missing or malformed configuration files."""


__all__ = [
    "GuidanceError",
    "ElementNotFoundError",
    "SelectorQueryError",
    "ActionExecutionError",
    "InvalidStepIndexError",
    "MetadataExtractionError",
    "StepValidationError",
    "StepSourceError",
    "ConfigError",
]
