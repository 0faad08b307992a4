"""
Guide step model.

A step is one unit of guidance: a rule for finding the target element, a
message to show next to it, and an optional synthetic action. Steps are
produced by an external generator (usually a language model) as loose
JSON objects; `step_from_dict` turns them into one of the typed variants
below so that per-action requirements (e.g. `value` for typing) are
checked once, at construction.

Variants (discriminated by `action`):

- InfoStep:   highlight and explain only.
- ClickStep, HoverStep, ScrollStep, FocusStep:  action without payload.
- TypeStep:   requires `value`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, List, Mapping, Optional, Type

from common.errors import StepValidationError


class StepAction(str, Enum):
    """Synthetic DOM action a step may perform."""

    CLICK = "click"
    TYPE = "type"
    HOVER = "hover"
    SCROLL = "scroll"
    FOCUS = "focus"


# Actions for which the guide draws the pointer glyph above the target.
POINTER_ACTIONS = frozenset({StepAction.CLICK, StepAction.HOVER, StepAction.TYPE})


@dataclass(frozen=True)
class StepTarget:
    """
    Target-resolution criteria, tried in field order.

    Attributes:
        selector:   CSS selector queried directly.
        text:       Case-insensitive substring of the element's text.
        aria_label: Exact value of the element's aria-label attribute.
    """

    selector: Optional[str] = None
    text: Optional[str] = None
    aria_label: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.selector or self.text or self.aria_label)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selector": self.selector,
            "text": self.text,
            "ariaLabel": self.aria_label,
        }


@dataclass(frozen=True)
class Step:
    """Common fields of every step variant."""

    target: StepTarget = field(default_factory=StepTarget)
    message: str = ""
    description: Optional[str] = None

    action: ClassVar[Optional[StepAction]] = None

    @property
    def auto_execute(self) -> bool:
        return False

    @property
    def shows_pointer(self) -> bool:
        return self.action in POINTER_ACTIONS

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase wire format used by step generators."""
        data: Dict[str, Any] = {k: v for k, v in self.target.to_dict().items() if v is not None}
        data["message"] = self.message
        if self.description is not None:
            data["description"] = self.description
        if self.action is not None:
            data["action"] = self.action.value
            data["autoExecute"] = self.auto_execute
        return data


@dataclass(frozen=True)
class InfoStep(Step):
    """Highlight and explain; no action."""


@dataclass(frozen=True)
class ActionStep(Step):
    """Base for steps carrying an action. Not instantiated directly."""

    execute: bool = False

    @property
    def auto_execute(self) -> bool:
        return self.execute


@dataclass(frozen=True)
class ClickStep(ActionStep):
    action: ClassVar[Optional[StepAction]] = StepAction.CLICK


@dataclass(frozen=True)
class HoverStep(ActionStep):
    action: ClassVar[Optional[StepAction]] = StepAction.HOVER


@dataclass(frozen=True)
class ScrollStep(ActionStep):
    action: ClassVar[Optional[StepAction]] = StepAction.SCROLL


@dataclass(frozen=True)
class FocusStep(ActionStep):
    action: ClassVar[Optional[StepAction]] = StepAction.FOCUS


@dataclass(frozen=True)
class TypeStep(ActionStep):
    """Type `value` into the target. `value` is mandatory (may be empty)."""

    value: Optional[str] = None

    action: ClassVar[Optional[StepAction]] = StepAction.TYPE

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise StepValidationError("A 'type' step requires a string 'value'")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["value"] = self.value
        return data


_STEP_TYPES: Dict[Optional[StepAction], Type[Step]] = {
    None: InfoStep,
    StepAction.CLICK: ClickStep,
    StepAction.TYPE: TypeStep,
    StepAction.HOVER: HoverStep,
    StepAction.SCROLL: ScrollStep,
    StepAction.FOCUS: FocusStep,
}


def _optional_str(data: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        if key in data and data[key] is not None:
            val = data[key]
            if not isinstance(val, str):
                raise StepValidationError(f"Step field '{key}' must be a string, got {type(val).__name__}")
            return val or None
    return None


def _optional_bool(data: Mapping[str, Any], *keys: str) -> bool:
    for key in keys:
        if key in data and data[key] is not None:
            val = data[key]
            if not isinstance(val, bool):
                raise StepValidationError(f"Step field '{key}' must be a boolean, got {type(val).__name__}")
            return val
    return False


def step_from_dict(data: Mapping[str, Any]) -> Step:
    """
    Build a typed Step from a generator payload.

    Accepts both the camelCase wire keys (`ariaLabel`, `autoExecute`) and
    their snake_case forms.

    Raises:
        StepValidationError: unknown action, wrong field types, or a
        `type` action without `value`.
    """
    if not isinstance(data, Mapping):
        raise StepValidationError(f"Step must be a mapping, got {type(data).__name__}")

    raw_action = data.get("action")
    action: Optional[StepAction] = None
    if raw_action is not None and raw_action != "":
        try:
            action = StepAction(str(raw_action).lower())
        except ValueError as exc:
            raise StepValidationError(f"Unknown step action: {raw_action!r}") from exc

    message = data.get("message", "")
    if message is None:
        message = ""
    if not isinstance(message, str):
        raise StepValidationError("Step field 'message' must be a string")

    target = StepTarget(
        selector=_optional_str(data, "selector"),
        text=_optional_str(data, "text"),
        aria_label=_optional_str(data, "ariaLabel", "aria_label"),
    )
    description = _optional_str(data, "description")

    execute = _optional_bool(data, "autoExecute", "auto_execute")

    cls = _STEP_TYPES[action]
    if action is None:
        return cls(target=target, message=message, description=description)

    if action is StepAction.TYPE:
        value = data.get("value")
        if value is not None and not isinstance(value, str):
            value = str(value)
        return TypeStep(
            target=target,
            message=message,
            description=description,
            execute=execute,
            value=value,
        )
    return cls(target=target, message=message, description=description, execute=execute)


def steps_from_payload(items: Iterable[Mapping[str, Any]]) -> List[Step]:
    """Convert a list of payload dicts; the first invalid item raises."""
    steps: List[Step] = []
    for idx, item in enumerate(items):
        try:
            steps.append(step_from_dict(item))
        except StepValidationError as exc:
            raise StepValidationError(f"Step {idx}: {exc}") from exc
    return steps


__all__ = [
    "StepAction",
    "POINTER_ACTIONS",
    "StepTarget",
    "Step",
    "InfoStep",
    "ActionStep",
    "ClickStep",
    "HoverStep",
    "ScrollStep",
    "FocusStep",
    "TypeStep",
    "step_from_dict",
    "steps_from_payload",
]
