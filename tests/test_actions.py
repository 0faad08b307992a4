from __future__ import annotations

import pytest

from common.errors import ActionExecutionError
from common.models.steps import step_from_dict
from consumers.guidance.actions import execute_action

from helpers import make_document


PAGE = """
<button id="go" data-rect="100,100,80,30">Go</button>
<input id="q" value="old" data-rect="100,200,200,30">
<a id="menu" href="#" data-rect="100,1500,60,20">Menu</a>
<footer data-rect="0,2800,1280,100">footer</footer>
"""


def _step(action: str, **extra):
    return step_from_dict({"selector": "#x", "message": "m", "action": action, **extra})


def test_click_and_focus() -> None:
    doc = make_document(PAGE)
    go = doc.query_selector("#go")
    execute_action(go, _step("click"))
    execute_action(go, _step("focus"))
    assert go.events == ["click", "focus"]
    assert doc.active_element is go


def test_type_replaces_value_and_fires_input_events() -> None:
    doc = make_document(PAGE)
    field = doc.query_selector("#q")
    execute_action(field, _step("type", value="new text"))
    assert field.value == "new text"
    assert field.events == ["focus", "input", "change"]


def test_hover_dispatches_mouse_events() -> None:
    doc = make_document(PAGE)
    menu = doc.query_selector("#menu")
    execute_action(menu, _step("hover"))
    assert menu.events == ["mouseenter", "mouseover"]


def test_scroll_centers_target() -> None:
    doc = make_document(PAGE)
    menu = doc.query_selector("#menu")
    execute_action(menu, _step("scroll"))
    assert doc.viewport().scroll_y == 1150
    assert menu.bounding_rect().top == 350


def test_info_step_does_nothing() -> None:
    doc = make_document(PAGE)
    go = doc.query_selector("#go")
    execute_action(go, step_from_dict({"selector": "#go", "message": "Look"}))
    assert go.events == []


def test_failures_are_wrapped(monkeypatch: pytest.MonkeyPatch) -> None:
    doc = make_document(PAGE)
    go = doc.query_selector("#go")

    def broken(_event_type: str) -> None:
        raise RuntimeError("listener blew up")

    go.add_event_listener("click", broken)
    with pytest.raises(ActionExecutionError) as info:
        execute_action(go, _step("click"))
    assert info.value.action == "click"
    assert "listener blew up" in str(info.value)
