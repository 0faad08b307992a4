"""
Overlay rendering for the guide engine.

The overlay is a handful of nodes appended to <body>, each carrying one
reserved class:

    dark-voir-overlay         dark scrim over the whole page
    dark-voir-highlight       glowing box around the target (5 px padding)
    dark-voir-message         message bubble next to the target
    dark-voir-pointer         pointing-hand glyph above the target
    dark-voir-step-indicator  "Step i of N"
    dark-voir-controls        Previous / Next / Exit buttons

At most one node of each kind exists at a time. The highlight, message
and pointer are replaced on every step; the scrim, indicator and
controls live for the whole session. `clear()` removes every node that
carries a reserved class, including ones this renderer did not create.

Message placement picks the side of the target with the most free
space in the viewport (ties: top, bottom, left, right) and places a
320x100 bubble 20 px away from that edge.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from common.models.geometry import Rect, Viewport
from scout.drivers.web.document_interface import DocumentLike, ElementLike


LOG = logging.getLogger(__name__)


OVERLAY_CLASS = "dark-voir-overlay"
HIGHLIGHT_CLASS = "dark-voir-highlight"
MESSAGE_CLASS = "dark-voir-message"
POINTER_CLASS = "dark-voir-pointer"
INDICATOR_CLASS = "dark-voir-step-indicator"
CONTROLS_CLASS = "dark-voir-controls"

RESERVED_CLASSES: Tuple[str, ...] = (
    OVERLAY_CLASS,
    HIGHLIGHT_CLASS,
    MESSAGE_CLASS,
    POINTER_CLASS,
    INDICATOR_CLASS,
    CONTROLS_CLASS,
)

STYLESHEET_ID = "dark-voir-visual-guide-styles"
INDICATOR_ID = "dark-voir-step-indicator"
PREV_BUTTON_ID = "dark-voir-prev-btn"
NEXT_BUTTON_ID = "dark-voir-next-btn"
EXIT_BUTTON_ID = "dark-voir-exit-btn"

PREV_LABEL = "← Previous"
NEXT_LABEL = "Next →"
COMPLETE_LABEL = "Complete"
EXIT_LABEL = "Exit Guide"

HIGHLIGHT_PADDING = 5.0
MESSAGE_WIDTH = 320.0
MESSAGE_HEIGHT = 100.0
MESSAGE_OFFSET = 20.0
POINTER_GLYPH = "\U0001F446"
POINTER_HALF_WIDTH = 20.0
POINTER_RISE = 50.0

SUCCESS_BACKGROUND = "linear-gradient(135deg, #4CAF50 0%, #45a049 100%)"
ERROR_BACKGROUND = "linear-gradient(135deg, #F44336 0%, #d32f2f 100%)"

STYLESHEET = """
.dark-voir-overlay { position: fixed; top: 0; left: 0; width: 100%; height: 100%;
  background: rgba(0, 0, 0, 0.6); z-index: 999998; pointer-events: none; }
.dark-voir-highlight { position: absolute; border: 3px solid #00d9ff; border-radius: 8px;
  box-shadow: 0 0 0 4px rgba(0, 217, 255, 0.3), 0 0 20px 8px rgba(0, 217, 255, 0.5);
  z-index: 999999; pointer-events: none; animation: dark-voir-pulse 2s infinite; }
@keyframes dark-voir-pulse {
  0%, 100% { box-shadow: 0 0 0 4px rgba(0, 217, 255, 0.3), 0 0 20px 8px rgba(0, 217, 255, 0.5); }
  50% { box-shadow: 0 0 0 6px rgba(0, 217, 255, 0.5), 0 0 30px 12px rgba(0, 217, 255, 0.7); }
}
.dark-voir-message { position: absolute; color: white; padding: 16px 20px; border-radius: 12px;
  background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); font-size: 16px;
  max-width: 300px; z-index: 1000000; box-shadow: 0 10px 30px rgba(0, 0, 0, 0.3); }
.dark-voir-message:before { content: ''; position: absolute; border: 10px solid transparent; }
.dark-voir-message.position-top:before { bottom: -20px; left: 50%; transform: translateX(-50%);
  border-top-color: #667eea; }
.dark-voir-message.position-bottom:before { top: -20px; left: 50%; transform: translateX(-50%);
  border-bottom-color: #764ba2; }
.dark-voir-message.position-left:before { right: -20px; top: 50%; transform: translateY(-50%);
  border-left-color: #667eea; }
.dark-voir-message.position-right:before { left: -20px; top: 50%; transform: translateY(-50%);
  border-right-color: #764ba2; }
.dark-voir-pointer { position: absolute; width: 40px; height: 40px; font-size: 40px;
  z-index: 1000001; pointer-events: none; animation: dark-voir-pointer-pulse 1s infinite; }
@keyframes dark-voir-pointer-pulse { 0%, 100% { transform: scale(1); } 50% { transform: scale(1.2); } }
.dark-voir-step-indicator { position: fixed; top: 20px; right: 20px; background: white;
  padding: 12px 20px; border-radius: 8px; font-size: 14px; font-weight: 600; color: #333;
  z-index: 1000002; }
.dark-voir-controls { position: fixed; bottom: 20px; left: 50%; transform: translateX(-50%);
  background: white; padding: 12px 16px; border-radius: 30px; display: flex; gap: 12px;
  z-index: 1000002; }
.dark-voir-controls button { background: #667eea; color: white; border: none; padding: 10px 20px;
  border-radius: 20px; font-size: 14px; font-weight: 600; cursor: pointer; }
.dark-voir-controls button:disabled { background: #ccc; cursor: not-allowed; }
"""


# --------------------------------------------------------------------------- #
# Message placement
# --------------------------------------------------------------------------- #


class Direction(str, Enum):
    """Side of the target the message bubble is placed on."""

    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


# Tie-break order.
DIRECTION_ORDER: Tuple[Direction, ...] = (
    Direction.TOP,
    Direction.BOTTOM,
    Direction.LEFT,
    Direction.RIGHT,
)


def free_space(rect: Rect, viewport: Viewport) -> Dict[Direction, float]:
    """Free space around a viewport-space rect, per direction."""
    return {
        Direction.TOP: rect.top,
        Direction.BOTTOM: viewport.height - rect.bottom,
        Direction.LEFT: rect.left,
        Direction.RIGHT: viewport.width - rect.right,
    }


def choose_direction(space: Mapping[str, float]) -> Direction:
    """
    Return the direction with the most space; ties go to the earliest of
    top, bottom, left, right.

    Example:
        choose_direction({"top": 50, "bottom": 200, "left": 10, "right": 10})
        -> Direction.BOTTOM
    """
    values = {Direction(key): float(val) for key, val in space.items()}
    best = DIRECTION_ORDER[0]
    for direction in DIRECTION_ORDER:
        if values[direction] > values[best]:
            best = direction
    return best


def calculate_best_position(rect: Rect, viewport: Viewport) -> Direction:
    return choose_direction(free_space(rect, viewport))


def message_position(rect: Rect, viewport: Viewport, direction: Direction) -> Tuple[float, float, str]:
    """
    Document-space (left, top) and CSS transform for the message bubble.

    `rect` is in viewport space; the bubble is absolutely positioned, so
    the scroll offsets are added back.
    """
    sx, sy = viewport.scroll_x, viewport.scroll_y
    center_x = rect.left + rect.width / 2 + sx
    center_y = rect.top + rect.height / 2 + sy
    if direction is Direction.TOP:
        return center_x, rect.top + sy - MESSAGE_HEIGHT - MESSAGE_OFFSET, "translateX(-50%)"
    if direction is Direction.BOTTOM:
        return center_x, rect.bottom + sy + MESSAGE_OFFSET, "translateX(-50%)"
    if direction is Direction.LEFT:
        return rect.left + sx - MESSAGE_WIDTH - MESSAGE_OFFSET, center_y, "translateY(-50%)"
    return rect.right + sx + MESSAGE_OFFSET, center_y, "translateY(-50%)"


def _px(value: float) -> str:
    return f"{value:g}px"


# --------------------------------------------------------------------------- #
# Renderer
# --------------------------------------------------------------------------- #


ControlHandler = Callable[[], None]


class OverlayRenderer:
    """
    Creates, updates and removes the guide's overlay nodes in one document.

    The renderer holds no session state; GuideEngine decides what to show.
    """

    def __init__(self, document: DocumentLike) -> None:
        self.document = document
        self.scrim: Optional[ElementLike] = None
        self.highlight: Optional[ElementLike] = None
        self.message: Optional[ElementLike] = None
        self.pointer: Optional[ElementLike] = None
        self.indicator: Optional[ElementLike] = None
        self.controls: Optional[ElementLike] = None
        self.prev_button: Optional[ElementLike] = None
        self.next_button: Optional[ElementLike] = None
        self.exit_button: Optional[ElementLike] = None

    # ------------------------------------------------------------------ #
    # Scaffold
    # ------------------------------------------------------------------ #

    def ensure_stylesheet(self) -> None:
        if self.document.get_element_by_id(STYLESHEET_ID) is not None:
            return
        style = self.document.create_element("style", text=STYLESHEET)
        style.set_attribute("id", STYLESHEET_ID)
        self.document.append_to_head(style)

    def existing_overlay(self) -> bool:
        """True when a scrim (ours or another engine's) is in the document."""
        return bool(self.document.query_selector_all(f".{OVERLAY_CLASS}"))

    def build_scaffold(
        self,
        step_count: int,
        *,
        on_previous: ControlHandler,
        on_next: ControlHandler,
        on_exit: ControlHandler,
    ) -> None:
        """Create the scrim, step indicator and control bar."""
        self.ensure_stylesheet()

        self.scrim = self.document.create_element("div", class_name=OVERLAY_CLASS)
        self.document.append_to_body(self.scrim)

        self.indicator = self.document.create_element(
            "div", class_name=INDICATOR_CLASS, text=f"Step 1 of {step_count}"
        )
        self.indicator.set_attribute("id", INDICATOR_ID)
        self.document.append_to_body(self.indicator)

        controls = self.document.create_element("div", class_name=CONTROLS_CLASS)
        self.prev_button = self._button(controls, PREV_BUTTON_ID, PREV_LABEL, on_previous)
        self.next_button = self._button(controls, NEXT_BUTTON_ID, NEXT_LABEL, on_next)
        self.exit_button = self._button(controls, EXIT_BUTTON_ID, EXIT_LABEL, on_exit)
        self.document.append_to_body(controls)
        self.controls = controls

    def _button(self, parent: ElementLike, element_id: str, label: str, handler: ControlHandler) -> ElementLike:
        button = self.document.create_element("button", text=label)
        button.set_attribute("id", element_id)
        button.set_attribute("type", "button")
        button.add_event_listener("click", lambda _event: handler())
        parent.append_child(button)
        return button

    def update_controls(self, index: int, step_count: int) -> None:
        if self.indicator is not None:
            self.indicator.set_text(f"Step {index + 1} of {step_count}")
        if self.prev_button is not None:
            self.prev_button.set_disabled(index == 0)
        if self.next_button is not None:
            self.next_button.set_text(COMPLETE_LABEL if index >= step_count - 1 else NEXT_LABEL)

    # ------------------------------------------------------------------ #
    # Per-step nodes
    # ------------------------------------------------------------------ #

    def clear_step(self) -> None:
        """Remove the highlight, message and pointer."""
        for attr in ("highlight", "message", "pointer"):
            node = getattr(self, attr)
            if node is not None:
                node.remove()
                setattr(self, attr, None)

    def render_highlight(self, element: ElementLike) -> ElementLike:
        if self.highlight is not None:
            self.highlight.remove()
        viewport = self.document.viewport()
        box = viewport.to_document(element.bounding_rect()).inflate(HIGHLIGHT_PADDING)
        node = self.document.create_element("div", class_name=HIGHLIGHT_CLASS)
        node.set_style(top=_px(box.top), left=_px(box.left), width=_px(box.width), height=_px(box.height))
        self.document.append_to_body(node)
        self.highlight = node
        return node

    def render_message(self, element: ElementLike, text: str) -> Direction:
        if self.message is not None:
            self.message.remove()
        viewport = self.document.viewport()
        rect = element.bounding_rect()
        direction = calculate_best_position(rect, viewport)
        left, top, transform = message_position(rect, viewport, direction)

        node = self.document.create_element("div", class_name=MESSAGE_CLASS, text=text)
        node.add_class(f"position-{direction.value}")
        node.set_style(left=_px(left), top=_px(top), transform=transform)
        self.document.append_to_body(node)
        self.message = node
        return direction

    def render_pointer(self, element: ElementLike) -> ElementLike:
        if self.pointer is not None:
            self.pointer.remove()
        viewport = self.document.viewport()
        rect = element.bounding_rect()
        node = self.document.create_element("div", class_name=POINTER_CLASS, text=POINTER_GLYPH)
        node.set_style(
            left=_px(rect.left + rect.width / 2 - POINTER_HALF_WIDTH + viewport.scroll_x),
            top=_px(rect.top - POINTER_RISE + viewport.scroll_y),
        )
        self.document.append_to_body(node)
        self.pointer = node
        return node

    def render_notice(self, text: str, background: str) -> ElementLike:
        """
        Show a free-standing bubble (error / success) centered in the view.

        An existing message bubble is reused in place.
        """
        if self.message is None:
            viewport = self.document.viewport()
            node = self.document.create_element("div", class_name=MESSAGE_CLASS)
            node.set_style(
                left=_px(viewport.scroll_x + viewport.width / 2),
                top=_px(viewport.scroll_y + viewport.height / 2),
                transform="translate(-50%, -50%)",
            )
            self.document.append_to_body(node)
            self.message = node
        self.message.set_text(text)
        self.message.set_style(background=background)
        return self.message

    def render_error(self, text: str) -> ElementLike:
        self.clear_step()
        return self.render_notice(text, ERROR_BACKGROUND)

    def render_success(self, text: str) -> ElementLike:
        return self.render_notice(text, SUCCESS_BACKGROUND)

    # ------------------------------------------------------------------ #
    # Teardown
    # ------------------------------------------------------------------ #

    def clear(self) -> int:
        """Remove every node carrying a reserved class. Returns the count."""
        selector = ", ".join(f".{c}" for c in RESERVED_CLASSES)
        nodes: List[ElementLike] = self.document.query_selector_all(selector)
        for node in nodes:
            node.remove()
        self.scrim = self.highlight = self.message = self.pointer = None
        self.indicator = self.controls = None
        self.prev_button = self.next_button = self.exit_button = None
        return len(nodes)


__all__ = [
    "OVERLAY_CLASS",
    "HIGHLIGHT_CLASS",
    "MESSAGE_CLASS",
    "POINTER_CLASS",
    "INDICATOR_CLASS",
    "CONTROLS_CLASS",
    "RESERVED_CLASSES",
    "STYLESHEET_ID",
    "Direction",
    "DIRECTION_ORDER",
    "free_space",
    "choose_direction",
    "calculate_best_position",
    "message_position",
    "OverlayRenderer",
]
