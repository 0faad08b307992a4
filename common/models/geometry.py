"""
Layout geometry shared by the relevance and guide engines.

Rectangles follow the browser convention: origin at the top-left corner,
y growing downwards, values in CSS pixels. Whether a rect is in viewport
space or document space is decided by whoever produced it; the helpers
here only convert between the two given a Viewport.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned rectangle (what `getBoundingClientRect` reports).

    Attributes:
        left, top:
            Position of the top-left corner.
        width, height:
            Size; zero for nodes that are not laid out.
    """

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def is_empty(self) -> bool:
        """True when the rect has no area (display:none, detached, ...)."""
        return self.width == 0 or self.height == 0

    def translate(self, dx: float, dy: float) -> "Rect":
        return Rect(self.left + dx, self.top + dy, self.width, self.height)

    def inflate(self, padding: float) -> "Rect":
        """Grow the rect outward by `padding` on every side."""
        return Rect(
            self.left - padding,
            self.top - padding,
            self.width + 2 * padding,
            self.height + 2 * padding,
        )

    def as_tuple(self) -> tuple[float, float, float, float]:
        """Return (left, top, width, height)."""
        return self.left, self.top, self.width, self.height

    def to_dict(self) -> Dict[str, float]:
        return {
            "left": self.left,
            "top": self.top,
            "width": self.width,
            "height": self.height,
        }

    @classmethod
    def empty(cls) -> "Rect":
        return cls(0.0, 0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Viewport:
    """
    Visible window of a document.

    Attributes:
        width, height:
            Inner size of the window (`innerWidth` / `innerHeight`).
        scroll_x, scroll_y:
            Current scroll offsets of the document.
    """

    width: float
    height: float
    scroll_x: float = 0.0
    scroll_y: float = 0.0

    def to_document(self, rect: Rect) -> Rect:
        """Convert a viewport-space rect to document space."""
        return rect.translate(self.scroll_x, self.scroll_y)

    def to_viewport(self, rect: Rect) -> Rect:
        """Convert a document-space rect to viewport space."""
        return rect.translate(-self.scroll_x, -self.scroll_y)

    def to_dict(self) -> Dict[str, float]:
        return {
            "width": self.width,
            "height": self.height,
            "scroll_x": self.scroll_x,
            "scroll_y": self.scroll_y,
        }


__all__ = ["Rect", "Viewport"]
