"""
gridsnap.tiling.rect - Pixel geometry: Rect and Margins.

Rect describes an absolute screen area (monitor workarea, tile rect,
window frame). Margins describes per-side insets (gaps).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Rect:
    """
    Immutable rectangle defined by position (x, y) and size (w, h).

    All coordinates are pixels. The origin (0, 0) is the top-left corner
    of the primary monitor.

    Attributes:
        x: Horizontal coordinate of the top-left corner.
        y: Vertical coordinate of the top-left corner.
        w: Width in pixels.
        h: Height in pixels.
    """

    x: int
    y: int
    w: int
    h: int

    # ------------------------------------------------------------------
    # Derived properties
    # ------------------------------------------------------------------
    @property
    def left(self) -> int:
        return self.x

    @property
    def top(self) -> int:
        return self.y

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y + self.h

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.w / 2, self.y + self.h / 2)

    @property
    def area(self) -> int:
        return self.w * self.h

    @property
    def is_empty(self) -> bool:
        """True if the rect has no positive area."""
        return self.w <= 0 or self.h <= 0

    # ------------------------------------------------------------------
    # Geometric operations
    # ------------------------------------------------------------------
    def contains_point(self, x: float, y: float) -> bool:
        """Inclusive point test: points on any edge are inside."""
        return self.x <= x <= self.right and self.y <= y <= self.bottom

    def intersection(self, other: Rect) -> Rect | None:
        """
        Overlapping region of two rects.

        Returns:
            The intersection, or None if the rects only touch or are apart.
        """
        left = max(self.x, other.x)
        top = max(self.y, other.y)
        right = min(self.right, other.right)
        bottom = min(self.bottom, other.bottom)
        if right <= left or bottom <= top:
            return None
        return Rect(left, top, right - left, bottom - top)

    def overlaps(self, other: Rect) -> bool:
        """True if the rects share a region of positive area."""
        return self.intersection(other) is not None

    def overlap_area(self, other: Rect) -> int:
        inter = self.intersection(other)
        return inter.area if inter is not None else 0

    def union(self, other: Rect) -> Rect:
        """Smallest rect enclosing both rects."""
        left = min(self.x, other.x)
        top = min(self.y, other.y)
        right = max(self.right, other.right)
        bottom = max(self.bottom, other.bottom)
        return Rect(left, top, right - left, bottom - top)

    def inset(self, margins: Margins) -> Rect:
        """
        Shrink the rect by per-side margins.

        Width and height never go below zero.
        """
        return Rect(
            self.x + margins.left,
            self.y + margins.top,
            max(0, self.w - margins.left - margins.right),
            max(0, self.h - margins.top - margins.bottom),
        )

    def pad(self, gap: int) -> Rect:
        """Shrink the rect by the same gap on every side."""
        return self.inset(Margins.uniform(gap))

    def translated(self, dx: int, dy: int) -> Rect:
        return Rect(self.x + dx, self.y + dy, self.w, self.h)

    # ------------------------------------------------------------------
    # Conversion to Win32 tuple (left, top, right, bottom)
    # ------------------------------------------------------------------
    def to_ltrb(self) -> tuple[int, int, int, int]:
        """Return (left, top, right, bottom) for Win32 compatibility."""
        return (self.left, self.top, self.right, self.bottom)

    @classmethod
    def from_ltrb(cls, left: int, top: int, right: int, bottom: int) -> Rect:
        """Create a Rect from (left, top, right, bottom) coordinates."""
        return cls(left, top, right - left, bottom - top)

    def __str__(self) -> str:
        return f"Rect({self.w}x{self.h}+{self.x}+{self.y})"


@dataclass(frozen=True, slots=True)
class Margins:
    """Per-side pixel insets."""

    top: int = 0
    right: int = 0
    bottom: int = 0
    left: int = 0

    @classmethod
    def uniform(cls, value: int) -> Margins:
        return cls(value, value, value, value)

    def scaled(self, factor: float | None) -> Margins:
        """Multiply every side by *factor* (None means 1)."""
        if factor is None or factor == 1:
            return self
        return Margins(
            int(self.top * factor),
            int(self.right * factor),
            int(self.bottom * factor),
            int(self.left * factor),
        )

    @property
    def horizontal(self) -> int:
        return self.left + self.right

    @property
    def vertical(self) -> int:
        return self.top + self.bottom


ZERO_RECT = Rect(0, 0, 0, 0)
