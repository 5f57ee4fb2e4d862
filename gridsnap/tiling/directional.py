"""
gridsnap.tiling.directional - Directional geometry.

Implements the geometric helpers behind keyboard tiling:
    - Directional filter: is a point strictly in a compass direction
      from an origin?
    - Nearest window in a direction (focus_left/right/up/down).

Distances are squared Euclidean between rect centers.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable
from typing import Optional, TypeVar

from gridsnap.tiling.rect import Rect

T = TypeVar("T")


class Direction(enum.Enum):
    """Directions for keyboard move/focus operations."""
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    CENTER = "center"


def squared_distance(a: tuple[float, float], b: tuple[float, float]) -> float:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return dx * dx + dy * dy


def is_in_direction(
    origin: tuple[float, float],
    target: tuple[float, float],
    direction: Direction,
) -> bool:
    """
    True if *target* lies strictly in *direction* from *origin*.

    CENTER has no direction: nothing qualifies.
    """
    dx = target[0] - origin[0]
    dy = target[1] - origin[1]

    if direction == Direction.LEFT:
        return dx < 0
    if direction == Direction.RIGHT:
        return dx > 0
    if direction == Direction.UP:
        return dy < 0
    if direction == Direction.DOWN:
        return dy > 0
    return False


def find_nearest(
    origin: Rect,
    candidates: Iterable[T],
    rect_of: Callable[[T], Rect],
    direction: Direction | None = None,
) -> Optional[T]:
    """
    Find the candidate whose rect center is closest to *origin*'s center.

    Args:
        origin:     Reference rect.
        candidates: Items to consider, in tie-break order.
        rect_of:    Returns the rect of a candidate.
        direction:  If given, only candidates strictly in that direction.

    Returns:
        The nearest candidate (first one on ties), or None.
    """
    center = origin.center
    best: Optional[T] = None
    best_distance = float("inf")

    for candidate in candidates:
        candidate_center = rect_of(candidate).center
        if direction is not None and not is_in_direction(center, candidate_center, direction):
            continue

        distance = squared_distance(center, candidate_center)
        if distance < best_distance:
            best = candidate
            best_distance = distance

    return best
