"""
gridsnap.tiling.tile_utils - Conversions between Tiles and pixel Rects.

All functions are pure: inputs are never mutated and the same arguments
always yield the same result.
"""

from __future__ import annotations

import math

from gridsnap.tiling.rect import Margins, Rect
from gridsnap.tiling.tile import EPSILON, InvalidTileError, Tile


def _edge(origin: int, fraction: float, size: int) -> int:
    # Every edge is floored the same way, so neighbours share it exactly
    return origin + math.floor(fraction * size + EPSILON)


def to_absolute_rect(tile: Tile, container: Rect) -> Rect:
    """
    Map a normalized tile onto *container*.

    Args:
        tile:      Tile in unit-square coordinates.
        container: Absolute rect the layout is laid out against.

    Returns:
        Absolute pixel rect of the tile.
    """
    left = _edge(container.x, tile.x, container.w)
    top = _edge(container.y, tile.y, container.h)
    right = _edge(container.x, tile.x + tile.width, container.w)
    bottom = _edge(container.y, tile.y + tile.height, container.h)
    return Rect(left, top, right - left, bottom - top)


def clamp_to_container(rect: Rect, container: Rect) -> Rect:
    """Clip *rect* to the container bounds (may yield an empty rect)."""
    left = max(rect.x, container.x)
    top = max(rect.y, container.y)
    right = min(rect.right, container.right)
    bottom = min(rect.bottom, container.bottom)
    return Rect(left, top, max(0, right - left), max(0, bottom - top))


def from_absolute_rect(rect: Rect, container: Rect) -> Tile:
    """
    Build a geometry-only Tile (no groups) from an absolute rect.

    The rect is clipped to the container first.

    Raises:
        InvalidTileError: If the clipped rect is empty.
    """
    clipped = clamp_to_container(rect, container)
    if clipped.is_empty or container.is_empty:
        raise InvalidTileError(f"Cannot build a tile from {rect} inside {container}")
    return Tile(
        x=(clipped.x - container.x) / container.w,
        y=(clipped.y - container.y) / container.h,
        width=clipped.w / container.w,
        height=clipped.h / container.h,
    )


def build_tile_gaps(
    rect: Rect,
    inner_gaps: Margins,
    outer_gaps: Margins,
    container: Rect,
    scaling_factor: float | None = None,
) -> Margins:
    """
    Compute the gaps to apply to a tile rect.

    Sides touching the container edge get the outer gap, sides facing a
    neighbour get half the inner gap (the neighbour supplies the other half).
    """
    is_left = rect.x <= container.x
    is_top = rect.y <= container.y
    is_right = rect.right >= container.right
    is_bottom = rect.bottom >= container.bottom

    gaps = Margins(
        top=outer_gaps.top if is_top else inner_gaps.top // 2,
        right=outer_gaps.right if is_right else inner_gaps.right // 2,
        bottom=outer_gaps.bottom if is_bottom else inner_gaps.bottom // 2,
        left=outer_gaps.left if is_left else inner_gaps.left // 2,
    )
    return gaps.scaled(scaling_factor)


def apply_gaps(
    rect: Rect,
    inner_gaps: Margins,
    outer_gaps: Margins,
    container: Rect,
    scaling_factor: float | None = None,
) -> Rect:
    """Rect of a tile once its gaps have been applied."""
    return rect.inset(build_tile_gaps(rect, inner_gaps, outer_gaps, container, scaling_factor))
