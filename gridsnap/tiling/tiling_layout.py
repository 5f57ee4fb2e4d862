"""
gridsnap.tiling.tiling_layout - A Layout bound to one workspace.

TilingLayout answers two questions for the workspace it belongs to:
"which tile is at this point?" and "what screen rect does this tile
(or this selection of tiles) occupy, gaps included?". It also tracks
which tiles are hovered while the user drags a window over the grid
and whether the grid is currently shown.

Absolute tile rects are cached and recomputed by relayout(), which is
cheap enough to call on every settings or workarea change.
"""

from __future__ import annotations

import logging
from typing import NamedTuple, Optional

from gridsnap.core.host import LayoutRenderer, WindowHandle
from gridsnap.tiling.directional import Direction, find_nearest
from gridsnap.tiling.layout import Layout
from gridsnap.tiling.rect import Margins, Rect
from gridsnap.tiling.tile import Tile
from gridsnap.tiling.tile_utils import apply_gaps, to_absolute_rect

log = logging.getLogger(__name__)


class TilePlacement(NamedTuple):
    """A destination for a window: gapped rect plus the tile it covers."""
    rect: Rect
    tile: Tile


class TilingLayout:
    """
    Tile lookup, hover selection and visibility for one workspace.

    States: hidden (initial) and shown. open_above() shows the grid
    above a window, close() hides it and drops the hover selection.
    """

    def __init__(
        self,
        layout: Layout,
        inner_gaps: Margins,
        outer_gaps: Margins,
        container_rect: Rect,
        scaling_factor: float | None = None,
        renderer: LayoutRenderer | None = None,
    ) -> None:
        self._layout = layout
        self._inner_gaps = inner_gaps
        self._outer_gaps = outer_gaps
        self._container = container_rect
        self._scaling_factor = scaling_factor
        self._renderer = renderer

        self._rects: list[Rect] = []
        self._gapped: list[Rect] = []
        self._hovered: list[int] = []
        self._showing = False
        self._destroyed = False

        self._compute()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def layout(self) -> Layout:
        return self._layout

    @property
    def inner_gaps(self) -> Margins:
        return self._inner_gaps

    @property
    def outer_gaps(self) -> Margins:
        return self._outer_gaps

    @property
    def container_rect(self) -> Rect:
        return self._container

    @property
    def scaling_factor(self) -> float | None:
        return self._scaling_factor

    @property
    def showing(self) -> bool:
        return self._showing

    @property
    def hovered_tiles(self) -> list[Tile]:
        return [self._layout.tiles[i] for i in self._hovered]

    def tile_rects(self) -> list[Rect]:
        """Absolute rects of the tiles, without gaps, in layout order."""
        return list(self._rects)

    def gapped_rects(self) -> list[Rect]:
        """Absolute rects of the tiles once gaps are applied."""
        return list(self._gapped)

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    def _compute(self) -> None:
        self._rects = [to_absolute_rect(t, self._container) for t in self._layout.tiles]
        self._gapped = [
            apply_gaps(r, self._inner_gaps, self._outer_gaps, self._container, self._scaling_factor)
            for r in self._rects
        ]
        self._hovered = []

    def relayout(
        self,
        layout: Layout | None = None,
        inner_gaps: Margins | None = None,
        outer_gaps: Margins | None = None,
        container_rect: Rect | None = None,
        scaling_factor: float | None = None,
    ) -> None:
        """
        Merge the given fields into the current state and recompute.

        Omitted fields keep their value. Any hover selection is dropped.
        """
        if layout is not None:
            self._layout = layout
        if inner_gaps is not None:
            self._inner_gaps = inner_gaps
        if outer_gaps is not None:
            self._outer_gaps = outer_gaps
        if container_rect is not None:
            self._container = container_rect
        if scaling_factor is not None:
            self._scaling_factor = scaling_factor

        self._compute()
        log.debug(
            "Relayout %s in %s (inner=%s outer=%s)",
            self._layout.id, self._container, self._inner_gaps, self._outer_gaps,
        )
        if self._showing and self._renderer is not None:
            self._renderer.hover([])

    def _index_at(self, x: float, y: float) -> Optional[int]:
        for index, rect in enumerate(self._rects):
            if rect.contains_point(x, y):
                return index
        return None

    def find_tile_at(self, x: float, y: float) -> Optional[Tile]:
        """Tile under the point. On shared edges the first tile wins."""
        index = self._index_at(x, y)
        return self._layout.tiles[index] if index is not None else None

    def _placement(self, index: int) -> TilePlacement:
        return TilePlacement(self._gapped[index], self._layout.tiles[index])

    def find_nearest_tile(self, rect: Rect) -> Optional[TilePlacement]:
        """Tile whose gapped center is closest to the center of *rect*."""
        index = find_nearest(rect, range(len(self._gapped)), self._gapped.__getitem__)
        return self._placement(index) if index is not None else None

    def find_nearest_tile_direction(self, rect: Rect, direction: Direction) -> Optional[TilePlacement]:
        """
        Nearest tile strictly in *direction* from the center of *rect*.

        Returns:
            The placement, or None when no tile lies in that direction.
        """
        index = find_nearest(
            rect, range(len(self._gapped)), self._gapped.__getitem__, direction
        )
        return self._placement(index) if index is not None else None

    def get_leftmost_tile(self) -> TilePlacement:
        tiles = self._layout.tiles
        index = min(range(len(tiles)), key=lambda i: tiles[i].center_x)
        return self._placement(index)

    def get_rightmost_tile(self) -> TilePlacement:
        tiles = self._layout.tiles
        best = 0
        for i in range(1, len(tiles)):
            if tiles[i].center_x > tiles[best].center_x:
                best = i
        return self._placement(best)

    # ------------------------------------------------------------------
    # Hover selection
    # ------------------------------------------------------------------
    def _bounds(self, indices: list[int]) -> Optional[Rect]:
        if not indices:
            return None
        bounds = self._rects[indices[0]]
        for i in indices[1:]:
            bounds = bounds.union(self._rects[i])
        return bounds

    def hover_tiles_in_rect(self, rect: Rect, single_tile_only: bool) -> Optional[Rect]:
        """
        Hover every tile overlapping *rect*.

        Args:
            rect:             Selection rect (absolute).
            single_tile_only: Keep only the tile with the largest overlap.

        Returns:
            Bounding rect of the hovered tiles, or None if nothing overlaps.
        """
        hovered = [i for i, r in enumerate(self._rects) if r.overlaps(rect)]
        if single_tile_only and len(hovered) > 1:
            best = hovered[0]
            for i in hovered[1:]:
                if self._rects[i].overlap_area(rect) > self._rects[best].overlap_area(rect):
                    best = i
            hovered = [best]

        self._hovered = hovered
        if self._showing and self._renderer is not None:
            self._renderer.hover([self._rects[i] for i in hovered])
        return self._bounds(hovered)

    def get_tile_below(self, x: float, y: float, single_tile_only: bool) -> Optional[Rect]:
        """
        Absolute rect of the selection under the pointer.

        With span allowed (single_tile_only False) and a hover selection
        in place, the tile under the pointer extends that selection when
        it is already hovered or shares a group with a hovered tile.
        """
        index = self._index_at(x, y)
        if index is None:
            return None

        rect = self._rects[index]
        if single_tile_only or not self._hovered:
            return rect

        tile = self._layout.tiles[index]
        joins = index in self._hovered or any(
            tile.shares_group(self._layout.tiles[i]) for i in self._hovered
        )
        if not joins:
            return rect
        return rect.union(self._bounds(self._hovered))

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------
    def open_above(self, window: WindowHandle) -> None:
        if self._destroyed:
            return
        self._showing = True
        if self._renderer is not None:
            self._renderer.show(self._gapped, window)

    def close(self) -> None:
        if not self._showing:
            return
        self._showing = False
        self._hovered = []
        if self._renderer is not None:
            self._renderer.hide()

    def destroy(self) -> None:
        self.close()
        self._destroyed = True
        self._renderer = None

    def __repr__(self) -> str:
        return (
            f"TilingLayout(layout={self._layout.id!r}, container={self._container}, "
            f"showing={self._showing})"
        )
