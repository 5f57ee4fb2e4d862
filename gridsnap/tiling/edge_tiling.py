"""
gridsnap.tiling.edge_tiling - Screen-edge gestures while dragging.

Dragging a window against a workarea edge proposes a half of the
workarea; against a corner, a quarter; against the top edge, either
the top half or the whole workarea (maximize) depending on the
"top-edge-maximize" setting.

    Idle --start_edge_tiling()--> EdgeTiling(edge, rect)
      ^                                  |
      +-------abort_edge_tiling()--------+
"""

from __future__ import annotations

import enum
import logging
from typing import NamedTuple, Optional

from gridsnap.config.settings import Settings
from gridsnap.tiling.rect import Rect

log = logging.getLogger(__name__)

# Pointer distance (px) from an edge that activates the gesture
SIDE_EDGE_THRESHOLD = 16
TOP_BOTTOM_EDGE_THRESHOLD = 8


class Edge(enum.Enum):
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"
    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_RIGHT = "bottom_right"


class EdgeTilingResult(NamedTuple):
    """Outcome of start_edge_tiling(): whether the proposal changed, and the proposal."""
    changed: bool
    rect: Optional[Rect]


class EdgeTilingManager:
    """Detects edge gestures and proposes the matching workarea region."""

    def __init__(self, workarea: Rect, settings: Settings) -> None:
        self._workarea = workarea
        self._settings = settings
        self._edge: Optional[Edge] = None
        self._rect: Optional[Rect] = None
        self._maximize = False

    @property
    def workarea(self) -> Rect:
        return self._workarea

    @workarea.setter
    def workarea(self, rect: Rect) -> None:
        self._workarea = rect
        self.abort_edge_tiling()

    @property
    def edge(self) -> Optional[Edge]:
        return self._edge

    def is_performing_edge_tiling(self) -> bool:
        return self._edge is not None

    def need_maximize(self) -> bool:
        """True only while the top edge proposes to maximize."""
        return self._edge is not None and self._maximize

    def can_activate_edge_tiling(self, x: float, y: float) -> bool:
        wa = self._workarea
        return (
            x <= wa.left + SIDE_EDGE_THRESHOLD
            or x >= wa.right - SIDE_EDGE_THRESHOLD
            or y <= wa.top + TOP_BOTTOM_EDGE_THRESHOLD
            or y >= wa.bottom - TOP_BOTTOM_EDGE_THRESHOLD
        )

    def abort_edge_tiling(self) -> None:
        self._edge = None
        self._rect = None
        self._maximize = False

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------
    def _classify(self, x: int, y: int) -> Optional[Edge]:
        wa = self._workarea
        quarter = self._settings.get(Settings.QUARTER_TILING_THRESHOLD) / 100
        quarter_w = wa.w * quarter
        quarter_h = wa.h * quarter

        near_top = y <= wa.top + quarter_h
        near_bottom = y >= wa.bottom - quarter_h
        near_left = x <= wa.left + quarter_w
        near_right = x >= wa.right - quarter_w

        if x <= wa.left + SIDE_EDGE_THRESHOLD:
            if near_top:
                return Edge.TOP_LEFT
            if near_bottom:
                return Edge.BOTTOM_LEFT
            return Edge.LEFT
        if x >= wa.right - SIDE_EDGE_THRESHOLD:
            if near_top:
                return Edge.TOP_RIGHT
            if near_bottom:
                return Edge.BOTTOM_RIGHT
            return Edge.RIGHT
        if y <= wa.top + TOP_BOTTOM_EDGE_THRESHOLD:
            if near_left:
                return Edge.TOP_LEFT
            if near_right:
                return Edge.TOP_RIGHT
            return Edge.TOP
        if y >= wa.bottom - TOP_BOTTOM_EDGE_THRESHOLD:
            if near_left:
                return Edge.BOTTOM_LEFT
            if near_right:
                return Edge.BOTTOM_RIGHT
            return Edge.BOTTOM
        return None

    def _rect_for(self, edge: Edge, maximize: bool) -> Rect:
        wa = self._workarea
        half_w = wa.w // 2
        half_h = wa.h // 2
        left = Rect(wa.x, wa.y, half_w, wa.h)
        right = Rect(wa.x + half_w, wa.y, wa.w - half_w, wa.h)
        top = Rect(wa.x, wa.y, wa.w, half_h)
        bottom = Rect(wa.x, wa.y + half_h, wa.w, wa.h - half_h)

        if edge == Edge.TOP:
            return wa if maximize else top
        return {
            Edge.LEFT: left,
            Edge.RIGHT: right,
            Edge.BOTTOM: bottom,
            Edge.TOP_LEFT: Rect(left.x, top.y, left.w, top.h),
            Edge.TOP_RIGHT: Rect(right.x, top.y, right.w, top.h),
            Edge.BOTTOM_LEFT: Rect(left.x, bottom.y, left.w, bottom.h),
            Edge.BOTTOM_RIGHT: Rect(right.x, bottom.y, right.w, bottom.h),
        }[edge]

    # ------------------------------------------------------------------
    # Gesture
    # ------------------------------------------------------------------
    def start_edge_tiling(self, x: float, y: float) -> EdgeTilingResult:
        """
        Enter or update the edge gesture for the pointer position.

        The pointer is clamped into the workarea first.

        Returns:
            EdgeTilingResult(changed, rect). changed is False when the
            same edge region is reaffirmed.
        """
        wa = self._workarea
        cx = int(min(max(x, wa.left), wa.right))
        cy = int(min(max(y, wa.top), wa.bottom))

        edge = self._classify(cx, cy)
        if edge is None:
            self.abort_edge_tiling()
            return EdgeTilingResult(False, None)

        maximize = edge == Edge.TOP and self._settings.get(Settings.TOP_EDGE_MAXIMIZE)
        if edge == self._edge and maximize == self._maximize:
            return EdgeTilingResult(False, self._rect)

        self._edge = edge
        self._maximize = maximize
        self._rect = self._rect_for(edge, maximize)
        log.debug("Edge tiling on %s -> %s", edge.value, self._rect)
        return EdgeTilingResult(True, self._rect)
