"""
gridsnap.tiling.snap_assist - Snap assistant geometry.

The snap assistant is a strip of layout thumbnails anchored at the
top-centre of the workarea. While a window is dragged near the strip
it enlarges; hovering a tile of a thumbnail then suggests that tile
as the window's destination.

Suggestions are emitted on the SNAP_ASSIST event:
    callback(tile)   a Tile of one of the layouts
    callback(None)   the pointer left the suggested tile
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Optional

from gridsnap.config.settings import Settings
from gridsnap.core.host import SnapAssistRenderer, WindowHandle
from gridsnap.core.signals import Callback, Connection, EventEmitter
from gridsnap.tiling.layout import Layout
from gridsnap.tiling.rect import Rect
from gridsnap.tiling.tile import Tile
from gridsnap.tiling.tile_utils import to_absolute_rect

log = logging.getLogger(__name__)

SNAP_ASSIST = "snap-assist"

# Logical pixels, multiplied by the monitor scaling factor
THUMBNAIL_WIDTH = 120
THUMBNAIL_HEIGHT = 68
THUMBNAIL_SPACING = 8
STRIP_PADDING = 8


class SnapAssist:
    """
    Snap assistant for one monitor.

    Usage:
        snap = SnapAssist(workarea, settings, layouts)
        snap.connect(SNAP_ASSIST, on_suggestion)
        snap.on_moving_window(window, x, y)    # on every drag tick
        snap.close()
    """

    def __init__(
        self,
        workarea: Rect,
        settings: Settings,
        layouts: Sequence[Layout],
        scaling_factor: float | None = None,
        renderer: SnapAssistRenderer | None = None,
    ) -> None:
        self._workarea = workarea
        self._settings = settings
        self._layouts = list(layouts)
        self._scale = scaling_factor or 1
        self._renderer = renderer
        self._emitter = EventEmitter()

        self._enlarged = False
        self._hovered: Optional[Tile] = None
        self._hovered_rect: Optional[Rect] = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def workarea(self) -> Rect:
        return self._workarea

    @workarea.setter
    def workarea(self, rect: Rect) -> None:
        self._workarea = rect
        self.close()

    @property
    def layouts(self) -> list[Layout]:
        return list(self._layouts)

    @layouts.setter
    def layouts(self, layouts: Sequence[Layout]) -> None:
        self._layouts = list(layouts)
        self.close()

    @property
    def enlarged(self) -> bool:
        return self._enlarged

    @property
    def hovered_tile(self) -> Optional[Tile]:
        return self._hovered

    def connect(self, event: str, callback: Callback) -> Connection:
        return self._emitter.connect(event, callback)

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    def _px(self, value: int) -> int:
        return int(value * self._scale)

    def strip_rect(self) -> Rect:
        """Absolute rect of the enlarged strip."""
        count = max(1, len(self._layouts))
        width = (
            2 * self._px(STRIP_PADDING)
            + count * self._px(THUMBNAIL_WIDTH)
            + (count - 1) * self._px(THUMBNAIL_SPACING)
        )
        height = 2 * self._px(STRIP_PADDING) + self._px(THUMBNAIL_HEIGHT)
        x = self._workarea.x + (self._workarea.w - width) // 2
        y = self._workarea.y + self._px(STRIP_PADDING)
        return Rect(x, y, width, height)

    def thumbnail_rects(self) -> list[Rect]:
        """Absolute rects of the layout thumbnails, in layout order."""
        strip = self.strip_rect()
        step = self._px(THUMBNAIL_WIDTH) + self._px(THUMBNAIL_SPACING)
        return [
            Rect(
                strip.x + self._px(STRIP_PADDING) + i * step,
                strip.y + self._px(STRIP_PADDING),
                self._px(THUMBNAIL_WIDTH),
                self._px(THUMBNAIL_HEIGHT),
            )
            for i in range(len(self._layouts))
        ]

    def _is_near(self, x: float, y: float) -> bool:
        threshold = self._settings.get(Settings.SNAP_ASSISTANT_THRESHOLD)
        strip = self.strip_rect()
        return (
            strip.left - threshold <= x <= strip.right + threshold
            and self._workarea.top - threshold <= y <= strip.bottom + threshold
        )

    def _tile_at(self, x: float, y: float) -> tuple[Optional[Tile], Optional[Rect]]:
        for layout, thumb in zip(self._layouts, self.thumbnail_rects()):
            if not thumb.contains_point(x, y):
                continue
            for tile in layout.tiles:
                rect = to_absolute_rect(tile, thumb)
                if rect.contains_point(x, y):
                    return tile, rect
            return None, None
        return None, None

    # ------------------------------------------------------------------
    # Drag handling
    # ------------------------------------------------------------------
    def on_moving_window(self, window: WindowHandle, x: float, y: float) -> None:
        """Update the strip for the pointer position of a dragged window."""
        if not self._layouts:
            return

        near = self._is_near(x, y)
        if near != self._enlarged:
            self._enlarged = near
            log.debug("Snap assist %s", "enlarged" if near else "shrunk")

        tile, rect = self._tile_at(x, y) if self._enlarged else (None, None)
        if tile != self._hovered or rect != self._hovered_rect:
            self._hovered = tile
            self._hovered_rect = rect
            self._emitter.emit(SNAP_ASSIST, tile)

        if self._renderer is not None:
            self._renderer.show(self.strip_rect(), self._enlarged, self._hovered_rect)

    def close(self) -> None:
        """Shrink and hide the strip. Nothing is emitted."""
        self._enlarged = False
        self._hovered = None
        self._hovered_rect = None
        if self._renderer is not None:
            self._renderer.hide()

    def destroy(self) -> None:
        self.close()
        self._emitter.disconnect_all()
        self._renderer = None
