"""
gridsnap.tiling.preview - State of the selection preview.

The preview is the rectangle showing where the dragged window will land.
Only its state lives here: the rect, the gaps applied inside it and
whether it is showing. Drawing is delegated to a PreviewRenderer.
"""

from __future__ import annotations

from typing import Optional

from gridsnap.core.host import PreviewRenderer, WindowHandle
from gridsnap.tiling.rect import ZERO_RECT, Margins, Rect


class SelectionTilePreview:
    """
    Selection preview for one monitor.

    Usage:
        preview = SelectionTilePreview(renderer)
        preview.gaps = gaps
        preview.open_above(window, rect)
        destination = preview.inner_rect
        preview.close()
    """

    def __init__(self, renderer: PreviewRenderer | None = None) -> None:
        self._renderer = renderer
        self._rect = ZERO_RECT
        self._gaps = Margins()
        self._showing = False

    @property
    def rect(self) -> Rect:
        return self._rect

    @property
    def gaps(self) -> Margins:
        return self._gaps

    @gaps.setter
    def gaps(self, gaps: Margins) -> None:
        self._gaps = gaps

    @property
    def inner_rect(self) -> Rect:
        """The preview rect with its gaps removed: the window destination."""
        return self._rect.inset(self._gaps)

    @property
    def showing(self) -> bool:
        return self._showing

    def open(self, rect: Rect, animate: bool = True) -> None:
        self._show(rect, None, animate)

    def open_above(self, window: WindowHandle, rect: Rect, animate: bool = True) -> None:
        self._show(rect, window, animate)

    def _show(self, rect: Rect, above: Optional[WindowHandle], animate: bool) -> None:
        self._rect = rect
        self._showing = True
        if self._renderer is not None:
            self._renderer.show(rect, self.inner_rect, above, animate)

    def close(self, animate: bool = True) -> None:
        """Hide the preview, collapsing it to its center."""
        if not self._showing:
            return
        cx, cy = self._rect.center
        self._rect = Rect(int(cx), int(cy), 0, 0)
        self._showing = False
        if self._renderer is not None:
            self._renderer.hide(animate)

    def destroy(self) -> None:
        self.close(animate=False)
        self._renderer = None
