"""
gridsnap.config.global_state - Layouts cache and per-monitor selection.

GlobalState sits between Settings and the tiling managers:
    - caches the parsed layouts and re-parses them when "layouts-json"
      changes, emitting LAYOUTS_CHANGED to subscribers;
    - resolves which layout is selected for a (monitor, workspace) pair
      from the "selected-layouts" matrix, falling back to the first
      layout when the entry is missing or stale.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Optional

from gridsnap.config.settings import Settings
from gridsnap.core.signals import Callback, Connection, EventEmitter
from gridsnap.tiling.layout import Layout

log = logging.getLogger(__name__)

LAYOUTS_CHANGED = "layouts-changed"


class GlobalState:
    """
    Shared tiling state derived from Settings.

    Usage:
        state = GlobalState(settings)
        conn = state.connect(LAYOUTS_CHANGED, on_layouts)
        layout = state.get_selected_layout_of_monitor(0, 1)
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._emitter = EventEmitter()
        self._layouts: list[Layout] = settings.get_layouts()
        self._settings_conn: Optional[Connection] = settings.connect(
            Settings.LAYOUTS_JSON, self._on_layouts_json_changed
        )

    # ------------------------------------------------------------------
    # Layouts
    # ------------------------------------------------------------------
    @property
    def layouts(self) -> list[Layout]:
        return list(self._layouts)

    @layouts.setter
    def layouts(self, layouts: Sequence[Layout]) -> None:
        """Replace and persist the layouts. An empty list restores the defaults."""
        if not layouts:
            log.info("Empty layouts list, restoring defaults")
            self._settings.reset_layouts()
        else:
            self._settings.save_layouts(layouts)

    def add_layout(self, layout: Layout) -> None:
        self.layouts = [*self._layouts, layout]

    def delete_layout(self, layout_id: str) -> bool:
        remaining = [lay for lay in self._layouts if lay.id != layout_id]
        if len(remaining) == len(self._layouts):
            return False
        self.layouts = remaining
        return True

    def get_layout(self, layout_id: str) -> Optional[Layout]:
        for layout in self._layouts:
            if layout.id == layout_id:
                return layout
        return None

    def _on_layouts_json_changed(self, _value: str) -> None:
        self._layouts = self._settings.get_layouts()
        log.debug("Layouts reloaded: %s", [lay.id for lay in self._layouts])
        self._emitter.emit(LAYOUTS_CHANGED, self.layouts)

    # ------------------------------------------------------------------
    # Selected layouts
    # ------------------------------------------------------------------
    def get_selected_layout_of_monitor(self, monitor_index: int, workspace_index: int) -> Layout:
        """Layout selected for the pair, or the first layout."""
        selected = self._settings.get_selected_layouts()
        fallback = self._layouts[0]

        if not 0 <= monitor_index < len(selected):
            return fallback
        row = selected[monitor_index]
        if not 0 <= workspace_index < len(row):
            return fallback

        layout = self.get_layout(row[workspace_index])
        if layout is None:
            log.debug(
                "Selected layout %r of monitor %d workspace %d not found",
                row[workspace_index], monitor_index, workspace_index,
            )
            return fallback
        return layout

    def set_selected_layout(self, monitor_index: int, workspace_index: int, layout_id: str) -> None:
        """
        Select *layout_id* for (monitor, workspace) and persist the matrix.

        Missing rows and columns are filled with the first layout's id.

        Raises:
            KeyError: If no layout has that id.
        """
        if self.get_layout(layout_id) is None:
            raise KeyError(f"Unknown layout: {layout_id!r}")
        if monitor_index < 0 or workspace_index < 0:
            raise ValueError("Monitor and workspace indices must be >= 0")

        default_id = self._layouts[0].id
        selected = self._settings.get_selected_layouts()
        while len(selected) <= monitor_index:
            selected.append([])
        row = selected[monitor_index]
        while len(row) <= workspace_index:
            row.append(default_id)
        row[workspace_index] = layout_id

        self._settings.save_selected_layouts(selected)

    # ------------------------------------------------------------------
    # Subscription / teardown
    # ------------------------------------------------------------------
    def connect(self, event: str, callback: Callback) -> Connection:
        return self._emitter.connect(event, callback)

    def destroy(self) -> None:
        if self._settings_conn is not None:
            self._settings_conn.disconnect()
            self._settings_conn = None
        self._emitter.disconnect_all()
