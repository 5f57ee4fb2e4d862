"""
gridsnap.tiling.tiling_manager - TilingManager: tiling for one monitor.

TilingManager is the orchestrator of the tiling engine. For the monitor
it manages it:

  1. Keeps one TilingLayout per workspace, relaid out when gaps, the
     selected layout or the workarea change.
  2. Tracks window drags. While a move grab is active a repeating timer
     samples the pointer every MOVING_WINDOW_INTERVAL_MS and decides
     whether to show the tile grid (activation key held), an edge
     gesture, or the snap assistant. On grab end the selection is
     committed.
  3. Handles keyboard moves, untile and span commands.
  4. Auto-tiles new or unmaximized windows into a vacant tile.

Per-window tiling state (assigned tile, size before tiling) lives in a
side table keyed by window handle.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional

from gridsnap.config.global_state import LAYOUTS_CHANGED, GlobalState
from gridsnap.config.settings import Settings
from gridsnap.core.host import (
    GrabOp,
    Host,
    HostEvent,
    LayoutRenderer,
    MaximizeFlags,
    Monitor,
    PreviewRenderer,
    SnapAssistRenderer,
    WindowHandle,
    WindowType,
    Workspace,
    is_maximized,
)
from gridsnap.core.pointer import ActivationKey, TouchPointer, activation_key_status
from gridsnap.core.signals import SignalGroup
from gridsnap.core.timers import CONTINUE, STOP, Scheduler
from gridsnap.tiling.directional import Direction, find_nearest, squared_distance
from gridsnap.tiling.edge_tiling import EdgeTilingManager
from gridsnap.tiling.preview import SelectionTilePreview
from gridsnap.tiling.rect import Rect
from gridsnap.tiling.snap_assist import SNAP_ASSIST, SnapAssist
from gridsnap.tiling.tile import InvalidTileError, Tile
from gridsnap.tiling.tile_utils import (
    build_tile_gaps,
    clamp_to_container,
    from_absolute_rect,
    to_absolute_rect,
)
from gridsnap.tiling.tiling_layout import TilePlacement, TilingLayout

log = logging.getLogger(__name__)

MOVING_WINDOW_INTERVAL_MS = 15

# Pointer travel (px) after which a dragged tiled window gets its size back
RESTORE_ORIGINAL_SIZE_DISTANCE = 90

# Size (px, before gaps) of the preview when an edge gesture first opens it
EDGE_PREVIEW_SEED_SIZE = 8

FADE_IN_DURATION_MS = 200
OPAQUE = 255


@dataclass(slots=True)
class WindowRecord:
    """
    Tiling state of one window.

    Attributes:
        assigned_tile: Tile the window occupies, or None if free or maximized.
        original_size: Frame rect before the window was tiled.
    """

    assigned_tile: Optional[Tile] = None
    original_size: Optional[Rect] = None

    @property
    def is_empty(self) -> bool:
        return self.assigned_tile is None and self.original_size is None


# ============================================================================
# TilingManager
# ============================================================================
class TilingManager:
    """
    Tiling for one monitor.

    Usage:
        manager = TilingManager(monitor, host, settings, state, timers)
        manager.enable()
        ...
        manager.destroy()
    """

    def __init__(
        self,
        monitor: Monitor,
        host: Host,
        settings: Settings,
        global_state: GlobalState,
        timers: Scheduler,
        enable_scaling: bool = False,
        layout_renderer: LayoutRenderer | None = None,
        preview_renderer: PreviewRenderer | None = None,
        snap_assist_renderer: SnapAssistRenderer | None = None,
    ) -> None:
        """
        Args:
            monitor:        The monitor this manager tiles.
            host:           Desktop environment adapter.
            settings:       Shared settings.
            global_state:   Shared layouts and layout selection.
            timers:         Scheduler driving the drag-tracking timer.
            enable_scaling: Multiply gaps and snap assist geometry by the
                            monitor scaling factor.
        """
        self._monitor = monitor
        self._host = host
        self._settings = settings
        self._state = global_state
        self._timers = timers
        self._layout_renderer = layout_renderer

        self._scaling_factor: Optional[float] = (
            host.get_monitor_scaling_factor(monitor.index) if enable_scaling else None
        )
        self._workarea = host.get_workarea_for_monitor(monitor.index)
        log.info("Monitor %d workarea: %s", monitor.index, self._workarea)

        self._signals = SignalGroup()
        self._grab_signals = SignalGroup()
        self._touch = TouchPointer(host)
        self._windows: dict[WindowHandle, WindowRecord] = {}

        # Grab state
        self._is_grabbing_window = False
        self._is_snap_assisting = False
        self._was_tiling_system_activated = False
        self._was_span_multiple_tiles_activated = False
        self._last_cursor_pos: Optional[tuple[int, int]] = None
        self._grab_start_position: Optional[tuple[int, int]] = None
        self._moving_window_timer = None

        self._edge_tiling = EdgeTilingManager(self._workarea, settings)
        self._preview = SelectionTilePreview(preview_renderer)
        self._snap_assist = SnapAssist(
            self._workarea,
            settings,
            global_state.layouts,
            self._scaling_factor,
            snap_assist_renderer,
        )

        self._tiling_layouts: dict[Workspace, TilingLayout] = {}
        for ws in host.get_workspaces():
            self._tiling_layouts[ws] = self._build_tiling_layout(ws)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def monitor(self) -> Monitor:
        return self._monitor

    @property
    def workarea(self) -> Rect:
        return self._workarea

    @workarea.setter
    def workarea(self, rect: Rect) -> None:
        if rect == self._workarea:
            return
        self._workarea = rect
        log.info("New workarea for monitor %d: %s", self._monitor.index, rect)

        for tiling_layout in self._tiling_layouts.values():
            tiling_layout.relayout(container_rect=rect)
        self._snap_assist.workarea = rect
        self._edge_tiling.workarea = rect

    @property
    def is_grabbing_window(self) -> bool:
        return self._is_grabbing_window

    @property
    def is_snap_assisting(self) -> bool:
        return self._is_snap_assisting

    @property
    def preview(self) -> SelectionTilePreview:
        return self._preview

    @property
    def edge_tiling(self) -> EdgeTilingManager:
        return self._edge_tiling

    @property
    def snap_assist(self) -> SnapAssist:
        return self._snap_assist

    def get_tiling_layout(self, workspace: Optional[Workspace]) -> Optional[TilingLayout]:
        if workspace is None:
            return None
        return self._tiling_layouts.get(workspace)

    # ------------------------------------------------------------------
    # Window side table
    # ------------------------------------------------------------------
    def tiled_record(self, window: WindowHandle) -> Optional[WindowRecord]:
        """Copy of the window's tiling state, or None if it has none."""
        record = self._windows.get(window)
        return replace(record) if record is not None else None

    def _record(self, window: WindowHandle) -> WindowRecord:
        record = self._windows.get(window)
        if record is None:
            record = self._windows[window] = WindowRecord()
        return record

    def _assigned_tile(self, window: WindowHandle) -> Optional[Tile]:
        record = self._windows.get(window)
        return record.assigned_tile if record is not None else None

    def _set_assigned_tile(self, window: WindowHandle, tile: Optional[Tile]) -> None:
        self._update_record(window, assigned_tile=tile)

    def _set_original_size(self, window: WindowHandle, rect: Optional[Rect]) -> None:
        self._update_record(window, original_size=rect)

    def _update_record(self, window: WindowHandle, **fields) -> None:
        if window not in self._windows and all(v is None for v in fields.values()):
            return
        record = self._record(window)
        for name, value in fields.items():
            setattr(record, name, value)
        if record.is_empty:
            del self._windows[window]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def _build_tiling_layout(self, workspace: Workspace) -> TilingLayout:
        layout = self._state.get_selected_layout_of_monitor(self._monitor.index, workspace.index())
        return TilingLayout(
            layout,
            self._settings.get_inner_gaps(),
            self._settings.get_outer_gaps(),
            self._workarea,
            self._scaling_factor,
            self._layout_renderer,
        )

    def enable(self) -> None:
        """Subscribe to settings, layout changes and host events."""
        s = self._signals
        s.connect(self._settings, Settings.SELECTED_LAYOUTS, self._on_selected_layouts_changed)
        s.connect(self._state, LAYOUTS_CHANGED, self._on_layouts_changed)
        s.connect(self._settings, Settings.INNER_GAPS, self._on_inner_gaps_changed)
        s.connect(self._settings, Settings.OUTER_GAPS, self._on_outer_gaps_changed)

        s.connect(self._host, HostEvent.GRAB_OP_BEGIN, self._on_grab_op_begin)
        s.connect(self._host, HostEvent.GRAB_OP_END, self._on_grab_op_end)
        s.connect(self._host, HostEvent.ACTIVE_WORKSPACE_CHANGED, self._on_active_workspace_changed)
        s.connect(self._host, HostEvent.WORKSPACE_REMOVED, self._on_workspace_removed)
        s.connect(self._host, HostEvent.WINDOW_CREATED, self._on_window_created)
        s.connect(self._host, HostEvent.WINDOW_UNMAXIMIZED, self._on_window_unmaximized)
        s.connect(self._host, HostEvent.WINDOW_UNMANAGED, self._on_window_unmanaged)

        s.connect(self._snap_assist, SNAP_ASSIST, self._on_snap_assist)
        log.debug("Tiling manager for monitor %d enabled", self._monitor.index)

    def destroy(self) -> None:
        """Cancel the drag timer, release every subscription and drop all state."""
        if self._moving_window_timer is not None:
            self._timers.source_remove(self._moving_window_timer)
            self._moving_window_timer = None

        self._signals.disconnect()
        self._grab_signals.disconnect()
        self._touch.reset()

        self._is_grabbing_window = False
        self._is_snap_assisting = False
        self._was_tiling_system_activated = False
        self._was_span_multiple_tiles_activated = False
        self._last_cursor_pos = None
        self._grab_start_position = None
        self._edge_tiling.abort_edge_tiling()

        for tiling_layout in self._tiling_layouts.values():
            tiling_layout.destroy()
        self._tiling_layouts.clear()
        self._snap_assist.destroy()
        self._preview.destroy()
        self._windows.clear()
        log.debug("Tiling manager for monitor %d destroyed", self._monitor.index)

    # ------------------------------------------------------------------
    # Settings / workspace handlers
    # ------------------------------------------------------------------
    def _relayout_active_workspace(self) -> None:
        ws = self._host.get_active_workspace()
        tiling_layout = self.get_tiling_layout(ws)
        if tiling_layout is None:
            return
        layout = self._state.get_selected_layout_of_monitor(self._monitor.index, ws.index())
        tiling_layout.relayout(layout=layout)

    def _on_selected_layouts_changed(self, _value) -> None:
        self._relayout_active_workspace()

    def _on_layouts_changed(self, layouts) -> None:
        self._snap_assist.layouts = layouts
        self._relayout_active_workspace()

    def _on_inner_gaps_changed(self, _value) -> None:
        inner_gaps = self._settings.get_inner_gaps()
        for tiling_layout in self._tiling_layouts.values():
            tiling_layout.relayout(inner_gaps=inner_gaps)

    def _on_outer_gaps_changed(self, _value) -> None:
        outer_gaps = self._settings.get_outer_gaps()
        for tiling_layout in self._tiling_layouts.values():
            tiling_layout.relayout(outer_gaps=outer_gaps)

    def _on_active_workspace_changed(self) -> None:
        ws = self._host.get_active_workspace()
        if ws is None or ws in self._tiling_layouts:
            return
        self._tiling_layouts[ws] = self._build_tiling_layout(ws)
        log.debug("Created tiling layout for workspace %d", ws.index())

    def _on_workspace_removed(self) -> None:
        alive = set(self._host.get_workspaces())
        for ws in [ws for ws in self._tiling_layouts if ws not in alive]:
            self._tiling_layouts.pop(ws).destroy()
        log.debug("Workspace removed, %d tiling layouts left", len(self._tiling_layouts))

    def _on_window_created(self, window: WindowHandle) -> None:
        if self._settings.get(Settings.ENABLE_AUTO_TILING):
            self._auto_tile(window, True)

    def _on_window_unmaximized(self, window: WindowHandle) -> None:
        if self._settings.get(Settings.ENABLE_AUTO_TILING):
            self._auto_tile(window, False)

    def _on_window_unmanaged(self, window: WindowHandle) -> None:
        # Handles may be reused by the host for a later window
        self._signals.disconnect(window)
        if self._windows.pop(window, None) is not None:
            log.debug("Dropped tiling state of closed window %r", window)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _get_pointer(self, window: WindowHandle):
        return self._touch.get_pointer(window)

    def _is_pointer_inside_this_monitor(self, window: WindowHandle) -> bool:
        x, y, _ = self._get_pointer(window)
        return self._monitor.contains_point(x, y)

    def _tile_gaps(self, rect: Rect, tiling_layout: TilingLayout):
        return build_tile_gaps(
            rect,
            tiling_layout.inner_gaps,
            tiling_layout.outer_gaps,
            self._workarea,
            self._scaling_factor,
        )

    def _ease_window_rect(
        self,
        window: WindowHandle,
        rect: Rect,
        user_op: bool = False,
        force: bool = False,
    ) -> None:
        """Move and resize *window* onto *rect* on this monitor."""
        if window.get_frame_rect() == rect:
            return

        window.move_to_monitor(self._monitor.index)
        if force:
            window.move_frame(user_op, rect.x, rect.y)
        window.move_resize_frame(user_op, rect.x, rect.y, rect.w, rect.h)

    # ------------------------------------------------------------------
    # Grab tracking
    # ------------------------------------------------------------------
    def _on_grab_op_begin(self, window: WindowHandle, grab_op: int) -> None:
        if not GrabOp.is_moving(grab_op):
            return
        if self._is_grabbing_window:
            return

        self._touch.update_window_position(window.get_frame_rect())
        self._grab_signals.connect(self._host, HostEvent.TOUCH_EVENT, self._touch.on_touch_event)

        self._is_grabbing_window = True
        self._moving_window_timer = self._timers.timeout_add(
            MOVING_WINDOW_INTERVAL_MS,
            lambda: self._on_moving_window(window, grab_op),
        )
        log.debug("Grab begin on monitor %d (op=%d)", self._monitor.index, grab_op)
        self._on_moving_window(window, grab_op)

    def _activation_flags(self, modifiers: int) -> tuple[bool, bool, bool]:
        span_active = activation_key_status(
            modifiers, self._settings.get(Settings.SPAN_MULTIPLE_TILES_ACTIVATION_KEY)
        )
        tiling_active = activation_key_status(
            modifiers, self._settings.get(Settings.TILING_SYSTEM_ACTIVATION_KEY)
        )
        deactivation_key = self._settings.get(Settings.TILING_SYSTEM_DEACTIVATION_KEY)
        deactivated = deactivation_key != ActivationKey.NONE and activation_key_status(
            modifiers, deactivation_key
        )
        return span_active, tiling_active, deactivated

    def _close_all_previews(self, tiling_layout: TilingLayout) -> None:
        tiling_layout.close()
        self._preview.close()
        self._snap_assist.close()
        self._is_snap_assisting = False
        self._edge_tiling.abort_edge_tiling()

    def _restore_original_size(self, window: WindowHandle, x: int, y: int, original: Rect) -> None:
        # Keep the grip point at the same relative position inside the frame
        frame = window.get_frame_rect()
        offset_x = (x - frame.x) / frame.w if frame.w else 0
        offset_y = (y - frame.y) / frame.h if frame.h else 0
        restored = Rect(
            int(x - original.w * offset_x),
            int(y - original.h * offset_y),
            original.w,
            original.h,
        )
        self._ease_window_rect(window, restored)
        self._touch.update_window_position(restored)
        log.debug("Restored original size %s", restored)

    def _on_moving_window(self, window: WindowHandle, grab_op: int) -> bool:
        """One drag tick. Returns CONTINUE to be called again, STOP otherwise."""
        if not self._is_grabbing_window:
            self._moving_window_timer = None
            return STOP

        tiling_layout = self.get_tiling_layout(window.get_workspace())
        if tiling_layout is None:
            return STOP

        # Resizing became impossible or the window is now on another monitor
        if (
            not window.allows_resize()
            or not window.allows_move()
            or not self._is_pointer_inside_this_monitor(window)
        ):
            self._close_all_previews(tiling_layout)
            return CONTINUE

        x, y, modifiers = self._get_pointer(window)
        pointer = (x, y)
        self._set_assigned_tile(window, None)
        if self._grab_start_position is None:
            self._grab_start_position = pointer

        record = self._windows.get(window)
        original = record.original_size if record is not None else None
        if (
            original is not None
            and squared_distance(pointer, self._grab_start_position)
            > RESTORE_ORIGINAL_SIZE_DISTANCE ** 2
        ):
            if self._settings.get(Settings.RESTORE_WINDOW_ORIGINAL_SIZE):
                self._restore_original_size(window, x, y, original)
            self._set_original_size(window, None)
            self._grab_start_position = None

        span_active, tiling_active, deactivated = self._activation_flags(modifiers)
        span_enabled = self._settings.get(Settings.SPAN_MULTIPLE_TILES)
        tiling_enabled = self._settings.get(Settings.TILING_SYSTEM)
        allow_span = span_enabled and span_active
        show_tiling_system = tiling_enabled and tiling_active and not deactivated

        changed_span = span_enabled and span_active != self._was_span_multiple_tiles_activated
        changed_tiling = tiling_enabled and tiling_active != self._was_tiling_system_activated
        if not changed_span and not changed_tiling and pointer == self._last_cursor_pos:
            return CONTINUE

        self._last_cursor_pos = pointer
        self._was_tiling_system_activated = tiling_active
        self._was_span_multiple_tiles_activated = span_active

        if not show_tiling_system:
            self._on_moving_without_tiling_system(window, x, y, tiling_layout)
            return CONTINUE

        # The grid must be shown and the secondary modes closed
        if not tiling_layout.showing:
            tiling_layout.open_above(window)
            self._snap_assist.close()
            if self._edge_tiling.is_performing_edge_tiling():
                self._preview.close()
                self._edge_tiling.abort_edge_tiling()
        if self._is_snap_assisting:
            self._preview.close()
            self._is_snap_assisting = False

        if not changed_span and self._preview.showing and self._preview.rect.contains_point(x, y):
            return CONTINUE

        # With span allowed the hover selection grows through shared groups
        selection = tiling_layout.get_tile_below(x, y, not allow_span)
        if selection is None:
            return CONTINUE
        tiling_layout.hover_tiles_in_rect(selection, not allow_span)

        self._preview.gaps = self._tile_gaps(selection, tiling_layout)
        self._preview.open_above(window, selection)
        return CONTINUE

    def _on_moving_without_tiling_system(
        self,
        window: WindowHandle,
        x: int,
        y: int,
        tiling_layout: TilingLayout,
    ) -> None:
        if tiling_layout.showing:
            tiling_layout.close()
            self._preview.close()

        if (
            self._settings.get(Settings.ACTIVE_SCREEN_EDGES)
            and not self._is_snap_assisting
            and self._edge_tiling.can_activate_edge_tiling(x, y)
        ):
            changed, rect = self._edge_tiling.start_edge_tiling(x, y)
            if changed and rect is not None:
                self._show_edge_tiling(window, rect, x, y, tiling_layout)
            self._snap_assist.close()
            return

        if self._edge_tiling.is_performing_edge_tiling():
            self._preview.close()
            self._edge_tiling.abort_edge_tiling()

        if self._settings.get(Settings.SNAP_ASSIST):
            self._snap_assist.on_moving_window(window, x, y)

    def _show_edge_tiling(
        self,
        window: WindowHandle,
        edge_rect: Rect,
        x: int,
        y: int,
        tiling_layout: TilingLayout,
    ) -> None:
        self._preview.gaps = self._tile_gaps(edge_rect, tiling_layout)

        if not self._preview.showing:
            gaps = self._preview.gaps
            width = gaps.horizontal + EDGE_PREVIEW_SEED_SIZE
            height = gaps.vertical + EDGE_PREVIEW_SEED_SIZE
            self._preview.open(Rect(x - width // 2, y - height // 2, width, height), animate=False)

        self._preview.open_above(window, edge_rect)

    def _on_snap_assist(self, tile: Optional[Tile]) -> None:
        if tile is None:
            self._preview.close()
            self._is_snap_assisting = False
            return

        tiling_layout = self.get_tiling_layout(self._host.get_active_workspace())
        if tiling_layout is None:
            return

        rect = clamp_to_container(to_absolute_rect(tile, self._workarea), self._workarea)
        self._preview.gaps = self._tile_gaps(rect, tiling_layout)
        self._preview.open(rect)
        self._is_snap_assisting = True

    def _on_grab_op_end(self, window: WindowHandle) -> None:
        if not self._is_grabbing_window:
            return

        self._is_grabbing_window = False
        self._grab_start_position = None
        if self._moving_window_timer is not None:
            self._timers.source_remove(self._moving_window_timer)
            self._moving_window_timer = None

        self._grab_signals.disconnect()
        self._touch.reset()

        tiling_layout = self.get_tiling_layout(window.get_workspace())
        if tiling_layout is not None:
            tiling_layout.close()

        desired = self._preview.inner_rect
        selected = self._preview.rect
        self._preview.close()
        self._snap_assist.close()
        self._last_cursor_pos = None
        self._was_tiling_system_activated = False
        self._was_span_multiple_tiles_activated = False

        tiling_active = activation_key_status(
            self._host.get_pointer().modifiers,
            self._settings.get(Settings.TILING_SYSTEM_ACTIVATION_KEY),
        )
        if (
            not tiling_active
            and not self._is_snap_assisting
            and not self._edge_tiling.is_performing_edge_tiling()
        ):
            log.debug("Grab end without tiling gesture")
            return

        self._is_snap_assisting = False

        if (
            self._edge_tiling.is_performing_edge_tiling()
            and self._edge_tiling.need_maximize()
            and window.can_maximize()
        ):
            window.maximize(MaximizeFlags.BOTH)
        self._edge_tiling.abort_edge_tiling()

        # The window was dropped on a monitor this manager does not handle
        if not self._is_pointer_inside_this_monitor(window):
            return
        if desired.is_empty:
            return
        if is_maximized(window):
            return

        try:
            tile = from_absolute_rect(selected, self._workarea)
        except InvalidTileError:
            log.debug("Selection %s is outside the workarea", selected)
            return

        self._update_record(
            window,
            original_size=window.get_frame_rect(),
            assigned_tile=tile,
        )
        log.debug("Tiling window into %s", desired)
        self._ease_window_rect(window, desired)

    # ------------------------------------------------------------------
    # Keyboard and menu commands
    # ------------------------------------------------------------------
    def on_untile_window(self, window: WindowHandle, force: bool = False) -> None:
        """Give a tiled window back the size it had before tiling."""
        record = self._windows.get(window)
        if record is None or record.original_size is None:
            return
        self._ease_window_rect(window, record.original_size, False, force)
        self._windows.pop(window, None)

    def on_keyboard_move_window(
        self,
        window: WindowHandle,
        direction: Direction,
        force: bool = False,
        span_flag: bool = False,
    ) -> bool:
        """
        Move *window* to a tile in *direction*.

        Returns:
            True if the window was placed, maximized or unmaximized.
        """
        if span_flag and is_maximized(window):
            return False

        tiling_layout = self.get_tiling_layout(window.get_workspace())
        if tiling_layout is None:
            return False

        destination: Optional[TilePlacement] = None
        if is_maximized(window):
            if direction == Direction.CENTER:
                window.unmaximize(MaximizeFlags.BOTH)
            elif direction == Direction.DOWN:
                window.unmaximize(MaximizeFlags.BOTH)
                return True
            elif direction == Direction.UP:
                return False
            elif direction == Direction.LEFT:
                destination = tiling_layout.get_leftmost_tile()
            elif direction == Direction.RIGHT:
                destination = tiling_layout.get_rightmost_tile()

        window_rect = window.get_frame_rect()
        if destination is None:
            if direction == Direction.CENTER:
                wa = self._workarea
                rect = Rect(
                    int(wa.x + wa.w / 2 - window_rect.w / 2),
                    int(wa.y + wa.h / 2 - window_rect.h / 2),
                    window_rect.w,
                    window_rect.h,
                )
                try:
                    destination = TilePlacement(rect, from_absolute_rect(rect, wa))
                except InvalidTileError:
                    return False
            elif self._assigned_tile(window) is None:
                destination = tiling_layout.find_nearest_tile(window_rect)
            else:
                destination = tiling_layout.find_nearest_tile_direction(window_rect, direction)

        if destination is None:
            if span_flag:
                return False
            if direction == Direction.UP and window.can_maximize():
                window.maximize(MaximizeFlags.BOTH)
                return True
            return False

        if self._assigned_tile(window) is None and not is_maximized(window):
            self._set_original_size(window, window_rect)

        if span_flag:
            rect = destination.rect.union(window_rect)
            try:
                destination = TilePlacement(rect, from_absolute_rect(rect, self._workarea))
            except InvalidTileError:
                return False

        if is_maximized(window):
            window.unmaximize(MaximizeFlags.BOTH)

        self._ease_window_rect(window, destination.rect, False, force)
        self._set_assigned_tile(window, destination.tile.copy())
        log.debug("Keyboard move %s -> %s", direction.value, destination.rect)
        return True

    def on_keyboard_focus_window(
        self, window: WindowHandle, direction: Direction
    ) -> Optional[WindowHandle]:
        """Focus the nearest tiled window in *direction* on the same workspace."""
        workspace = window.get_workspace()
        candidates = [
            other
            for other in self._host.get_windows()
            if other != window
            and not other.minimized
            and other.get_workspace() == workspace
            and self._assigned_tile(other) is not None
        ]
        target = find_nearest(
            window.get_frame_rect(), candidates, lambda w: w.get_frame_rect(), direction
        )
        if target is not None:
            target.focus()
        return target

    def on_tile_from_window_menu(self, tile: Tile, window: WindowHandle) -> None:
        self._ease_window_rect_from_tile(tile, window)

    def on_span_all_tiles(self, window: WindowHandle) -> None:
        self._ease_window_rect_from_tile(Tile(0, 0, 1, 1), window)

    def _ease_window_rect_from_tile(
        self,
        tile: Tile,
        window: WindowHandle,
        skip_animation: bool = False,
    ) -> None:
        tiling_layout = self.get_tiling_layout(window.get_workspace())
        if tiling_layout is None:
            return

        scaled = clamp_to_container(to_absolute_rect(tile, self._workarea), self._workarea)
        destination = scaled.inset(self._tile_gaps(scaled, tiling_layout))
        if destination.is_empty:
            return

        remember_original_size = not is_maximized(window)
        if is_maximized(window):
            window.unmaximize(MaximizeFlags.BOTH)

        if remember_original_size and self._assigned_tile(window) is None:
            self._set_original_size(window, window.get_frame_rect())
        self._set_assigned_tile(window, from_absolute_rect(scaled, self._workarea))

        if skip_animation:
            window.move_resize_frame(False, destination.x, destination.y, destination.w, destination.h)
        else:
            self._ease_window_rect(window, destination)

    # ------------------------------------------------------------------
    # Auto-tiling
    # ------------------------------------------------------------------
    @staticmethod
    def _is_auto_tile_candidate(window: WindowHandle) -> bool:
        return (
            not window.minimized
            and not is_maximized(window)
            and window.get_transient_for() is None
            and not window.is_attached_dialog()
        )

    def _auto_tile(self, window: WindowHandle, window_created: bool) -> None:
        if window.get_monitor() != self._monitor.index:
            return
        if window.window_type != WindowType.NORMAL or not self._is_auto_tile_candidate(window):
            return

        self._set_assigned_tile(window, None)
        vacant = self._find_empty_tile(window)
        if vacant is None:
            return

        if not window_created:
            self._ease_window_rect_from_tile(vacant, window, True)
            return

        # Hidden until its first frame, then faded in while moved into place
        window.set_opacity(0)

        def on_first_frame() -> None:
            self._signals.disconnect(window)
            if self._is_auto_tile_candidate(window):
                window.set_opacity(OPAQUE, FADE_IN_DURATION_MS)
                self._ease_window_rect_from_tile(vacant, window, True)
            else:
                window.set_opacity(OPAQUE)

        self._signals.track(window, window.connect_first_frame(on_first_frame))

    def _find_empty_tile(self, window: WindowHandle) -> Optional[Tile]:
        """
        Tile of the active layout no other tiled window overlaps,
        preferring the one horizontally closest to the screen center.
        """
        tiled_frames = [
            other.get_frame_rect()
            for other in self._host.get_windows()
            if other != window
            and self._assigned_tile(other) is not None
            and not other.minimized
            and not is_maximized(other)
        ]

        active = self._host.get_active_workspace()
        layout = self._state.get_selected_layout_of_monitor(
            window.get_monitor(), active.index() if active is not None else 0
        )
        workarea = self._host.get_workarea_for_monitor(window.get_monitor())

        vacant = [
            tile
            for tile in layout.tiles
            if not any(to_absolute_rect(tile, workarea).overlaps(f) for f in tiled_frames)
        ]
        if not vacant:
            return None

        vacant.sort(key=lambda t: t.x)
        best = vacant[0]
        best_distance = abs(0.5 - best.center_x)
        for tile in vacant[1:]:
            distance = abs(0.5 - tile.center_x)
            if distance < best_distance:
                best = tile
                best_distance = distance
        return best
