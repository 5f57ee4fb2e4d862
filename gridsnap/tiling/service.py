"""
gridsnap.tiling.service - TilingService: one TilingManager per monitor.

The service is the entry point a host integration talks to. It builds a
manager for every monitor, keeps their workareas current and routes
window commands to the manager of the window's monitor.
"""

from __future__ import annotations

import logging
from typing import Optional

from gridsnap.config.global_state import GlobalState
from gridsnap.config.settings import Settings
from gridsnap.core.host import Host, HostEvent, WindowHandle
from gridsnap.core.signals import SignalGroup
from gridsnap.core.timers import Scheduler
from gridsnap.tiling.directional import Direction
from gridsnap.tiling.tile import Tile
from gridsnap.tiling.tiling_manager import TilingManager

log = logging.getLogger(__name__)


class TilingService:
    """
    Owner of the per-monitor TilingManagers.

    Usage:
        service = TilingService(host, settings, state, timers)
        service.enable()
        service.move_window(window, Direction.LEFT)
        service.destroy()
    """

    def __init__(
        self,
        host: Host,
        settings: Settings,
        global_state: GlobalState,
        timers: Scheduler,
        enable_scaling: bool = False,
    ) -> None:
        self._host = host
        self._settings = settings
        self._state = global_state
        self._timers = timers
        self._enable_scaling = enable_scaling
        self._managers: dict[int, TilingManager] = {}
        self._signals = SignalGroup()

    @property
    def managers(self) -> list[TilingManager]:
        return [self._managers[i] for i in sorted(self._managers)]

    def get_manager(self, monitor_index: int) -> Optional[TilingManager]:
        return self._managers.get(monitor_index)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def enable(self) -> None:
        """Create and enable a manager for every monitor."""
        if self._managers:
            return

        for monitor in self._host.get_monitors():
            manager = TilingManager(
                monitor,
                self._host,
                self._settings,
                self._state,
                self._timers,
                enable_scaling=self._enable_scaling,
            )
            manager.enable()
            self._managers[monitor.index] = manager

        self._signals.connect(self._host, HostEvent.WORKAREAS_CHANGED, self._on_workareas_changed)
        log.info("Tiling enabled on %d monitor(s)", len(self._managers))

    def destroy(self) -> None:
        self._signals.disconnect()
        for manager in self._managers.values():
            manager.destroy()
        self._managers.clear()
        log.info("Tiling disabled")

    def _on_workareas_changed(self) -> None:
        for index, manager in self._managers.items():
            manager.workarea = self._host.get_workarea_for_monitor(index)

    # ------------------------------------------------------------------
    # Window commands
    # ------------------------------------------------------------------
    def _manager_of(self, window: WindowHandle) -> Optional[TilingManager]:
        manager = self._managers.get(window.get_monitor())
        if manager is None:
            log.debug("No tiling manager for monitor %d", window.get_monitor())
        return manager

    def move_window(
        self,
        window: WindowHandle,
        direction: Direction,
        force: bool = False,
        span: bool = False,
    ) -> bool:
        manager = self._manager_of(window)
        if manager is None:
            return False
        return manager.on_keyboard_move_window(window, direction, force, span)

    def focus_window(self, window: WindowHandle, direction: Direction) -> Optional[WindowHandle]:
        manager = self._manager_of(window)
        if manager is None:
            return None
        return manager.on_keyboard_focus_window(window, direction)

    def untile_window(self, window: WindowHandle, force: bool = False) -> None:
        manager = self._manager_of(window)
        if manager is not None:
            manager.on_untile_window(window, force)

    def span_all_tiles(self, window: WindowHandle) -> None:
        manager = self._manager_of(window)
        if manager is not None:
            manager.on_span_all_tiles(window)

    def tile_window(self, window: WindowHandle, tile: Tile) -> None:
        manager = self._manager_of(window)
        if manager is not None:
            manager.on_tile_from_window_menu(tile, window)
