"""
Shared fakes and fixtures for the gridsnap tests.

FakeHost/FakeWindow/FakeWorkspace implement the host protocols in memory
so the tiling engine can be driven deterministically.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import pytest

from gridsnap.config.global_state import GlobalState
from gridsnap.config.settings import Settings, dump_layouts_json
from gridsnap.core.host import (
    MaximizeFlags,
    Monitor,
    PointerState,
    WindowType,
)
from gridsnap.core.signals import Connection, EventEmitter
from gridsnap.core.timers import TimerQueue
from gridsnap.tiling.layout import Layout
from gridsnap.tiling.rect import Rect
from gridsnap.tiling.tile import Tile
from gridsnap.tiling.tiling_manager import TilingManager

WORKAREA = Rect(0, 0, 1000, 800)


@dataclass(eq=False)
class FakeWorkspace:
    number: int = 0

    def index(self) -> int:
        return self.number


@dataclass(eq=False)
class FakeWindow:
    rect: Rect
    workspace: Optional[FakeWorkspace] = None
    monitor: int = 0
    window_type: WindowType = WindowType.NORMAL
    minimized: bool = False
    maximized: MaximizeFlags = MaximizeFlags.NONE
    transient_for: Optional["FakeWindow"] = None
    attached_dialog: bool = False
    maximizable: bool = True
    movable: bool = True
    resizable: bool = True
    opacity: list[tuple[int, int]] = field(default_factory=list)
    focused: bool = False
    moves: list[Rect] = field(default_factory=list)
    _first_frame: EventEmitter = field(default_factory=EventEmitter)

    def get_frame_rect(self) -> Rect:
        return self.rect

    def move_frame(self, user_op: bool, x: int, y: int) -> None:
        self.rect = Rect(x, y, self.rect.w, self.rect.h)

    def move_resize_frame(self, user_op: bool, x: int, y: int, w: int, h: int) -> None:
        self.rect = Rect(x, y, w, h)
        self.moves.append(self.rect)

    def get_maximized(self) -> MaximizeFlags:
        return self.maximized

    def maximize(self, flags: MaximizeFlags = MaximizeFlags.BOTH) -> None:
        self.maximized = MaximizeFlags.BOTH

    def unmaximize(self, flags: MaximizeFlags = MaximizeFlags.BOTH) -> None:
        self.maximized = MaximizeFlags.NONE

    def can_maximize(self) -> bool:
        return self.maximizable

    def allows_move(self) -> bool:
        return self.movable

    def allows_resize(self) -> bool:
        return self.resizable

    def move_to_monitor(self, monitor_index: int) -> None:
        self.monitor = monitor_index

    def get_monitor(self) -> int:
        return self.monitor

    def get_workspace(self) -> Optional[FakeWorkspace]:
        return self.workspace

    def get_transient_for(self) -> Optional["FakeWindow"]:
        return self.transient_for

    def is_attached_dialog(self) -> bool:
        return self.attached_dialog

    def set_opacity(self, value: int, duration_ms: int = 0) -> None:
        self.opacity.append((value, duration_ms))

    def connect_first_frame(self, callback) -> Connection:
        return self._first_frame.connect("first-frame", callback)

    def fire_first_frame(self) -> None:
        self._first_frame.emit("first-frame")

    def first_frame_subscribers(self) -> int:
        return self._first_frame.subscriber_count("first-frame")

    def focus(self) -> None:
        self.focused = True


class FakeHost:
    """In-memory host: monitors, workspaces, windows, pointer and events."""

    def __init__(self, monitors: list[Monitor] | None = None, workspaces: int = 1) -> None:
        self.monitors = monitors or [Monitor(0, WORKAREA, WORKAREA)]
        self.workspaces = [FakeWorkspace(i) for i in range(workspaces)]
        self.active_workspace: Optional[FakeWorkspace] = self.workspaces[0]
        self.windows: list[FakeWindow] = []
        self.pointer = PointerState(0, 0, 0)
        self.touch_mode = False
        self._emitter = EventEmitter()

    # Host protocol
    def get_pointer(self) -> PointerState:
        return self.pointer

    def is_touch_mode(self) -> bool:
        return self.touch_mode

    def get_workspaces(self) -> list[FakeWorkspace]:
        return list(self.workspaces)

    def get_active_workspace(self) -> Optional[FakeWorkspace]:
        return self.active_workspace

    def get_workarea_for_monitor(self, monitor_index: int) -> Rect:
        return self.monitors[monitor_index].work_rect

    def get_monitor_scaling_factor(self, monitor_index: int) -> float:
        return self.monitors[monitor_index].scaling_factor

    def get_monitors(self) -> list[Monitor]:
        return list(self.monitors)

    def get_windows(self) -> list[FakeWindow]:
        return list(self.windows)

    def connect(self, event, callback) -> Connection:
        return self._emitter.connect(event, callback)

    # Test helpers
    def emit(self, event, *args: Any) -> None:
        self._emitter.emit(event, *args)

    def subscriber_count(self, event) -> int:
        return self._emitter.subscriber_count(event)

    def set_pointer(self, x: int, y: int, modifiers: int = 0) -> None:
        self.pointer = PointerState(x, y, modifiers)

    def add_workspace(self) -> FakeWorkspace:
        ws = FakeWorkspace(len(self.workspaces))
        self.workspaces.append(ws)
        return ws

    def add_window(self, rect: Rect, **kwargs: Any) -> FakeWindow:
        kwargs.setdefault("workspace", self.workspaces[0])
        window = FakeWindow(rect, **kwargs)
        self.windows.append(window)
        return window


# ============================================================================
# Fixtures
# ============================================================================
@pytest.fixture
def two_column() -> Layout:
    return Layout.create("two-column", [
        Tile.build(0, 0, 0.5, 1, (1,)),
        Tile.build(0.5, 0, 0.5, 1, (1,)),
    ])


@pytest.fixture
def settings(two_column: Layout) -> Settings:
    return Settings({Settings.LAYOUTS_JSON: dump_layouts_json([two_column])})


@pytest.fixture
def global_state(settings: Settings):
    state = GlobalState(settings)
    yield state
    state.destroy()


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def timers() -> TimerQueue:
    return TimerQueue()


@pytest.fixture
def manager(host: FakeHost, settings: Settings, global_state: GlobalState, timers: TimerQueue):
    tm = TilingManager(host.monitors[0], host, settings, global_state, timers)
    tm.enable()
    yield tm
    tm.destroy()


@pytest.fixture
def dual_host() -> FakeHost:
    """Two side-by-side monitors; the second has a 40px panel at the bottom."""
    return FakeHost([
        Monitor(0, WORKAREA, WORKAREA),
        Monitor(1, Rect(1000, 0, 1000, 800), Rect(1000, 0, 1000, 760)),
    ])
