"""
gridsnap.core.host - Contracts of the host desktop environment.

The tiling engine never talks to a compositor directly. Everything it
needs from the outside world (windows, pointer, workspaces, monitors,
drawing) goes through the protocols below, so any backend (a Win32
adapter, a test fake, a compositor plugin) can drive it.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, NamedTuple, Optional, Protocol

from gridsnap.core.signals import Connection
from gridsnap.tiling.rect import Rect


# ============================================================================
# Enums
# ============================================================================
class MaximizeFlags(enum.IntFlag):
    """Maximized state of a window."""
    NONE = 0
    HORIZONTAL = 1
    VERTICAL = 2
    BOTH = 3


class WindowType(enum.Enum):
    """Kind of top-level window. Only NORMAL windows are auto-tiled."""
    NORMAL = "normal"
    DIALOG = "dialog"
    MODAL_DIALOG = "modal_dialog"
    UTILITY = "utility"
    SPLASHSCREEN = "splashscreen"
    OTHER = "other"


class GrabOp(enum.IntFlag):
    """Grab operation bits reported on grab begin."""
    NONE = 0
    MOVING = 1
    KEYBOARD = 256
    UNCONSTRAINED = 1024

    @staticmethod
    def is_moving(op: int) -> bool:
        """True for pointer move grabs, constrained or not (not resizes)."""
        return (op & ~GrabOp.UNCONSTRAINED) == GrabOp.MOVING


class ModifierMask(enum.IntFlag):
    """Active-modifier bitmask reported with the pointer position."""
    NONE = 0
    SHIFT = 1 << 0
    LOCK = 1 << 1
    CONTROL = 1 << 2
    MOD1 = 1 << 3       # Alt
    SUPER = 1 << 6


class HostEvent(enum.Enum):
    """Events the host emits to the tiling engine."""

    # A window grab started: callback(window, grab_op)
    GRAB_OP_BEGIN = "grab_op_begin"

    # A window grab ended: callback(window)
    GRAB_OP_END = "grab_op_end"

    # A new window was created: callback(window)
    WINDOW_CREATED = "window_created"

    # A window left the maximized state: callback(window)
    WINDOW_UNMAXIMIZED = "window_unmaximized"

    # A window was closed and is no longer managed: callback(window)
    WINDOW_UNMANAGED = "window_unmanaged"

    # The active workspace changed: callback()
    ACTIVE_WORKSPACE_CHANGED = "active_workspace_changed"

    # A workspace was removed: callback()
    WORKSPACE_REMOVED = "workspace_removed"

    # Monitor workareas changed (panels, docks, resolution): callback()
    WORKAREAS_CHANGED = "workareas_changed"

    # Touch input on the stage: callback(x, y)
    TOUCH_EVENT = "touch_event"


# ============================================================================
# Value types
# ============================================================================
class PointerState(NamedTuple):
    """Pointer position plus the modifier bitmask at sampling time."""
    x: int
    y: int
    modifiers: int = 0


@dataclass(frozen=True, slots=True)
class Monitor:
    """
    A physical monitor.

    Attributes:
        index:          Monitor index as the host reports it.
        rect:           Full monitor area.
        work_rect:      Workarea (excludes panels, docks, taskbar).
        scaling_factor: Logical-to-physical pixel factor.
        name:           Device name, for logs.
    """

    index: int
    rect: Rect
    work_rect: Rect
    scaling_factor: float = 1.0
    name: str = ""

    def contains_point(self, x: float, y: float) -> bool:
        return self.rect.contains_point(x, y)


# ============================================================================
# Protocols
# ============================================================================
class Workspace(Protocol):
    def index(self) -> int: ...


class WindowHandle(Protocol):
    """A host window. Must be hashable (used as a side-table key)."""

    window_type: WindowType
    minimized: bool

    def get_frame_rect(self) -> Rect: ...

    def move_frame(self, user_op: bool, x: int, y: int) -> None: ...

    def move_resize_frame(self, user_op: bool, x: int, y: int, w: int, h: int) -> None: ...

    def get_maximized(self) -> MaximizeFlags: ...

    def maximize(self, flags: MaximizeFlags = MaximizeFlags.BOTH) -> None: ...

    def unmaximize(self, flags: MaximizeFlags = MaximizeFlags.BOTH) -> None: ...

    def can_maximize(self) -> bool: ...

    def allows_move(self) -> bool: ...

    def allows_resize(self) -> bool: ...

    def move_to_monitor(self, monitor_index: int) -> None: ...

    def get_monitor(self) -> int: ...

    def get_workspace(self) -> Optional[Workspace]: ...

    def get_transient_for(self) -> Optional["WindowHandle"]: ...

    def is_attached_dialog(self) -> bool: ...

    def set_opacity(self, value: int, duration_ms: int = 0) -> None: ...

    def connect_first_frame(self, callback: Callable[[], None]) -> Connection: ...

    def focus(self) -> None: ...


class LayoutRenderer(Protocol):
    """Draws the tiles of a TilingLayout while it is shown."""

    def show(self, rects: Sequence[Rect], above: WindowHandle) -> None: ...

    def hover(self, rects: Sequence[Rect]) -> None: ...

    def hide(self) -> None: ...


class PreviewRenderer(Protocol):
    """Draws the selection preview rectangle."""

    def show(self, rect: Rect, inner_rect: Rect, above: Optional[WindowHandle], animate: bool) -> None: ...

    def hide(self, animate: bool) -> None: ...


class SnapAssistRenderer(Protocol):
    """Draws the snap assistant strip."""

    def show(self, rect: Rect, enlarged: bool, hovered: Optional[Rect]) -> None: ...

    def hide(self) -> None: ...


class Host(Protocol):
    """Pointer, display and workspace queries plus event subscription."""

    def get_pointer(self) -> PointerState: ...

    def is_touch_mode(self) -> bool: ...

    def get_workspaces(self) -> Sequence[Workspace]: ...

    def get_active_workspace(self) -> Optional[Workspace]: ...

    def get_workarea_for_monitor(self, monitor_index: int) -> Rect: ...

    def get_monitor_scaling_factor(self, monitor_index: int) -> float: ...

    def get_monitors(self) -> Sequence[Monitor]: ...

    def get_windows(self) -> Sequence[WindowHandle]: ...

    def connect(self, event: HostEvent, callback: Callable[..., Any]) -> Connection: ...


def is_maximized(window: WindowHandle) -> bool:
    return window.get_maximized() != MaximizeFlags.NONE
