"""
gridsnap.host.win32 - Win32 host adapter.

Uses win32api/win32gui/win32con from pywin32 to expose monitors,
top-level windows and the pointer to the tiling engine. Windows has no
workspaces in the sense the engine uses, so a single workspace is
reported.

WinEvents from the message loop in gridsnap.host.eventloop reach
Win32Host.handle_win_event(), which turns caption drags, shown and
destroyed windows and leaving the maximized state into host events.
Opacity changes fade on the timer queue when one is given.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Optional

import win32api
import win32con
import win32gui

from gridsnap.core.host import (
    GrabOp,
    HostEvent,
    MaximizeFlags,
    ModifierMask,
    Monitor,
    PointerState,
    WindowType,
)
from gridsnap.core.signals import Connection, EventEmitter
from gridsnap.core.timers import CONTINUE, STOP, Scheduler
from gridsnap.tiling.rect import Rect

log = logging.getLogger(__name__)

# Class name of standard dialog boxes
DIALOG_CLASS = "#32770"

# WinEvent ids translated into host events
EVENT_SYSTEM_MOVESIZESTART = 0x000A
EVENT_SYSTEM_MOVESIZEEND = 0x000B
EVENT_OBJECT_DESTROY = 0x8001
EVENT_OBJECT_SHOW = 0x8002
EVENT_OBJECT_LOCATIONCHANGE = 0x800B

# Opacity fades step on this interval (ms)
FADE_STEP_MS = 15

# Hit-test query timeout (ms) for windows that stopped responding
HIT_TEST_TIMEOUT_MS = 50

_KEY_MODIFIERS: tuple[tuple[int, ModifierMask], ...] = (
    (win32con.VK_SHIFT, ModifierMask.SHIFT),
    (win32con.VK_CONTROL, ModifierMask.CONTROL),
    (win32con.VK_MENU, ModifierMask.MOD1),
    (win32con.VK_LWIN, ModifierMask.SUPER),
    (win32con.VK_RWIN, ModifierMask.SUPER),
)


# ============================================================================
# Monitors / pointer
# ============================================================================
def get_monitors() -> list[Monitor]:
    """
    Enumerate the connected monitors.

    Returns:
        Monitors with the primary first, then by device name; index is
        the position in that order.
    """
    found: list[tuple[bool, str, Rect, Rect]] = []

    for hmonitor, _hdc, _rect in win32api.EnumDisplayMonitors(None, None):
        try:
            info = win32api.GetMonitorInfo(hmonitor)
        except win32api.error:
            log.warning("Could not read info of monitor %s", hmonitor)
            continue

        # info["Monitor"] / info["Work"] are (left, top, right, bottom)
        is_primary = bool(info["Flags"] & win32con.MONITORINFOF_PRIMARY)
        found.append((
            is_primary,
            info["Device"],
            Rect.from_ltrb(*info["Monitor"]),
            Rect.from_ltrb(*info["Work"]),
        ))

    found.sort(key=lambda m: (not m[0], m[1]))
    monitors = [
        Monitor(index=i, rect=full, work_rect=work, name=device)
        for i, (_primary, device, full, work) in enumerate(found)
    ]
    for monitor in monitors:
        log.debug("Monitor %d %s: full=%s work=%s", monitor.index, monitor.name, monitor.rect, monitor.work_rect)
    log.info("Monitors detected: %d", len(monitors))
    return monitors


def get_modifiers() -> int:
    """Currently held modifier keys as a ModifierMask bitmask."""
    mask = 0
    for vk, flag in _KEY_MODIFIERS:
        # High bit set means the key is down
        if win32api.GetAsyncKeyState(vk) & 0x8000:
            mask |= flag
    return mask


def get_pointer() -> PointerState:
    x, y = win32api.GetCursorPos()
    return PointerState(x, y, get_modifiers())


# ============================================================================
# Workspace / Window
# ============================================================================
class Win32Workspace:
    """The single workspace of a Win32 desktop."""

    def index(self) -> int:
        return 0

    def __repr__(self) -> str:
        return "Win32Workspace(0)"


class Win32Window:
    """
    Live handle to a top-level window.

    Equality and hashing are based on the HWND, so handles built at
    different times for the same window address the same side-table entry.
    """

    def __init__(self, hwnd: int, host: Win32Host) -> None:
        self._hwnd = hwnd
        self._host = host

    @property
    def hwnd(self) -> int:
        return self._hwnd

    @property
    def style(self) -> int:
        return win32gui.GetWindowLong(self._hwnd, win32con.GWL_STYLE)

    @property
    def ex_style(self) -> int:
        return win32gui.GetWindowLong(self._hwnd, win32con.GWL_EXSTYLE)

    @property
    def window_type(self) -> WindowType:
        if win32gui.GetClassName(self._hwnd) == DIALOG_CLASS:
            return WindowType.DIALOG
        if self.ex_style & win32con.WS_EX_TOOLWINDOW:
            return WindowType.UTILITY
        if self.style & win32con.WS_POPUP and not self.style & win32con.WS_CAPTION:
            return WindowType.SPLASHSCREEN
        return WindowType.NORMAL

    @property
    def minimized(self) -> bool:
        return bool(win32gui.IsIconic(self._hwnd))

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    def get_frame_rect(self) -> Rect:
        return Rect.from_ltrb(*win32gui.GetWindowRect(self._hwnd))

    def move_frame(self, user_op: bool, x: int, y: int) -> None:
        win32gui.SetWindowPos(
            self._hwnd, 0, x, y, 0, 0,
            win32con.SWP_NOSIZE | win32con.SWP_NOZORDER | win32con.SWP_NOACTIVATE,
        )

    def move_resize_frame(self, user_op: bool, x: int, y: int, w: int, h: int) -> None:
        win32gui.MoveWindow(self._hwnd, x, y, w, h, True)

    def move_to_monitor(self, monitor_index: int) -> None:
        # Win32 places a window on a monitor by its position
        pass

    def get_monitor(self) -> int:
        return self._host.monitor_index_of(self.get_frame_rect())

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    def get_maximized(self) -> MaximizeFlags:
        return MaximizeFlags.BOTH if win32gui.IsZoomed(self._hwnd) else MaximizeFlags.NONE

    def maximize(self, flags: MaximizeFlags = MaximizeFlags.BOTH) -> None:
        win32gui.ShowWindow(self._hwnd, win32con.SW_MAXIMIZE)

    def unmaximize(self, flags: MaximizeFlags = MaximizeFlags.BOTH) -> None:
        win32gui.ShowWindow(self._hwnd, win32con.SW_RESTORE)

    def can_maximize(self) -> bool:
        return bool(self.style & win32con.WS_MAXIMIZEBOX)

    def allows_move(self) -> bool:
        return bool(self.style & win32con.WS_CAPTION)

    def allows_resize(self) -> bool:
        return bool(self.style & win32con.WS_THICKFRAME)

    def get_workspace(self) -> Win32Workspace:
        return self._host.workspace

    def get_transient_for(self) -> Optional[Win32Window]:
        owner = win32gui.GetWindow(self._hwnd, win32con.GW_OWNER)
        return Win32Window(owner, self._host) if owner else None

    def is_attached_dialog(self) -> bool:
        return self.window_type == WindowType.DIALOG and self.get_transient_for() is not None

    def set_opacity(self, value: int, duration_ms: int = 0) -> None:
        """
        Set the window alpha (0-255). With *duration_ms* the alpha is
        stepped there on the host's timers; without timers it jumps.
        """
        self._host.fade_opacity(self._hwnd, value, duration_ms)

    def connect_first_frame(self, callback: Callable[[], None]) -> Connection:
        return self._host.connect_first_frame(self._hwnd, callback)

    def focus(self) -> None:
        if self.minimized:
            win32gui.ShowWindow(self._hwnd, win32con.SW_RESTORE)
        win32gui.SetForegroundWindow(self._hwnd)

    # ------------------------------------------------------------------
    # Dunder methods
    # ------------------------------------------------------------------
    def __eq__(self, other: object) -> bool:
        if isinstance(other, Win32Window):
            return self._hwnd == other._hwnd
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._hwnd)

    def __repr__(self) -> str:
        return f"Win32Window(hwnd={self._hwnd:#010x})"


def _is_tileable(hwnd: int) -> bool:
    if not win32gui.IsWindowVisible(hwnd):
        return False
    style = win32gui.GetWindowLong(hwnd, win32con.GWL_STYLE)
    if style & win32con.WS_CHILD or not style & win32con.WS_CAPTION:
        return False
    return bool(win32gui.GetWindowText(hwnd))


def _is_caption_grab(hwnd: int) -> bool:
    """True when the pointer is on the title bar, i.e. the grab moves."""
    x, y = win32api.GetCursorPos()
    lparam = win32api.MAKELONG(x & 0xFFFF, y & 0xFFFF)
    try:
        _, hit = win32gui.SendMessageTimeout(
            hwnd, win32con.WM_NCHITTEST, 0, lparam,
            win32con.SMTO_ABORTIFHUNG, HIT_TEST_TIMEOUT_MS,
        )
    except win32gui.error:
        return False
    return hit == win32con.HTCAPTION


# ============================================================================
# Host
# ============================================================================
class Win32Host:
    """
    Host implementation backed by pywin32.

    Usage:
        host = Win32Host(timers)
        host.scan_windows()
        host.handle_win_event(event, hwnd)     # from a WinEvent hook
    """

    def __init__(self, timers: Scheduler | None = None) -> None:
        self._emitter = EventEmitter()
        self._workspace = Win32Workspace()
        self._monitors = get_monitors()
        self._timers = timers

        # Windows reported to the engine, and those of them maximized
        self._known: set[int] = set()
        self._maximized: set[int] = set()

        self._alpha: dict[int, int] = {}
        self._fades: dict[int, Any] = {}

    @property
    def workspace(self) -> Win32Workspace:
        return self._workspace

    def refresh_monitors(self) -> None:
        """Re-read the monitors and notify that workareas changed."""
        self._monitors = get_monitors()
        self.emit(HostEvent.WORKAREAS_CHANGED)

    def monitor_index_of(self, rect: Rect) -> int:
        """Index of the monitor containing the center of *rect* (0 if none)."""
        cx, cy = rect.center
        for monitor in self._monitors:
            if monitor.contains_point(cx, cy):
                return monitor.index
        return 0

    # ------------------------------------------------------------------
    # Host protocol
    # ------------------------------------------------------------------
    def get_pointer(self) -> PointerState:
        return get_pointer()

    def is_touch_mode(self) -> bool:
        return False

    def get_workspaces(self) -> list[Win32Workspace]:
        return [self._workspace]

    def get_active_workspace(self) -> Win32Workspace:
        return self._workspace

    def get_monitors(self) -> list[Monitor]:
        return list(self._monitors)

    def get_workarea_for_monitor(self, monitor_index: int) -> Rect:
        return self._monitors[monitor_index].work_rect

    def get_monitor_scaling_factor(self, monitor_index: int) -> float:
        return self._monitors[monitor_index].scaling_factor

    def get_windows(self) -> list[Win32Window]:
        hwnds: list[int] = []

        def collect(hwnd: int, _param: Any) -> bool:
            if _is_tileable(hwnd):
                hwnds.append(hwnd)
            return True

        win32gui.EnumWindows(collect, None)
        return [Win32Window(hwnd, self) for hwnd in hwnds]

    def window(self, hwnd: int) -> Win32Window:
        return Win32Window(hwnd, self)

    def foreground_window(self) -> Optional[Win32Window]:
        hwnd = win32gui.GetForegroundWindow()
        return Win32Window(hwnd, self) if hwnd else None

    # ------------------------------------------------------------------
    # Opacity
    # ------------------------------------------------------------------
    def _apply_alpha(self, hwnd: int, alpha: int) -> None:
        ex_style = win32gui.GetWindowLong(hwnd, win32con.GWL_EXSTYLE)
        if not ex_style & win32con.WS_EX_LAYERED:
            win32gui.SetWindowLong(hwnd, win32con.GWL_EXSTYLE, ex_style | win32con.WS_EX_LAYERED)
        win32gui.SetLayeredWindowAttributes(hwnd, 0, alpha, win32con.LWA_ALPHA)
        self._alpha[hwnd] = alpha

    def fade_opacity(self, hwnd: int, value: int, duration_ms: int = 0) -> None:
        """Move the alpha of *hwnd* to *value*, in FADE_STEP_MS steps."""
        value = max(0, min(255, value))
        if self._timers is not None:
            self._timers.source_remove(self._fades.pop(hwnd, None))

        start = self._alpha.get(hwnd, 255)
        if duration_ms <= 0 or self._timers is None or start == value:
            self._apply_alpha(hwnd, value)
            return

        steps = max(1, duration_ms // FADE_STEP_MS)
        step = 0

        def tick() -> bool:
            nonlocal step
            step += 1
            self._apply_alpha(hwnd, start + (value - start) * step // steps)
            if step < steps:
                return CONTINUE
            self._fades.pop(hwnd, None)
            return STOP

        self._fades[hwnd] = self._timers.timeout_add(FADE_STEP_MS, tick)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def connect(self, event: HostEvent, callback: Callable[..., Any]) -> Connection:
        return self._emitter.connect(event, callback)

    def emit(self, event: HostEvent, *args: Any) -> None:
        self._emitter.emit(event, *args)

    def connect_first_frame(self, hwnd: int, callback: Callable[[], None]) -> Connection:
        return self._emitter.connect(("first-frame", hwnd), callback)

    def notify_first_frame(self, hwnd: int) -> None:
        self._emitter.emit(("first-frame", hwnd))

    def scan_windows(self) -> int:
        """Record the windows already open so they are not reported as new."""
        for window in self.get_windows():
            self._known.add(window.hwnd)
            if win32gui.IsZoomed(window.hwnd):
                self._maximized.add(window.hwnd)
        log.info("Initial scan: %d windows", len(self._known))
        return len(self._known)

    def handle_win_event(self, event: int, hwnd: int) -> None:
        """Translate a WinEvent on a top-level window into host events."""
        if event == EVENT_SYSTEM_MOVESIZESTART:
            # Resizes also start a move-size loop; only caption drags move
            if _is_caption_grab(hwnd):
                self.emit(HostEvent.GRAB_OP_BEGIN, self.window(hwnd), GrabOp.MOVING)

        elif event == EVENT_SYSTEM_MOVESIZEEND:
            self.emit(HostEvent.GRAB_OP_END, self.window(hwnd))

        elif event == EVENT_OBJECT_SHOW:
            if hwnd in self._known or not _is_tileable(hwnd):
                return
            self._known.add(hwnd)
            log.debug("New window %#010x", hwnd)
            self.emit(HostEvent.WINDOW_CREATED, self.window(hwnd))
            self.notify_first_frame(hwnd)

        elif event == EVENT_OBJECT_DESTROY:
            if hwnd not in self._known:
                return
            self._known.discard(hwnd)
            self._maximized.discard(hwnd)
            self._alpha.pop(hwnd, None)
            if self._timers is not None:
                self._timers.source_remove(self._fades.pop(hwnd, None))
            log.debug("Window %#010x destroyed", hwnd)
            self.emit(HostEvent.WINDOW_UNMANAGED, self.window(hwnd))

        elif event == EVENT_OBJECT_LOCATIONCHANGE:
            if hwnd not in self._known:
                return
            if win32gui.IsZoomed(hwnd):
                self._maximized.add(hwnd)
            elif hwnd in self._maximized:
                self._maximized.discard(hwnd)
                self.emit(HostEvent.WINDOW_UNMAXIMIZED, self.window(hwnd))
