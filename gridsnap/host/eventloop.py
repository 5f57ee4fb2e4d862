"""
gridsnap.host.eventloop - Win32 message loop driving a Win32Host.

Installs a WinEvent hook whose events are handed to
Win32Host.handle_win_event(), registers a global hotkey for every
keyboard binding and pumps the thread's message queue. Between messages
the loop wakes up every tick to run the due timers.

pywin32 has no wrapper for SetWinEventHook, so the hook and the loop
go through ctypes.
"""

from __future__ import annotations

import ctypes
import ctypes.wintypes
import logging
import signal
import time
from typing import Optional

import win32con

from gridsnap.config.keybindings import KeyBindingDispatcher, KeyCombo
from gridsnap.core.host import ModifierMask
from gridsnap.core.timers import TimerQueue
from gridsnap.host.win32 import (
    EVENT_OBJECT_LOCATIONCHANGE,
    EVENT_SYSTEM_MOVESIZESTART,
    Win32Host,
)

log = logging.getLogger(__name__)

user32 = ctypes.windll.user32
kernel32 = ctypes.windll.kernel32

# ============================================================================
# Constants
# ============================================================================
WINEVENT_OUTOFCONTEXT = 0x0000
WINEVENT_SKIPOWNPROCESS = 0x0002

OBJID_WINDOW = 0
CHILDID_SELF = 0

WM_QUIT = 0x0012
WM_HOTKEY = 0x0312
PM_REMOVE = 0x0001
QS_ALLINPUT = 0x04FF

MOD_ALT = 0x0001
MOD_CONTROL = 0x0002
MOD_SHIFT = 0x0004
MOD_WIN = 0x0008
MOD_NOREPEAT = 0x4000

# Longest wait (ms) between two timer runs
TICK_MS = 15

# WinEventProc: void callback(HWINEVENTHOOK, DWORD, HWND, LONG, LONG, DWORD, DWORD)
WinEventProc = ctypes.WINFUNCTYPE(
    None,
    ctypes.wintypes.HANDLE,
    ctypes.wintypes.DWORD,
    ctypes.wintypes.HWND,
    ctypes.c_long,
    ctypes.c_long,
    ctypes.wintypes.DWORD,
    ctypes.wintypes.DWORD,
)

_MODIFIER_FLAGS: tuple[tuple[ModifierMask, int], ...] = (
    (ModifierMask.SHIFT, MOD_SHIFT),
    (ModifierMask.CONTROL, MOD_CONTROL),
    (ModifierMask.MOD1, MOD_ALT),
    (ModifierMask.SUPER, MOD_WIN),
)

_NAMED_KEYS: dict[str, int] = {
    "left": win32con.VK_LEFT,
    "right": win32con.VK_RIGHT,
    "up": win32con.VK_UP,
    "down": win32con.VK_DOWN,
    "space": win32con.VK_SPACE,
    "return": win32con.VK_RETURN,
    "enter": win32con.VK_RETURN,
    "tab": win32con.VK_TAB,
}


# ============================================================================
# Hotkey translation
# ============================================================================
def hotkey_modifiers(modifiers: int) -> int:
    """ModifierMask bits to RegisterHotKey MOD_* flags."""
    flags = 0
    for mask, flag in _MODIFIER_FLAGS:
        if modifiers & mask:
            flags |= flag
    return flags


def virtual_key(key: str) -> Optional[int]:
    """
    Virtual-key code for an accelerator key name, or None when the key
    has no mapping. Letters and digits map to their ASCII codes,
    "f1".."f24" to the function keys.
    """
    key = key.lower()
    if key in _NAMED_KEYS:
        return _NAMED_KEYS[key]
    if len(key) == 1 and key.isalnum():
        return ord(key.upper())
    if key[:1] == "f" and key[1:].isdigit() and 1 <= int(key[1:]) <= 24:
        return win32con.VK_F1 + int(key[1:]) - 1
    return None


# ============================================================================
# Event loop
# ============================================================================
class Win32EventLoop:
    """
    Message loop of the gridsnap process.

    Usage:
        loop = Win32EventLoop(host, timers, dispatcher)
        loop.run()          # blocks until stop() or Ctrl+C
    """

    def __init__(
        self,
        host: Win32Host,
        timers: TimerQueue,
        dispatcher: KeyBindingDispatcher,
    ) -> None:
        self._host = host
        self._timers = timers
        self._dispatcher = dispatcher

        self._hook_handle: int = 0
        self._hook_proc: Optional[WinEventProc] = None  # type: ignore[valid-type]
        self._hotkeys: dict[int, KeyCombo] = {}
        self._running = False
        self._thread_id = 0

    @property
    def hotkeys(self) -> dict[int, KeyCombo]:
        return dict(self._hotkeys)

    # ------------------------------------------------------------------
    # WinEvent hook
    # ------------------------------------------------------------------
    def _on_win_event(
        self,
        hook: int,
        event: int,
        hwnd: int,
        id_object: int,
        id_child: int,
        event_thread: int,
        event_time: int,
    ) -> None:
        # Top-level windows only
        if id_object != OBJID_WINDOW or id_child != CHILDID_SELF or not hwnd:
            return
        try:
            self._host.handle_win_event(event, hwnd)
        except Exception:
            log.exception("Error handling WinEvent %#06x for hwnd %#010x", event, hwnd)

    def _install_hook(self) -> None:
        self._hook_proc = WinEventProc(self._on_win_event)
        self._hook_handle = user32.SetWinEventHook(
            EVENT_SYSTEM_MOVESIZESTART,
            EVENT_OBJECT_LOCATIONCHANGE,
            0,
            self._hook_proc,
            0,
            0,
            WINEVENT_OUTOFCONTEXT | WINEVENT_SKIPOWNPROCESS,
        )
        if not self._hook_handle:
            self._hook_proc = None
            raise RuntimeError("SetWinEventHook failed")
        log.info("WinEvent hook installed (handle=%#x)", self._hook_handle)

    # ------------------------------------------------------------------
    # Hotkeys
    # ------------------------------------------------------------------
    def _register_hotkeys(self) -> None:
        next_id = 1
        for combo, action in self._dispatcher.bindings().items():
            vk = virtual_key(combo.key)
            if vk is None:
                log.warning("No virtual key for %r, %s not registered", combo.key, action.value)
                continue
            modifiers = hotkey_modifiers(combo.modifiers) | MOD_NOREPEAT
            if not user32.RegisterHotKey(None, next_id, modifiers, vk):
                log.warning(
                    "RegisterHotKey failed for %s (%s+%s), already taken?",
                    action.value, ModifierMask(combo.modifiers), combo.key,
                )
                continue
            self._hotkeys[next_id] = combo
            next_id += 1
        log.info("Registered %d hotkeys", len(self._hotkeys))

    def _unregister_hotkeys(self) -> None:
        for hotkey_id in self._hotkeys:
            user32.UnregisterHotKey(None, hotkey_id)
        self._hotkeys.clear()

    def _on_hotkey(self, hotkey_id: int) -> None:
        combo = self._hotkeys.get(hotkey_id)
        if combo is None:
            return
        self._dispatcher.dispatch_combo(combo.modifiers, combo.key, self._host.foreground_window())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def run(self) -> None:
        """
        Install the hook and hotkeys, then pump messages until stop()
        is called or a SIGINT/SIGTERM is received.

        Raises:
            RuntimeError: If the WinEvent hook cannot be installed.
        """
        self._install_hook()
        self._register_hotkeys()

        def _signal_handler(sig: int, frame: object) -> None:
            log.info("Signal %d received, stopping...", sig)
            self.stop()

        signal.signal(signal.SIGINT, _signal_handler)
        signal.signal(signal.SIGTERM, _signal_handler)

        self._running = True
        self._thread_id = kernel32.GetCurrentThreadId()
        start = time.monotonic()
        msg = ctypes.wintypes.MSG()
        log.info("Entering message loop")

        try:
            while self._running:
                while user32.PeekMessageW(ctypes.byref(msg), 0, 0, 0, PM_REMOVE):
                    if msg.message == WM_QUIT:
                        self._running = False
                        break
                    if msg.message == WM_HOTKEY:
                        self._on_hotkey(msg.wParam)
                        continue
                    user32.TranslateMessage(ctypes.byref(msg))
                    user32.DispatchMessageW(ctypes.byref(msg))

                if not self._running:
                    break
                self._timers.run_due(int((time.monotonic() - start) * 1000))
                user32.MsgWaitForMultipleObjects(0, None, False, TICK_MS, QS_ALLINPUT)
        finally:
            self._cleanup()
        log.info("Message loop stopped")

    def stop(self) -> None:
        """Request the loop to stop. Safe to call from a callback."""
        self._running = False
        if self._thread_id:
            user32.PostThreadMessageW(self._thread_id, WM_QUIT, 0, 0)

    def _cleanup(self) -> None:
        self._unregister_hotkeys()
        if self._hook_handle:
            user32.UnhookWinEvent(self._hook_handle)
            self._hook_handle = 0
            log.info("WinEvent hook removed")
        self._hook_proc = None
        self._thread_id = 0
