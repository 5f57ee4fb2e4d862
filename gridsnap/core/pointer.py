"""
gridsnap.core.pointer - Pointer sampling during a grab.

    - ActivationKey / activation_key_status: map configured activation
      keys onto the host's modifier bitmask.
    - TouchPointer: when the user drags with a touch screen the host
      pointer does not follow the finger, so the pointer position is
      reconstructed from the last touch point and how far the window
      moved since.
"""

from __future__ import annotations

import enum
from typing import Optional

from gridsnap.core.host import Host, ModifierMask, PointerState, WindowHandle
from gridsnap.tiling.rect import Rect


class ActivationKey(enum.IntEnum):
    """Modifier keys that can activate a tiling feature while dragging."""
    NONE = -1
    CTRL = 0
    ALT = 1
    SUPER = 2


_ACTIVATION_KEY_MASKS: dict[ActivationKey, int] = {
    ActivationKey.CTRL: ModifierMask.CONTROL,
    ActivationKey.ALT: ModifierMask.MOD1,
    ActivationKey.SUPER: ModifierMask.SUPER,
}


def activation_key_status(modifiers: int, key: ActivationKey) -> bool:
    """
    True if *key* is held according to *modifiers*.

    ActivationKey.NONE means "no key required" and is always active.
    """
    if key == ActivationKey.NONE:
        return True
    return bool(modifiers & _ACTIVATION_KEY_MASKS[key])


class TouchPointer:
    """
    Pointer source for grabs, touch aware.

    The host pointer is used unless the host reports touch mode, in which
    case the last touch point is shifted by the window's displacement
    since it was recorded.
    """

    def __init__(self, host: Host) -> None:
        self._host = host
        self._x = 0
        self._y = 0
        self._window_pos: Optional[tuple[int, int]] = None

    def is_touch_device_active(self) -> bool:
        return self._host.is_touch_mode()

    def on_touch_event(self, x: int, y: int) -> None:
        self._x = int(x)
        self._y = int(y)

    def update_window_position(self, rect: Rect) -> None:
        self._window_pos = (rect.x, rect.y)

    def reset(self) -> None:
        self._x = 0
        self._y = 0
        self._window_pos = None

    def get_pointer(self, window: WindowHandle) -> PointerState:
        """Current pointer state, reconstructed from touch when needed."""
        host_pointer = self._host.get_pointer()
        if not self.is_touch_device_active() or self._window_pos is None:
            return host_pointer

        frame = window.get_frame_rect()
        x = self._x + frame.x - self._window_pos[0]
        y = self._y + frame.y - self._window_pos[1]
        return PointerState(x, y, host_pointer.modifiers)
