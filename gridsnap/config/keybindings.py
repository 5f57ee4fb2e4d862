"""
gridsnap.config.keybindings - Keyboard tiling actions.

Maps action names (the setting keys a shell uses to store accelerators,
e.g. "move-window-right") to TilingService commands, and accelerator
strings such as "super+ctrl+left" to actions.

    dispatcher = KeyBindingDispatcher(service, settings)
    dispatcher.dispatch(KeyBindingAction.MOVE_WINDOW_LEFT, window)
    dispatcher.dispatch_combo(ModifierMask.SUPER, "left", window)

dispatch() returns True when the key press should be consumed.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Mapping
from typing import NamedTuple, Optional

from gridsnap.config.settings import Settings
from gridsnap.core.host import ModifierMask, WindowHandle
from gridsnap.tiling.directional import Direction
from gridsnap.tiling.service import TilingService

log = logging.getLogger(__name__)


class KeyBindingAction(enum.Enum):
    MOVE_WINDOW_RIGHT = "move-window-right"
    MOVE_WINDOW_LEFT = "move-window-left"
    MOVE_WINDOW_UP = "move-window-up"
    MOVE_WINDOW_DOWN = "move-window-down"
    MOVE_WINDOW_CENTER = "move-window-center"
    SPAN_WINDOW_RIGHT = "span-window-right"
    SPAN_WINDOW_LEFT = "span-window-left"
    SPAN_WINDOW_UP = "span-window-up"
    SPAN_WINDOW_DOWN = "span-window-down"
    SPAN_WINDOW_ALL_TILES = "span-window-all-tiles"
    UNTILE_WINDOW = "untile-window"
    FOCUS_WINDOW_RIGHT = "focus-window-right"
    FOCUS_WINDOW_LEFT = "focus-window-left"
    FOCUS_WINDOW_UP = "focus-window-up"
    FOCUS_WINDOW_DOWN = "focus-window-down"


DEFAULT_ACCELERATORS: dict[KeyBindingAction, str] = {
    KeyBindingAction.MOVE_WINDOW_RIGHT: "super+right",
    KeyBindingAction.MOVE_WINDOW_LEFT: "super+left",
    KeyBindingAction.MOVE_WINDOW_UP: "super+up",
    KeyBindingAction.MOVE_WINDOW_DOWN: "super+down",
    KeyBindingAction.MOVE_WINDOW_CENTER: "super+alt+c",
    KeyBindingAction.SPAN_WINDOW_RIGHT: "super+ctrl+right",
    KeyBindingAction.SPAN_WINDOW_LEFT: "super+ctrl+left",
    KeyBindingAction.SPAN_WINDOW_UP: "super+ctrl+up",
    KeyBindingAction.SPAN_WINDOW_DOWN: "super+ctrl+down",
    KeyBindingAction.SPAN_WINDOW_ALL_TILES: "super+ctrl+a",
    KeyBindingAction.UNTILE_WINDOW: "super+u",
    KeyBindingAction.FOCUS_WINDOW_RIGHT: "super+alt+right",
    KeyBindingAction.FOCUS_WINDOW_LEFT: "super+alt+left",
    KeyBindingAction.FOCUS_WINDOW_UP: "super+alt+up",
    KeyBindingAction.FOCUS_WINDOW_DOWN: "super+alt+down",
}


# ============================================================================
# Accelerator parsing
# ============================================================================
_MODIFIER_MAP: dict[str, ModifierMask] = {
    "shift": ModifierMask.SHIFT,
    "ctrl": ModifierMask.CONTROL,
    "control": ModifierMask.CONTROL,
    "alt": ModifierMask.MOD1,
    "super": ModifierMask.SUPER,
    "win": ModifierMask.SUPER,
}


class AcceleratorParseError(ValueError):
    """Raised when an accelerator string cannot be parsed."""


class KeyCombo(NamedTuple):
    modifiers: int
    key: str


def parse_accelerator(accelerator: str) -> KeyCombo:
    """
    Parse "super+ctrl+left" into a KeyCombo.

    Case-insensitive; exactly one non-modifier key is required.

    Raises:
        AcceleratorParseError: On empty input, duplicate modifiers or
                               a missing or repeated key part.
    """
    parts = [p.strip().lower() for p in accelerator.split("+") if p.strip()]
    if not parts:
        raise AcceleratorParseError(f"Empty accelerator: {accelerator!r}")

    modifiers = 0
    key: Optional[str] = None
    for part in parts:
        flag = _MODIFIER_MAP.get(part)
        if flag is not None:
            if modifiers & flag:
                raise AcceleratorParseError(f"Duplicate modifier {part!r} in {accelerator!r}")
            modifiers |= flag
        elif key is None:
            key = part
        else:
            raise AcceleratorParseError(f"Multiple keys in {accelerator!r}")

    if key is None:
        raise AcceleratorParseError(f"No key in {accelerator!r}")
    return KeyCombo(modifiers, key)


# ============================================================================
# Dispatcher
# ============================================================================
_MOVE_DIRECTIONS: dict[KeyBindingAction, Direction] = {
    KeyBindingAction.MOVE_WINDOW_RIGHT: Direction.RIGHT,
    KeyBindingAction.MOVE_WINDOW_LEFT: Direction.LEFT,
    KeyBindingAction.MOVE_WINDOW_UP: Direction.UP,
    KeyBindingAction.MOVE_WINDOW_DOWN: Direction.DOWN,
    KeyBindingAction.MOVE_WINDOW_CENTER: Direction.CENTER,
}

_SPAN_DIRECTIONS: dict[KeyBindingAction, Direction] = {
    KeyBindingAction.SPAN_WINDOW_RIGHT: Direction.RIGHT,
    KeyBindingAction.SPAN_WINDOW_LEFT: Direction.LEFT,
    KeyBindingAction.SPAN_WINDOW_UP: Direction.UP,
    KeyBindingAction.SPAN_WINDOW_DOWN: Direction.DOWN,
}

_FOCUS_DIRECTIONS: dict[KeyBindingAction, Direction] = {
    KeyBindingAction.FOCUS_WINDOW_RIGHT: Direction.RIGHT,
    KeyBindingAction.FOCUS_WINDOW_LEFT: Direction.LEFT,
    KeyBindingAction.FOCUS_WINDOW_UP: Direction.UP,
    KeyBindingAction.FOCUS_WINDOW_DOWN: Direction.DOWN,
}

ActionFn = Callable[[WindowHandle], bool]


class KeyBindingDispatcher:
    """
    Routes keyboard actions to the TilingService.

    Every action except focus is ignored while "enable-move-keybindings"
    is off.
    """

    def __init__(
        self,
        service: TilingService,
        settings: Settings,
        accelerators: Mapping[KeyBindingAction, str] | None = None,
    ) -> None:
        self._service = service
        self._settings = settings
        self._actions: dict[KeyBindingAction, ActionFn] = {}
        self._combos: dict[KeyCombo, KeyBindingAction] = {}

        for action, direction in _MOVE_DIRECTIONS.items():
            self._actions[action] = self._mover(direction, span=False)
        for action, direction in _SPAN_DIRECTIONS.items():
            self._actions[action] = self._mover(direction, span=True)
        for action, direction in _FOCUS_DIRECTIONS.items():
            self._actions[action] = self._focuser(direction)
        self._actions[KeyBindingAction.SPAN_WINDOW_ALL_TILES] = self._span_all
        self._actions[KeyBindingAction.UNTILE_WINDOW] = self._untile

        for action, accelerator in (accelerators or DEFAULT_ACCELERATORS).items():
            self.bind(accelerator, action)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def _mover(self, direction: Direction, span: bool) -> ActionFn:
        def move(window: WindowHandle) -> bool:
            return self._service.move_window(window, direction, span=span)
        return move

    def _focuser(self, direction: Direction) -> ActionFn:
        def focus(window: WindowHandle) -> bool:
            return self._service.focus_window(window, direction) is not None
        return focus

    def _span_all(self, window: WindowHandle) -> bool:
        self._service.span_all_tiles(window)
        return True

    def _untile(self, window: WindowHandle) -> bool:
        self._service.untile_window(window)
        return True

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------
    def bind(self, accelerator: str, action: KeyBindingAction) -> KeyCombo:
        """
        Bind *accelerator* to *action*, replacing any previous binding
        of the same combo.

        Raises:
            AcceleratorParseError: If the accelerator is invalid.
        """
        combo = parse_accelerator(accelerator)
        previous = self._combos.get(combo)
        if previous is not None and previous != action:
            log.info("Accelerator %s rebound: %s -> %s", accelerator, previous.value, action.value)
        self._combos[combo] = action
        return combo

    def bindings(self) -> dict[KeyCombo, KeyBindingAction]:
        return dict(self._combos)

    def action_for(self, modifiers: int, key: str) -> Optional[KeyBindingAction]:
        return self._combos.get(KeyCombo(modifiers, key.lower()))

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def dispatch(self, action: KeyBindingAction, window: Optional[WindowHandle]) -> bool:
        """
        Run *action* on *window*.

        Returns:
            True if the caller should consume the key press.
        """
        if window is None:
            return False
        if action not in _FOCUS_DIRECTIONS and not self._settings.get(
            Settings.ENABLE_MOVE_KEYBINDINGS
        ):
            return False

        log.debug("Dispatching %s", action.value)
        try:
            return self._actions[action](window)
        except Exception:
            log.exception("Error running keybinding %s", action.value)
            return False

    def dispatch_combo(self, modifiers: int, key: str, window: Optional[WindowHandle]) -> bool:
        action = self.action_for(modifiers, key)
        if action is None:
            return False
        return self.dispatch(action, window)
