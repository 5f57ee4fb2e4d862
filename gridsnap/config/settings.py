"""
gridsnap.config.settings - Typed settings store with change notification.

Settings is an explicitly constructed object shared by reference with
every component that reads configuration. Values are validated by a
pydantic model; keys keep their hyphenated names (e.g. "inner-gaps").

Observers subscribe per key:
    settings = Settings({"inner-gaps": 4})
    conn = settings.connect(Settings.INNER_GAPS, on_gaps_changed)
    settings.set(Settings.INNER_GAPS, 8)     # -> on_gaps_changed(8)
    conn.disconnect()

The layouts list is stored as a JSON document under "layouts-json".
An unreadable or empty document falls back to the built-in layouts.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    model_validator,
)

from gridsnap.core.pointer import ActivationKey
from gridsnap.core.signals import Callback, Connection, EventEmitter
from gridsnap.tiling.layout import InvalidLayoutError, Layout
from gridsnap.tiling.rect import Margins
from gridsnap.tiling.tile import EPSILON, InvalidTileError, Tile

log = logging.getLogger(__name__)


# ============================================================================
# Layout JSON schema
# ============================================================================
class TileModel(BaseModel):
    """One tile as stored in the layouts JSON."""

    x: float = Field(..., ge=0, le=1)
    y: float = Field(..., ge=0, le=1)
    width: float = Field(..., gt=0, le=1)
    height: float = Field(..., gt=0, le=1)
    groups: list[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_inside_unit_square(self) -> TileModel:
        if self.x + self.width > 1 + EPSILON or self.y + self.height > 1 + EPSILON:
            raise ValueError("tile exceeds the unit square")
        return self

    def to_tile(self) -> Tile:
        return Tile.build(self.x, self.y, self.width, self.height, self.groups)


class LayoutModel(BaseModel):
    """One layout as stored in the layouts JSON."""

    id: str = Field(..., min_length=1)
    name: str = ""
    tiles: list[TileModel] = Field(default_factory=list)

    def to_layout(self) -> Layout:
        return Layout(self.id, self.name or self.id, tuple(t.to_tile() for t in self.tiles))


_LAYOUTS_ADAPTER = TypeAdapter(list[LayoutModel])


def dump_layouts_json(layouts: Sequence[Layout]) -> str:
    models = [LayoutModel.model_validate(layout.to_dict()) for layout in layouts]
    return _LAYOUTS_ADAPTER.dump_json(models).decode()


def default_layouts() -> list[Layout]:
    """Built-in layouts used when the stored ones are missing or invalid."""
    return [
        Layout.create("Layout 1", [
            Tile.build(0, 0, 0.22, 0.5, (1, 2)),        # top-left
            Tile.build(0, 0.5, 0.22, 0.5, (1, 2)),      # bottom-left
            Tile.build(0.22, 0, 0.56, 1, (2, 3)),       # center
            Tile.build(0.78, 0, 0.22, 0.5, (3, 4)),     # top-right
            Tile.build(0.78, 0.5, 0.22, 0.5, (3, 4)),   # bottom-right
        ]),
        Layout.create("Layout 2", [
            Tile.build(0, 0, 0.22, 1, (1,)),
            Tile.build(0.22, 0, 0.56, 1, (1, 2)),
            Tile.build(0.78, 0, 0.22, 1, (2,)),
        ]),
        Layout.create("Layout 3", [
            Tile.build(0, 0, 0.33, 1, (1,)),
            Tile.build(0.33, 0, 0.67, 1, (1,)),
        ]),
        Layout.create("Layout 4", [
            Tile.build(0, 0, 0.67, 1, (1,)),
            Tile.build(0.67, 0, 0.33, 1, (1,)),
        ]),
    ]


# ============================================================================
# Settings values
# ============================================================================
class SettingsValues(BaseModel):
    """Validated snapshot of every setting, keyed by hyphenated alias."""

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
        extra="forbid",
    )

    tiling_system: bool = Field(True, alias="enable-tiling-system")
    tiling_system_activation_key: ActivationKey = Field(
        ActivationKey.CTRL, alias="tiling-system-activation-key"
    )
    tiling_system_deactivation_key: ActivationKey = Field(
        ActivationKey.NONE, alias="tiling-system-deactivation-key"
    )
    snap_assist: bool = Field(True, alias="enable-snap-assist")
    inner_gaps: int = Field(8, ge=0, alias="inner-gaps")
    outer_gaps: int = Field(2, ge=0, alias="outer-gaps")
    span_multiple_tiles: bool = Field(True, alias="enable-span-multiple-tiles")
    span_multiple_tiles_activation_key: ActivationKey = Field(
        ActivationKey.ALT, alias="span-multiple-tiles-activation-key"
    )
    restore_window_original_size: bool = Field(True, alias="restore-window-original-size")
    enable_move_keybindings: bool = Field(True, alias="enable-move-keybindings")
    enable_autotiling: bool = Field(False, alias="enable-autotiling")
    active_screen_edges: bool = Field(True, alias="active-screen-edges")
    top_edge_maximize: bool = Field(False, alias="top-edge-maximize")
    snap_assistant_threshold: int = Field(54, ge=0, alias="snap-assistant-threshold")
    quarter_tiling_threshold: int = Field(40, ge=1, le=50, alias="quarter-tiling-threshold")
    layouts_json: str = Field(
        default_factory=lambda: dump_layouts_json(default_layouts()),
        alias="layouts-json",
    )
    selected_layouts: list[list[str]] = Field(default_factory=list, alias="selected-layouts")


# alias -> attribute name
_FIELDS: dict[str, str] = {
    (info.alias or name): name for name, info in SettingsValues.model_fields.items()
}


# ============================================================================
# Settings
# ============================================================================
class Settings:
    """
    Configuration shared by the tiling components.

    get()/set() address values by their hyphenated key; set() validates
    and notifies the key's observers only when the value changed.
    """

    TILING_SYSTEM = "enable-tiling-system"
    TILING_SYSTEM_ACTIVATION_KEY = "tiling-system-activation-key"
    TILING_SYSTEM_DEACTIVATION_KEY = "tiling-system-deactivation-key"
    SNAP_ASSIST = "enable-snap-assist"
    INNER_GAPS = "inner-gaps"
    OUTER_GAPS = "outer-gaps"
    SPAN_MULTIPLE_TILES = "enable-span-multiple-tiles"
    SPAN_MULTIPLE_TILES_ACTIVATION_KEY = "span-multiple-tiles-activation-key"
    RESTORE_WINDOW_ORIGINAL_SIZE = "restore-window-original-size"
    ENABLE_MOVE_KEYBINDINGS = "enable-move-keybindings"
    ENABLE_AUTO_TILING = "enable-autotiling"
    ACTIVE_SCREEN_EDGES = "active-screen-edges"
    TOP_EDGE_MAXIMIZE = "top-edge-maximize"
    SNAP_ASSISTANT_THRESHOLD = "snap-assistant-threshold"
    QUARTER_TILING_THRESHOLD = "quarter-tiling-threshold"
    LAYOUTS_JSON = "layouts-json"
    SELECTED_LAYOUTS = "selected-layouts"

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        """
        Args:
            values: Initial values by hyphenated key. Missing keys take
                    their defaults.

        Raises:
            pydantic.ValidationError: If a value is invalid or a key unknown.
        """
        self._values = SettingsValues.model_validate(dict(values or {}))
        self._emitter = EventEmitter()

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> Settings:
        """
        Build settings from a loosely typed mapping (e.g. a parsed config
        file). Keys may use hyphens or underscores; unknown keys are
        ignored with a warning.
        """
        known: dict[str, Any] = {}
        for key, value in values.items():
            alias = str(key).replace("_", "-")
            if alias in _FIELDS:
                known[alias] = value
            else:
                log.warning("Ignoring unknown setting: %s", key)
        return cls(known)

    # ------------------------------------------------------------------
    # Generic access
    # ------------------------------------------------------------------
    @staticmethod
    def _field(key: str) -> str:
        try:
            return _FIELDS[key]
        except KeyError:
            raise KeyError(f"Unknown setting: {key!r}") from None

    @staticmethod
    def keys() -> list[str]:
        return sorted(_FIELDS)

    def get(self, key: str) -> Any:
        return getattr(self._values, self._field(key))

    def set(self, key: str, value: Any) -> bool:
        """
        Validate and store a value.

        Returns:
            True if the value changed (observers were notified).

        Raises:
            pydantic.ValidationError: If the value is invalid for the key.
        """
        name = self._field(key)
        candidate = self._values.model_copy(deep=True)
        setattr(candidate, name, value)
        new_value = getattr(candidate, name)
        if new_value == getattr(self._values, name):
            return False

        self._values = candidate
        log.debug("Setting changed: %s = %r", key, new_value)
        self._emitter.emit(key, new_value)
        return True

    def reset(self, key: str) -> bool:
        """Restore the default value of *key*."""
        info = SettingsValues.model_fields[self._field(key)]
        return self.set(key, info.get_default(call_default_factory=True))

    def connect(self, key: str, callback: Callback) -> Connection:
        """Call callback(new_value) whenever *key* changes."""
        self._field(key)
        return self._emitter.connect(key, callback)

    def destroy(self) -> None:
        self._emitter.disconnect_all()

    # ------------------------------------------------------------------
    # Gaps
    # ------------------------------------------------------------------
    def get_inner_gaps(self, scaling_factor: float = 1) -> Margins:
        return Margins.uniform(int(self.get(self.INNER_GAPS) * scaling_factor))

    def get_outer_gaps(self, scaling_factor: float = 1) -> Margins:
        return Margins.uniform(int(self.get(self.OUTER_GAPS) * scaling_factor))

    # ------------------------------------------------------------------
    # Layouts
    # ------------------------------------------------------------------
    def get_layouts(self) -> list[Layout]:
        """
        Parse the stored layouts.

        Layouts without tiles are dropped. If the document is invalid or
        nothing usable remains, the defaults are stored and returned.
        """
        raw = self.get(self.LAYOUTS_JSON) or "[]"
        try:
            models = _LAYOUTS_ADAPTER.validate_json(raw)
            layouts = [m.to_layout() for m in models if m.tiles]
            if not layouts:
                raise InvalidLayoutError("At least one layout is required")
            return layouts
        except (ValidationError, InvalidLayoutError, InvalidTileError) as exc:
            log.warning("Invalid layouts, restoring defaults: %s", exc)
            self.reset_layouts()
            return default_layouts()

    def save_layouts(self, layouts: Sequence[Layout]) -> None:
        self.set(self.LAYOUTS_JSON, dump_layouts_json(layouts))

    def reset_layouts(self) -> None:
        self.save_layouts(default_layouts())

    # ------------------------------------------------------------------
    # Selected layout per (monitor, workspace)
    # ------------------------------------------------------------------
    def get_selected_layouts(self) -> list[list[str]]:
        """Layout ids indexed by [monitor][workspace] (a copy)."""
        return [list(row) for row in self.get(self.SELECTED_LAYOUTS)]

    def save_selected_layouts(self, ids: Sequence[Sequence[str]]) -> None:
        if not ids:
            self.reset(self.SELECTED_LAYOUTS)
            return
        self.set(self.SELECTED_LAYOUTS, [list(row) for row in ids])

    def __repr__(self) -> str:
        return f"Settings({self._values.model_dump(by_alias=True, exclude={'layouts_json'})})"
