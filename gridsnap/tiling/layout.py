"""
gridsnap.tiling.layout - Layout: an ordered, named set of Tiles.

Tile order matters: nearest-tile and leftmost/rightmost searches break
ties by layout order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from gridsnap.tiling.tile import Tile


class InvalidLayoutError(ValueError):
    """Raised when a layout has no tiles."""


@dataclass(frozen=True, slots=True)
class Layout:
    """
    A tiling layout.

    Attributes:
        id:    Stable identifier, referenced by the selected-layouts matrix.
        name:  Display name.
        tiles: Ordered tiles. Never empty.
    """

    id: str
    name: str
    tiles: tuple[Tile, ...]

    def __post_init__(self) -> None:
        if not isinstance(self.tiles, tuple):
            object.__setattr__(self, "tiles", tuple(self.tiles))
        if not self.tiles:
            raise InvalidLayoutError(f"Layout {self.id!r} has no tiles")

    @classmethod
    def create(cls, layout_id: str, tiles: Iterable[Tile], name: str | None = None) -> Layout:
        return cls(layout_id, name or layout_id, tuple(tiles))

    @classmethod
    def from_dict(cls, data: Mapping) -> Layout:
        """
        Build a Layout from its in-memory dict shape:
        ``{id, name, tiles: [{x, y, width, height, groups}]}``.
        """
        tiles = [
            Tile.build(t["x"], t["y"], t["width"], t["height"], t.get("groups", ()))
            for t in data.get("tiles", ())
        ]
        layout_id = str(data["id"])
        return cls(layout_id, str(data.get("name") or layout_id), tuple(tiles))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "tiles": [t.to_dict() for t in self.tiles],
        }

    def __len__(self) -> int:
        return len(self.tiles)

    def __repr__(self) -> str:
        return f"Layout(id={self.id!r}, tiles={len(self.tiles)})"
