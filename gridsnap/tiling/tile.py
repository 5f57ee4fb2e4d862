"""
gridsnap.tiling.tile - The Tile value object.

A Tile is one slot of a Layout expressed in normalized coordinates of
the unit square, plus the adjacency groups it belongs to. Two tiles
sharing a group id may be merged into a single selection when a
window spans multiple tiles.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

# Tolerance for float drift in layouts like 0.22 + 0.56 + 0.22
EPSILON = 1e-6


class InvalidTileError(ValueError):
    """Raised when a tile's geometry leaves the unit square or is empty."""


@dataclass(frozen=True, slots=True)
class Tile:
    """
    Normalized rectangular slot within a Layout.

    Attributes:
        x, y:          Top-left corner as fractions of the container (0.0 - 1.0).
        width, height: Size as fractions of the container.
        groups:        Adjacency group ids.
    """

    x: float
    y: float
    width: float
    height: float
    groups: frozenset[int] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not isinstance(self.groups, frozenset):
            object.__setattr__(self, "groups", frozenset(self.groups))

        if self.width <= 0 or self.height <= 0:
            raise InvalidTileError(
                f"Tile size must be positive: width={self.width}, height={self.height}"
            )
        if self.x < -EPSILON or self.y < -EPSILON:
            raise InvalidTileError(f"Tile origin outside unit square: ({self.x}, {self.y})")
        if self.x + self.width > 1 + EPSILON or self.y + self.height > 1 + EPSILON:
            raise InvalidTileError(
                f"Tile exceeds unit square: x+width={self.x + self.width}, "
                f"y+height={self.y + self.height}"
            )

    @classmethod
    def build(
        cls,
        x: float,
        y: float,
        width: float,
        height: float,
        groups: Iterable[int] = (),
    ) -> Tile:
        return cls(x, y, width, height, frozenset(groups))

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    def shares_group(self, other: Tile) -> bool:
        """True if both tiles belong to at least one common group."""
        return not self.groups.isdisjoint(other.groups)

    def copy(self) -> Tile:
        """Return an equal but distinct Tile instance."""
        return replace(self)

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "groups": sorted(self.groups),
        }

    def __str__(self) -> str:
        groups = ",".join(str(g) for g in sorted(self.groups))
        return (
            f"Tile({self.width:.2f}x{self.height:.2f}"
            f"+{self.x:.2f}+{self.y:.2f} [{groups}])"
        )
