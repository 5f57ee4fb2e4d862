"""
gridsnap.tiling - Tiling geometry and interaction engine.

This package contains:
    - rect           : Rect and Margins pixel geometry
    - tile           : Tile, one normalized slot of a layout
    - layout         : Layout, an ordered named set of tiles
    - tile_utils     : Tile <-> absolute rect conversions and gaps
    - directional    : Direction and nearest-in-direction search
    - tiling_layout  : TilingLayout, a layout bound to one workspace
    - edge_tiling    : EdgeTilingManager, screen-edge gestures
    - snap_assist    : SnapAssist, the layout thumbnail strip
    - preview        : SelectionTilePreview state
    - tiling_manager : TilingManager, tiling for one monitor
    - service        : TilingService, one manager per monitor

Only the geometry modules are re-exported here; import the others from
their module.
"""

from gridsnap.tiling.rect import Margins, Rect
from gridsnap.tiling.tile import InvalidTileError, Tile
from gridsnap.tiling.layout import InvalidLayoutError, Layout
from gridsnap.tiling.directional import Direction
from gridsnap.tiling import tile_utils

__all__ = [
    "Rect", "Margins",
    "Tile", "InvalidTileError",
    "Layout", "InvalidLayoutError",
    "Direction", "tile_utils",
]
