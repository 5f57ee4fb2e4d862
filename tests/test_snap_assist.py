"""
Unit tests for SnapAssist: strip geometry and the suggestions emitted
while a window is dragged near it.
"""

import pytest

from gridsnap.tiling.layout import Layout
from gridsnap.tiling.rect import Rect
from gridsnap.tiling.snap_assist import SNAP_ASSIST, SnapAssist
from gridsnap.tiling.tile import Tile

WORKAREA = Rect(0, 0, 1000, 800)


@pytest.fixture
def full() -> Layout:
    return Layout.create("full", [Tile.build(0, 0, 1, 1)])


@pytest.fixture
def snap(settings, two_column, full):
    return SnapAssist(WORKAREA, settings, [two_column, full])


@pytest.fixture
def suggestions(snap):
    received = []
    snap.connect(SNAP_ASSIST, received.append)
    return received


class TestGeometry:

    def test_strip_is_centered_at_the_top(self, snap):
        assert snap.strip_rect() == Rect(368, 8, 264, 84)

    def test_thumbnails(self, snap):
        assert snap.thumbnail_rects() == [Rect(376, 16, 120, 68), Rect(504, 16, 120, 68)]

    def test_scaling_factor(self, settings, two_column, full):
        scaled = SnapAssist(WORKAREA, settings, [two_column, full], scaling_factor=2)
        assert scaled.strip_rect() == Rect(236, 16, 528, 168)


class TestSuggestions:

    def test_far_pointer_does_nothing(self, snap, suggestions):
        snap.on_moving_window(object(), 500, 500)
        assert not snap.enlarged
        assert suggestions == []

    def test_near_pointer_enlarges(self, snap, suggestions):
        snap.on_moving_window(object(), 500, 140)
        assert snap.enlarged
        assert suggestions == []

    def test_hovering_a_thumbnail_tile(self, snap, suggestions, two_column, full):
        window = object()
        snap.on_moving_window(window, 390, 40)
        snap.on_moving_window(window, 391, 41)
        snap.on_moving_window(window, 440, 40)
        snap.on_moving_window(window, 560, 40)
        assert suggestions == [two_column.tiles[0], two_column.tiles[1], full.tiles[0]]
        assert snap.hovered_tile == full.tiles[0]

    def test_leaving_a_tile_emits_none(self, snap, suggestions, two_column):
        window = object()
        snap.on_moving_window(window, 390, 40)
        # Between the two thumbnails
        snap.on_moving_window(window, 500, 40)
        assert suggestions == [two_column.tiles[0], None]

    def test_moving_away_shrinks_and_clears(self, snap, suggestions, two_column):
        window = object()
        snap.on_moving_window(window, 390, 40)
        snap.on_moving_window(window, 500, 500)
        assert not snap.enlarged
        assert suggestions == [two_column.tiles[0], None]

    def test_close_emits_nothing(self, snap, suggestions):
        snap.on_moving_window(object(), 390, 40)
        snap.close()
        assert len(suggestions) == 1
        assert snap.hovered_tile is None
        assert not snap.enlarged

    def test_new_layouts_close_the_strip(self, snap, full):
        snap.on_moving_window(object(), 390, 40)
        snap.layouts = [full]
        assert snap.hovered_tile is None
        assert snap.strip_rect() == Rect(432, 8, 136, 84)

    def test_destroy_drops_subscribers(self, snap, suggestions):
        snap.destroy()
        snap.on_moving_window(object(), 390, 40)
        assert suggestions == []
