"""
Auto-tiling of new and unmaximized windows into a vacant tile.
"""

import pytest

from gridsnap.config.settings import Settings
from gridsnap.core.host import HostEvent, MaximizeFlags, WindowType
from gridsnap.tiling.layout import Layout
from gridsnap.tiling.rect import Rect
from gridsnap.tiling.tile import Tile

RIGHT_COLUMN = Rect(504, 2, 494, 796)


@pytest.fixture
def auto_tiling(settings):
    settings.set(Settings.ENABLE_AUTO_TILING, True)
    return settings


@pytest.fixture
def left_tiled(host, manager, two_column):
    window = host.add_window(Rect(0, 0, 300, 300))
    manager.on_tile_from_window_menu(two_column.tiles[0], window)
    return window


class TestNewWindows:

    def test_hidden_until_first_frame_then_placed(self, host, manager, auto_tiling, left_tiled):
        window = host.add_window(Rect(300, 200, 400, 300))
        host.emit(HostEvent.WINDOW_CREATED, window)

        assert window.opacity == [(0, 0)]
        assert window.rect == Rect(300, 200, 400, 300)

        window.fire_first_frame()
        assert window.opacity[-1] == (255, 200)
        assert window.rect == RIGHT_COLUMN
        assert window.first_frame_subscribers() == 0

        record = manager.tiled_record(window)
        assert record.assigned_tile == Tile(0.5, 0, 0.5, 1)
        assert record.original_size == Rect(300, 200, 400, 300)

    def test_window_no_longer_eligible_at_first_frame(self, host, manager, auto_tiling, left_tiled):
        window = host.add_window(Rect(300, 200, 400, 300))
        host.emit(HostEvent.WINDOW_CREATED, window)
        window.minimized = True
        window.fire_first_frame()

        assert window.opacity == [(0, 0), (255, 0)]
        assert window.moves == []

    def test_disabled_by_default(self, host, manager, left_tiled):
        window = host.add_window(Rect(300, 200, 400, 300))
        host.emit(HostEvent.WINDOW_CREATED, window)
        assert window.opacity == []
        assert window.first_frame_subscribers() == 0

    @pytest.mark.parametrize("kwargs", [
        {"window_type": WindowType.DIALOG},
        {"minimized": True},
        {"maximized": MaximizeFlags.BOTH},
        {"attached_dialog": True},
        {"monitor": 1},
    ])
    def test_ineligible_windows(self, host, manager, auto_tiling, kwargs):
        window = host.add_window(Rect(300, 200, 400, 300), **kwargs)
        host.emit(HostEvent.WINDOW_CREATED, window)
        assert window.opacity == []
        assert window.moves == []

    def test_transient_windows(self, host, manager, auto_tiling):
        parent = host.add_window(Rect(0, 0, 300, 300))
        child = host.add_window(Rect(300, 200, 400, 300), transient_for=parent)
        host.emit(HostEvent.WINDOW_CREATED, child)
        assert child.opacity == []

    def test_no_vacant_tile(self, host, manager, auto_tiling, left_tiled, two_column):
        right = host.add_window(Rect(0, 0, 300, 300))
        manager.on_tile_from_window_menu(two_column.tiles[1], right)

        window = host.add_window(Rect(300, 200, 400, 300))
        host.emit(HostEvent.WINDOW_CREATED, window)
        assert window.opacity == []

    def test_first_frame_releases_its_subscription(self, host, manager, auto_tiling):
        subscriptions = len(manager._signals)
        for _ in range(3):
            window = host.add_window(Rect(300, 200, 400, 300))
            host.emit(HostEvent.WINDOW_CREATED, window)
            window.fire_first_frame()
        assert len(manager._signals) == subscriptions

    def test_closed_before_first_frame(self, host, manager, auto_tiling):
        subscriptions = len(manager._signals)
        window = host.add_window(Rect(300, 200, 400, 300))
        host.emit(HostEvent.WINDOW_CREATED, window)
        host.emit(HostEvent.WINDOW_UNMANAGED, window)

        assert window.first_frame_subscribers() == 0
        assert len(manager._signals) == subscriptions

    def test_destroy_drops_pending_first_frame(self, host, manager, auto_tiling):
        window = host.add_window(Rect(300, 200, 400, 300))
        host.emit(HostEvent.WINDOW_CREATED, window)
        assert window.first_frame_subscribers() == 1

        manager.destroy()
        assert window.first_frame_subscribers() == 0


class TestUnmaximizedWindows:

    def test_placed_immediately(self, host, manager, auto_tiling, left_tiled):
        window = host.add_window(Rect(300, 200, 400, 300))
        host.emit(HostEvent.WINDOW_UNMAXIMIZED, window)

        assert window.opacity == []
        assert window.rect == RIGHT_COLUMN


class TestVacantTile:

    def test_prefers_tile_closest_to_center(self, host, global_state, manager, auto_tiling):
        global_state.layouts = [Layout.create("three", [
            Tile.build(0, 0, 0.25, 1),
            Tile.build(0.25, 0, 0.5, 1),
            Tile.build(0.75, 0, 0.25, 1),
        ])]
        window = host.add_window(Rect(300, 200, 400, 300))
        host.emit(HostEvent.WINDOW_UNMAXIMIZED, window)
        assert window.rect == Rect(254, 2, 492, 796)

    def test_ties_go_to_the_leftmost_tile(self, host, manager, auto_tiling):
        window = host.add_window(Rect(300, 200, 400, 300))
        host.emit(HostEvent.WINDOW_UNMAXIMIZED, window)
        assert window.rect == Rect(2, 2, 494, 796)

    def test_minimized_and_maximized_windows_do_not_occupy(self, host, manager, auto_tiling, left_tiled):
        left_tiled.minimized = True
        window = host.add_window(Rect(300, 200, 400, 300))
        host.emit(HostEvent.WINDOW_UNMAXIMIZED, window)
        assert window.rect == Rect(2, 2, 494, 796)

