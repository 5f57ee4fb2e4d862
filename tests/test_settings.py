"""
Unit tests for Settings (validation, change notification, layouts JSON
fallback) and GlobalState (layouts cache, per-monitor selection).
"""

import logging

import pytest
from pydantic import ValidationError

from gridsnap.config.global_state import LAYOUTS_CHANGED, GlobalState
from gridsnap.config.settings import Settings, default_layouts, dump_layouts_json
from gridsnap.core.pointer import ActivationKey
from gridsnap.tiling.layout import Layout
from gridsnap.tiling.rect import Margins
from gridsnap.tiling.tile import Tile

DEFAULT_IDS = ["Layout 1", "Layout 2", "Layout 3", "Layout 4"]


class TestSettingsValues:

    def test_defaults(self):
        settings = Settings()
        assert settings.get(Settings.INNER_GAPS) == 8
        assert settings.get(Settings.OUTER_GAPS) == 2
        assert settings.get(Settings.TILING_SYSTEM_ACTIVATION_KEY) == ActivationKey.CTRL
        assert settings.get(Settings.TILING_SYSTEM_DEACTIVATION_KEY) == ActivationKey.NONE
        assert settings.get(Settings.SPAN_MULTIPLE_TILES_ACTIVATION_KEY) == ActivationKey.ALT
        assert settings.get(Settings.ENABLE_AUTO_TILING) is False
        assert settings.get(Settings.QUARTER_TILING_THRESHOLD) == 40
        assert settings.get_selected_layouts() == []

    def test_invalid_initial_value(self):
        with pytest.raises(ValidationError):
            Settings({"inner-gaps": -1})

    def test_unknown_initial_key(self):
        with pytest.raises(ValidationError):
            Settings({"no-such-setting": 1})

    def test_unknown_key(self):
        settings = Settings()
        with pytest.raises(KeyError):
            settings.get("no-such-setting")
        with pytest.raises(KeyError):
            settings.connect("no-such-setting", print)

    def test_set_validates_and_keeps_old_value(self):
        settings = Settings()
        with pytest.raises(ValidationError):
            settings.set(Settings.QUARTER_TILING_THRESHOLD, 80)
        assert settings.get(Settings.QUARTER_TILING_THRESHOLD) == 40

    def test_activation_key_from_int(self):
        settings = Settings()
        settings.set(Settings.TILING_SYSTEM_ACTIVATION_KEY, 2)
        assert settings.get(Settings.TILING_SYSTEM_ACTIVATION_KEY) == ActivationKey.SUPER

    def test_gaps_scaled(self):
        settings = Settings({"inner-gaps": 8, "outer-gaps": 3})
        assert settings.get_inner_gaps(1.5) == Margins.uniform(12)
        assert settings.get_outer_gaps() == Margins.uniform(3)

    def test_from_mapping_accepts_underscores(self, caplog):
        with caplog.at_level(logging.WARNING):
            settings = Settings.from_mapping({"inner_gaps": 4, "bogus": True})
        assert settings.get(Settings.INNER_GAPS) == 4
        assert "bogus" in caplog.text

    def test_keys(self):
        keys = Settings.keys()
        assert Settings.LAYOUTS_JSON in keys
        assert keys == sorted(keys)


class TestSettingsObservers:

    def test_notifies_only_on_change(self):
        settings = Settings()
        received = []
        settings.connect(Settings.INNER_GAPS, received.append)

        assert settings.set(Settings.INNER_GAPS, 12)
        assert not settings.set(Settings.INNER_GAPS, 12)
        assert received == [12]

    def test_observers_are_per_key(self):
        settings = Settings()
        received = []
        settings.connect(Settings.OUTER_GAPS, received.append)
        settings.set(Settings.INNER_GAPS, 12)
        assert received == []

    def test_disconnect(self):
        settings = Settings()
        received = []
        conn = settings.connect(Settings.INNER_GAPS, received.append)
        conn.disconnect()
        settings.set(Settings.INNER_GAPS, 12)
        assert received == []

    def test_reset(self):
        settings = Settings({"inner-gaps": 20})
        received = []
        settings.connect(Settings.INNER_GAPS, received.append)
        assert settings.reset(Settings.INNER_GAPS)
        assert received == [8]


class TestLayoutsJson:

    def test_default_layouts(self):
        assert [layout.id for layout in Settings().get_layouts()] == DEFAULT_IDS

    def test_stored_layouts(self, settings, two_column):
        assert settings.get_layouts() == [two_column]

    @pytest.mark.parametrize("raw", [
        "not json",
        "[]",
        '[{"id": "bad", "tiles": [{"x": 0.6, "y": 0, "width": 0.5, "height": 1}]}]',
        '[{"id": "empty", "tiles": []}]',
    ])
    def test_invalid_layouts_fall_back_to_defaults(self, raw, caplog):
        settings = Settings({Settings.LAYOUTS_JSON: raw})
        with caplog.at_level(logging.WARNING):
            layouts = settings.get_layouts()
        assert [layout.id for layout in layouts] == DEFAULT_IDS
        assert settings.get(Settings.LAYOUTS_JSON) == dump_layouts_json(default_layouts())
        assert "restoring defaults" in caplog.text

    def test_layouts_without_tiles_are_dropped(self):
        raw = (
            '[{"id": "empty", "tiles": []},'
            ' {"id": "full", "tiles": [{"x": 0, "y": 0, "width": 1, "height": 1}]}]'
        )
        layouts = Settings({Settings.LAYOUTS_JSON: raw}).get_layouts()
        assert [layout.id for layout in layouts] == ["full"]

    def test_save_layouts(self, two_column):
        settings = Settings()
        settings.save_layouts([two_column])
        assert settings.get_layouts() == [two_column]


class TestSelectedLayouts:

    def test_returns_a_copy(self):
        settings = Settings({"selected-layouts": [["a"]]})
        rows = settings.get_selected_layouts()
        rows[0].append("b")
        assert settings.get_selected_layouts() == [["a"]]

    def test_saving_nothing_resets(self):
        settings = Settings({"selected-layouts": [["a"]]})
        settings.save_selected_layouts([])
        assert settings.get_selected_layouts() == []


class TestGlobalState:

    @pytest.fixture
    def defaults(self):
        return Settings()

    @pytest.fixture
    def state(self, defaults):
        state = GlobalState(defaults)
        yield state
        state.destroy()

    def test_fallback_to_first_layout(self, state):
        assert state.get_selected_layout_of_monitor(0, 0).id == "Layout 1"
        assert state.get_selected_layout_of_monitor(3, 7).id == "Layout 1"

    def test_set_selected_layout_pads_the_matrix(self, defaults, state):
        state.set_selected_layout(1, 2, "Layout 3")
        assert defaults.get_selected_layouts() == [
            [],
            ["Layout 1", "Layout 1", "Layout 3"],
        ]
        assert state.get_selected_layout_of_monitor(1, 2).id == "Layout 3"
        assert state.get_selected_layout_of_monitor(1, 0).id == "Layout 1"

    def test_stale_selection_falls_back(self):
        state = GlobalState(Settings({"selected-layouts": [["gone"]]}))
        assert state.get_selected_layout_of_monitor(0, 0).id == "Layout 1"

    def test_unknown_layout_id(self, state):
        with pytest.raises(KeyError):
            state.set_selected_layout(0, 0, "nope")

    def test_negative_index(self, state):
        with pytest.raises(ValueError):
            state.set_selected_layout(-1, 0, "Layout 2")

    def test_layouts_changed_on_settings_change(self, two_column):
        settings = Settings()
        state = GlobalState(settings)
        received = []
        state.connect(LAYOUTS_CHANGED, received.append)

        settings.save_layouts([two_column])
        assert received == [[two_column]]
        assert state.layouts == [two_column]

    def test_empty_layouts_restore_defaults(self, settings):
        state = GlobalState(settings)
        state.layouts = []
        assert [layout.id for layout in state.layouts] == DEFAULT_IDS

    def test_add_and_delete_layout(self, state):
        extra = Layout.create("extra", [Tile.build(0, 0, 1, 1)])
        state.add_layout(extra)
        assert state.get_layout("extra") == extra

        assert state.delete_layout("extra")
        assert not state.delete_layout("extra")
        assert state.get_layout("extra") is None

    def test_destroy_stops_listening(self, two_column):
        settings = Settings()
        state = GlobalState(settings)
        received = []
        state.connect(LAYOUTS_CHANGED, received.append)
        state.destroy()

        settings.save_layouts([two_column])
        assert received == []
        assert [layout.id for layout in state.layouts] == DEFAULT_IDS
