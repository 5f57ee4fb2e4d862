"""
Command-line entry point.
"""

import argparse
import json
import logging
import sys

import pytest

import gridsnap.__main__ as cli
from gridsnap.tiling.rect import Rect


@pytest.fixture(autouse=True)
def no_logging_setup(request, monkeypatch):
    if request.node.name == "test_setup_logging_installs_safe_handler":
        return
    monkeypatch.setattr(cli, "setup_logging", lambda level: None)


class TestParseRect:

    def test_valid(self):
        assert cli.parse_rect("0,40,1920,1040") == Rect(0, 40, 1920, 1040)

    @pytest.mark.parametrize("value", ["1,2,3", "a,b,c,d", "0,0,0,100"])
    def test_invalid(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            cli.parse_rect(value)


class TestCommands:

    def test_layouts(self, capsys):
        assert cli.main(["layouts", "--workarea", "0,0,1000,800"]) == 0
        out = capsys.readouterr().out
        assert "Layout 1 (Layout 1):" in out
        assert "Layout 4 (Layout 4):" in out

    def test_settings_from_file(self, tmp_path, capsys):
        config = tmp_path / "settings.json"
        config.write_text(json.dumps({"inner_gaps": 4, "enable-autotiling": True}))

        assert cli.main(["--config", str(config), "settings"]) == 0
        out = capsys.readouterr().out
        assert "inner-gaps = 4" in out
        assert "enable-autotiling = True" in out
        assert "layouts-json" not in out

    def test_bad_config(self, tmp_path, caplog):
        config = tmp_path / "settings.json"
        config.write_text(json.dumps({"inner-gaps": -3}))

        with caplog.at_level(logging.ERROR):
            assert cli.main(["--config", str(config), "settings"]) == 1
        assert "Could not load settings" in caplog.text

    def test_missing_config(self, tmp_path):
        assert cli.main(["--config", str(tmp_path / "missing.json"), "settings"]) == 1

    def test_run_without_pywin32(self, monkeypatch, caplog):
        monkeypatch.setitem(sys.modules, "gridsnap.host.eventloop", None)
        monkeypatch.setitem(sys.modules, "gridsnap.host.win32", None)

        with caplog.at_level(logging.ERROR):
            assert cli.main(["run"]) == 1
        assert "needs Windows and pywin32" in caplog.text


def test_setup_logging_installs_safe_handler():
    from gridsnap.__main__ import SafeStreamHandler, setup_logging

    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        setup_logging(logging.DEBUG)
        added = [h for h in root.handlers if h not in before]
        assert len(added) == 1
        assert isinstance(added[0], SafeStreamHandler)
        assert root.level == logging.DEBUG
        assert logging.getLogger("gridsnap.tiling.tiling_layout").level == logging.INFO
    finally:
        root.handlers[:] = before
        root.setLevel(level)
        logging.getLogger("gridsnap.tiling.tiling_layout").setLevel(logging.NOTSET)
