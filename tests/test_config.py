"""
Tests for config.json handling and environment overrides.
"""

import pytest

from lumo.config import (
    DEFAULT_PORT,
    CanvasSettings,
    get_canvas_settings,
    get_log_level,
    get_port,
    load_config,
    save_config,
    set_canvas_settings,
)
from lumo.paths import ensure_db_dir, get_app_dir, get_config_path, get_db_dir


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LUMO_PORT", "LUMO_LOG_LEVEL", "LUMO_DB_DIR"):
        monkeypatch.delenv(name, raising=False)


class TestConfigFile:

    def test_missing_file_is_empty(self, tmp_path):
        assert load_config(tmp_path / "config.json") == {}

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{oops", encoding="utf-8")
        assert load_config(path) == {}

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"port": 9000, "log_level": "debug"}, path)
        assert load_config(path) == {"port": 9000, "log_level": "debug"}

    def test_canvas_settings_round_trip(self, tmp_path):
        path = tmp_path / "config.json"
        save_config({"port": 9000}, path)
        set_canvas_settings(CanvasSettings(snap_to_grid=False, node_size=80), path)

        config = load_config(path)
        assert config["port"] == 9000
        settings = get_canvas_settings(config)
        assert settings.snap_to_grid is False
        assert settings.node_size == 80
        assert settings.snap_grid == (15.0, 15.0)


class TestCanvasSettings:

    def test_defaults(self):
        settings = CanvasSettings.from_dict({})
        assert settings.connection_radius == 25.0
        assert settings.edge_color == '#b1b1b7'

    def test_unknown_keys_ignored(self):
        settings = CanvasSettings.from_dict({"edge_color": "#000", "wobble": True})
        assert settings.edge_color == "#000"
        assert not hasattr(settings, "wobble")

    def test_snap_grid_parsing(self):
        assert CanvasSettings.from_dict({"snap_grid": [10, 20]}).snap_grid == (10.0, 20.0)
        assert CanvasSettings.from_dict({"snap_grid": "big"}).snap_grid == (15.0, 15.0)


class TestEnvironmentPriority:

    def test_port_default(self):
        assert get_port({}) == DEFAULT_PORT

    def test_port_from_config(self):
        assert get_port({"port": "7000"}) == 7000

    def test_port_env_wins(self, monkeypatch):
        monkeypatch.setenv("LUMO_PORT", "9100")
        assert get_port({"port": 7000}) == 9100

    def test_invalid_env_port_falls_back(self, monkeypatch):
        monkeypatch.setenv("LUMO_PORT", "not-a-port")
        assert get_port({"port": 7000}) == 7000

    def test_log_level(self, monkeypatch):
        assert get_log_level({}) == "INFO"
        assert get_log_level({"log_level": "warning"}) == "WARNING"
        monkeypatch.setenv("LUMO_LOG_LEVEL", "debug")
        assert get_log_level({"log_level": "warning"}) == "DEBUG"

    def test_db_dir_override(self, monkeypatch, tmp_path):
        target = tmp_path / "boards"
        monkeypatch.setenv("LUMO_DB_DIR", str(target))
        assert get_db_dir() == target
        assert ensure_db_dir().is_dir()

    def test_default_locations_sit_beside_the_package(self):
        app_dir = get_app_dir()
        assert (app_dir / "lumo" / "paths.py").is_file()
        assert get_config_path() == app_dir / "config.json"
        assert get_db_dir() == app_dir / "db"
