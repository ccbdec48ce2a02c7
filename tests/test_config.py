"""Tests for engine configuration."""
import json
import sys

import pytest

from inkplanner.utils.config import EngineConfig, load_config
from inkplanner.utils.resource_loader import get_app_data_dir, get_config_dir


class TestConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "config.json")
        assert config == EngineConfig()
        assert config.history_limit == 50
        assert config.preview_scale == 1.5
        assert config.reference_scale == 1.0

    def test_file_overrides_and_unknown_keys(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "history_limit": 10,
            "default_dimensions": [794, 1123],
            "theme": "dark",
        }))
        config = load_config(path)
        assert config.history_limit == 10
        assert config.default_dimensions == (794, 1123)
        assert config.preview_scale == 1.5

    @pytest.mark.skipif(not sys.platform.startswith("linux"), reason="XDG directories are Linux only")
    def test_directories_follow_xdg(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
        assert get_app_data_dir() == tmp_path / "data" / "InkPlanner"
        assert get_config_dir() == tmp_path / "config" / "InkPlanner"
