import importlib
import os
from pathlib import Path
from unittest.mock import patch

import pytest

import cliphistory.config as config
from cliphistory.config import _parse_menu_display_count


@pytest.fixture
def reload_config():
    """Reload config under a patched environment, restoring the module afterwards."""
    def _reload(env: dict):
        with patch.dict("os.environ", env, clear=True):
            return importlib.reload(config)

    yield _reload
    importlib.reload(config)


def _env_without(*keys) -> dict:
    env = os.environ.copy()
    for key in keys:
        env.pop(key, None)
    return env


class TestDataDir:
    def test_default_under_application_support(self, reload_config):
        cfg = reload_config(_env_without("CLIPHISTORY_DATA_DIR"))
        assert cfg.DATA_DIR == Path.home() / "Library" / "Application Support" / "ClipHistory"

    def test_env_override(self, reload_config, tmp_path):
        cfg = reload_config({**_env_without(), "CLIPHISTORY_DATA_DIR": str(tmp_path)})
        assert cfg.DATA_DIR == tmp_path

    def test_files_live_in_data_dir(self, reload_config, tmp_path):
        cfg = reload_config({**_env_without(), "CLIPHISTORY_DATA_DIR": str(tmp_path)})
        assert cfg.PINNED_PATH == tmp_path / "pinned.json"
        assert cfg.PINNED_IMAGES_PATH == tmp_path / "pinned-images.json"
        assert cfg.LOG_PATH == tmp_path / "cliphistory.log"

    def test_reload_restores_module(self, tmp_path):
        with patch.dict("os.environ", {"CLIPHISTORY_DATA_DIR": str(tmp_path)}):
            importlib.reload(config)
        importlib.reload(config)
        assert config.DATA_DIR != tmp_path


class TestLimits:
    def test_history_default_in_range(self):
        low, high = config.HISTORY_LIMIT_RANGE
        assert low <= config.DEFAULT_HISTORY_LIMIT <= high

    def test_poll_default_in_range(self):
        low, high = config.POLL_INTERVAL_RANGE
        assert low <= config.DEFAULT_POLL_INTERVAL <= high

    def test_poller_floor_matches_preference_floor(self):
        assert config.MIN_POLL_INTERVAL == config.POLL_INTERVAL_RANGE[0]

    def test_image_limits(self):
        assert config.MAX_IMAGE_SIZE == 10_000_000
        assert config.MAX_RECENT_IMAGES == 50


class TestParseMenuDisplayCount:
    def test_default_when_not_set(self):
        with patch.dict("os.environ", _env_without("CLIPHISTORY_MENU_DISPLAY_COUNT"), clear=True):
            assert _parse_menu_display_count() == 10

    def test_valid_value(self):
        with patch.dict("os.environ", {"CLIPHISTORY_MENU_DISPLAY_COUNT": "20"}):
            assert _parse_menu_display_count() == 20

    @pytest.mark.parametrize("raw,expected", [("2", 5), ("100", 50), ("abc", 10)])
    def test_clamped_or_defaulted(self, raw, expected):
        with patch.dict("os.environ", {"CLIPHISTORY_MENU_DISPLAY_COUNT": raw}):
            assert _parse_menu_display_count() == expected

    def test_module_constant_reads_env(self, reload_config):
        cfg = reload_config({**_env_without(), "CLIPHISTORY_MENU_DISPLAY_COUNT": "30"})
        assert cfg.MENU_DISPLAY_COUNT == 30
