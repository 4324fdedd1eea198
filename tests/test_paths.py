"""Tests for paths module - centralized path definitions."""

import json
from pathlib import Path
from unittest.mock import patch

from flashcli.paths import (
    DATA_DIR,
    CONFIG_FILE,
    DECKS_FILE,
    HISTORY_FILE,
    atomic_json_write,
    ensure_data_dir,
)


class TestPathDefinitions:
    """Tests that all paths are properly defined."""

    def test_data_dir_is_path(self):
        assert isinstance(DATA_DIR, Path)

    def test_config_file_in_data_dir(self):
        assert CONFIG_FILE.parent == DATA_DIR

    def test_decks_file_in_data_dir(self):
        assert DECKS_FILE.parent == DATA_DIR

    def test_history_file_in_data_dir(self):
        assert HISTORY_FILE.parent == DATA_DIR


class TestEnsureDataDir:
    """Tests for ensure_data_dir."""

    def test_creates_directory(self, tmp_path):
        data_dir = tmp_path / "nested" / ".flashcli"
        with patch("flashcli.paths.DATA_DIR", data_dir):
            ensure_data_dir()
        assert data_dir.is_dir()


class TestAtomicJsonWrite:
    """Tests for atomic_json_write."""

    def test_writes_json(self, tmp_path):
        target = tmp_path / "sub" / "data.json"
        atomic_json_write(target, {"a": 1, "word": "año"})
        assert json.loads(target.read_text(encoding="utf-8")) == {"a": 1, "word": "año"}

    def test_overwrites(self, tmp_path):
        target = tmp_path / "data.json"
        atomic_json_write(target, {"v": 1})
        atomic_json_write(target, {"v": 2})
        assert json.loads(target.read_text())["v"] == 2

    def test_no_temp_file_left_on_error(self, tmp_path):
        target = tmp_path / "data.json"
        try:
            atomic_json_write(target, {"bad": object()})
        except TypeError:
            pass
        assert list(tmp_path.iterdir()) == []
