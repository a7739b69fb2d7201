"""Tests for storage.py - Key-value persistence."""

import json
from pathlib import Path

import pytest

from scicalc.storage import (
    HISTORY_KEY,
    InMemoryStore,
    JsonFileStore,
    default_data_dir,
)


class TestJsonFileStore:
    """Tests for JsonFileStore."""

    @pytest.fixture
    def store(self, tmp_path):
        """Create a store in a not-yet-existing directory."""
        return JsonFileStore(str(tmp_path / "data"))

    def test_store_and_load(self, store):
        """Test round trip through a JSON file."""
        assert store.store("calculatorMemory", {"value": 5, "active": True}) is True
        assert store.load("calculatorMemory") == {"value": 5, "active": True}

    def test_creates_directory(self, store, tmp_path):
        """Test data directory is created on first write."""
        store.store(HISTORY_KEY, [])
        assert (tmp_path / "data" / "calculatorHistory.json").exists()

    def test_file_is_json(self, store, tmp_path):
        """Test file content is plain JSON."""
        store.store("calculatorSettings", {"theme": "dark"})
        with open(tmp_path / "data" / "calculatorSettings.json") as f:
            assert json.load(f) == {"theme": "dark"}

    def test_missing_key_default(self, store):
        """Test missing key returns default."""
        assert store.load("nothing", default=[]) == []
        assert store.load("nothing") is None

    def test_corrupt_file_default(self, store, tmp_path):
        """Test corrupt JSON returns default."""
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        (data_dir / "calculatorHistory.json").write_text("{not json")
        assert store.load(HISTORY_KEY, default=[]) == []

    def test_undecodable_file_default(self, store, tmp_path):
        """Test a file that is not valid UTF-8 returns default."""
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        (data_dir / "calculatorMemory.json").write_bytes(b"\xff\xfe{")
        assert store.load("calculatorMemory", default="DEFAULT") == "DEFAULT"

    def test_unserializable_value(self, store):
        """Test store failure is reported, not raised."""
        assert store.store("bad", {"value": object()}) is False
        assert store.load("bad") is None

    def test_unsafe_key_sanitized(self, store, tmp_path):
        """Test key characters are sanitized in file names."""
        store.store("../escape", 1)
        assert (tmp_path / "data" / "___escape.json").exists()

    def test_no_temp_files_left(self, store, tmp_path):
        """Test atomic write cleans up."""
        store.store("a", 1)
        store.store("a", 2)
        assert list((tmp_path / "data").glob(".tmp-*")) == []
        assert store.load("a") == 2

    def test_remove(self, store):
        """Test removing a key."""
        store.store("a", 1)
        assert store.remove("a") is True
        assert store.remove("a") is False
        assert store.load("a", 0) == 0


class TestInMemoryStore:
    """Tests for InMemoryStore."""

    def test_round_trip(self):
        """Test store then load."""
        store = InMemoryStore()
        store.store("k", [1, 2])
        assert store.load("k") == [1, 2]
        assert store.keys() == ["k"]

    def test_returns_copies(self):
        """Test loaded values are independent of stored data."""
        store = InMemoryStore()
        store.store("k", [1, 2])
        loaded = store.load("k")
        loaded.append(3)
        assert store.load("k") == [1, 2]

    def test_unserializable_value(self):
        """Test failure returns False."""
        store = InMemoryStore()
        assert store.store("k", {1, 2}) is False
        assert store.load("k", "default") == "default"


class TestDefaultDataDir:
    """Tests for default_data_dir."""

    def test_env_override(self, monkeypatch, tmp_path):
        """Test SCICALC_HOME wins."""
        monkeypatch.setenv("SCICALC_HOME", str(tmp_path))
        assert default_data_dir() == tmp_path

    def test_home_fallback(self, monkeypatch):
        """Test fallback to ~/.scicalc."""
        monkeypatch.delenv("SCICALC_HOME", raising=False)
        assert default_data_dir() == Path.home() / ".scicalc"
