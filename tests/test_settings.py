"""Tests for settings.py - Persisted preferences."""

import pytest

from scicalc.angles import AngleMode
from scicalc.settings import Settings, SettingsManager
from scicalc.storage import SETTINGS_KEY, InMemoryStore


class TestSettings:
    """Tests for Settings dataclass."""

    def test_defaults(self):
        """Test default values."""
        settings = Settings()
        assert settings.angle_mode is AngleMode.DEGREES
        assert settings.sound_enabled is True
        assert settings.theme == "dark"
        assert settings.precision == 12

    def test_to_dict(self):
        """Test serialization."""
        assert Settings().to_dict() == {
            "angle_mode": "DEG",
            "sound_enabled": True,
            "theme": "dark",
            "precision": 12,
        }

    def test_from_dict_invalid_values(self):
        """Test invalid values fall back to defaults."""
        settings = Settings.from_dict({"angle_mode": "turns", "theme": "neon", "precision": 99})
        assert settings.angle_mode is AngleMode.DEGREES
        assert settings.theme == "dark"
        assert settings.precision == 12


class TestSettingsManager:
    """Tests for SettingsManager."""

    @pytest.fixture
    def storage(self):
        return InMemoryStore()

    def test_toggle_angle_mode_cycles(self, storage):
        """Test DEG -> RAD -> GRAD -> DEG."""
        manager = SettingsManager(storage)
        assert manager.toggle_angle_mode() is AngleMode.RADIANS
        assert manager.toggle_angle_mode() is AngleMode.GRADIANS
        assert manager.toggle_angle_mode() is AngleMode.DEGREES

    def test_persisted(self, storage):
        """Test changes reload in a new manager."""
        SettingsManager(storage).set_angle_mode(AngleMode.GRADIANS)
        assert storage.load(SETTINGS_KEY)["angle_mode"] == "GRAD"
        assert SettingsManager(storage).settings.angle_mode is AngleMode.GRADIANS

    def test_toggles(self, storage):
        """Test sound and theme toggles."""
        manager = SettingsManager(storage)
        assert manager.toggle_sound() is False
        assert manager.toggle_theme() == "light"
        assert manager.toggle_theme() == "dark"

    def test_precision(self, storage):
        """Test precision bounds."""
        manager = SettingsManager(storage)
        assert manager.set_precision(4) == 4
        with pytest.raises(ValueError):
            manager.set_precision(0)
        with pytest.raises(ValueError):
            manager.set_precision(16)

    def test_update_partial(self, storage):
        """Test partial update keeps other values."""
        manager = SettingsManager(storage)
        settings = manager.update({"theme": "light", "precision": "bad"})
        assert settings.theme == "light"
        assert settings.precision == 12
        assert settings.angle_mode is AngleMode.DEGREES

    def test_corrupt_snapshot(self, storage):
        """Test non-dict snapshot loads defaults."""
        storage.store(SETTINGS_KEY, ["nope"])
        assert SettingsManager(storage).settings == Settings()
