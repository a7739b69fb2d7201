"""Calculator settings persisted under the settings key."""

import logging
from dataclasses import dataclass
from typing import Any, Dict

from .angles import AngleMode
from .formatter import DECIMAL_PLACES
from .storage import SETTINGS_KEY, KeyValueStore

logger = logging.getLogger(__name__)

THEMES = ("dark", "light")


@dataclass
class Settings:
    """User preferences."""

    angle_mode: AngleMode = AngleMode.DEGREES
    sound_enabled: bool = True
    theme: str = "dark"
    precision: int = DECIMAL_PLACES  # Max decimals shown, 1..15

    def to_dict(self) -> dict:
        return {
            "angle_mode": self.angle_mode.value,
            "sound_enabled": self.sound_enabled,
            "theme": self.theme,
            "precision": self.precision,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Build settings, falling back to defaults for invalid values."""
        defaults = cls()

        try:
            angle_mode = AngleMode.parse(data.get("angle_mode", defaults.angle_mode.value))
        except ValueError:
            logger.warning("Unknown angle mode in settings: %r", data.get("angle_mode"))
            angle_mode = defaults.angle_mode

        theme = data.get("theme", defaults.theme)
        if theme not in THEMES:
            theme = defaults.theme

        precision = data.get("precision", defaults.precision)
        if isinstance(precision, bool) or not isinstance(precision, int) or not 1 <= precision <= 15:
            precision = defaults.precision

        return cls(
            angle_mode=angle_mode,
            sound_enabled=bool(data.get("sound_enabled", defaults.sound_enabled)),
            theme=theme,
            precision=precision,
        )


class SettingsManager:
    """Loads, updates and persists Settings."""

    def __init__(self, storage: KeyValueStore):
        self.storage = storage
        self.settings = self._load()

    def _load(self) -> Settings:
        data = self.storage.load(SETTINGS_KEY, {})
        if not isinstance(data, dict):
            return Settings()
        return Settings.from_dict(data)

    def save(self) -> bool:
        """Persist current settings."""
        return self.storage.store(SETTINGS_KEY, self.settings.to_dict())

    def set_angle_mode(self, mode: AngleMode) -> AngleMode:
        self.settings.angle_mode = mode
        self.save()
        return mode

    def toggle_angle_mode(self) -> AngleMode:
        """Cycle DEG -> RAD -> GRAD -> DEG."""
        return self.set_angle_mode(self.settings.angle_mode.next())

    def toggle_sound(self) -> bool:
        self.settings.sound_enabled = not self.settings.sound_enabled
        self.save()
        return self.settings.sound_enabled

    def toggle_theme(self) -> str:
        self.settings.theme = "light" if self.settings.theme == "dark" else "dark"
        self.save()
        return self.settings.theme

    def set_precision(self, precision: int) -> int:
        """Set display precision.

        Raises:
            ValueError: If precision is outside 1..15.
        """
        if not 1 <= precision <= 15:
            raise ValueError("precision must be 1..15")
        self.settings.precision = precision
        self.save()
        return precision

    def update(self, data: Dict[str, Any]) -> Settings:
        """Merge a partial settings dict (invalid values are ignored)."""
        merged = self.settings.to_dict()
        merged.update(data)
        self.settings = Settings.from_dict(merged)
        self.save()
        return self.settings
