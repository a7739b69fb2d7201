"""Key-value persistence for settings, memory and history.

Two backends share the same contract:
- store(key, value) -> bool: never raises, returns False on failure
- load(key, default): returns the default when the key is missing or unreadable

JsonFileStore keeps one JSON file per key and writes it atomically (temp file
then rename), so readers never see a half-written snapshot.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

__all__ = [
    "KeyValueStore",
    "JsonFileStore",
    "InMemoryStore",
    "SETTINGS_KEY",
    "MEMORY_KEY",
    "HISTORY_KEY",
    "default_data_dir",
]

logger = logging.getLogger(__name__)

SETTINGS_KEY = "calculatorSettings"
MEMORY_KEY = "calculatorMemory"
HISTORY_KEY = "calculatorHistory"

DATA_DIR_ENV = "SCICALC_HOME"


def default_data_dir() -> Path:
    """Data directory from $SCICALC_HOME, falling back to ~/.scicalc."""
    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.home() / ".scicalc"


class KeyValueStore:
    """Interface for persistence backends."""

    def store(self, key: str, value: Any) -> bool:
        raise NotImplementedError

    def load(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError


class JsonFileStore(KeyValueStore):
    """Stores each key as <data_dir>/<key>.json."""

    def __init__(self, data_dir: str):
        """Initialize with the directory that holds the JSON files.

        Args:
            data_dir: Directory path; created on first write.
        """
        self.data_dir = Path(data_dir).expanduser().resolve()

    def _ensure_data_dir(self) -> None:
        """Ensure data directory exists."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _get_key_file(self, key: str) -> Path:
        """Get the file path for a key.

        Args:
            key: Storage key.

        Returns:
            Path to the key's JSON file.
        """
        safe_key = "".join(c if c.isalnum() or c in "-_" else "_" for c in key)
        return self.data_dir / f"{safe_key}.json"

    def store(self, key: str, value: Any) -> bool:
        """Write a value as JSON.

        Args:
            key: Storage key.
            value: JSON-serializable value.

        Returns:
            True if the value was written, False otherwise.
        """
        try:
            payload = json.dumps(value, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.error("Failed to serialize %s: %s", key, e)
            return False

        try:
            self._ensure_data_dir()
            fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=".tmp-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, self._get_key_file(key))
            except OSError:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            logger.error("Failed to store %s: %s", key, e)
            return False

        return True

    def load(self, key: str, default: Any = None) -> Any:
        """Read a value, returning the default if missing or corrupt."""
        key_file = self._get_key_file(key)

        if not key_file.exists():
            return default

        try:
            with open(key_file, encoding="utf-8") as f:
                return json.load(f)
        except (ValueError, OSError) as e:
            logger.warning("Failed to load %s: %s", key, e)
            return default

    def remove(self, key: str) -> bool:
        """Delete a key's file. Returns True if a file was removed."""
        key_file = self._get_key_file(key)
        try:
            key_file.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("Failed to remove %s: %s", key, e)
            return False


class InMemoryStore(KeyValueStore):
    """Dict-backed store holding JSON-encoded snapshots.

    Values go through JSON on the way in and out so callers get the same
    copy semantics (and the same serialization failures) as with files.
    """

    def __init__(self):
        self._data: Dict[str, str] = {}

    def store(self, key: str, value: Any) -> bool:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.error("Failed to serialize %s: %s", key, e)
            return False
        return True

    def load(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return json.loads(self._data[key])

    def keys(self):
        return list(self._data)
