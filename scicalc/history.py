"""Calculation history for scicalc.

Bounded FIFO log of (expression, result) entries:
- Oldest-first order, capacity 10 by default
- Adding past capacity evicts the oldest entry (recall never reorders)
- Readers return fresh copies; stored entries are never mutated
- Every mutation persists the full entry list
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from .formatter import format_number
from .storage import HISTORY_KEY, KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10
EXPORT_VERSION = "1.0"


@dataclass(frozen=True)
class HistoryEntry:
    """A single calculation in the history."""

    id: int
    expression: str
    result: float
    formatted_result: str
    timestamp: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "expression": self.expression,
            "result": self.result,
            "formatted_result": self.formatted_result,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryEntry":
        result = float(data["result"])
        return cls(
            id=int(data["id"]),
            expression=str(data["expression"]),
            result=result,
            formatted_result=data.get("formatted_result") or format_number(result),
            timestamp=data.get("timestamp", ""),
        )

    def __str__(self) -> str:
        return f"{self.expression} = {self.formatted_result}"


def _parse_entries(raw) -> List[dict]:
    """Keep only well-formed entry dicts from persisted data."""
    if not isinstance(raw, list):
        return []

    entries = []
    for item in raw:
        try:
            entry = HistoryEntry.from_dict(item)
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.warning("Skipping malformed history entry: %r", item)
            continue
        if math.isfinite(entry.result):
            entries.append(entry.to_dict())
    return entries


class HistoryLog:
    """Manages calculation history in the key-value store."""

    def __init__(self, storage: KeyValueStore, capacity: int = DEFAULT_CAPACITY):
        """Initialize and load persisted history.

        Args:
            storage: Key-value store the history is persisted to.
            capacity: Maximum number of entries kept.
        """
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")

        self.storage = storage
        self.capacity = capacity
        self._entries: List[dict] = []
        self._load()
        self._next_id = max((e["id"] for e in self._entries), default=0) + 1

    def _load(self):
        raw = self.storage.load(HISTORY_KEY, [])
        entries = _parse_entries(raw)

        # Stored history may predate a smaller capacity
        if len(entries) > self.capacity:
            entries = entries[-self.capacity:]
            self._entries = entries
            self._save()
        else:
            self._entries = entries

    def _save(self) -> bool:
        return self.storage.store(HISTORY_KEY, self._entries)

    def _generate_id(self) -> int:
        entry_id = self._next_id
        self._next_id += 1
        return entry_id

    # --- Public Methods ---

    def add(self, expression: str, result: float) -> HistoryEntry:
        """Record a calculation.

        Args:
            expression: Expression text (surrounding whitespace is dropped).
            result: Numeric result.

        Returns:
            The new entry.
        """
        entry = HistoryEntry(
            id=self._generate_id(),
            expression=expression.strip(),
            result=float(result),
            formatted_result=format_number(result),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

        self._entries.append(entry.to_dict())
        if len(self._entries) > self.capacity:
            evicted = self._entries.pop(0)
            logger.debug("Evicted history entry %s", evicted["id"])

        self._save()
        return entry

    def clear(self) -> None:
        """Remove all entries."""
        self._entries = []
        self._save()

    def get_item(self, index: int) -> Optional[HistoryEntry]:
        """Get entry by position (0 = oldest), or None if out of range."""
        if 0 <= index < len(self._entries):
            return HistoryEntry.from_dict(self._entries[index])
        return None

    def get_all(self) -> List[HistoryEntry]:
        """All entries, oldest first."""
        return [HistoryEntry.from_dict(e) for e in self._entries]

    def get_recent(self, count: int = 5) -> List[HistoryEntry]:
        """The newest `count` entries, oldest first."""
        if count <= 0:
            return []
        return [HistoryEntry.from_dict(e) for e in self._entries[-count:]]

    def search(self, query: str) -> List[HistoryEntry]:
        """Case-insensitive match on expression or formatted result."""
        needle = query.lower()
        return [
            HistoryEntry.from_dict(e)
            for e in self._entries
            if needle in e["expression"].lower() or needle in e["formatted_result"].lower()
        ]

    @property
    def size(self) -> int:
        """Return current history size."""
        return len(self._entries)

    def reset(self) -> None:
        self.clear()

    # --- Backup ---

    def export_history(self) -> dict:
        """Entries plus metadata for backup."""
        return {
            "history": [dict(e) for e in self._entries],
            "max_history": self.capacity,
            "export_date": datetime.now(timezone.utc).isoformat(),
            "version": EXPORT_VERSION,
        }

    def import_history(self, data: Optional[dict]) -> bool:
        """Replace history with an export; keeps the newest `capacity` entries.

        Returns:
            True if the data had a history list and was applied.
        """
        if not isinstance(data, dict) or not isinstance(data.get("history"), list):
            return False

        self._entries = _parse_entries(data["history"])[-self.capacity:]
        self._next_id = max(
            self._next_id, max((e["id"] for e in self._entries), default=0) + 1
        )
        return self._save()

    def stats(self) -> dict:
        """Counts and timestamps for the history panel."""
        today = datetime.now(timezone.utc).date()
        today_count = 0
        for e in self._entries:
            try:
                if datetime.fromisoformat(e["timestamp"]).date() == today:
                    today_count += 1
            except (TypeError, ValueError):
                pass

        return {
            "total_calculations": len(self._entries),
            "today_calculations": today_count,
            "oldest_calculation": self._entries[0]["timestamp"] if self._entries else None,
            "newest_calculation": self._entries[-1]["timestamp"] if self._entries else None,
            "max_capacity": self.capacity,
            "usage": f"{len(self._entries)}/{self.capacity}",
        }
