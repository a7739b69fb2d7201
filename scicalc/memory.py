"""Memory register (MS, MR, MC, M+, M-).

A single numeric register with an active flag. Recall on an inactive
register returns 0. Every mutation persists the whole register in one write.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from .errors import CalculationOverflowError, InvalidInputError, MemoryRegisterError
from .formatter import format_number
from .storage import MEMORY_KEY, KeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class MemoryRegister:
    """Stored memory value and whether it has been set."""

    value: float = 0.0
    active: bool = False

    def to_dict(self) -> dict:
        return {"value": self.value, "active": self.active}

    @classmethod
    def from_dict(cls, data: dict) -> "MemoryRegister":
        value = data.get("value", 0.0)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            value = 0.0
        return cls(value=float(value), active=bool(data.get("active", False)))


class MemoryStore:
    """Manages the memory register and its persisted snapshot."""

    def __init__(self, storage: KeyValueStore):
        """Initialize and load the persisted register.

        Args:
            storage: Key-value store the register is persisted to.
        """
        self.storage = storage
        self._register = self._load()

    def _load(self) -> MemoryRegister:
        data = self.storage.load(MEMORY_KEY, {"value": 0, "active": False})
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed memory snapshot: %r", data)
            return MemoryRegister()
        return MemoryRegister.from_dict(data)

    def _save(self) -> bool:
        return self.storage.store(MEMORY_KEY, self._register.to_dict())

    def _checked(self, value: float) -> float:
        try:
            if isinstance(value, bool) or not math.isfinite(value):
                raise InvalidInputError(detail=f"cannot store {value!r} in memory")
        except TypeError:
            raise MemoryRegisterError(detail=f"not a number: {value!r}") from None
        except InvalidInputError as e:
            raise MemoryRegisterError(detail=e.detail) from e
        return float(value)

    # --- Public Methods ---

    def store(self, value: float) -> bool:
        """MS: replace the register value."""
        value = self._checked(value)
        self._register = MemoryRegister(value=value, active=True)
        logger.debug("Memory stored %r", value)
        return self._save()

    def recall(self) -> float:
        """MR: stored value, or 0 if memory was never set."""
        if not self._register.active:
            return 0.0
        return self._register.value

    def clear(self) -> bool:
        """MC: reset to an inactive zero."""
        self._register = MemoryRegister()
        logger.debug("Memory cleared")
        return self._save()

    def _accumulate(self, delta: float) -> bool:
        base = self._register.value if self._register.active else 0.0
        total = base + delta
        if not math.isfinite(total):
            # Register keeps its previous value
            overflow = CalculationOverflowError(detail=f"memory total {total!r}")
            raise MemoryRegisterError(detail=overflow.message) from overflow
        self._register = MemoryRegister(value=total, active=True)
        return self._save()

    def add(self, value: float) -> bool:
        """M+: add to the register (activating it)."""
        value = self._checked(value)
        logger.debug("Memory adding %r", value)
        return self._accumulate(value)

    def subtract(self, value: float) -> bool:
        """M-: subtract from the register (activating it)."""
        value = self._checked(value)
        logger.debug("Memory subtracting %r", value)
        return self._accumulate(-value)

    def is_active(self) -> bool:
        """Check if memory holds a value."""
        return self._register.active

    @property
    def value(self) -> float:
        """Raw register value (0 when inactive)."""
        return self._register.value

    def reset(self) -> None:
        self.clear()

    # --- Backup ---

    def export_state(self) -> dict:
        """Snapshot of the register for backup."""
        return {
            "value": self._register.value,
            "active": self._register.active,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def import_state(self, data: Optional[dict]) -> bool:
        """Restore a register exported by export_state.

        Returns:
            True if the snapshot was valid and applied.
        """
        if not isinstance(data, dict):
            return False
        value = data.get("value")
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            return False

        self._register = MemoryRegister(value=float(value), active=bool(data.get("active", False)))
        return self._save()

    def stats(self) -> dict:
        """Current value, active flag and display text."""
        return {
            "current_value": self._register.value,
            "is_active": self._register.active,
            "formatted_value": format_number(self._register.value),
        }
