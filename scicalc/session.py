"""Calculator session: the object UI handlers talk to.

A session owns the settings, the memory register, the history log, the
function library and the expression builder. It is created once at startup
and passed to every event handler.

Event methods return a DisplayState. Failures are reported in the returned
state (message + kind) and leave the pending input untouched, so the caller
can show the error and then call reset_after_error().
"""

import asyncio
import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Dict, Optional, Union

from .angles import AngleMode
from .builder import ExpressionBuilder, InputState
from .errors import CalculatorError, ErrorKind, ExpressionSyntaxError, InvalidInputError
from .evaluator import CONSTANTS, evaluate
from .formatter import format_number
from .functions import FunctionLibrary, FunctionResult
from .history import DEFAULT_CAPACITY, HistoryEntry, HistoryLog
from .memory import MemoryStore
from .settings import SettingsManager
from .storage import InMemoryStore, KeyValueStore
from .validator import find_syntax_problem

logger = logging.getLogger(__name__)

# Delay before "=" evaluates, so a loading indicator can render
CALCULATION_DELAY = 0.05

MEMORY_ACTIONS = {
    "ms": "store",
    "mr": "recall",
    "mc": "clear",
    "m+": "add",
    "m-add": "add",
    "m-": "subtract",
    "m-sub": "subtract",
}

CONSTANT_NAMES = {
    "pi": "π",
    "π": "π",
    "e": "e",
}


@dataclass
class DisplayState:
    """What the UI should show after an event."""

    display: str
    expression: str = ""
    memory_active: bool = False
    angle_mode: str = AngleMode.DEGREES.value
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "display": self.display,
            "expression": self.expression,
            "memory_active": self.memory_active,
            "angle_mode": self.angle_mode,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
        }


def reports_errors(func: Callable) -> Callable:
    """Turn a CalculatorError raised by an event method into an error state."""

    @wraps(func)
    def wrapper(self: "CalculatorSession", *args, **kwargs) -> DisplayState:
        try:
            func(self, *args, **kwargs)
        except CalculatorError as e:
            logger.info("%s failed: %s %s", func.__name__, e.message, e.detail)
            return self.error_state(e)
        return self.state()

    return wrapper


class CalculatorSession:
    """Owns all calculator state for one user session."""

    def __init__(
        self,
        storage: Optional[KeyValueStore] = None,
        history_capacity: int = DEFAULT_CAPACITY,
    ):
        """Initialize the session and load persisted state.

        Args:
            storage: Persistence backend; an in-memory store when omitted.
            history_capacity: Maximum number of history entries.
        """
        self.storage = storage if storage is not None else InMemoryStore()
        self.settings = SettingsManager(self.storage)
        self.memory = MemoryStore(self.storage)
        self.history = HistoryLog(self.storage, capacity=history_capacity)
        self.functions = FunctionLibrary(self.settings.settings.angle_mode)
        self.builder = ExpressionBuilder()
        self.last_result: Optional[float] = None
        self._generation = 0

    # --- State ---

    @property
    def angle_mode(self) -> AngleMode:
        return self.settings.settings.angle_mode

    def state(self) -> DisplayState:
        """Current display state."""
        display = self.builder.display
        if self.builder.fresh:
            display = format_number(float(self.builder.current), self.settings.settings.precision)

        return DisplayState(
            display=display,
            expression=self.builder.expression,
            memory_active=self.memory.is_active(),
            angle_mode=self.angle_mode.value,
        )

    def error_state(self, error: CalculatorError) -> DisplayState:
        state = self.state()
        state.display = error.message
        state.error = error.message
        state.error_kind = error.kind
        return state

    def reset_after_error(self) -> DisplayState:
        """Return the input to a neutral zero after a failure was shown."""
        self.builder.clear_all()
        return self.state()

    def _operand(self) -> float:
        value = self.builder.current_value()
        if value is not None:
            return value
        if self.builder.state is InputState.AWAITING_OPERATOR:
            # After ")" or "%" the pending expression is the operand
            return self.compute(self.builder.full_expression(), record=False)
        return 0.0

    # --- Expression input ---

    def input_digit(self, digit: str) -> DisplayState:
        self.builder.input_digit(digit)
        return self.state()

    def input_decimal(self) -> DisplayState:
        self.builder.input_decimal()
        return self.state()

    def input_operator(self, operator: str) -> DisplayState:
        self.builder.input_operator(operator)
        return self.state()

    def open_paren(self) -> DisplayState:
        self.builder.open_paren()
        return self.state()

    def close_paren(self) -> DisplayState:
        self.builder.close_paren()
        return self.state()

    def input_percent(self) -> DisplayState:
        self.builder.input_percent()
        return self.state()

    def negate(self) -> DisplayState:
        self.builder.negate()
        return self.state()

    @reports_errors
    def input_constant(self, constant: Union[str, float]) -> None:
        """Load π, e or a literal value as the current operand."""
        if isinstance(constant, str):
            symbol = CONSTANT_NAMES.get(constant.strip().lower())
            if symbol is None:
                raise InvalidInputError(detail=f"unknown constant {constant!r}")
            constant = CONSTANTS[symbol]
        self.builder.set_operand(float(constant))

    def backspace(self) -> DisplayState:
        self.builder.backspace()
        return self.state()

    def clear_entry(self) -> DisplayState:
        self.builder.clear_entry()
        return self.state()

    def clear_all(self) -> DisplayState:
        self.builder.clear_all()
        return self.state()

    # --- Evaluation ---

    def compute(self, expression: str, record: bool = True) -> float:
        """Validate and evaluate an expression, optionally logging it to history.

        Raises:
            CalculatorError: The classified failure.
        """
        expression = expression.strip()
        problem = find_syntax_problem(expression)
        if problem:
            raise ExpressionSyntaxError(detail=problem)

        result = evaluate(expression)
        if record:
            self.history.add(expression, result)
        return result

    @reports_errors
    def calculate(self) -> None:
        """"=": evaluate the pending expression."""
        expression = self.builder.full_expression()
        if not expression or (self.builder.fresh and not self.builder.committed):
            # Nothing pending beyond a value already on the display
            return

        result = self.compute(expression)
        self.last_result = result
        self.builder.accept_result(result)

    async def calculate_deferred(self, delay: float = CALCULATION_DELAY) -> Optional[DisplayState]:
        """Evaluate after a short delay; only the newest request runs.

        Returns:
            The resulting state, or None when a newer request superseded
            this one during the delay.
        """
        self._generation += 1
        generation = self._generation

        await asyncio.sleep(delay)

        if generation != self._generation:
            logger.debug("Discarding superseded calculation %d", generation)
            return None
        return self.calculate()

    @reports_errors
    def apply_function(self, name: str, *args: float) -> None:
        """Apply a function-library operation to the current operand."""
        self.functions.angle_mode = self.angle_mode

        if name.strip().lower() in ("random", "rand"):
            result: FunctionResult = self.functions.apply(name)
        else:
            result = self.functions.apply(name, self._operand(), *args)

        self.history.add(result.expression, result.value)
        self.last_result = result.value
        self.builder.set_operand(result.value)

    # --- Memory ---

    @reports_errors
    def memory_action(self, action: str) -> None:
        """Run MS, MR, MC, M+ or M- ("ms", "mr", "mc", "m+", "m-")."""
        operation = MEMORY_ACTIONS.get(action.strip().lower())
        if operation is None:
            raise InvalidInputError(detail=f"unknown memory action {action!r}")

        if operation == "recall":
            self.builder.set_operand(self.memory.recall())
        elif operation == "clear":
            self.memory.clear()
        else:
            getattr(self.memory, operation)(self._operand())

    # --- History ---

    @reports_errors
    def recall_history(self, index: int) -> None:
        """Load a history entry's result as the current operand."""
        entry: Optional[HistoryEntry] = self.history.get_item(index)
        if entry is None:
            raise InvalidInputError(detail=f"no history entry at {index}")
        self.builder.set_operand(entry.result)

    # --- Settings ---

    def toggle_angle_mode(self) -> AngleMode:
        mode = self.settings.toggle_angle_mode()
        self.functions.angle_mode = mode
        return mode

    def set_angle_mode(self, mode: AngleMode) -> AngleMode:
        self.settings.set_angle_mode(mode)
        self.functions.angle_mode = mode
        return mode

    def toggle_sound(self) -> bool:
        return self.settings.toggle_sound()

    def toggle_theme(self) -> str:
        return self.settings.toggle_theme()

    # --- Keyboard ---

    def handle_key(self, key: str) -> DisplayState:
        """Translate a key name into an event.

        Unknown keys leave the state unchanged.
        """
        if len(key) == 1 and key.isdigit():
            return self.input_digit(key)
        if key in (".", ","):
            return self.input_decimal()
        if key in ("+", "-", "*", "/", "^", "−", "×", "÷"):
            return self.input_operator(key)
        if key == "%":
            return self.input_percent()
        if key == "(":
            return self.open_paren()
        if key == ")":
            return self.close_paren()
        if key in ("Enter", "="):
            return self.calculate()
        if key == "Backspace":
            return self.backspace()
        if key == "Escape":
            return self.clear_all()
        if key == "Delete":
            return self.clear_entry()
        return self.state()

    # --- Clipboard ---

    def copy_display(self, write_text: Callable[[str], Any]) -> bool:
        """Hand the display text to a clipboard writer; never raises."""
        try:
            return write_text(self.state().display) is not False
        except Exception as e:
            logger.warning("Clipboard write failed: %s", e)
            return False

    # --- Export / Import ---

    def export_state(self) -> Dict[str, Any]:
        return {
            "current_input": self.builder.current,
            "expression": self.builder.committed,
            "angle_mode": self.angle_mode.value,
            "settings": self.settings.settings.to_dict(),
            "memory": self.memory.export_state(),
        }

    def import_state(self, state: Dict[str, Any]) -> bool:
        """Restore a state produced by export_state.

        Returns:
            True if the state was applied.
        """
        if not isinstance(state, dict):
            return False

        if isinstance(state.get("settings"), dict):
            self.settings.update(state["settings"])
        if "angle_mode" in state:
            try:
                self.set_angle_mode(AngleMode.parse(state["angle_mode"]))
            except ValueError:
                logger.warning("Ignoring unknown angle mode %r", state["angle_mode"])
        self.functions.angle_mode = self.angle_mode

        if "memory" in state:
            self.memory.import_state(state["memory"])

        self.builder.clear_all()
        current = state.get("current_input")
        if current:
            try:
                self.builder.set_operand(float(current))
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid current input %r", current)
        return True
