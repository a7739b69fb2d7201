"""Expression builder driven by individual key presses.

Keeps two views of the pending input: the committed prefix (operands and
operators already locked in) and the operand currently being typed. The
builder is a small state machine so every input class has a defined effect
in every state; inputs that make no sense in a state are ignored.
"""

import math
from enum import Enum
from typing import Optional

from .errors import InvalidInputError
from .formatter import format_operand

# Display symbols for the binary operators
BINARY_OPERATORS = ("+", "−", "×", "÷", "^")

# Keyboard/ASCII aliases accepted by input_operator
OPERATOR_ALIASES = {
    "-": "−",
    "*": "×",
    "/": "÷",
    "x": "×",
}

MAX_OPERAND_DIGITS = 16


class InputState(Enum):
    """Builder states."""

    AWAITING_OPERAND = "awaiting_operand"  # after an operator, "(" or a clear
    BUILDING_OPERAND = "building_operand"  # typing digits
    AWAITING_OPERATOR = "awaiting_operator"  # after ")", "%" or a computed value


class ExpressionBuilder:
    """State machine that assembles an infix expression from key presses.

    Example:
        >>> b = ExpressionBuilder()
        >>> for key in "12":
        ...     b.input_digit(key)
        >>> b.input_operator("+")
        >>> b.input_digit("3")
        >>> b.full_expression()
        '12+3'
    """

    def __init__(self):
        self.clear_all()

    # --- State ---

    def clear_all(self) -> None:
        """Reset to an empty expression and a neutral zero."""
        self.committed = ""
        self.current = ""
        self.state = InputState.AWAITING_OPERAND
        self.depth = 0
        self.fresh = False  # current holds a computed value

    def clear_entry(self) -> None:
        """Drop the operand being typed, keep the committed prefix."""
        if self.state is InputState.AWAITING_OPERATOR and not self.current:
            return
        self.current = ""
        self.fresh = False
        self.state = InputState.AWAITING_OPERAND

    @property
    def display(self) -> str:
        """Text for the main display."""
        return self.current or "0"

    @property
    def expression(self) -> str:
        """Committed prefix, for the secondary display."""
        return self.committed

    def _last_committed(self) -> str:
        return self.committed[-1:] if self.committed else ""

    def _commit_operand(self) -> None:
        operand = self.current
        if operand.startswith("-") and self._last_committed() in BINARY_OPERATORS:
            operand = f"({operand})"
        self.committed += operand
        self.current = ""
        self.fresh = False

    def _start_over_if_fresh(self) -> None:
        if self.fresh:
            self.clear_all()

    # --- Inputs ---

    def input_digit(self, digit: str) -> None:
        if len(digit) != 1 or not digit.isdigit():
            raise ValueError(f"Not a digit: {digit!r}")

        if self.state is InputState.AWAITING_OPERATOR:
            if not self.fresh:
                return  # after ")" or "%"
            self.clear_entry()

        if self.state is InputState.AWAITING_OPERAND:
            self.current = digit
            self.state = InputState.BUILDING_OPERAND
            return

        digits = sum(c.isdigit() for c in self.current)
        if digits >= MAX_OPERAND_DIGITS:
            return
        if self.current in ("0", "-0"):
            self.current = self.current[:-1] + digit
        else:
            self.current += digit

    def input_decimal(self) -> None:
        if self.state is InputState.AWAITING_OPERATOR:
            if not self.fresh:
                return
            self.clear_entry()

        if self.state is InputState.AWAITING_OPERAND:
            self.current = "0."
            self.state = InputState.BUILDING_OPERAND
        elif "." not in self.current and "e" not in self.current:
            self.current += "."

    def input_operator(self, operator: str) -> None:
        op = OPERATOR_ALIASES.get(operator, operator)
        if op not in BINARY_OPERATORS:
            raise ValueError(f"Not a binary operator: {operator!r}")

        if self.state is InputState.AWAITING_OPERAND:
            last = self._last_committed()
            if last in BINARY_OPERATORS:
                self.committed = self.committed[:-1] + op
            elif not self.committed:
                self.committed = "0" + op
            # Right after "(" an operator is ignored
            return

        if self.current:
            if self.current.endswith("."):
                self.current = self.current[:-1]
            self._commit_operand()
        self.committed += op
        self.state = InputState.AWAITING_OPERAND

    def open_paren(self) -> None:
        if self.state is not InputState.AWAITING_OPERAND:
            if not self.fresh:
                return
            self.clear_entry()
        self.committed += "("
        self.depth += 1

    def close_paren(self) -> None:
        if self.depth == 0 or self.state is InputState.AWAITING_OPERAND:
            return
        if self.current:
            self._commit_operand()
        self.committed += ")"
        self.depth -= 1
        self.state = InputState.AWAITING_OPERATOR

    def input_percent(self) -> None:
        if self.state is InputState.AWAITING_OPERAND:
            return
        if self.current:
            self._commit_operand()
        self.committed += "%"
        self.state = InputState.AWAITING_OPERATOR

    def negate(self) -> None:
        """Toggle the sign of the current operand."""
        if not self.current:
            return
        if self.current.startswith("-"):
            self.current = self.current[1:]
        else:
            self.current = "-" + self.current

    def backspace(self) -> None:
        if self.state is not InputState.BUILDING_OPERAND:
            return
        self.current = self.current[:-1]
        if self.current in ("", "-"):
            self.current = ""
            self.state = InputState.AWAITING_OPERAND

    def set_operand(self, value: float) -> None:
        """Load a computed value (function result, recall, constant) as the operand."""
        if not math.isfinite(value):
            raise InvalidInputError(detail=f"cannot enter {value!r} as an operand")
        if self.state is InputState.AWAITING_OPERATOR and not self.fresh:
            # After ")" or "%" there is no operand slot; start over
            self.clear_all()
        self.current = format_operand(value)
        self.fresh = True
        self.state = InputState.AWAITING_OPERATOR

    # --- Evaluation ---

    def full_expression(self) -> str:
        """Committed + current with trailing operators stripped."""
        current = self.current
        if current.endswith("."):
            current = current[:-1]
        if current.startswith("-") and self._last_committed() in BINARY_OPERATORS:
            current = f"({current})"
        text = self.committed + current
        while text and text[-1] in BINARY_OPERATORS:
            text = text[:-1]
        return text

    def current_value(self) -> Optional[float]:
        """Numeric value of the operand being typed, if any."""
        text = self.current.rstrip(".")
        if not text or text == "-":
            return None
        return float(text)

    def accept_result(self, value: float) -> None:
        """Replace the whole expression with a computed result."""
        self.clear_all()
        self.set_operand(value)
