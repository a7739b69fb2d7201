"""Error taxonomy for scicalc.

Every component operation either returns a value or raises exactly one of
the errors below. All of them are terminal for the current input: the user
has to re-enter the expression.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Machine-readable error kinds handed to the UI for styling."""

    SYNTAX_ERROR = "syntax_error"
    DIVISION_BY_ZERO = "division_by_zero"
    MATH_ERROR = "math_error"
    OVERFLOW_ERROR = "overflow_error"
    DOMAIN_ERROR = "domain_error"
    INVALID_INPUT = "invalid_input"
    MEMORY_ERROR = "memory_error"


ERROR_MESSAGES = {
    ErrorKind.DIVISION_BY_ZERO: "Error: Division by zero",
    ErrorKind.MATH_ERROR: "Math Error",
    ErrorKind.OVERFLOW_ERROR: "Overflow Error",
    ErrorKind.INVALID_INPUT: "Invalid Input",
    ErrorKind.DOMAIN_ERROR: "Domain Error",
    ErrorKind.MEMORY_ERROR: "Memory Error",
    ErrorKind.SYNTAX_ERROR: "Syntax Error",
}


class CalculatorError(Exception):
    """Base class for classified calculator failures."""

    kind: ErrorKind = ErrorKind.MATH_ERROR

    def __init__(self, message: Optional[str] = None, detail: str = ""):
        self.message = message or ERROR_MESSAGES[self.kind]
        self.detail = detail
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "detail": self.detail,
        }


class ExpressionSyntaxError(CalculatorError):
    """Expression failed static validation or could not be parsed."""

    kind = ErrorKind.SYNTAX_ERROR


class DivisionByZeroError(CalculatorError):
    """Literal division by zero."""

    kind = ErrorKind.DIVISION_BY_ZERO


class MathError(CalculatorError):
    """Evaluation produced NaN or hit an undefined point."""

    kind = ErrorKind.MATH_ERROR


class CalculationOverflowError(CalculatorError):
    """Result is outside the double-precision range."""

    kind = ErrorKind.OVERFLOW_ERROR


class DomainError(CalculatorError):
    """Argument outside a function's mathematical domain."""

    kind = ErrorKind.DOMAIN_ERROR


class InvalidInputError(CalculatorError):
    """Malformed or non-finite numeric input."""

    kind = ErrorKind.INVALID_INPUT


class MemoryRegisterError(CalculatorError):
    """A memory mutation was rejected."""

    kind = ErrorKind.MEMORY_ERROR
