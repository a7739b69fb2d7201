"""scicalc - Scientific calculator core.

Expression evaluation and calculator state for a scientific calculator:
- Safe infix evaluation (no code execution) with IEEE-754 semantics
- Scientific functions in degrees, radians or gradians
- Memory register (MS, MR, MC, M+, M-)
- Bounded calculation history
- Key-value persistence of settings, memory and history
"""

__version__ = "1.0.0"

from .angles import AngleMode, convert_angle
from .errors import (
    CalculatorError,
    ErrorKind,
    ExpressionSyntaxError,
    DivisionByZeroError,
    MathError,
    CalculationOverflowError,
    DomainError,
    InvalidInputError,
    MemoryRegisterError,
)
from .evaluator import evaluate
from .validator import validate_expression
from .formatter import format_number
from .functions import FunctionLibrary, FunctionResult
from .memory import MemoryStore
from .history import HistoryLog, HistoryEntry
from .storage import JsonFileStore, InMemoryStore
from .session import CalculatorSession, DisplayState

__all__ = [
    # Angles
    "AngleMode",
    "convert_angle",
    # Errors
    "CalculatorError",
    "ErrorKind",
    "ExpressionSyntaxError",
    "DivisionByZeroError",
    "MathError",
    "CalculationOverflowError",
    "DomainError",
    "InvalidInputError",
    "MemoryRegisterError",
    # Evaluation
    "evaluate",
    "validate_expression",
    "format_number",
    "FunctionLibrary",
    "FunctionResult",
    # State
    "MemoryStore",
    "HistoryLog",
    "HistoryEntry",
    "JsonFileStore",
    "InMemoryStore",
    "CalculatorSession",
    "DisplayState",
]
