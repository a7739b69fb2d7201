"""Single-argument scientific functions.

Each operation works on the current operand and returns the result together
with a display expression used for the history log. Near-zero results are
snapped to exactly 0 so trigonometric noise (sin(180°) = 1.2e-16) does not
reach the display.
"""

import logging
import math
import random
from dataclasses import dataclass
from typing import Callable, Dict

from .angles import AngleMode, convert_angle
from .errors import (
    CalculationOverflowError,
    DomainError,
    InvalidInputError,
    MathError,
)
from .formatter import format_number

__all__ = ["FunctionResult", "FunctionLibrary", "factorial", "random_number"]

logger = logging.getLogger(__name__)

ZERO_THRESHOLD = 1e-10
TAN_ASYMPTOTE_THRESHOLD = 1e-10
MAX_FACTORIAL = 170


@dataclass(frozen=True)
class FunctionResult:
    """Outcome of a function-library operation."""

    value: float
    expression: str

    def to_dict(self) -> dict:
        return {"value": self.value, "expression": self.expression}


def _snap_to_zero(value: float) -> float:
    return 0.0 if abs(value) < ZERO_THRESHOLD else value


def _require_finite(value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise InvalidInputError(detail=f"non-finite input {value!r}")
    return value


def _check_result(value: float) -> float:
    if math.isnan(value):
        raise MathError()
    if math.isinf(value):
        raise CalculationOverflowError()
    return value


def factorial(n: float) -> float:
    """Factorial of a non-negative integer as a float.

    Raises:
        InvalidInputError: n is negative or not an integer.
        CalculationOverflowError: n! exceeds the double range (n > 170).
    """
    n = float(n)
    if not math.isfinite(n) or not n.is_integer() or n < 0:
        raise InvalidInputError(detail=f"factorial of {n!r}")
    if n > MAX_FACTORIAL:
        raise CalculationOverflowError(detail=f"{format_number(n)}! is too large")
    return float(math.factorial(int(n)))


def random_number(minimum: float = 0.0, maximum: float = 1.0) -> float:
    """Uniform random value in [minimum, maximum)."""
    return random.random() * (maximum - minimum) + minimum


class FunctionLibrary:
    """Scientific functions bound to an angle mode.

    Example:
        >>> lib = FunctionLibrary(AngleMode.DEGREES)
        >>> lib.sin(30).value
        0.49999999999999994
        >>> lib.sqrt(25).expression
        '√(25)'
    """

    def __init__(
        self,
        angle_mode: AngleMode = AngleMode.DEGREES,
        random_min: float = 0.0,
        random_max: float = 1.0,
    ):
        self.angle_mode = angle_mode
        self.random_min = random_min
        self.random_max = random_max

    # --- Helpers ---

    def _result(self, value: float, expression: str) -> FunctionResult:
        value = _snap_to_zero(_check_result(value))
        logger.debug("%s = %r", expression, value)
        return FunctionResult(value=value, expression=expression)

    def _angle_label(self, x: float) -> str:
        return f"{format_number(x)}{self.angle_mode.suffix}"

    def _from_radians(self, radians: float) -> float:
        return convert_angle(radians, self.angle_mode, to_radians=False)

    # --- Trigonometry ---

    def sin(self, x: float) -> FunctionResult:
        x = _require_finite(x)
        radians = convert_angle(x, self.angle_mode, to_radians=True)
        return self._result(math.sin(radians), f"sin({self._angle_label(x)})")

    def cos(self, x: float) -> FunctionResult:
        x = _require_finite(x)
        radians = convert_angle(x, self.angle_mode, to_radians=True)
        return self._result(math.cos(radians), f"cos({self._angle_label(x)})")

    def tan(self, x: float) -> FunctionResult:
        """Tangent; fails with MathError next to an asymptote (cos ~ 0)."""
        x = _require_finite(x)
        radians = convert_angle(x, self.angle_mode, to_radians=True)
        if abs(math.cos(radians)) < TAN_ASYMPTOTE_THRESHOLD:
            raise MathError(detail=f"tan undefined at {self._angle_label(x)}")
        return self._result(math.tan(radians), f"tan({self._angle_label(x)})")

    def asin(self, x: float) -> FunctionResult:
        x = _require_finite(x)
        if not -1 <= x <= 1:
            raise DomainError(detail=f"asin({format_number(x)})")
        return self._result(self._from_radians(math.asin(x)), f"asin({format_number(x)})")

    def acos(self, x: float) -> FunctionResult:
        x = _require_finite(x)
        if not -1 <= x <= 1:
            raise DomainError(detail=f"acos({format_number(x)})")
        return self._result(self._from_radians(math.acos(x)), f"acos({format_number(x)})")

    def atan(self, x: float) -> FunctionResult:
        x = _require_finite(x)
        return self._result(self._from_radians(math.atan(x)), f"atan({format_number(x)})")

    # --- Logarithms and roots ---

    def log(self, x: float) -> FunctionResult:
        """Base-10 logarithm."""
        x = _require_finite(x)
        if x <= 0:
            raise DomainError(detail=f"log({format_number(x)})")
        return self._result(math.log10(x), f"log({format_number(x)})")

    def ln(self, x: float) -> FunctionResult:
        """Natural logarithm."""
        x = _require_finite(x)
        if x <= 0:
            raise DomainError(detail=f"ln({format_number(x)})")
        return self._result(math.log(x), f"ln({format_number(x)})")

    def sqrt(self, x: float) -> FunctionResult:
        x = _require_finite(x)
        if x < 0:
            raise DomainError(detail=f"√({format_number(x)})")
        return self._result(math.sqrt(x), f"√({format_number(x)})")

    def cbrt(self, x: float) -> FunctionResult:
        """Real cube root, defined for negative input too."""
        x = _require_finite(x)
        root = math.copysign(abs(x) ** (1.0 / 3.0), x)
        nearest = round(root)
        if nearest**3 == x:
            root = float(nearest)
        return self._result(root, f"∛({format_number(x)})")

    # --- Powers ---

    def square(self, x: float) -> FunctionResult:
        x = _require_finite(x)
        return self._result(x * x, f"({format_number(x)})²")

    def cube(self, x: float) -> FunctionResult:
        x = _require_finite(x)
        return self._result(x * x * x, f"({format_number(x)})³")

    def power(self, x: float, exponent: float) -> FunctionResult:
        x = _require_finite(x)
        exponent = _require_finite(exponent)
        try:
            value = math.pow(x, exponent)
        except OverflowError:
            raise CalculationOverflowError(
                detail=f"{format_number(x)}^{format_number(exponent)}"
            ) from None
        except ValueError:
            raise MathError(
                detail=f"{format_number(x)}^{format_number(exponent)}"
            ) from None
        return self._result(value, f"{format_number(x)}^{format_number(exponent)}")

    # --- Misc ---

    def factorial(self, x: float) -> FunctionResult:
        x = _require_finite(x)
        return self._result(factorial(x), f"{format_number(x)}!")

    def percent(self, x: float) -> FunctionResult:
        x = _require_finite(x)
        return self._result(x / 100, f"{format_number(x)}%")

    def random(self) -> FunctionResult:
        """Random value in [random_min, random_max)."""
        if not self.random_min < self.random_max:
            raise InvalidInputError(
                detail=f"empty random range [{self.random_min}, {self.random_max})"
            )
        return self._result(random_number(self.random_min, self.random_max), "rand()")

    # --- Dispatch ---

    def operations(self) -> Dict[str, Callable[..., FunctionResult]]:
        """Map of operation names (and display aliases) to bound methods."""
        return {
            "sin": self.sin,
            "cos": self.cos,
            "tan": self.tan,
            "asin": self.asin,
            "acos": self.acos,
            "atan": self.atan,
            "log": self.log,
            "log10": self.log,
            "ln": self.ln,
            "sqrt": self.sqrt,
            "√": self.sqrt,
            "cbrt": self.cbrt,
            "∛": self.cbrt,
            "square": self.square,
            "x²": self.square,
            "cube": self.cube,
            "x³": self.cube,
            "power": self.power,
            "pow": self.power,
            "factorial": self.factorial,
            "!": self.factorial,
            "percent": self.percent,
            "%": self.percent,
            "random": self.random,
            "rand": self.random,
        }

    def apply(self, name: str, *args: float) -> FunctionResult:
        """Run an operation by name.

        Args:
            name: Operation name or alias (e.g. "sin", "√", "!").
            *args: Operand, plus the exponent for "power". "random" takes none.

        Raises:
            InvalidInputError: Unknown operation or wrong number of arguments.
        """
        operations = self.operations()
        key = name.strip()
        operation = operations.get(key) or operations.get(key.lower())
        if operation is None:
            raise InvalidInputError(detail=f"unknown function {name!r}")

        expected = {self.power: 2, self.random: 0}.get(operation, 1)
        if len(args) != expected:
            raise InvalidInputError(
                detail=f"{name} takes {expected} argument(s), got {len(args)}"
            )
        return operation(*args)
