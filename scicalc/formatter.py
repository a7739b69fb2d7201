"""Number formatting for display and for re-entry into expressions."""

import math

# Display precision
DECIMAL_PLACES = 12
MAX_SAFE_INTEGER = 2**53 - 1
MIN_SAFE_INTEGER = -(2**53 - 1)

# Magnitudes outside [SCIENTIFIC_LOW, SCIENTIFIC_HIGH) switch to e-notation
SCIENTIFIC_HIGH = 1e15
SCIENTIFIC_LOW = 1e-6
SCIENTIFIC_DIGITS = 6

NAN_TEXT = "Math Error"
INFINITY_TEXT = "∞"


def format_number(value: float, max_decimals: int = DECIMAL_PLACES) -> str:
    """Render a float as a user-facing string.

    Args:
        value: Number to format.
        max_decimals: Maximum fractional digits in fixed-point output.

    Returns:
        Integer or decimal text with trailing fractional zeros removed,
        scientific notation for very large or very small magnitudes, or a
        marker for NaN and infinities.
    """
    value = float(value)

    if not math.isfinite(value):
        if math.isnan(value):
            return NAN_TEXT
        return INFINITY_TEXT if value > 0 else "-" + INFINITY_TEXT

    magnitude = abs(value)
    if magnitude >= SCIENTIFIC_HIGH or (0 < magnitude < SCIENTIFIC_LOW):
        return f"{value:.{SCIENTIFIC_DIGITS}e}"

    text = f"{round(value, max_decimals):.{max_decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")

    # round() can leave a negative zero behind
    if text in ("-0", ""):
        return "0"
    return text


def format_operand(value: float) -> str:
    """Render a value so it can be typed back into an expression.

    Uses the display format when that text reads back as the same float.
    Anything else (scientific notation, digits past the twelfth decimal)
    falls back to ``repr`` so chained calculations keep full precision.
    """
    text = format_number(value)
    if "e" in text or float(text) != float(value):
        return repr(float(value))
    return text


def is_safe_number(value: float) -> bool:
    """Check that a value is finite and inside the exact-integer range."""
    return math.isfinite(value) and MIN_SAFE_INTEGER <= value <= MAX_SAFE_INTEGER
