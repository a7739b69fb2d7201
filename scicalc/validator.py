"""Static syntax checks run before an expression is evaluated.

The checks are necessary but not sufficient: an expression that passes can
still fail during evaluation (for example a division by zero).
"""

import re
from typing import Optional

__all__ = ["validate_expression", "find_syntax_problem"]

# Binary operators in display and ASCII form; ^ and % are not part of the set
OPERATOR_CHARS = "+-−×÷*/"

_DOUBLE_OPERATOR = re.compile(f"[{re.escape(OPERATOR_CHARS)}]{{2,}}")
_DOUBLE_DECIMAL = re.compile(r"\.[0-9]*\.")
_LEADING_OPERATOR = re.compile(r"^[×÷*/]")
_TRAILING_OPERATOR = re.compile(f"[{re.escape(OPERATOR_CHARS)}^]$")


def _parentheses_balanced(expression: str) -> bool:
    depth = 0
    for char in expression:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def find_syntax_problem(expression: str) -> Optional[str]:
    """Return the reason the expression is malformed, or None.

    Checks run in order and the first failing one is reported.
    """
    if not _parentheses_balanced(expression):
        return "unbalanced parentheses"
    if _DOUBLE_OPERATOR.search(expression):
        return "consecutive operators"
    if _DOUBLE_DECIMAL.search(expression):
        return "multiple decimal points in a number"
    if _LEADING_OPERATOR.search(expression):
        return "starts with an operator"
    if _TRAILING_OPERATOR.search(expression):
        return "ends with an operator"
    return None


def validate_expression(expression: str) -> bool:
    """Check an expression for basic syntax errors.

    Args:
        expression: Infix expression as built by the user.

    Returns:
        True if every static check passes.
    """
    return find_syntax_problem(expression) is None
