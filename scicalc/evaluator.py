"""Expression evaluation engine.

Turns an infix expression string into a float without executing any code:
- Tokenizes into numbers and operators (display symbols are normalised)
- Parses with a recursive-descent grammar (precedence, associativity, unary minus)
- Evaluates with IEEE-754 double semantics
- Classifies non-finite results into calculator errors

Grammar:
    expression := term (("+" | "-") term)*
    term       := unary (("*" | "/") unary)*
    unary      := ("-" | "+") unary | power
    power      := postfix ("^" unary)?
    postfix    := primary "%"*
    primary    := NUMBER | "(" expression ")"
"""

import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .errors import (
    CalculationOverflowError,
    DivisionByZeroError,
    ExpressionSyntaxError,
    MathError,
)

__all__ = ["Token", "TokenKind", "tokenize", "Parser", "evaluate"]

logger = logging.getLogger(__name__)

# Display symbols mapped to the ASCII operators the grammar uses
SYMBOL_MAP = {
    "×": "*",
    "÷": "/",
    "−": "-",
}

OPERATORS = "+-*/^%()"

# Deepest operand nesting the parser follows before giving up
MAX_NESTING = 100

CONSTANTS = {
    "π": math.pi,
    "pi": math.pi,
    "e": math.e,
}

_NUMBER = re.compile(r"(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_NAME = re.compile(r"[A-Za-zπ]+")


class TokenKind(Enum):
    """Token categories."""

    NUMBER = "number"
    OPERATOR = "operator"


@dataclass(frozen=True)
class Token:
    """A number or operator token.

    Attributes:
        kind: NUMBER or OPERATOR.
        value: Numeric value for NUMBER tokens, 0.0 otherwise.
        symbol: Source text for NUMBER tokens, the ASCII operator otherwise.
        position: Offset of the token in the normalised expression.
    """

    kind: TokenKind
    value: float = 0.0
    symbol: str = ""
    position: int = 0

    def is_operator(self, symbol: str) -> bool:
        return self.kind is TokenKind.OPERATOR and self.symbol == symbol

    def __repr__(self) -> str:
        if self.kind is TokenKind.NUMBER:
            return f"Token(NUMBER, {self.value!r})"
        return f"Token(OPERATOR, {self.symbol!r})"


def normalize(expression: str) -> str:
    """Replace display operators with their ASCII equivalents."""
    for symbol, ascii_op in SYMBOL_MAP.items():
        expression = expression.replace(symbol, ascii_op)
    return expression


def tokenize(expression: str) -> List[Token]:
    """Split an expression into tokens.

    Named constants (π, pi, e) become NUMBER tokens. Whitespace is skipped.

    Raises:
        ExpressionSyntaxError: On any character that is not part of a number,
            an operator, a parenthesis or a known constant.
    """
    text = normalize(expression)
    tokens: List[Token] = []
    pos = 0

    while pos < len(text):
        char = text[pos]

        if char.isspace():
            pos += 1
            continue

        number = _NUMBER.match(text, pos)
        if number:
            literal = number.group(0)
            tokens.append(Token(TokenKind.NUMBER, float(literal), literal, pos))
            pos = number.end()
            continue

        if char in OPERATORS:
            tokens.append(Token(TokenKind.OPERATOR, symbol=char, position=pos))
            pos += 1
            continue

        name = _NAME.match(text, pos)
        if name and name.group(0) in CONSTANTS:
            word = name.group(0)
            tokens.append(Token(TokenKind.NUMBER, CONSTANTS[word], word, pos))
            pos = name.end()
            continue

        raise ExpressionSyntaxError(detail=f"unexpected character {char!r} at {pos}")

    return tokens


def _divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _power(base: float, exponent: float) -> float:
    try:
        return math.pow(base, exponent)
    except OverflowError:
        odd_integer = exponent.is_integer() and int(exponent) % 2 == 1
        return -math.inf if base < 0 and odd_integer else math.inf
    except ValueError:
        # 0 to a negative power; negative base with a fractional exponent
        return math.inf if base == 0 else math.nan


BINARY_OPERATIONS = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": _divide,
}


class Parser:
    """Recursive-descent evaluator over a token list.

    Each grammar rule returns the float value of the sub-expression it
    consumed, so parsing and evaluation happen in one pass.
    """

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.index = 0
        self.depth = 0

    def _current(self) -> Optional[Token]:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def _accept(self, *symbols: str) -> Optional[str]:
        token = self._current()
        if token is not None and token.kind is TokenKind.OPERATOR and token.symbol in symbols:
            self.index += 1
            return token.symbol
        return None

    def parse(self) -> float:
        """Parse the whole token list and return its value."""
        if not self.tokens:
            raise ExpressionSyntaxError(detail="empty expression")

        value = self.expression()

        leftover = self._current()
        if leftover is not None:
            raise ExpressionSyntaxError(detail=f"unexpected token at {leftover.position}")
        return value

    def expression(self) -> float:
        value = self.term()
        while True:
            op = self._accept("+", "-")
            if op is None:
                return value
            value = BINARY_OPERATIONS[op](value, self.term())

    def term(self) -> float:
        value = self.unary()
        while True:
            op = self._accept("*", "/")
            if op is None:
                return value
            value = BINARY_OPERATIONS[op](value, self.unary())

    def unary(self) -> float:
        # Each nesting level of the grammar recurses through here
        self.depth += 1
        try:
            if self.depth > MAX_NESTING:
                raise ExpressionSyntaxError(detail="expression nested too deeply")
            op = self._accept("-", "+")
            if op == "-":
                return -self.unary()
            if op == "+":
                return self.unary()
            return self.power()
        finally:
            self.depth -= 1

    def power(self) -> float:
        base = self.postfix()
        if self._accept("^"):
            # Right operand goes through unary so 2^-1 and 2^3^2 work
            return _power(base, self.unary())
        return base

    def postfix(self) -> float:
        value = self.primary()
        while self._accept("%"):
            value = value / 100
        return value

    def primary(self) -> float:
        token = self._current()
        if token is None:
            raise ExpressionSyntaxError(detail="missing operand")

        if token.kind is TokenKind.NUMBER:
            self.index += 1
            return token.value

        if self._accept("("):
            value = self.expression()
            if not self._accept(")"):
                raise ExpressionSyntaxError(detail="missing closing parenthesis")
            return value

        raise ExpressionSyntaxError(detail=f"unexpected operator {token.symbol!r} at {token.position}")


def divides_by_literal_zero(tokens: List[Token]) -> bool:
    """Check for a '/' immediately followed by a zero literal (e.g. 5÷0)."""
    for left, right in zip(tokens, tokens[1:]):
        if left.is_operator("/") and right.kind is TokenKind.NUMBER and right.value == 0:
            return True
    return False


def evaluate(expression: str) -> float:
    """Evaluate an infix expression.

    Args:
        expression: Expression using + − × ÷ ^ % and parentheses (ASCII
            - * / are accepted too).

    Returns:
        The finite result.

    Raises:
        ExpressionSyntaxError: Expression could not be tokenized or parsed.
        DivisionByZeroError: Expression divides by a literal zero.
        MathError: Result is NaN.
        CalculationOverflowError: Result is infinite.
    """
    tokens = tokenize(expression)
    result = Parser(tokens).parse()

    if divides_by_literal_zero(tokens):
        logger.debug("Literal division by zero in %r", expression)
        raise DivisionByZeroError(detail=expression)

    if math.isnan(result):
        raise MathError(detail=expression)
    if math.isinf(result):
        raise CalculationOverflowError(detail=expression)

    logger.debug("Evaluated %r -> %r", expression, result)
    return result
