"""Arithmetic expression evaluator for the ``calculate`` tool.

Only numeric literals, ``+ - * /``, unary signs and parentheses are
understood. Expressions are tokenized, parsed by recursive descent and
evaluated directly over the parse; nothing is ever handed to ``eval``.

Grammar::

    expression := term (("+" | "-") term)*
    term       := unary (("*" | "/") unary)*
    unary      := ("+" | "-") unary | primary
    primary    := NUMBER | "(" expression ")"
"""

import math
import re
from dataclasses import dataclass
from typing import List, Union

from mcp_gateway.core.errors import CalculationError

Number = Union[int, float]

MAX_EXPRESSION_LENGTH = 1000
MAX_DEPTH = 100

_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<number>(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)"
    r"|(?P<op>[-+*/()])"
    r")"
)


@dataclass
class Token:
    kind: str  # "number", "op" or "end"
    text: str
    position: int


def tokenize(expression: str) -> List[Token]:
    tokens = []
    pos = 0
    length = len(expression)
    while pos < length:
        if expression[pos].isspace():
            pos += 1
            continue
        match = _TOKEN_RE.match(expression, pos)
        if not match or match.lastgroup is None:
            raise CalculationError(f"Unexpected character '{expression[pos]}' at position {pos}")
        kind = match.lastgroup
        tokens.append(Token(kind, match.group(kind), match.start(kind)))
        pos = match.end()
    tokens.append(Token("end", "", length))
    return tokens


class _Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.index = 0
        self.depth = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def _enter(self):
        self.depth += 1
        if self.depth > MAX_DEPTH:
            raise CalculationError("Expression is nested too deeply")

    def parse(self) -> Number:
        value = self.expression()
        if self.current.kind != "end":
            raise self._unexpected()
        return value

    def expression(self) -> Number:
        value = self.term()
        while self.current.kind == "op" and self.current.text in "+-":
            op = self._advance().text
            right = self.term()
            value = _apply(op, value, right)
        return value

    def term(self) -> Number:
        value = self.unary()
        while self.current.kind == "op" and self.current.text in "*/":
            op = self._advance().text
            right = self.unary()
            value = _apply(op, value, right)
        return value

    def unary(self) -> Number:
        if self.current.kind == "op" and self.current.text in "+-":
            op = self._advance().text
            self._enter()
            operand = self.unary()
            self.depth -= 1
            return -operand if op == "-" else operand
        return self.primary()

    def primary(self) -> Number:
        token = self.current
        if token.kind == "number":
            self._advance()
            return _to_number(token.text)
        if token.kind == "op" and token.text == "(":
            self._advance()
            self._enter()
            value = self.expression()
            self.depth -= 1
            if not (self.current.kind == "op" and self.current.text == ")"):
                raise self._unexpected("expected ')'")
            self._advance()
            return value
        raise self._unexpected()

    def _unexpected(self, hint: str = "") -> CalculationError:
        token = self.current
        suffix = f", {hint}" if hint else ""
        if token.kind == "end":
            return CalculationError(f"Unexpected end of expression{suffix}")
        return CalculationError(f"Unexpected token '{token.text}' at position {token.position}{suffix}")


def _to_number(text: str) -> Number:
    if any(c in text for c in ".eE"):
        return float(text)
    return int(text)


def _apply(op: str, left: Number, right: Number) -> Number:
    try:
        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "*":
            return left * right
        if right == 0:
            raise CalculationError("Division by zero")
        if isinstance(left, int) and isinstance(right, int) and left % right == 0:
            return left // right
        return left / right
    except OverflowError as e:
        raise CalculationError(f"Numeric overflow: {e}") from e


def evaluate(expression: str) -> Number:
    if not isinstance(expression, str) or not expression.strip():
        raise CalculationError("Expression is empty")
    if len(expression) > MAX_EXPRESSION_LENGTH:
        raise CalculationError(f"Expression is too long (max {MAX_EXPRESSION_LENGTH} characters)")

    value = _Parser(tokenize(expression)).parse()
    if isinstance(value, float) and not math.isfinite(value):
        raise CalculationError("Result is not a finite number")
    return value


def format_number(value: Number) -> str:
    """Render a number the way clients expect to read it: ``4`` not ``4.0``."""
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)
