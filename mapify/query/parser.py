"""Textual filter and ordering parser.

Filter grammar (keywords are case-insensitive)::

    expr    := and ("or" and)*
    and     := unary ("and" unary)*
    unary   := "not" unary | "(" expr ")" | compare
    compare := FIELD OP literal
    OP      := = | == | != | > | < | >= | <= | ~ | !~ | ^ | $

Literals are quoted strings, numbers, ``true``/``false``/``null`` or bare
words (``id = 507f1f77bcf86cd799439011``). Ordering is a comma-separated
list of ``field [asc|desc]`` or ``-field`` items.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from mapify.query.expressions import And, Comparison, Expression, Not, Or, OrderKey
from mapify.utils.exceptions import FilterSyntaxError

_TOKEN_RE = re.compile(
    r"""
    (?P<lparen>\()
    | (?P<rparen>\))
    | (?P<op>==|!=|>=|<=|!~|=|>|<|~|\^|\$)
    | (?P<string>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")
    | (?P<number>-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)(?![\w.:\-])
    | (?P<word>[\w.:@+\-]+)
    """,
    re.VERBOSE,
)
_FIELD_RE = re.compile(r"^[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*$")
_ESCAPE_RE = re.compile(r"\\(.)")

_KEYWORDS = {"and", "or", "not"}
_CONSTANTS = {"true": True, "false": False, "null": None}


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    position: int


def tokenize(text: str) -> list[Token]:
    tokens: list[Token] = []
    pos = 0
    length = len(text)
    while pos < length:
        if text[pos].isspace():
            pos += 1
            continue
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise FilterSyntaxError(f"Unexpected character {text[pos]!r} at position {pos}", text, pos)
        kind = match.lastgroup or ""
        tokens.append(Token(kind, match.group(kind), pos))
        pos = match.end()
    return tokens


class _FilterParser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = tokenize(text)
        self.index = 0

    def parse(self) -> Expression:
        if not self.tokens:
            raise FilterSyntaxError("Filter is empty", self.text, 0)
        expr = self._parse_or()
        if self.index < len(self.tokens):
            token = self.tokens[self.index]
            raise self._error(f"Unexpected {token.text!r}", token)
        return expr

    # --- Grammar ---

    def _parse_or(self) -> Expression:
        operands = [self._parse_and()]
        while self._accept_keyword("or"):
            operands.append(self._parse_and())
        return operands[0] if len(operands) == 1 else Or(tuple(operands))

    def _parse_and(self) -> Expression:
        operands = [self._parse_unary()]
        while self._accept_keyword("and"):
            operands.append(self._parse_unary())
        return operands[0] if len(operands) == 1 else And(tuple(operands))

    def _parse_unary(self) -> Expression:
        if self._accept_keyword("not"):
            return Not(self._parse_unary())
        token = self._peek()
        if token is not None and token.kind == "lparen":
            self.index += 1
            expr = self._parse_or()
            closing = self._next("closing parenthesis")
            if closing.kind != "rparen":
                raise self._error(f"Expected ')' but found {closing.text!r}", closing)
            return expr
        return self._parse_comparison()

    def _parse_comparison(self) -> Comparison:
        field = self._next("field name")
        if field.kind != "word" or not _FIELD_RE.match(field.text) or field.text.lower() in _KEYWORDS:
            raise self._error(f"Expected field name but found {field.text!r}", field)
        op = self._next("operator")
        if op.kind != "op":
            raise self._error(f"Expected operator after {field.text!r} but found {op.text!r}", op)
        operator = "=" if op.text == "==" else op.text
        token = self._next("value")
        raw = token.text if token.kind == "number" else None
        return Comparison(field.text, operator, self._parse_literal(token), raw)

    def _parse_literal(self, token: Token) -> Any:
        if token.kind == "string":
            return _ESCAPE_RE.sub(r"\1", token.text[1:-1])
        if token.kind == "number":
            text = token.text
            if any(c in text for c in ".eE"):
                return float(text)
            return int(text)
        if token.kind == "word":
            lowered = token.text.lower()
            if lowered in _KEYWORDS:
                raise self._error(f"Expected value but found keyword {token.text!r}", token)
            if lowered in _CONSTANTS:
                return _CONSTANTS[lowered]
            return token.text
        raise self._error(f"Expected value but found {token.text!r}", token)

    # --- Token helpers ---

    def _peek(self) -> Token | None:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def _next(self, expected: str) -> Token:
        token = self._peek()
        if token is None:
            raise FilterSyntaxError(f"Unexpected end of filter, expected {expected}", self.text, len(self.text))
        self.index += 1
        return token

    def _accept_keyword(self, keyword: str) -> bool:
        token = self._peek()
        if token is not None and token.kind == "word" and token.text.lower() == keyword:
            self.index += 1
            return True
        return False

    def _error(self, message: str, token: Token) -> FilterSyntaxError:
        return FilterSyntaxError(f"{message} at position {token.position}", self.text, token.position)


def parse_filter(text: str) -> Expression:
    """Parse a textual filter into an expression tree.

    Raises:
        FilterSyntaxError: If the text is empty or malformed
    """
    if not isinstance(text, str):
        raise TypeError(f"Filter text must be str, not {type(text).__name__}")
    return _FilterParser(text).parse()


def parse_order(text: str) -> tuple[OrderKey, ...]:
    """Parse ``"name desc, -created, age"`` into order keys.

    Raises:
        FilterSyntaxError: If an item is empty or malformed
    """
    if not isinstance(text, str):
        raise TypeError(f"Order text must be str, not {type(text).__name__}")
    if not text.strip():
        raise FilterSyntaxError("Ordering is empty", text, 0)

    keys: list[OrderKey] = []
    offset = 0
    for item in text.split(","):
        parts = item.split()
        position = offset
        offset += len(item) + 1
        if not parts or len(parts) > 2:
            raise FilterSyntaxError(f"Invalid ordering item {item.strip()!r} at position {position}", text, position)

        name = parts[0]
        descending = False
        if name.startswith("-") and len(parts) == 1:
            name = name[1:]
            descending = True
        elif len(parts) == 2:
            direction = parts[1].lower()
            if direction not in ("asc", "desc"):
                raise FilterSyntaxError(
                    f"Invalid ordering direction {parts[1]!r} at position {position}", text, position
                )
            descending = direction == "desc"

        if not _FIELD_RE.match(name):
            raise FilterSyntaxError(f"Invalid ordering field {name!r} at position {position}", text, position)
        keys.append(OrderKey(name, descending))
    return tuple(keys)


def format_literal(value: Any) -> str:
    """Render a Python value as a filter literal that parses back to the same value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    text = str(value)
    escaped = text.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"
