"""Expression tree shared by textual and typed filters.

Expressions are built either by the text parser (``parse_filter``) or in
code through the ``F`` field factory::

    F.age >= 18
    (F.name.contains("al") | (F.city == "Oslo")) & ~(F.active == False)

Every node can be evaluated against an in-memory object and compiled into a
MongoDB filter document.
"""

from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator

from bson.regex import Regex

from mapify.utils.exceptions import UnsupportedExpression
from mapify.utils.types import FilterSpec

EQ = "="
NE = "!="
GT = ">"
GE = ">="
LT = "<"
LE = "<="
CONTAINS = "~"
NOT_CONTAINS = "!~"
STARTS_WITH = "^"
ENDS_WITH = "$"

OPERATORS = (EQ, NE, GT, GE, LT, LE, CONTAINS, NOT_CONTAINS, STARTS_WITH, ENDS_WITH)
STRING_OPERATORS = frozenset({CONTAINS, NOT_CONTAINS, STARTS_WITH, ENDS_WITH})

_MONGO_RANGE_OPS = {GT: "$gt", GE: "$gte", LT: "$lt", LE: "$lte"}


def resolve_path(obj: Any, path: str) -> Any:
    """Read a dotted path from an object or mapping. Missing segments yield None."""
    value = obj
    for part in path.split("."):
        if value is None:
            return None
        if isinstance(value, dict):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


def _to_bson(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_to_bson(v) for v in value]
    return value


def _format_value(value: Any) -> str:
    # Imported lazily: the parser depends on this module.
    from mapify.query.parser import format_literal

    return format_literal(value)


class Expression:
    """Base class for filter expressions."""

    def __and__(self, other: Expression) -> Expression:
        return And((self, _as_expression(other)))

    def __or__(self, other: Expression) -> Expression:
        return Or((self, _as_expression(other)))

    def __invert__(self) -> Expression:
        return Not(self)

    def evaluate(self, obj: Any) -> bool:
        raise NotImplementedError

    def to_mongo(self, path_for: Callable[[str], str]) -> FilterSpec:
        """Compile into a MongoDB filter. ``path_for`` maps target paths to document keys."""
        raise NotImplementedError

    def transform(self, fn: Callable[[Comparison], Expression]) -> Expression:
        """Return a copy with ``fn`` applied to every comparison."""
        return self

    def fields(self) -> Iterator[str]:
        return iter(())


@dataclass(frozen=True)
class Comparison(Expression):
    field: str
    op: str
    value: Any
    # Source text of a numeric literal, bound as-is to str fields
    raw: str | None = dataclasses.field(default=None, compare=False, repr=False)

    def evaluate(self, obj: Any) -> bool:
        left = resolve_path(obj, self.field)
        right = self.value
        if isinstance(left, (list, tuple, set, frozenset)) and self.op in (EQ, NE):
            found = right in left
            return found if self.op == EQ else not found
        if self.op == EQ:
            return left == right
        if self.op == NE:
            return left != right
        if self.op in STRING_OPERATORS:
            matched = isinstance(left, str) and isinstance(right, str) and _match_string(self.op, left, right)
            return not matched if self.op == NOT_CONTAINS else matched
        if left is None or right is None:
            return False
        try:
            if self.op == GT:
                return left > right
            if self.op == GE:
                return left >= right
            if self.op == LT:
                return left < right
            if self.op == LE:
                return left <= right
        except TypeError:
            return False
        raise UnsupportedExpression(f"Unknown operator '{self.op}'")

    def to_mongo(self, path_for: Callable[[str], str]) -> FilterSpec:
        key = path_for(self.field)
        value = _to_bson(self.value)
        if self.op == EQ:
            return {key: value}
        if self.op == NE:
            return {key: {"$ne": value}}
        if self.op in _MONGO_RANGE_OPS:
            return {key: {_MONGO_RANGE_OPS[self.op]: value}}
        escaped = re.escape(str(value))
        if self.op == CONTAINS:
            return {key: {"$regex": escaped, "$options": "i"}}
        if self.op == NOT_CONTAINS:
            return {key: {"$not": Regex(escaped, "i")}}
        if self.op == STARTS_WITH:
            return {key: {"$regex": f"^{escaped}"}}
        if self.op == ENDS_WITH:
            return {key: {"$regex": f"{escaped}$"}}
        raise UnsupportedExpression(f"Unknown operator '{self.op}'")

    def transform(self, fn: Callable[[Comparison], Expression]) -> Expression:
        return fn(self)

    def fields(self) -> Iterator[str]:
        yield self.field

    def __str__(self) -> str:
        literal = self.raw if self.raw is not None else _format_value(self.value)
        return f"{self.field} {self.op} {literal}"


def _match_string(op: str, left: str, right: str) -> bool:
    if op in (CONTAINS, NOT_CONTAINS):
        return right.lower() in left.lower()
    if op == STARTS_WITH:
        return left.startswith(right)
    return left.endswith(right)


@dataclass(frozen=True)
class And(Expression):
    operands: tuple[Expression, ...]

    def __and__(self, other: Expression) -> Expression:
        return And(self.operands + (_as_expression(other),))

    def evaluate(self, obj: Any) -> bool:
        return all(op.evaluate(obj) for op in self.operands)

    def to_mongo(self, path_for: Callable[[str], str]) -> FilterSpec:
        return {"$and": [op.to_mongo(path_for) for op in self.operands]}

    def transform(self, fn: Callable[[Comparison], Expression]) -> Expression:
        return And(tuple(op.transform(fn) for op in self.operands))

    def fields(self) -> Iterator[str]:
        for op in self.operands:
            yield from op.fields()

    def __str__(self) -> str:
        return " and ".join(_group(op) for op in self.operands)


@dataclass(frozen=True)
class Or(Expression):
    operands: tuple[Expression, ...]

    def __or__(self, other: Expression) -> Expression:
        return Or(self.operands + (_as_expression(other),))

    def evaluate(self, obj: Any) -> bool:
        return any(op.evaluate(obj) for op in self.operands)

    def to_mongo(self, path_for: Callable[[str], str]) -> FilterSpec:
        return {"$or": [op.to_mongo(path_for) for op in self.operands]}

    def transform(self, fn: Callable[[Comparison], Expression]) -> Expression:
        return Or(tuple(op.transform(fn) for op in self.operands))

    def fields(self) -> Iterator[str]:
        for op in self.operands:
            yield from op.fields()

    def __str__(self) -> str:
        return " or ".join(_group(op) for op in self.operands)


@dataclass(frozen=True)
class Not(Expression):
    operand: Expression

    def evaluate(self, obj: Any) -> bool:
        return not self.operand.evaluate(obj)

    def to_mongo(self, path_for: Callable[[str], str]) -> FilterSpec:
        return {"$nor": [self.operand.to_mongo(path_for)]}

    def transform(self, fn: Callable[[Comparison], Expression]) -> Expression:
        return Not(self.operand.transform(fn))

    def fields(self) -> Iterator[str]:
        return self.operand.fields()

    def __str__(self) -> str:
        return f"not {_group(self.operand)}"


@dataclass(frozen=True)
class Predicate(Expression):
    """A plain Python callable over the projected target.

    Only evaluable in process; database-backed sources reject it.
    """

    fn: Callable[[Any], bool]

    def evaluate(self, obj: Any) -> bool:
        return bool(self.fn(obj))

    def to_mongo(self, path_for: Callable[[str], str]) -> FilterSpec:
        raise UnsupportedExpression(
            f"Callable predicate {self!s} cannot be translated into a MongoDB filter. "
            "Use a text filter or an F expression."
        )

    def __str__(self) -> str:
        return f"<predicate {getattr(self.fn, '__name__', type(self.fn).__name__)}>"


def _group(expr: Expression) -> str:
    if isinstance(expr, (And, Or)):
        return f"({expr})"
    return str(expr)


def _as_expression(value: Any) -> Expression:
    if isinstance(value, Expression):
        return value
    if callable(value):
        return Predicate(value)
    raise TypeError(f"Cannot combine an expression with {type(value).__name__}")


@dataclass(frozen=True)
class OrderKey:
    """One sort key: a target field path or, for in-memory sources, a callable."""

    field: str | Callable[[Any], Any]
    descending: bool = False

    @property
    def is_callable(self) -> bool:
        return not isinstance(self.field, str)

    def sort_key(self, obj: Any) -> tuple[bool, Any]:
        value = self.field(obj) if self.is_callable else resolve_path(obj, self.field)
        # None sorts before any value, as in MongoDB
        return (value is not None, value)

    def to_mongo(self, path_for: Callable[[str], str]) -> tuple[str, int]:
        if self.is_callable:
            raise UnsupportedExpression("Callable sort keys cannot be translated into a MongoDB sort.")
        return (path_for(self.field), -1 if self.descending else 1)

    def __str__(self) -> str:
        name = self.field if isinstance(self.field, str) else f"<key {getattr(self.field, '__name__', 'callable')}>"
        return f"{name} {'desc' if self.descending else 'asc'}"


class Field:
    """Typed reference to a target field, used to build expressions."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __getattr__(self, item: str) -> Field:
        if item.startswith("_"):
            raise AttributeError(item)
        return Field(f"{self.name}.{item}")

    def __eq__(self, other: Any) -> Comparison:  # type: ignore[override]
        return Comparison(self.name, EQ, other)

    def __ne__(self, other: Any) -> Comparison:  # type: ignore[override]
        return Comparison(self.name, NE, other)

    def __gt__(self, other: Any) -> Comparison:
        return Comparison(self.name, GT, other)

    def __ge__(self, other: Any) -> Comparison:
        return Comparison(self.name, GE, other)

    def __lt__(self, other: Any) -> Comparison:
        return Comparison(self.name, LT, other)

    def __le__(self, other: Any) -> Comparison:
        return Comparison(self.name, LE, other)

    def __hash__(self) -> int:
        return hash(("Field", self.name))

    def contains(self, value: str) -> Comparison:
        return Comparison(self.name, CONTAINS, value)

    def not_contains(self, value: str) -> Comparison:
        return Comparison(self.name, NOT_CONTAINS, value)

    def startswith(self, value: str) -> Comparison:
        return Comparison(self.name, STARTS_WITH, value)

    def endswith(self, value: str) -> Comparison:
        return Comparison(self.name, ENDS_WITH, value)

    def asc(self) -> OrderKey:
        return OrderKey(self.name)

    def desc(self) -> OrderKey:
        return OrderKey(self.name, descending=True)

    def __repr__(self) -> str:
        return f"Field({self.name!r})"


class _FieldFactory:
    """``F.name`` and ``F["name"]`` both return ``Field("name")``."""

    def __getattr__(self, name: str) -> Field:
        if name.startswith("_"):
            raise AttributeError(name)
        return Field(name)

    def __getitem__(self, name: str) -> Field:
        return Field(name)


F = _FieldFactory()
