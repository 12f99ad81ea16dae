from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Union

from mapify.query.expressions import Expression, Field, OrderKey, Predicate
from mapify.query.parser import parse_filter, parse_order


@dataclass(frozen=True)
class TextFilter:
    """A filter written in the textual filter syntax, e.g. ``"age >= 18"``."""

    text: str

    def to_expression(self) -> Expression:
        return parse_filter(self.text)


@dataclass(frozen=True)
class ExpressionFilter:
    """A filter given as an ``F`` expression or a plain callable over the target."""

    predicate: Expression | Callable[[Any], bool]

    def to_expression(self) -> Expression:
        if isinstance(self.predicate, Expression):
            return self.predicate
        return Predicate(self.predicate)


@dataclass(frozen=True)
class TextOrder:
    """An ordering written as text, e.g. ``"name desc, age"``."""

    text: str

    def to_keys(self) -> tuple[OrderKey, ...]:
        return parse_order(self.text)


@dataclass(frozen=True)
class KeyOrder:
    """An ordering on a single typed key selector."""

    selector: Field | str | Callable[[Any], Any]
    descending: bool = False

    def to_keys(self) -> tuple[OrderKey, ...]:
        if isinstance(self.selector, Field):
            return (OrderKey(self.selector.name, self.descending),)
        return (OrderKey(self.selector, self.descending),)


Filter = Union[TextFilter, ExpressionFilter]
Order = Union[TextOrder, KeyOrder]


def as_filter(value: Any) -> Filter | None:
    """Normalize caller input into a filter variant. ``None`` means no filter."""
    if value is None or isinstance(value, (TextFilter, ExpressionFilter)):
        return value
    if isinstance(value, str):
        return TextFilter(value)
    if isinstance(value, Expression) or callable(value):
        return ExpressionFilter(value)
    raise TypeError(f"Unsupported filter type: {type(value).__name__}")


def as_order(value: Any, descending: bool = False) -> Order | None:
    """Normalize caller input into an order variant. ``None`` means store order.

    ``descending`` applies to typed selectors; text and ``OrderKey`` carry their own direction.
    """
    if value is None or isinstance(value, (TextOrder, KeyOrder)):
        return value
    if isinstance(value, str):
        return TextOrder(value)
    if isinstance(value, OrderKey):
        return KeyOrder(value.field, value.descending)
    if isinstance(value, Field) or callable(value):
        return KeyOrder(value, descending)
    raise TypeError(f"Unsupported order type: {type(value).__name__}")
