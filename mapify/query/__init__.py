from mapify.query.expressions import (
    F,
    Field,
    Expression,
    Comparison,
    And,
    Or,
    Not,
    Predicate,
    OrderKey,
)
from mapify.query.parser import parse_filter, parse_order, format_literal
from mapify.query.coercion import bind_expression, bind_order
from mapify.query.filters import (
    TextFilter,
    ExpressionFilter,
    TextOrder,
    KeyOrder,
    Filter,
    Order,
    as_filter,
    as_order,
)

__all__ = [
    "F",
    "Field",
    "Expression",
    "Comparison",
    "And",
    "Or",
    "Not",
    "Predicate",
    "OrderKey",
    "parse_filter",
    "parse_order",
    "format_literal",
    "bind_expression",
    "bind_order",
    "TextFilter",
    "ExpressionFilter",
    "TextOrder",
    "KeyOrder",
    "Filter",
    "Order",
    "as_filter",
    "as_order",
]
