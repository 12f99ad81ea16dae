"""Bind expressions to a projection target.

Field names are checked against the target model and literal values are
converted to the field's annotated type, so that ``"age = '42'"`` compares
an ``int`` field with ``42`` and ``"id = 507f..."`` with an ObjectId.
"""

from __future__ import annotations

import types
from typing import Any, Union, get_args, get_origin

from pydantic import BaseModel, TypeAdapter, ValidationError

from mapify.query.expressions import STRING_OPERATORS, Comparison, Expression, OrderKey
from mapify.utils.exceptions import FilterValueError, UnknownFieldError

_COLLECTION_ORIGINS = (list, set, frozenset, tuple)


def _unwrap_optional(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def model_class(annotation: Any) -> type[BaseModel] | None:
    annotation = _unwrap_optional(annotation)
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation
    return None


def field_annotation(target: type[BaseModel], path: str) -> Any:
    """Return the annotation of a (dotted) field path on ``target``.

    Raises:
        UnknownFieldError: If any segment does not exist on its model
    """
    model: type[BaseModel] | None = target
    annotation: Any = None
    for part in path.split("."):
        if model is None:
            raise UnknownFieldError(f"Field '{path}' does not exist on {target.__name__}")
        info = model.model_fields.get(part)
        if info is None:
            raise UnknownFieldError(f"Field '{path}' does not exist on {target.__name__}")
        annotation = info.annotation
        model = model_class(annotation)
    return annotation


def _comparable_type(annotation: Any) -> Any:
    """Element type for collection fields, the annotation itself otherwise."""
    inner = _unwrap_optional(annotation)
    if get_origin(inner) in _COLLECTION_ORIGINS:
        args = get_args(inner)
        if args:
            return args[0]
    return annotation


def _is_text(annotation: Any) -> bool:
    return _unwrap_optional(_comparable_type(annotation)) is str


def coerce_value(annotation: Any, value: Any, field: str) -> Any:
    """Validate ``value`` against ``annotation`` with pydantic.

    Raises:
        FilterValueError: If the value cannot be converted
    """
    if value is None or annotation is None or annotation is Any:
        return value
    adapter = TypeAdapter(_comparable_type(annotation))
    try:
        return adapter.validate_python(value)
    except ValidationError as exc:
        if not isinstance(value, str):
            try:
                return adapter.validate_python(str(value))
            except ValidationError:
                pass
        raise FilterValueError(f'Invalid filter value {value!r} for field "{field}"') from exc


def bind_expression(expression: Expression, target: type[BaseModel]) -> Expression:
    """Check every field in ``expression`` and coerce comparison values for ``target``."""

    def _bind(comparison: Comparison) -> Expression:
        annotation = field_annotation(target, comparison.field)
        if comparison.raw is not None and (comparison.op in STRING_OPERATORS or _is_text(annotation)):
            value = comparison.raw
        elif comparison.op in STRING_OPERATORS:
            value = comparison.value if comparison.value is None else str(comparison.value)
        else:
            value = coerce_value(annotation, comparison.value, comparison.field)
        return Comparison(comparison.field, comparison.op, value)

    return expression.transform(_bind)


def bind_order(keys: tuple[OrderKey, ...], target: type[BaseModel]) -> tuple[OrderKey, ...]:
    """Check that every named sort key exists on ``target``."""
    for key in keys:
        if not key.is_callable:
            field_annotation(target, key.field)
    return keys
