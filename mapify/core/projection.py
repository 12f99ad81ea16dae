"""Project source records into target models.

A target is a pydantic model. Its fields read from source keys named after
the field's alias when one is set (``id: PyObjectId = Field(alias="_id")``)
and after the field name otherwise. Filters and orderings always use target
field names; database sources translate them with ``source_path``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, TypeVar

from pydantic import BaseModel

from mapify.query.coercion import model_class
from mapify.utils.types import FieldMap, Record

T = TypeVar("T", bound=BaseModel)


def ensure_target(target: Any) -> type[BaseModel]:
    """Raise TypeError unless ``target`` is a pydantic model class."""
    if not (isinstance(target, type) and issubclass(target, BaseModel)):
        raise TypeError(f"Projection target must be a pydantic BaseModel subclass, got {target!r}")
    return target


@lru_cache(maxsize=256)
def field_map(target: type[BaseModel]) -> FieldMap:
    """Map each target field name to the source key it is read from."""
    mapping: FieldMap = {}
    for name, info in target.model_fields.items():
        alias = info.validation_alias if isinstance(info.validation_alias, str) else info.alias
        mapping[name] = alias or name
    return mapping


def source_path(target: type[BaseModel], path: str) -> str:
    """Translate a dotted target path into the source document path."""
    model: type[BaseModel] | None = target
    parts: list[str] = []
    for part in path.split("."):
        if model is None or part not in model.model_fields:
            parts.append(part)
            model = None
            continue
        parts.append(field_map(model)[part])
        model = model_class(model.model_fields[part].annotation)
    return ".".join(parts)


def mongo_projection(target: type[BaseModel]) -> dict[str, int]:
    """Build a MongoDB projection that fetches only the keys the target reads."""
    projection = {key: 1 for key in field_map(target).values()}
    if "_id" not in projection:
        projection["_id"] = 0
    return projection


def project(target: type[T], record: Record) -> T:
    """Convert one source record (mapping or attribute object) into ``target``."""
    if isinstance(record, target):
        return record
    return target.model_validate(record, from_attributes=True)


def to_source_record(instance: BaseModel) -> dict[str, Any]:
    """Rebuild the source-keyed record that ``instance`` would be projected from.

    Used when a projected result is projected again, so aliased fields are
    read back under their source keys.
    """
    mapping = field_map(type(instance))
    return {mapping[name]: _to_source_value(getattr(instance, name)) for name in type(instance).model_fields}


def _to_source_value(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return to_source_record(value)
    if isinstance(value, (list, tuple)):
        return [_to_source_value(item) for item in value]
    return value
