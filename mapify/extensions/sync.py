"""Blocking query helpers.

Every helper takes a queryable source (a pymongo ``Collection``, a
``QuerySet`` or an iterable of records), a pydantic target model and the
lookup parameters, and composes::

    project -> filter -> (count) -> order -> (page) -> materialize

Filters are text (``"age >= 18"``), ``F`` expressions (``F.age >= 18``) or,
for in-memory sources, plain callables. Orderings are text
(``"name desc"``) or a typed selector plus ``descending``.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from mapify.core.queryset import QuerySet, as_queryset
from mapify.query.parser import format_literal
from mapify.utils.pagination import PagedResult
from mapify.utils.settings import SettingsResolver

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _projected(source: Any, target: type[T], filter: Any = None) -> QuerySet[T]:
    return as_queryset(source).project(target).where(filter)


def id_filter(target: type, id: Any, id_field: str | None = None) -> str:
    """Build the textual equality filter used by find_by_id."""
    field = id_field or SettingsResolver.get_id_field(target)
    return f"{field} = {format_literal(id)}"


def find_by_id(source: Any, target: type[T], id: Any, *, id_field: str | None = None) -> T | None:
    """Find a record by identifier.

    Args:
        source: Queryable source
        target: Model to project into
        id: Identifier value
        id_field: Identifier field on ``target``; defaults to ``Settings.id_field`` or ``"id"``

    Returns:
        The projected record, or None if no record has that id
    """
    return _projected(source, target, id_filter(target, id, id_field)).first()


def find_one(source: Any, target: type[T], filter: Any) -> T | None:
    """Return the first record matching ``filter`` in store order, or None.

    Several matches are tolerated; use find_single to reject them.
    """
    return _projected(source, target, filter).first()


def find_single(source: Any, target: type[T], filter: Any) -> T | None:
    """Return the only record matching ``filter``, or None.

    Raises:
        MultipleDocumentsFound: If more than one record matches
    """
    return _projected(source, target, filter).single()


def find_list(
    source: Any,
    target: type[T],
    filter: Any = None,
    order_by: Any = None,
    *,
    descending: bool = False,
) -> list[T]:
    """Return every record matching ``filter``, ordered by ``order_by`` when given."""
    return _projected(source, target, filter).order_by(order_by, descending=descending).all()


def get_paged_list(
    source: Any,
    target: type[T],
    page: int,
    page_size: int,
    filter: Any = None,
    order_by: Any = None,
    *,
    descending: bool = False,
) -> tuple[list[T], int]:
    """Return one page of matching records and the total number of matches.

    The total counts the filtered set only. When ``page`` or ``page_size``
    is not positive the window is skipped and every match is returned.
    """
    query = _projected(source, target, filter)
    total_count = query.count()
    items = query.order_by(order_by, descending=descending).page(page, page_size).all()
    logger.debug("Paged %s: page=%s size=%s returned=%s total=%s", target.__name__, page, page_size, len(items), total_count)
    return items, total_count


def get_paged_result(
    source: Any,
    target: type[T],
    page: int,
    page_size: int,
    filter: Any = None,
    order_by: Any = None,
    *,
    descending: bool = False,
) -> PagedResult[T]:
    """Like get_paged_list, bundled into a PagedResult."""
    items, total_count = get_paged_list(
        source, target, page, page_size, filter, order_by, descending=descending
    )
    return PagedResult(items=items, current_page=page, page_size=page_size, total_count=total_count)
