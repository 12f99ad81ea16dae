"""Async query helpers, mirroring mapify.extensions.sync.

Sources are a pymongo ``AsyncCollection``, an ``AsyncQuerySet`` or an
iterable of records. Each helper awaits the store once per terminal step.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from mapify.core.queryset import AsyncQuerySet, as_async_queryset
from mapify.extensions.sync import id_filter
from mapify.utils.pagination import PagedResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _projected(source: Any, target: type[T], filter: Any = None) -> AsyncQuerySet[T]:
    return as_async_queryset(source).project(target).where(filter)


async def find_by_id(source: Any, target: type[T], id: Any, *, id_field: str | None = None) -> T | None:
    """Find a record by identifier. Returns None if no record has that id."""
    return await _projected(source, target, id_filter(target, id, id_field)).first()


async def find_one(source: Any, target: type[T], filter: Any) -> T | None:
    """Return the first record matching ``filter`` in store order, or None."""
    return await _projected(source, target, filter).first()


async def find_single(source: Any, target: type[T], filter: Any) -> T | None:
    """Return the only record matching ``filter``, or None.

    Raises:
        MultipleDocumentsFound: If more than one record matches
    """
    return await _projected(source, target, filter).single()


async def find_list(
    source: Any,
    target: type[T],
    filter: Any = None,
    order_by: Any = None,
    *,
    descending: bool = False,
) -> list[T]:
    return await _projected(source, target, filter).order_by(order_by, descending=descending).all()


async def get_paged_list(
    source: Any,
    target: type[T],
    page: int,
    page_size: int,
    filter: Any = None,
    order_by: Any = None,
    *,
    descending: bool = False,
) -> tuple[list[T], int]:
    """Return one page of matching records and the filter-only total count."""
    query = _projected(source, target, filter)
    total_count = await query.count()
    items = await query.order_by(order_by, descending=descending).page(page, page_size).all()
    logger.debug("Paged %s: page=%s size=%s returned=%s total=%s", target.__name__, page, page_size, len(items), total_count)
    return items, total_count


async def get_paged_result(
    source: Any,
    target: type[T],
    page: int,
    page_size: int,
    filter: Any = None,
    order_by: Any = None,
    *,
    descending: bool = False,
) -> PagedResult[T]:
    items, total_count = await get_paged_list(
        source, target, page, page_size, filter, order_by, descending=descending
    )
    return PagedResult(items=items, current_page=page, page_size=page_size, total_count=total_count)
