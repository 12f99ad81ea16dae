from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any, AsyncIterator, Generic, Iterable, Iterator, TypeVar

from pymongo.asynchronous.collection import AsyncCollection
from pymongo.collection import Collection

from mapify.core.projection import ensure_target
from mapify.core.sources import AsyncMongoSource, AsyncSource, MemorySource, MongoSource, QueryPlan, SyncSource
from mapify.lifecycle.observability import track_query, track_query_sync
from mapify.query.coercion import bind_expression, bind_order
from mapify.query.expressions import And
from mapify.query.filters import as_filter, as_order
from mapify.utils.exceptions import MultipleDocumentsFound, QuerySetError
from mapify.utils.settings import SettingsResolver

T = TypeVar("T")
U = TypeVar("U")


class _BaseQuerySet(Generic[T]):
    """Fluent, lazy, immutable query composition shared by both querysets.

    Each chainable method returns a new instance. Queries are only executed
    when a terminal method is called.
    """

    def __init__(self, source: Any, plan: QueryPlan | None = None) -> None:
        self._source = source
        self._plan: QueryPlan = plan or QueryPlan()

    def _clone(self, **overrides: Any):
        """Return a new queryset of the same kind with plan overrides."""
        return type(self)(self._source, replace(self._plan, **overrides))

    @property
    def plan(self) -> QueryPlan:
        return self._plan

    @property
    def source(self) -> Any:
        return self._source

    # --- Chainable methods ---

    def project(self, target: type[U]):
        """Project records into ``target``.

        Filters and orderings already applied to a previous target keep
        applying underneath the new projection.
        """
        ensure_target(target)
        if target is self._plan.target:
            return self._clone()
        if self._plan.skip or self._plan.limit:
            raise QuerySetError("project() cannot follow skip(), limit() or page()")
        if self._plan.filter is not None or self._plan.order or self._plan.base is not None:
            return type(self)(self._source, QueryPlan(target=target, base=self._plan))
        return self._clone(target=target)

    def where(self, filter: Any = None):
        """Restrict rows with a text filter, an F expression or a callable.

        Repeated calls are combined with AND. ``None`` leaves the query unchanged.

        Examples:
            qs.where("age >= 18 and name ~ 'al'")
            qs.where(F.age >= 18)
            qs.where(lambda user: user.age >= 18)  # in-memory sources only
        """
        normalized = as_filter(filter)
        if normalized is None:
            return self._clone()
        target = self._require_target("where")
        expression = bind_expression(normalized.to_expression(), target)
        if self._plan.filter is not None:
            expression = And((self._plan.filter, expression))
        return self._clone(filter=expression)

    def order_by(self, order: Any = None, descending: bool = False):
        """Set the sort order, replacing any previous one.

        Example: .order_by("name desc, age") or .order_by(F.age, descending=True)
        """
        normalized = as_order(order, descending)
        if normalized is None:
            return self._clone()
        target = self._require_target("order_by")
        return self._clone(order=bind_order(normalized.to_keys(), target))

    def skip(self, n: int):
        if n < 0:
            raise ValueError("skip must be >= 0")
        return self._clone(skip=n)

    def limit(self, n: int):
        if n < 0:
            raise ValueError("limit must be >= 0")
        return self._clone(limit=n)

    def page(self, page: int, size: int):
        """Select a 1-based page window. Ignored unless both values are positive."""
        if page > 0 and size > 0:
            return self._clone(skip=(page - 1) * size, limit=size)
        return self._clone()

    # --- Internal ---

    def _require_target(self, method: str) -> type:
        if self._plan.target is None:
            raise QuerySetError(f"{method}() requires a projection target. Call project() first.")
        return self._plan.target

    @property
    def _target_label(self) -> str:
        if self._plan.target is None:
            return ""
        return SettingsResolver.get_trace_name(self._plan.target)

    @property
    def _filter_label(self) -> str | None:
        return None if self._plan.filter is None else str(self._plan.filter)

    def _single_plan(self) -> QueryPlan:
        # Two rows are enough to detect a duplicate match
        return replace(self._plan, limit=2 if self._plan.limit != 1 else 1)

    def _check_single(self, results: list[T]) -> T | None:
        if len(results) > 1:
            raise MultipleDocumentsFound(
                f"Expected at most one {self._target_label or 'record'} matching "
                f"'{self._filter_label}', found more"
            )
        return results[0] if results else None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(source={self._source.name!r}, target={self._target_label or None!r}, "
            f"filter={self._filter_label!r}, order={[str(k) for k in self._plan.order]!r}, "
            f"skip={self._plan.skip}, limit={self._plan.limit})"
        )


class QuerySet(_BaseQuerySet[T]):
    """Blocking queryset over a SyncSource."""

    _source: SyncSource

    def all(self) -> list[T]:
        """Execute the query and return all matching records."""
        with track_query_sync("find", self._source.name, self._target_label, filter=self._filter_label) as ctx:
            results = self._source.fetch(self._plan)
            ctx["result_count"] = len(results)
        return results

    def first(self) -> T | None:
        """Return the first matching record, or None."""
        results = self.limit(1).all()
        return results[0] if results else None

    def single(self) -> T | None:
        """Return the only matching record or None. Raises MultipleDocumentsFound on duplicates."""
        return self._check_single(type(self)(self._source, self._single_plan()).all())

    def count(self) -> int:
        """Count records matching the filter, ignoring skip and limit."""
        with track_query_sync("count", self._source.name, self._target_label, filter=self._filter_label) as ctx:
            result = self._source.count(self._plan)
            ctx["result_count"] = result
        return result

    def exists(self) -> bool:
        return self.count() > 0

    def __iter__(self) -> Iterator[T]:
        return iter(self.all())


class AsyncQuerySet(_BaseQuerySet[T]):
    """Async queryset over an AsyncSource; terminal methods are coroutines."""

    _source: AsyncSource

    async def all(self) -> list[T]:
        """Execute the query and return all matching records."""
        async with track_query("find", self._source.name, self._target_label, filter=self._filter_label) as ctx:
            results = await self._source.afetch(self._plan)
            ctx["result_count"] = len(results)
        return results

    async def first(self) -> T | None:
        """Return the first matching record, or None."""
        results = await self.limit(1).all()
        return results[0] if results else None

    async def single(self) -> T | None:
        """Return the only matching record or None. Raises MultipleDocumentsFound on duplicates."""
        return self._check_single(await type(self)(self._source, self._single_plan()).all())

    async def count(self) -> int:
        """Count records matching the filter, ignoring skip and limit."""
        async with track_query("count", self._source.name, self._target_label, filter=self._filter_label) as ctx:
            result = await self._source.acount(self._plan)
            ctx["result_count"] = result
        return result

    async def exists(self) -> bool:
        return await self.count() > 0

    async def __aiter__(self) -> AsyncIterator[T]:
        for item in await self.all():
            yield item


def _is_record_iterable(obj: Any) -> bool:
    return isinstance(obj, Iterable) and not isinstance(obj, (str, bytes, Mapping))


def as_queryset(source: Any) -> QuerySet:
    """Normalize a blocking source: QuerySet, Collection, MemorySource or iterable of records."""
    if isinstance(source, QuerySet):
        return source
    if isinstance(source, Collection):
        return QuerySet(MongoSource(source))
    if isinstance(source, (MemorySource, MongoSource)):
        return QuerySet(source)
    if isinstance(source, (AsyncQuerySet, AsyncCollection, AsyncMongoSource)):
        raise TypeError(f"{type(source).__name__} is asynchronous; use the mapify.aio helpers")
    if _is_record_iterable(source):
        return QuerySet(MemorySource(source))
    raise TypeError(f"Cannot query {type(source).__name__}")


def as_async_queryset(source: Any) -> AsyncQuerySet:
    """Normalize an async source: AsyncQuerySet, AsyncCollection, MemorySource or iterable of records."""
    if isinstance(source, AsyncQuerySet):
        return source
    if isinstance(source, AsyncCollection):
        return AsyncQuerySet(AsyncMongoSource(source))
    if isinstance(source, (MemorySource, AsyncMongoSource)):
        return AsyncQuerySet(source)
    if isinstance(source, QuerySet) and isinstance(source.source, MemorySource):
        return AsyncQuerySet(source.source, source.plan)
    if isinstance(source, (QuerySet, Collection, MongoSource)):
        raise TypeError(f"{type(source).__name__} is blocking; use the mapify synchronous helpers")
    if _is_record_iterable(source):
        return AsyncQuerySet(MemorySource(source))
    raise TypeError(f"Cannot query {type(source).__name__}")
