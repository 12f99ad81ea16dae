"""Backing-store adapters.

A source executes a ``QueryPlan``: it returns the projected records the plan
selects and counts the records its filter matches. ``MemorySource`` serves
both blocking and async querysets; the Mongo sources wrap a pymongo
``Collection`` or ``AsyncCollection``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Protocol, TypeVar

from pymongo import ASCENDING, DESCENDING
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.collection import Collection

from mapify.core.projection import mongo_projection, project, source_path, to_source_record
from mapify.query.expressions import Expression, OrderKey
from mapify.utils.types import FilterSpec, Record, SortSpec

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class QueryPlan(Generic[T]):
    """Everything a source needs to run one query."""

    target: type[T] | None = None
    filter: Expression | None = None
    order: tuple[OrderKey, ...] = ()
    skip: int = 0
    limit: int = 0
    # Plan of an earlier projection whose filter and order still apply
    base: QueryPlan | None = None


class SyncSource(Protocol):
    name: str

    def fetch(self, plan: QueryPlan) -> list[Any]: ...

    def count(self, plan: QueryPlan) -> int: ...


class AsyncSource(Protocol):
    name: str

    async def afetch(self, plan: QueryPlan) -> list[Any]: ...

    async def acount(self, plan: QueryPlan) -> int: ...


class MemorySource:
    """Query an in-process snapshot of records (mappings or attribute objects)."""

    def __init__(self, records: Iterable[Record], name: str = "memory") -> None:
        self._records = list(records)
        self.name = name

    def __len__(self) -> int:
        return len(self._records)

    def _filtered(self, plan: QueryPlan) -> list[Any]:
        if plan.base is not None:
            records = [to_source_record(item) for item in self.fetch(plan.base)]
        else:
            records = self._records
        if plan.target is None:
            items = list(records)
        else:
            items = [project(plan.target, record) for record in records]
        if plan.filter is not None:
            items = [item for item in items if plan.filter.evaluate(item)]
        return items

    def fetch(self, plan: QueryPlan) -> list[Any]:
        items = self._filtered(plan)
        # Stable sorts applied last key first give a multi-key ordering
        for key in reversed(plan.order):
            items.sort(key=key.sort_key, reverse=key.descending)
        if plan.skip:
            items = items[plan.skip:]
        if plan.limit:
            items = items[: plan.limit]
        return items

    def count(self, plan: QueryPlan) -> int:
        return len(self._filtered(plan))

    async def afetch(self, plan: QueryPlan) -> list[Any]:
        return self.fetch(plan)

    async def acount(self, plan: QueryPlan) -> int:
        return self.count(plan)


class _MongoPlanCompiler:
    """Translate a QueryPlan into pymongo filter, projection and sort arguments."""

    @staticmethod
    def _path_for(plan: QueryPlan) -> Callable[[str], str]:
        target = plan.target
        if target is None:
            return lambda path: path
        return lambda path: source_path(target, path)

    def _filter_spec(self, plan: QueryPlan) -> FilterSpec:
        specs: list[FilterSpec] = []
        if plan.base is not None:
            base_spec = self._filter_spec(plan.base)
            if base_spec:
                specs.append(base_spec)
        if plan.filter is not None:
            specs.append(plan.filter.to_mongo(self._path_for(plan)))
        if not specs:
            return {}
        return specs[0] if len(specs) == 1 else {"$and": specs}

    def _sort_spec(self, plan: QueryPlan) -> SortSpec:
        if not plan.order and plan.base is not None:
            return self._sort_spec(plan.base)
        sort_spec: SortSpec = []
        path_for = self._path_for(plan)
        for key in plan.order:
            path, direction = key.to_mongo(path_for)
            sort_spec.append((path, DESCENDING if direction < 0 else ASCENDING))
        return sort_spec

    @staticmethod
    def _projection(plan: QueryPlan) -> dict[str, int] | None:
        if plan.target is None:
            return None
        return mongo_projection(plan.target)

    @staticmethod
    def _convert(plan: QueryPlan, raw: dict[str, Any]) -> Any:
        if plan.target is None:
            return raw
        return project(plan.target, raw)

    def _build_cursor(self, collection: Any, plan: QueryPlan) -> Any:
        """Compose a pymongo cursor from the plan."""
        filter_spec = self._filter_spec(plan)
        sort_spec = self._sort_spec(plan)
        logger.debug(f"find on '{collection.name}': filter={filter_spec} sort={sort_spec} skip={plan.skip} limit={plan.limit}")
        cursor = collection.find(filter_spec, self._projection(plan))
        if sort_spec:
            cursor = cursor.sort(sort_spec)
        if plan.skip:
            cursor = cursor.skip(plan.skip)
        if plan.limit:
            cursor = cursor.limit(plan.limit)
        return cursor


class MongoSource(_MongoPlanCompiler):
    """Query a blocking pymongo Collection."""

    def __init__(self, collection: Collection) -> None:
        self._collection = collection
        self.name = collection.name

    def fetch(self, plan: QueryPlan) -> list[Any]:
        cursor = self._build_cursor(self._collection, plan)
        return [self._convert(plan, raw) for raw in cursor]

    def count(self, plan: QueryPlan) -> int:
        return self._collection.count_documents(self._filter_spec(plan))


class AsyncMongoSource(_MongoPlanCompiler):
    """Query a pymongo AsyncCollection."""

    def __init__(self, collection: AsyncCollection) -> None:
        self._collection = collection
        self.name = collection.name

    async def afetch(self, plan: QueryPlan) -> list[Any]:
        raws = await self._build_cursor(self._collection, plan).to_list()
        return [self._convert(plan, raw) for raw in raws]

    async def acount(self, plan: QueryPlan) -> int:
        return await self._collection.count_documents(self._filter_spec(plan))
