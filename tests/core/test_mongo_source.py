from typing import Optional

import pytest
from bson import ObjectId
from pydantic import BaseModel, Field
from pymongo import ASCENDING, DESCENDING

from mapify import F, PyObjectId, aio, find_by_id, find_list, get_paged_result
from mapify.core.queryset import as_async_queryset, as_queryset
from mapify.core.sources import QueryPlan, _MongoPlanCompiler
from mapify.query.coercion import bind_expression
from mapify.query.parser import parse_filter, parse_order
from mapify.utils.exceptions import MultipleDocumentsFound, UnsupportedExpression


class Place(BaseModel):
    city: str = Field(alias="town")


class Person(BaseModel):
    id: PyObjectId = Field(alias="_id")
    name: str
    age: int
    place: Optional[Place] = None


class PersonName(BaseModel):
    name: str


def _seed() -> list[dict]:
    return [
        {"_id": ObjectId(), "name": "Ann", "age": 31, "place": {"town": "Oslo"}, "secret": "x"},
        {"_id": ObjectId(), "name": "Bob", "age": 17, "place": {"town": "Bergen"}},
        {"_id": ObjectId(), "name": "Cid", "age": 45},
    ]


class TestPlanCompiler:
    compiler = _MongoPlanCompiler()

    def test_filter_uses_source_keys(self):
        expr = bind_expression(parse_filter("place.city = Oslo and age > '30'"), Person)
        plan = QueryPlan(target=Person, filter=expr)
        assert self.compiler._filter_spec(plan) == {"$and": [{"place.town": "Oslo"}, {"age": {"$gt": 30}}]}

    def test_id_filter_is_object_id(self):
        oid = ObjectId()
        expr = bind_expression(parse_filter(f"id = '{oid}'"), Person)
        assert self.compiler._filter_spec(QueryPlan(target=Person, filter=expr)) == {"_id": oid}

    def test_empty_filter(self):
        assert self.compiler._filter_spec(QueryPlan(target=Person)) == {}

    def test_sort_spec(self):
        plan = QueryPlan(target=Person, order=parse_order("place.city, -age"))
        assert self.compiler._sort_spec(plan) == [("place.town", ASCENDING), ("age", DESCENDING)]

    def test_base_plan_is_combined(self):
        base = QueryPlan(target=Person, filter=bind_expression(F.age > 18, Person), order=parse_order("-age"))
        plan = QueryPlan(target=PersonName, filter=bind_expression(F.name == "Ann", PersonName), base=base)
        assert self.compiler._filter_spec(plan) == {"$and": [{"age": {"$gt": 18}}, {"name": "Ann"}]}
        assert self.compiler._sort_spec(plan) == [("age", DESCENDING)]

    def test_projection(self):
        assert self.compiler._projection(QueryPlan(target=Person)) == {"_id": 1, "name": 1, "age": 1, "place": 1}
        assert self.compiler._projection(QueryPlan()) is None

    def test_callable_filter_is_rejected(self):
        plan = QueryPlan(target=Person, filter=bind_expression((F.age > 1) & (lambda p: True), Person))
        with pytest.raises(UnsupportedExpression):
            self.compiler._filter_spec(plan)


class TestMongoSource:
    def test_find_list_and_projection(self, mongo_db):
        mongo_db.people.insert_many(_seed())
        people = find_list(mongo_db.people, Person, "age >= 18", "-age")
        assert [p.name for p in people] == ["Cid", "Ann"]
        assert people[1].place.city == "Oslo"

    def test_find_by_id(self, mongo_db):
        docs = _seed()
        mongo_db.people.insert_many(docs)
        person = find_by_id(mongo_db.people, Person, docs[1]["_id"])
        assert person.name == "Bob"
        assert find_by_id(mongo_db.people, Person, ObjectId()) is None

    def test_paged_result(self, mongo_db):
        mongo_db.people.insert_many(_seed())
        result = get_paged_result(mongo_db.people, PersonName, 1, 2, F.name.contains("b") | (F.name == "Cid"), "name")
        assert result.total_count == 2
        assert [p.name for p in result.items] == ["Bob", "Cid"]
        assert result.total_pages == 1

    def test_single_raises_on_duplicates(self, mongo_db):
        mongo_db.people.insert_many(_seed())
        with pytest.raises(MultipleDocumentsFound):
            as_queryset(mongo_db.people).project(Person).where("age > 18").single()

    def test_callable_filter_rejected(self, mongo_db):
        with pytest.raises(UnsupportedExpression):
            find_list(mongo_db.people, Person, lambda p: p.age > 1)


class TestAsyncMongoSource:
    async def test_find_list(self, async_mongo_db):
        await async_mongo_db.people.insert_many(_seed())
        people = await aio.find_list(async_mongo_db.people, PersonName, "name ^ 'A' or name $ 'd'", "name")
        assert [p.name for p in people] == ["Ann", "Cid"]

    async def test_paged_list(self, async_mongo_db):
        await async_mongo_db.people.insert_many(_seed())
        items, total = await aio.get_paged_list(async_mongo_db.people, Person, 2, 2, None, "age")
        assert total == 3
        assert [p.name for p in items] == ["Cid"]

    async def test_find_by_id_missing(self, async_mongo_db):
        assert await aio.find_by_id(async_mongo_db.people, Person, ObjectId()) is None

    async def test_count(self, async_mongo_db):
        await async_mongo_db.people.insert_many(_seed())
        qs = as_async_queryset(async_mongo_db.people).project(Person).where(F.place.city == "Bergen")
        assert await qs.count() == 1
