from __future__ import annotations

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from mapify import MapifyError, aio, find_by_id, find_single
from mapify.integrations.fastapi import PagedResponse, PageParams, register_exception_handlers
from mapify.utils.pagination import PagedResult


class UserSummary(BaseModel):
    id: int
    name: str
    age: int


USERS = [
    {"id": i, "name": name, "age": age, "password": "secret"}
    for i, (name, age) in enumerate(
        [("alice", 31), ("bob", 17), ("carol", 45), ("dave", 31), ("erin", 22)], start=1
    )
]


def _app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/users", response_model=PagedResponse[UserSummary])
    async def list_users(params: PageParams = Depends()):
        result = await aio.get_paged_result(USERS, UserSummary, **params.as_kwargs())
        return PagedResponse.from_result(result)

    @app.get("/users/{user_id}")
    def get_user(user_id: int):
        return find_by_id(USERS, UserSummary, user_id)

    @app.get("/by-age/{age}")
    def by_age(age: int):
        return find_single(USERS, UserSummary, f"age = {age}")

    @app.get("/boom")
    def boom():
        raise MapifyError("store unavailable")

    return app


def test_page_params_defaults():
    params = PageParams()
    assert params.as_kwargs() == {"page": 1, "page_size": 20, "filter": None, "order_by": None}


def test_page_params_clamped():
    params = PageParams(page=0, page_size=1000, filter="", order_by="")
    assert params.page == 1
    assert params.page_size == PageParams.max_page_size == 100
    assert params.filter is None
    assert params.order_by is None


def test_page_params_minimum_size():
    assert PageParams(page_size=-5).page_size == 1


def test_paged_response_from_result():
    result = PagedResult(items=[{"name": "alice"}], current_page=1, page_size=1, total_count=3)
    resp = PagedResponse[dict].from_result(result)
    assert resp.items == [{"name": "alice"}]
    assert resp.total_pages == 3
    assert resp.has_next is True
    assert resp.has_previous is False


def test_list_endpoint_pages_and_filters():
    client = TestClient(_app())
    resp = client.get("/users", params={"page": 2, "page_size": 2, "filter": "age > 18", "order_by": "name"})
    assert resp.status_code == 200
    body = resp.json()
    assert [u["name"] for u in body["items"]] == ["dave", "erin"]
    assert body["total_count"] == 4
    assert body["total_pages"] == 2
    assert body["has_previous"] is True
    assert body["has_next"] is False
    assert "password" not in body["items"][0]


def test_list_endpoint_defaults():
    client = TestClient(_app())
    body = client.get("/users").json()
    assert body["current_page"] == 1
    assert body["page_size"] == 20
    assert len(body["items"]) == 5


def test_find_by_id_endpoint():
    client = TestClient(_app())
    assert client.get("/users/3").json() == {"id": 3, "name": "carol", "age": 45}
    assert client.get("/users/9").json() is None


def test_bad_filter_returns_400():
    client = TestClient(_app())
    resp = client.get("/users", params={"filter": "age >"})
    assert resp.status_code == 400
    assert "detail" in resp.json()


def test_unknown_field_returns_400():
    client = TestClient(_app())
    resp = client.get("/users", params={"filter": "password = secret"})
    assert resp.status_code == 400
    assert "password" in resp.json()["detail"]


def test_ambiguous_single_returns_409():
    client = TestClient(_app())
    assert client.get("/by-age/31").status_code == 409
    assert client.get("/by-age/45").json()["name"] == "carol"


def test_mapify_error_returns_500():
    client = TestClient(_app(), raise_server_exceptions=False)
    resp = client.get("/boom")
    assert resp.status_code == 500
    assert resp.json() == {"detail": "store unavailable"}
