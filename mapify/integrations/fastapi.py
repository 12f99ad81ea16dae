from __future__ import annotations

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

from mapify.utils.exceptions import FilterError, MapifyError, MultipleDocumentsFound
from mapify.utils.pagination import PagedResult
from mapify.utils.types import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

T = TypeVar("T")


def register_exception_handlers(app: Any) -> None:
    """Register mapify exception handlers on a FastAPI app."""
    from starlette.responses import JSONResponse

    @app.exception_handler(FilterError)
    async def filter_error_handler(request: Any, exc: FilterError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(MultipleDocumentsFound)
    async def multiple_documents_handler(request: Any, exc: MultipleDocumentsFound):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(MapifyError)
    async def mapify_error_handler(request: Any, exc: MapifyError):
        return JSONResponse(status_code=500, content={"detail": str(exc)})


class PageParams:
    """FastAPI dependency for paging, filtering and ordering query parameters.

    Usage::

        @app.get("/users", response_model=PagedResponse[UserSummary])
        async def list_users(params: PageParams = Depends()):
            result = await aio.get_paged_result(users, UserSummary, **params.as_kwargs())
            return PagedResponse.from_result(result)
    """

    max_page_size: int = MAX_PAGE_SIZE

    def __init__(
        self,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        filter: Optional[str] = None,
        order_by: Optional[str] = None,
    ):
        self.page = max(1, page)
        self.page_size = min(max(1, page_size), self.max_page_size)
        self.filter = filter or None
        self.order_by = order_by or None

    def as_kwargs(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "page_size": self.page_size,
            "filter": self.filter,
            "order_by": self.order_by,
        }


class PagedResponse(BaseModel, Generic[T]):
    """Paged response model for API endpoints."""

    items: list[T]
    current_page: int
    page_size: int
    total_count: int
    total_pages: int
    has_previous: bool
    has_next: bool

    @classmethod
    def from_result(cls, result: PagedResult) -> PagedResponse:
        return cls(**result.to_dict())
