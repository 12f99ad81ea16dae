from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class PagedResult(Generic[T]):
    """A materialized page of items plus offset-pagination metadata."""

    items: list[T] = field(default_factory=list)
    current_page: int = 0
    page_size: int = 0
    total_count: int = 0

    @property
    def total_pages(self) -> int:
        """Number of pages for ``total_count``; 0 when the page size is not positive."""
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        """True while ``current_page`` is below ``total_pages``.

        A page of 0 returns every match unwindowed yet still reports a next page.
        """
        return self.current_page < self.total_pages

    def map(self, fn: Callable[[T], U]) -> PagedResult[U]:
        """Return a new result with ``fn`` applied to every item."""
        return PagedResult(
            items=[fn(item) for item in self.items],
            current_page=self.current_page,
            page_size=self.page_size,
            total_count=self.total_count,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": list(self.items),
            "current_page": self.current_page,
            "page_size": self.page_size,
            "total_count": self.total_count,
            "total_pages": self.total_pages,
            "has_previous": self.has_previous,
            "has_next": self.has_next,
        }
