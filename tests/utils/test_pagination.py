import dataclasses

import pytest

from mapify import PagedResult


class TestPagedResult:
    def test_defaults(self):
        result = PagedResult()
        assert result.items == []
        assert result.current_page == 0
        assert result.total_pages == 0
        assert not result.has_previous
        assert not result.has_next

    @pytest.mark.parametrize(
        "current_page,has_previous,has_next",
        [(1, False, True), (2, True, True), (3, True, False)],
    )
    def test_navigation(self, current_page, has_previous, has_next):
        result = PagedResult(items=[], current_page=current_page, page_size=10, total_count=25)
        assert result.total_pages == 3
        assert result.has_previous is has_previous
        assert result.has_next is has_next

    def test_exact_multiple(self):
        assert PagedResult(page_size=5, total_count=20).total_pages == 4

    def test_empty_total(self):
        result = PagedResult(current_page=1, page_size=10, total_count=0)
        assert result.total_pages == 0
        assert not result.has_next

    @pytest.mark.parametrize("page_size", [0, -3])
    def test_non_positive_page_size(self, page_size):
        result = PagedResult(items=[1, 2], current_page=1, page_size=page_size, total_count=2)
        assert result.total_pages == 0
        assert not result.has_next

    def test_frozen(self):
        result = PagedResult(items=[1])
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.total_count = 3

    def test_map(self):
        result = PagedResult(items=[1, 2, 3], current_page=2, page_size=3, total_count=9)
        mapped = result.map(str)
        assert mapped.items == ["1", "2", "3"]
        assert (mapped.current_page, mapped.page_size, mapped.total_count) == (2, 3, 9)
        assert result.items == [1, 2, 3]

    def test_to_dict(self):
        result = PagedResult(items=["a"], current_page=1, page_size=1, total_count=2)
        assert result.to_dict() == {
            "items": ["a"],
            "current_page": 1,
            "page_size": 1,
            "total_count": 2,
            "total_pages": 2,
            "has_previous": False,
            "has_next": True,
        }

    def test_page_zero_reports_next(self):
        result = PagedResult(items=list(range(25)), current_page=0, page_size=10, total_count=25)
        assert result.has_next
        assert not result.has_previous
