"""
Tests for pagination parameters and page metadata
"""

import pytest

from core_ledger.errors import ValidationError
from core_ledger.pagination import (
    Page, PageMeta, PaginationParams, SortOrder, resolve_sort_field
)


class TestPaginationParams:

    def test_defaults(self):
        params = PaginationParams()
        assert params.page == 1
        assert params.limit == 10
        assert params.sort_by == "created_at"
        assert params.sort_order == SortOrder.DESC
        assert params.offset == 0
        assert params.descending

    def test_offset(self):
        assert PaginationParams(page=3, limit=20).offset == 40

    def test_sort_order_from_string(self):
        params = PaginationParams(sort_order="asc")
        assert params.sort_order == SortOrder.ASC
        assert not params.descending

    @pytest.mark.parametrize("kwargs", [
        {"page": 0},
        {"page": -1},
        {"limit": 0},
        {"limit": 101},
        {"page": True},
        {"limit": "10"},
        {"sort_order": "SIDEWAYS"},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValidationError):
            PaginationParams(**kwargs)

    def test_limit_bound_is_configurable(self):
        assert PaginationParams(limit=100).limit == 100
        with pytest.raises(ValidationError):
            PaginationParams(limit=50, max_limit=25)


class TestPageMeta:

    def test_partial_last_page(self):
        meta = PageMeta.build(15, PaginationParams(page=2, limit=10))
        assert meta.total_pages == 2
        assert not meta.has_next_page
        assert meta.has_previous_page

    def test_exact_multiple(self):
        meta = PageMeta.build(20, PaginationParams(page=1, limit=10))
        assert meta.total_pages == 2
        assert meta.has_next_page

    def test_empty(self):
        meta = PageMeta.build(0, PaginationParams())
        assert meta.total_pages == 0
        assert not meta.has_next_page
        assert not meta.has_previous_page

    def test_to_dict_uses_camel_case(self):
        meta = PageMeta.build(15, PaginationParams(page=2, limit=10))
        assert meta.to_dict() == {
            "totalItems": 15,
            "itemsPerPage": 10,
            "currentPage": 2,
            "totalPages": 2,
            "hasNextPage": False,
            "hasPreviousPage": True,
        }


class TestPage:

    def test_build(self):
        page = Page.build(["a", "b"], 12, PaginationParams(limit=2))
        assert page.items == ["a", "b"]
        assert page.total_items == 12
        assert page.meta.total_pages == 6


class TestResolveSortField:

    def test_known_field(self):
        assert resolve_sort_field("createdAt", {"createdAt": "created_at"}) == "created_at"

    def test_missing_defaults_to_created_at(self):
        assert resolve_sort_field(None, {"created_at": "created_at"}) == "created_at"

    def test_unknown_field(self):
        with pytest.raises(ValidationError):
            resolve_sort_field("balance", {"created_at": "created_at"})
