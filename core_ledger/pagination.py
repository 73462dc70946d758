"""
Pagination Module

Offset/limit paging parameters and page metadata for list queries.
"""

from dataclasses import dataclass, field
from enum import Enum
import math
from typing import Any, Dict, Generic, List, Optional, TypeVar

from .errors import ValidationError


T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class SortOrder(Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def parse(cls, value) -> 'SortOrder':
        if isinstance(value, SortOrder):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValidationError(f"sortOrder must be one of ASC, DESC, got {value!r}")


@dataclass(frozen=True)
class PaginationParams:
    """Validated paging request; sort_by is a caller-facing field name"""
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort_by: str = "created_at"
    sort_order: SortOrder = SortOrder.DESC
    max_limit: int = field(default=MAX_LIMIT, compare=False)

    def __post_init__(self):
        if isinstance(self.page, bool) or not isinstance(self.page, int) or self.page < 1:
            raise ValidationError("page must be an integer greater than or equal to 1")
        if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit < 1:
            raise ValidationError("limit must be an integer greater than or equal to 1")
        if self.limit > self.max_limit:
            raise ValidationError(f"limit must be less than or equal to {self.max_limit}")
        object.__setattr__(self, "sort_order", SortOrder.parse(self.sort_order))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def descending(self) -> bool:
        return self.sort_order == SortOrder.DESC


@dataclass(frozen=True)
class PageMeta:
    total_items: int
    items_per_page: int
    current_page: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def build(cls, total_items: int, params: PaginationParams) -> 'PageMeta':
        total_pages = math.ceil(total_items / params.limit)
        return cls(
            total_items=total_items,
            items_per_page=params.limit,
            current_page=params.page,
            total_pages=total_pages,
            has_next_page=params.page < total_pages,
            has_previous_page=params.page > 1,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalItems": self.total_items,
            "itemsPerPage": self.items_per_page,
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "hasNextPage": self.has_next_page,
            "hasPreviousPage": self.has_previous_page,
        }


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    meta: PageMeta

    @classmethod
    def build(cls, items: List[T], total_items: int, params: PaginationParams) -> 'Page[T]':
        return cls(items=list(items), meta=PageMeta.build(total_items, params))

    @property
    def total_items(self) -> int:
        return self.meta.total_items


def resolve_sort_field(sort_by: Optional[str], allowed: Dict[str, str]) -> str:
    """Map a caller-facing sort field to a column name, rejecting unknown fields"""
    key = sort_by or "created_at"
    column = allowed.get(key)
    if column is None:
        raise ValidationError(
            f"sortBy must be one of {', '.join(sorted(allowed))}, got {sort_by!r}"
        )
    return column
