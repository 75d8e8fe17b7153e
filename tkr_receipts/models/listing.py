"""Table view query and pagination models."""

import math
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class SortDirection(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class PaginationParams(BaseModel):
    """Pagination parameters."""

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    page_size: int = Field(default=15, ge=1, le=100, description="Items per page")


class Page(BaseModel, Generic[T]):
    """One page of a filtered and sorted listing."""

    items: list[T]
    total: int = Field(description="Total number of matching items")
    page: int = Field(description="Current page number")
    page_size: int = Field(description="Items per page")
    total_pages: int = Field(description="Total number of pages")

    @classmethod
    def from_items(cls, items: list[T], params: PaginationParams) -> "Page[T]":
        """Slice a full result list into the requested page."""
        start = (params.page - 1) * params.page_size
        return cls(
            items=items[start : start + params.page_size],
            total=len(items),
            page=params.page,
            page_size=params.page_size,
            total_pages=math.ceil(len(items) / params.page_size),
        )
