from math import ceil
from typing import Any, Dict
from ..utils.constants import AppConstants
from pydantic import BaseModel, Field


class PaginationInfo(BaseModel):
    """Pagination information"""

    current_page: int
    page_size: int
    total_items: int
    total_pages: int
    has_next: bool
    has_previous: bool

    @classmethod
    def build(cls, page: int, page_size: int, total_items: int) -> "PaginationInfo":
        total_pages = ceil(total_items / page_size) if total_items else 0
        return cls(
            current_page=page,
            page_size=page_size,
            total_items=total_items,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_previous=page > 1,
        )


class PaginationParams(BaseModel):
    """Pagination query parameters with constants"""

    page: int = Field(default=1, ge=1)
    page_size: int = Field(
        default=AppConstants.DEFAULT_PAGE_SIZE, ge=1, le=AppConstants.MAX_PAGE_SIZE
    )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


def paginate(query, params: PaginationParams) -> Dict[str, Any]:
    """Apply offset/limit to a query and return items + pagination info"""
    total = query.order_by(None).count()
    items = query.offset(params.offset).limit(params.limit).all()
    return {
        "items": items,
        "pagination": PaginationInfo.build(params.page, params.page_size, total),
    }

