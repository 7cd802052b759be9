"""
Page-based pagination for the listing endpoints.

Usage:
    @router.get("")
    def list_orders(pagination: Pagination = Depends(get_pagination), ...):
        rows, total = service.list_orders(offset=pagination.offset, limit=pagination.limit)
        return {"data": rows, "pagination": pagination.to_dict(total)}
"""

from dataclasses import dataclass
from typing import Any

from fastapi import Query

from shared.config.constants import Limits


@dataclass
class Pagination:
    """1-indexed page and page size."""

    page: int
    limit: int
    max_limit: int = Limits.MAX_PAGE_SIZE

    def __post_init__(self):
        self.page = max(1, self.page)
        self.limit = min(max(1, self.limit), self.max_limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def to_dict(self, total: int) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": total,
            "pages": (total + self.limit - 1) // self.limit,
        }


def get_pagination(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=Limits.DEFAULT_PAGE_SIZE, ge=1, le=Limits.MAX_PAGE_SIZE),
) -> Pagination:
    return Pagination(page=page, limit=limit)


def get_payment_pagination(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=Limits.PAYMENT_PAGE_SIZE, ge=1, le=Limits.MAX_PAGE_SIZE),
) -> Pagination:
    """Payments are listed in bigger pages for the cash register screen."""
    return Pagination(page=page, limit=limit)
