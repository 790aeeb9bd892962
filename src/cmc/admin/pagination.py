"""Offset pagination for admin listings."""

from __future__ import annotations

import math

from sqlalchemy import Select

from cmc.admin.schemas import PaginationInfo

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def apply_page(query: Select, page: int, limit: int) -> Select:  # type: ignore[type-arg]
    """Apply OFFSET/LIMIT for a 1-based page number."""
    limit = min(max(limit, 1), MAX_LIMIT)
    page = max(page, 1)
    return query.offset((page - 1) * limit).limit(limit)


def page_info(page: int, limit: int, total: int) -> PaginationInfo:
    """Describe where ``page`` sits among ``total`` items."""
    limit = min(max(limit, 1), MAX_LIMIT)
    page = max(page, 1)
    total_pages = math.ceil(total / limit) if total else 0
    return PaginationInfo(
        current_page=page,
        total_pages=total_pages,
        total_users=total,
        has_next=page < total_pages,
        has_prev=page > 1,
    )
