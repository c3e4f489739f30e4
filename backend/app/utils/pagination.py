"""
Pagination Utility Module

Search, sort and paging helpers shared by every listing endpoint.
"""
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select
from sqlalchemy.sql.elements import ColumnElement


def total_pages(total: int, limit: int) -> int:
    """ceil(total / limit); zero rows means zero pages"""
    if limit <= 0:
        return 0
    return math.ceil(total / limit)


def resolve_sort(sort_by: Optional[str], allowed: Mapping[str, Any], default: str) -> Tuple[str, Any]:
    """Look ``sort_by`` up in the allow-list, falling back to ``default``"""
    key = sort_by if sort_by in allowed else default
    return key, allowed[key]


def resolve_order(order: Optional[str], default: str = "desc") -> str:
    if order and order.lower() in ("asc", "desc"):
        return order.lower()
    return default


def search_filter(term: Optional[str], columns: Sequence[Any]) -> Optional[ColumnElement]:
    """
    Case-insensitive substring match across ``columns``.

    Returns None for an empty term so callers can skip the WHERE clause.
    LIKE wildcards in the term are matched literally.
    """
    if not term or not term.strip():
        return None
    escaped = term.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    return or_(*[column.ilike(pattern, escape="\\") for column in columns])


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    limit: int = 10,
    count_query: Optional[Select] = None,
    scalars: bool = True
) -> Tuple[List[Any], Dict[str, int]]:
    """
    Apply pagination to a SQLAlchemy query.

    Args:
        db: Database session
        query: Ordered base query
        page: Page number (1-indexed)
        limit: Items per page
        count_query: Optional custom count query
        scalars: Return the first column of each row instead of Row tuples

    Returns:
        (rows, pagination) where pagination has total, page, limit, total_pages.
        A page past the end yields an empty row list.
    """
    page = max(1, page)
    limit = max(1, limit)

    if count_query is None:
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = await db.scalar(count_query) or 0

    offset = (page - 1) * limit
    result = await db.execute(query.offset(offset).limit(limit))
    rows = list(result.scalars().all()) if scalars else list(result.all())

    return rows, {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages(total, limit),
    }
