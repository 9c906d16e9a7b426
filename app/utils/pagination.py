"""Offset pagination over SQLAlchemy select statements."""

from typing import Any, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.schemas.common_schema import Pagination


def clamp_limit(limit: int | None) -> int:
    """Fall back to the default page size and cap it at the configured maximum."""
    if not limit or limit < 1:
        return settings.DEFAULT_PAGE_SIZE
    return min(limit, settings.MAX_PAGE_SIZE)


async def paginate(
    db: AsyncSession, query: Select, page: int, limit: int
) -> tuple[Sequence[Any], Pagination]:
    """Run ``query`` for one page and count the full filtered result.

    Args:
        db: Database session
        query: Filtered and ordered select of a single ORM entity
        page: 1-indexed page number
        limit: Rows per page

    Returns:
        The page's rows and the pagination metadata
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar_one()

    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    return result.scalars().all(), Pagination.build(total, page, limit)
