"""Pagination helpers shared by list endpoints."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, computed_field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

ItemT = TypeVar("ItemT")

MAX_PAGE_SIZE = 100


class ListResponse(BaseModel, Generic[ItemT]):
    """Paginated list envelope."""

    items: list[ItemT]
    total: int
    page: int
    page_size: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size


async def paginate_query(
    db: AsyncSession,
    base_query: Select,
    page: int,
    page_size: int,
    *,
    order_by: list[Any] | None = None,
) -> tuple[list[Any], int]:
    """Count the filtered query, then fetch one page of it.

    Example:
        base_query = select(Post).where(Post.deleted_at.is_(None))
        items, total = await paginate_query(
            self.db, base_query, page=2, page_size=20,
            order_by=[Post.created_at.desc()],
        )
    """
    page_size = min(max(page_size, 1), MAX_PAGE_SIZE)
    page = max(page, 1)

    count_stmt = select(func.count()).select_from(base_query.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar() or 0

    stmt = base_query
    if order_by:
        stmt = stmt.order_by(*order_by)
    stmt = stmt.offset((page - 1) * page_size).limit(page_size)

    result = await db.execute(stmt)
    return list(result.scalars().all()), total
