"""Common FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from paayo.core.database import get_db

DBSession = Annotated[AsyncSession, Depends(get_db)]


class PaginationParams:
    """Common pagination parameters."""

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="Page number"),
        page_size: int = Query(default=20, ge=1, le=100, description="Items per page"),
    ) -> None:
        self.page = page
        self.page_size = page_size


Pagination = Annotated[PaginationParams, Depends()]


def clamp(value: int | None, default: int, low: int, high: int) -> int:
    """Clamp an optional query value into ``[low, high]``."""
    if value is None:
        return default
    return max(low, min(value, high))
