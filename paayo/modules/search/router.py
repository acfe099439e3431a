"""API routes for search module."""

from typing import Literal

from fastapi import APIRouter, Query

from paayo.core.dependencies import DBSession
from paayo.modules.search.schemas import SearchResponse, SearchResult
from paayo.modules.search.service import DEFAULT_LIMIT, MAX_LIMIT, SearchService

router = APIRouter(prefix="/search", tags=["Search"])


@router.get("", response_model=SearchResponse, summary="Search published content")
async def search(
    db: DBSession,
    q: str = Query(..., min_length=1, max_length=200),
    type: Literal["post", "region", "video", "hotel", "photo"] | None = Query(default=None),
    limit: int = Query(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
) -> SearchResponse:
    rows = await SearchService(db).search(q, content_type=type, limit=limit)
    return SearchResponse(
        query=q,
        total=len(rows),
        results=[SearchResult(**row) for row in rows],
    )
