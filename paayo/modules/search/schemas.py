"""Pydantic schemas for search module."""

from pydantic import BaseModel


class SearchResult(BaseModel):
    id: str
    type: str
    title: str
    slug: str
    excerpt: str | None = None
    cover_image: str | None = None
    rank: float


class SearchResponse(BaseModel):
    query: str
    total: int
    results: list[SearchResult]
