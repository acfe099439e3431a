"""Pydantic schemas for engagement module."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Views
# ============================================================================


class ViewRecordRequest(BaseModel):
    target_type: str = Field(..., min_length=1, max_length=20)
    target_id: str = Field(..., min_length=1, max_length=36)


class ViewRecordResponse(BaseModel):
    recorded: bool


class ViewStatsResponse(BaseModel):
    target_type: str
    target_id: str
    total_views: int
    unique_viewers: int


class TrendingItem(BaseModel):
    target_id: str
    view_count: int


class TrendingResponse(BaseModel):
    target_type: str
    days: int
    items: list[TrendingItem]


class DailyViewStats(BaseModel):
    view_date: date
    view_count: int
    unique_viewers: int


class ViewSummaryItem(BaseModel):
    target_type: str
    total_views: int
    unique_viewers: int


class AggregateResponse(BaseModel):
    view_date: date
    rows_affected: int


class PruneResponse(BaseModel):
    retention_days: int
    deleted: int


# ============================================================================
# Likes
# ============================================================================


class LikeToggleResponse(BaseModel):
    liked: bool
    like_count: int


class LikeStatusResponse(BaseModel):
    target_type: str
    target_id: str
    liked: bool
    like_count: int


class TopLikedItem(BaseModel):
    target_id: str
    like_count: int


class TopLikedResponse(BaseModel):
    target_type: str
    items: list[TopLikedItem]


# ============================================================================
# Comments
# ============================================================================


class CommentCreate(BaseModel):
    """Validated further in the service (email shape, sanitised length)."""

    target_type: str = Field(..., max_length=20)
    target_id: str = Field(..., max_length=36)
    parent_id: str | None = Field(default=None, max_length=36)
    guest_name: str = Field(..., max_length=100)
    guest_email: str = Field(..., max_length=255)
    content: str


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    target_type: str
    target_id: str
    parent_id: str | None = None
    guest_name: str
    content: str
    status: str
    created_at: datetime


class CommentAdminResponse(CommentResponse):
    guest_email: str
    ip_address: str | None = None
    updated_at: datetime | None = None


class CommentModerate(BaseModel):
    status: Literal["approved", "rejected", "spam"]


class CommentBatchModerate(BaseModel):
    ids: list[str] = Field(..., min_length=1, max_length=100)
    status: Literal["approved", "rejected", "spam"]


class CommentBatchResponse(BaseModel):
    updated: int


class PendingCountResponse(BaseModel):
    pending: int
