"""Pydantic schemas for notifications module."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: str
    title: str
    message: str | None = None
    actor_id: str | None = None
    target_type: str | None = None
    target_id: str | None = None
    action_url: str | None = None
    is_read: bool
    created_at: datetime
    read_at: datetime | None = None


class UnreadCountResponse(BaseModel):
    count: int


class MarkAllReadResponse(BaseModel):
    updated: int
