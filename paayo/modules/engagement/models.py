"""Engagement models: raw views, daily view aggregates, likes and comments."""

from datetime import date, datetime
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from paayo.core.base_model import Base, CreatedAtMixin, StringIDMixin


class CommentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    SPAM = "spam"
    REJECTED = "rejected"


class ContentView(Base, StringIDMixin, CreatedAtMixin):
    """One raw view event. Pruned after the retention window."""

    __tablename__ = "content_views"
    __table_args__ = (
        Index(
            "ix_content_views_dedup",
            "target_type",
            "target_id",
            "viewer_hash",
            "created_at",
        ),
        Index("ix_content_views_created_at", "created_at"),
    )

    target_type: Mapped[str] = mapped_column(String(20), nullable=False)
    target_id: Mapped[str] = mapped_column(String(36), nullable=False)
    viewer_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    referrer: Mapped[str | None] = mapped_column(Text, nullable=True)


class ViewAggregate(Base, StringIDMixin):
    __tablename__ = "view_aggregates"
    __table_args__ = (
        UniqueConstraint(
            "target_type", "target_id", "view_date", name="uq_view_aggregates_target_date"
        ),
    )

    target_type: Mapped[str] = mapped_column(String(20), nullable=False)
    target_id: Mapped[str] = mapped_column(String(36), nullable=False)
    view_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    view_count: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    unique_viewers: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ContentLike(Base, StringIDMixin, CreatedAtMixin):
    """Presence of a row means the viewer currently likes the target."""

    __tablename__ = "content_likes"
    __table_args__ = (
        UniqueConstraint(
            "target_type", "target_id", "viewer_hash", name="uq_content_likes_target_viewer"
        ),
        Index("ix_content_likes_target", "target_type", "target_id"),
    )

    target_type: Mapped[str] = mapped_column(String(20), nullable=False)
    target_id: Mapped[str] = mapped_column(String(36), nullable=False)
    viewer_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)


class Comment(Base, StringIDMixin, CreatedAtMixin):
    """Guest comment. Replies point at their parent; no FK cascade on the
    parent link, reply removal is done by the service."""

    __tablename__ = "comments"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'spam', 'rejected')",
            name="ck_comments_status",
        ),
        Index("ix_comments_target_status", "target_type", "target_id", "status"),
        Index("ix_comments_viewer_created", "viewer_hash", "created_at"),
    )

    target_type: Mapped[str] = mapped_column(String(20), nullable=False)
    target_id: Mapped[str] = mapped_column(String(36), nullable=False)
    parent_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    guest_name: Mapped[str] = mapped_column(String(100), nullable=False)
    guest_email: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default=CommentStatus.PENDING.value,
        server_default="pending",
        nullable=False,
        index=True,
    )
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    viewer_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )
