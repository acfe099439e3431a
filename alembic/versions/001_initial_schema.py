"""Initial schema.

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _content_columns(table: str, *, likes: bool = True, views: bool = True) -> list:
    """Columns and constraints shared by every publishable content table."""
    columns = [
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("author_id", sa.String(36), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("status", sa.String(20), server_default="draft", nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_featured", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("display_order", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status IN ('draft', 'published')", name=f"ck_{table}_status"),
    ]
    if views:
        columns.append(sa.Column("view_count", sa.Integer(), server_default="0", nullable=False))
    if likes:
        columns.append(sa.Column("like_count", sa.Integer(), server_default="0", nullable=False))
    return columns


def _content_indexes(table: str) -> None:
    op.create_index(
        f"uq_{table}_slug_live", table, ["slug"],
        unique=True, postgresql_where="deleted_at IS NULL",
    )
    op.create_index(f"ix_{table}_slug", table, ["slug"])
    op.create_index(f"ix_{table}_status", table, ["status"])
    op.create_index(f"ix_{table}_deleted_at", table, ["deleted_at"])
    op.create_index(f"ix_{table}_author_id", table, ["author_id"])


def upgrade() -> None:
    """Create all tables."""

    # ------------------------------------------------------------------
    # Auth (written by the external auth provider)
    # ------------------------------------------------------------------
    op.create_table(
        "user",
        _id(),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("email_verified", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("role", sa.String(20), server_default="editor", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("banned_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("role IN ('admin', 'editor', 'user')", name="ck_user_role"),
    )

    op.create_table(
        "session",
        _id(),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("token", sa.String(255), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_session_user_id", "session", ["user_id"])

    op.create_table(
        "account",
        _id(),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("account_id", sa.String(255), nullable=False),
        sa.Column("provider_id", sa.String(255), nullable=False),
        sa.Column("password", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_account_user_id", "account", ["user_id"])

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------
    op.create_table(
        "regions",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cover_image", sa.String(500), nullable=True),
        sa.Column("map_data", postgresql.JSONB(), nullable=True),
        sa.Column("attraction_rank", sa.Integer(), nullable=True),
        sa.Column("province", sa.String(255), nullable=True),
        sa.Column("district", sa.String(255), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        *_content_columns("regions", likes=False, views=False),
    )
    _content_indexes("regions")

    op.create_table(
        "posts",
        _id(),
        sa.Column("type", sa.String(20), server_default="article", nullable=False),
        sa.Column("region_id", sa.String(36), sa.ForeignKey("regions.id"), nullable=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("short_description", sa.Text(), nullable=True),
        sa.Column("content", postgresql.JSONB(), nullable=True),
        sa.Column("cover_image", sa.String(500), nullable=True),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("event_end_date", sa.DateTime(timezone=True), nullable=True),
        *_content_columns("posts"),
        sa.CheckConstraint("type IN ('article', 'event', 'activity', 'explore')", name="ck_posts_type"),
    )
    _content_indexes("posts")
    op.create_index("ix_posts_region_id", "posts", ["region_id"])
    op.create_index("ix_posts_type_status_live", "posts", ["type", "status"], postgresql_where="deleted_at IS NULL")

    op.create_table(
        "videos",
        _id(),
        sa.Column("region_id", sa.String(36), sa.ForeignKey("regions.id"), nullable=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("platform", sa.String(20), server_default="youtube", nullable=False),
        sa.Column("video_url", sa.String(500), nullable=False),
        sa.Column("video_id", sa.String(100), nullable=True),
        sa.Column("thumbnail_url", sa.String(500), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=True),
        *_content_columns("videos"),
        sa.CheckConstraint("platform IN ('youtube', 'vimeo', 'tiktok')", name="ck_videos_platform"),
    )
    _content_indexes("videos")
    op.create_index("ix_videos_region_id", "videos", ["region_id"])

    op.create_table(
        "hotels",
        _id(),
        sa.Column("region_id", sa.String(36), sa.ForeignKey("regions.id"), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("website", sa.String(500), nullable=True),
        sa.Column("star_rating", sa.SmallInteger(), nullable=True),
        sa.Column("price_range", sa.String(20), nullable=True),
        sa.Column("amenities", postgresql.JSONB(), nullable=True),
        sa.Column("cover_image", sa.String(500), nullable=True),
        sa.Column("gallery", postgresql.JSONB(), nullable=True),
        *_content_columns("hotels", likes=False),
        sa.CheckConstraint(
            "price_range IS NULL OR price_range IN ('budget', 'mid', 'luxury')",
            name="ck_hotels_price_range",
        ),
        sa.CheckConstraint("star_rating IS NULL OR star_rating BETWEEN 1 AND 5", name="ck_hotels_star_rating"),
    )
    _content_indexes("hotels")
    op.create_index("ix_hotels_region_id", "hotels", ["region_id"])

    op.create_table(
        "hotel_branches",
        _id(),
        sa.Column("hotel_id", sa.String(36), sa.ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False),
        sa.Column("region_id", sa.String(36), sa.ForeignKey("regions.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("coordinates", postgresql.JSONB(), nullable=True),
        sa.Column("is_main", sa.Boolean(), server_default="false", nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_hotel_branches_hotel_id", "hotel_branches", ["hotel_id"])
    op.create_index("ix_hotel_branches_region_id", "hotel_branches", ["region_id"])

    op.create_table(
        "photo_features",
        _id(),
        sa.Column("region_id", sa.String(36), sa.ForeignKey("regions.id"), nullable=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_content_columns("photo_features"),
    )
    _content_indexes("photo_features")
    op.create_index("ix_photo_features_region_id", "photo_features", ["region_id"])

    op.create_table(
        "photo_images",
        _id(),
        sa.Column(
            "photo_feature_id", sa.String(36),
            sa.ForeignKey("photo_features.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("image_url", sa.String(500), nullable=False),
        sa.Column("caption", sa.Text(), nullable=True),
        sa.Column("display_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column("uploaded_by", sa.String(36), sa.ForeignKey("user.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_photo_images_photo_feature_id", "photo_images", ["photo_feature_id"])
    op.create_index("ix_photo_images_uploaded_by", "photo_images", ["uploaded_by"])

    op.create_table(
        "hero_slides",
        _id(),
        sa.Column("content_type", sa.String(20), nullable=False),
        sa.Column("content_id", sa.String(36), nullable=True),
        sa.Column("custom_title", sa.String(500), nullable=True),
        sa.Column("custom_description", sa.Text(), nullable=True),
        sa.Column("custom_image", sa.String(500), nullable=True),
        sa.Column("custom_link", sa.String(500), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sort_order", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "content_type IN ('post', 'video', 'photo', 'custom')",
            name="ck_hero_slides_content_type",
        ),
    )
    op.create_index("ix_hero_slides_is_active", "hero_slides", ["is_active"])

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------
    op.create_table(
        "tags",
        _id(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(120), nullable=False),
        sa.Column("tag_type", sa.String(20), server_default="general", nullable=False),
        *_timestamps(),
        sa.CheckConstraint("tag_type IN ('activity', 'category', 'general')", name="ck_tags_tag_type"),
    )
    op.create_index("ix_tags_slug", "tags", ["slug"], unique=True)

    op.create_table(
        "content_tags",
        _id(),
        sa.Column("tag_id", sa.String(36), sa.ForeignKey("tags.id", ondelete="CASCADE"), nullable=False),
        sa.Column("target_type", sa.String(20), nullable=False),
        sa.Column("target_id", sa.String(36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("tag_id", "target_type", "target_id", name="uq_content_tags_tag_target"),
    )
    op.create_index("ix_content_tags_tag_id", "content_tags", ["tag_id"])
    op.create_index("ix_content_tags_target", "content_tags", ["target_type", "target_id"])

    # ------------------------------------------------------------------
    # Engagement
    # ------------------------------------------------------------------
    op.create_table(
        "content_views",
        _id(),
        sa.Column("target_type", sa.String(20), nullable=False),
        sa.Column("target_id", sa.String(36), nullable=False),
        sa.Column("viewer_hash", sa.String(64), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("referrer", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        "ix_content_views_dedup", "content_views",
        ["target_type", "target_id", "viewer_hash", "created_at"],
    )
    op.create_index("ix_content_views_created_at", "content_views", ["created_at"])

    op.create_table(
        "view_aggregates",
        _id(),
        sa.Column("target_type", sa.String(20), nullable=False),
        sa.Column("target_id", sa.String(36), nullable=False),
        sa.Column("view_date", sa.Date(), nullable=False),
        sa.Column("view_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("unique_viewers", sa.Integer(), server_default="0", nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("target_type", "target_id", "view_date", name="uq_view_aggregates_target_date"),
    )
    op.create_index("ix_view_aggregates_view_date", "view_aggregates", ["view_date"])

    op.create_table(
        "content_likes",
        _id(),
        sa.Column("target_type", sa.String(20), nullable=False),
        sa.Column("target_id", sa.String(36), nullable=False),
        sa.Column("viewer_hash", sa.String(64), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("target_type", "target_id", "viewer_hash", name="uq_content_likes_target_viewer"),
    )
    op.create_index("ix_content_likes_target", "content_likes", ["target_type", "target_id"])

    op.create_table(
        "comments",
        _id(),
        sa.Column("target_type", sa.String(20), nullable=False),
        sa.Column("target_id", sa.String(36), nullable=False),
        # no FK: replies are removed by the service
        sa.Column("parent_id", sa.String(36), nullable=True),
        sa.Column("guest_name", sa.String(100), nullable=False),
        sa.Column("guest_email", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), server_default="pending", nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("viewer_hash", sa.String(64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'spam', 'rejected')",
            name="ck_comments_status",
        ),
    )
    op.create_index("ix_comments_target_status", "comments", ["target_type", "target_id", "status"])
    op.create_index("ix_comments_viewer_created", "comments", ["viewer_hash", "created_at"])
    op.create_index("ix_comments_parent_id", "comments", ["parent_id"])
    op.create_index("ix_comments_status", "comments", ["status"])

    # ------------------------------------------------------------------
    # Media and notifications
    # ------------------------------------------------------------------
    op.create_table(
        "media",
        _id(),
        sa.Column("filename", sa.String(255), nullable=False, unique=True),
        sa.Column("original_name", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("size_bytes", sa.BigInteger(), nullable=False),
        sa.Column("width", sa.Integer(), nullable=True),
        sa.Column("height", sa.Integer(), nullable=True),
        sa.Column("blur_hash", sa.String(100), nullable=True),
        sa.Column("thumbnail_filename", sa.String(255), nullable=True),
        sa.Column("uploaded_by", sa.String(36), sa.ForeignKey("user.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("size_bytes > 0", name="ck_media_size_positive"),
    )
    op.create_index("ix_media_uploaded_by", "media", ["uploaded_by"])

    op.create_table(
        "notifications",
        _id(),
        sa.Column("recipient_id", sa.String(36), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("actor_id", sa.String(36), sa.ForeignKey("user.id", ondelete="SET NULL"), nullable=True),
        sa.Column("kind", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("target_type", sa.String(20), nullable=True),
        sa.Column("target_id", sa.String(36), nullable=True),
        sa.Column("action_url", sa.String(500), nullable=True),
        sa.Column("is_read", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_notifications_recipient_unread", "notifications", ["recipient_id", "is_read"])
    op.create_index("ix_notifications_recipient_created", "notifications", ["recipient_id", "created_at"])


def downgrade() -> None:
    """Drop all tables."""
    for table in (
        "notifications",
        "media",
        "comments",
        "content_likes",
        "view_aggregates",
        "content_views",
        "content_tags",
        "tags",
        "hero_slides",
        "photo_images",
        "photo_features",
        "hotel_branches",
        "hotels",
        "videos",
        "posts",
        "regions",
        "account",
        "session",
        "user",
    ):
        op.drop_table(table)
