"""Content links between posts, regions, photos and videos.

Revision ID: 002
Revises: 001
Create Date: 2026-10-17
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "content_links",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("source_type", sa.String(20), nullable=False),
        sa.Column("source_id", sa.String(36), nullable=False),
        sa.Column("target_type", sa.String(20), nullable=False),
        sa.Column("target_id", sa.String(36), nullable=False),
        sa.Column("display_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("source_type IN ('post', 'region')", name="ck_content_links_source_type"),
        sa.CheckConstraint(
            "target_type IN ('post', 'photo', 'video')", name="ck_content_links_target_type"
        ),
        sa.UniqueConstraint(
            "source_type", "source_id", "target_type", "target_id",
            name="uq_content_links_source_target",
        ),
    )
    op.create_index("ix_content_links_source", "content_links", ["source_type", "source_id"])
    op.create_index("ix_content_links_target", "content_links", ["target_type", "target_id"])


def downgrade() -> None:
    op.drop_table("content_links")
