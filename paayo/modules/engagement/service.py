"""Business logic for engagement module: views, likes and guest comments.

Counters on the content rows are always rewritten from ``count(*)`` over the
event tables (see ``paayo.core.targets``), never incremented in place.
"""

from datetime import UTC, date, datetime, timedelta

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import String, cast, delete, distinct, exists, func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from paayo.config import settings
from paayo.core.database import transactional
from paayo.core.dependencies import clamp
from paayo.core.exceptions import (
    BadRequestError,
    NotFoundError,
    TooManyRequestsError,
    ValidationError,
)
from paayo.core.logging import get_logger
from paayo.core.pagination import paginate_query
from paayo.core.sanitize import sanitize_comment_html, strip_html
from paayo.core.targets import (
    COMMENTABLE_KINDS,
    LIKEABLE_KINDS,
    VIEWABLE_KINDS,
    TargetKind,
    sync_like_count,
    sync_view_count,
    target_exists,
)
from paayo.modules.engagement.models import (
    Comment,
    CommentStatus,
    ContentLike,
    ContentView,
    ViewAggregate,
)
from paayo.modules.notifications.models import NotificationKind
from paayo.modules.notifications.service import NotificationService

logger = get_logger(__name__)

VIEW_DEDUP_WINDOW = timedelta(hours=24)
MIN_RETENTION_DAYS = 7

COMMENT_MAX_LENGTH = 5000
COMMENT_NAME_MAX_LENGTH = 100
COMMENTS_PER_HOUR = 5


def require_kind(value: str, allowed: frozenset[TargetKind]) -> TargetKind:
    """Parse a target type, rejecting kinds outside ``allowed`` with 400."""
    kind = TargetKind.parse(value)
    if kind is None or kind not in allowed:
        raise BadRequestError(f"Invalid target type '{value}'")
    return kind


# ============================================================================
# Views
# ============================================================================


class ViewService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _recently_viewed(self, kind: TargetKind, target_id: str, viewer: str) -> bool:
        since = datetime.now(UTC) - VIEW_DEDUP_WINDOW
        result = await self.db.execute(
            select(
                exists().where(
                    ContentView.target_type == kind.value,
                    ContentView.target_id == target_id,
                    ContentView.viewer_hash == viewer,
                    ContentView.created_at > since,
                )
            )
        )
        return bool(result.scalar())

    async def record_view(
        self,
        target_type: str,
        target_id: str,
        viewer: str,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
        referrer: str | None = None,
    ) -> bool:
        """Record one view. Returns False when this viewer was already counted
        within the dedup window."""
        kind = require_kind(target_type, VIEWABLE_KINDS)

        if await self._recently_viewed(kind, target_id, viewer):
            return False

        if not await target_exists(self.db, kind, target_id):
            raise NotFoundError(kind.value.capitalize(), target_id)

        self.db.add(
            ContentView(
                target_type=kind.value,
                target_id=target_id,
                viewer_hash=viewer,
                ip_address=ip_address,
                user_agent=user_agent,
                referrer=referrer,
            )
        )
        await self.db.flush()
        count = await sync_view_count(self.db, kind, target_id)
        await self.db.commit()

        logger.info("view_recorded", target_type=kind.value, target_id=target_id, views=count)
        return True

    async def get_stats(self, target_type: str, target_id: str) -> tuple[int, int]:
        """``(total_views, unique_viewers)`` over the raw view rows."""
        kind = require_kind(target_type, VIEWABLE_KINDS)
        row = (
            await self.db.execute(
                select(func.count(), func.count(distinct(ContentView.viewer_hash))).where(
                    ContentView.target_type == kind.value,
                    ContentView.target_id == target_id,
                )
            )
        ).one()
        return row[0] or 0, row[1] or 0

    async def trending(
        self, target_type: str, *, days: int | None = None, limit: int | None = None
    ) -> tuple[int, list[tuple[str, int]]]:
        kind = require_kind(target_type, VIEWABLE_KINDS)
        days = clamp(days, 7, 1, 90)
        limit = clamp(limit, 10, 1, 50)
        since = datetime.now(UTC) - timedelta(days=days)

        views = func.count().label("view_count")
        result = await self.db.execute(
            select(ContentView.target_id, views)
            .where(ContentView.target_type == kind.value, ContentView.created_at >= since)
            .group_by(ContentView.target_id)
            .order_by(views.desc())
            .limit(limit)
        )
        return days, [(target_id, count) for target_id, count in result.all()]

    async def daily(
        self, target_type: str, target_id: str, *, days: int | None = None
    ) -> list[tuple[date, int, int]]:
        kind = require_kind(target_type, VIEWABLE_KINDS)
        days = clamp(days, 30, 1, 365)
        since = datetime.now(UTC) - timedelta(days=days)

        view_day = func.date(ContentView.created_at).label("view_date")
        result = await self.db.execute(
            select(view_day, func.count(), func.count(distinct(ContentView.viewer_hash)))
            .where(
                ContentView.target_type == kind.value,
                ContentView.target_id == target_id,
                ContentView.created_at >= since,
            )
            .group_by(view_day)
            .order_by(view_day.desc())
        )
        return [(day, total, unique) for day, total, unique in result.all()]

    async def summary(self) -> list[tuple[str, int, int]]:
        result = await self.db.execute(
            select(
                ContentView.target_type,
                func.count(),
                func.count(distinct(ContentView.viewer_hash)),
            )
            .group_by(ContentView.target_type)
            .order_by(ContentView.target_type)
        )
        return [(kind, total, unique) for kind, total, unique in result.all()]

    @transactional
    async def aggregate_daily(self, day: date | None = None) -> tuple[date, int]:
        """Upsert one ``view_aggregates`` row per target for ``day``
        (yesterday by default). Safe to run repeatedly."""
        day = day or datetime.now(UTC).date() - timedelta(days=1)
        view_day = func.date(ContentView.created_at)

        source = (
            select(
                cast(func.gen_random_uuid(), String),
                ContentView.target_type,
                ContentView.target_id,
                view_day,
                func.count(),
                func.count(distinct(ContentView.viewer_hash)),
            )
            .where(view_day == day)
            .group_by(ContentView.target_type, ContentView.target_id, view_day)
        )
        stmt = insert(ViewAggregate).from_select(
            ["id", "target_type", "target_id", "view_date", "view_count", "unique_viewers"],
            source,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["target_type", "target_id", "view_date"],
            set_={
                "view_count": stmt.excluded.view_count,
                "unique_viewers": stmt.excluded.unique_viewers,
                "updated_at": func.now(),
            },
        )
        result = await self.db.execute(stmt)

        logger.info("views_aggregated", view_date=day.isoformat(), rows=result.rowcount)
        return day, result.rowcount

    @transactional
    async def prune(self, retention_days: int | None = None) -> tuple[int, int]:
        """Delete raw views older than the retention window. Aggregates stay."""
        days = max(retention_days or settings.view_retention_days, MIN_RETENTION_DAYS)
        cutoff = datetime.now(UTC) - timedelta(days=days)
        result = await self.db.execute(delete(ContentView).where(ContentView.created_at < cutoff))

        logger.info("views_pruned", retention_days=days, deleted=result.rowcount)
        return days, result.rowcount


# ============================================================================
# Likes
# ============================================================================


class LikeService:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _like_filter(self, kind: TargetKind, target_id: str, viewer: str) -> tuple:
        return (
            ContentLike.target_type == kind.value,
            ContentLike.target_id == target_id,
            ContentLike.viewer_hash == viewer,
        )

    @transactional
    async def toggle(
        self,
        target_type: str,
        target_id: str,
        viewer: str,
        *,
        ip_address: str | None = None,
    ) -> tuple[bool, int]:
        """Flip the viewer's like. Returns ``(liked, like_count)``.

        The DELETE runs first: if it removed a row the viewer is unliking,
        otherwise the like is inserted with ``ON CONFLICT DO NOTHING``.
        """
        kind = require_kind(target_type, LIKEABLE_KINDS)

        removed = await self.db.execute(
            delete(ContentLike).where(*self._like_filter(kind, target_id, viewer))
        )
        if removed.rowcount > 0:
            liked = False
        else:
            if not await target_exists(self.db, kind, target_id):
                raise NotFoundError(kind.value.capitalize(), target_id)
            await self.db.execute(
                insert(ContentLike)
                .values(
                    target_type=kind.value,
                    target_id=target_id,
                    viewer_hash=viewer,
                    ip_address=ip_address,
                )
                .on_conflict_do_nothing(
                    index_elements=["target_type", "target_id", "viewer_hash"]
                )
            )
            liked = True

        count = await sync_like_count(self.db, kind, target_id)
        logger.info(
            "like_toggled",
            target_type=kind.value,
            target_id=target_id,
            liked=liked,
            like_count=count,
        )
        return liked, count

    async def status(self, target_type: str, target_id: str, viewer: str) -> tuple[bool, int]:
        kind = require_kind(target_type, LIKEABLE_KINDS)
        liked = (
            await self.db.execute(
                select(exists().where(*self._like_filter(kind, target_id, viewer)))
            )
        ).scalar()
        count = (
            await self.db.execute(
                select(func.count()).where(
                    ContentLike.target_type == kind.value,
                    ContentLike.target_id == target_id,
                )
            )
        ).scalar()
        return bool(liked), count or 0

    async def top(self, target_type: str, *, limit: int | None = None) -> list[tuple[str, int]]:
        kind = require_kind(target_type, LIKEABLE_KINDS)
        limit = clamp(limit, 10, 1, 50)

        likes = func.count().label("like_count")
        result = await self.db.execute(
            select(ContentLike.target_id, likes)
            .where(ContentLike.target_type == kind.value)
            .group_by(ContentLike.target_id)
            .order_by(likes.desc())
            .limit(limit)
        )
        return [(target_id, count) for target_id, count in result.all()]


# ============================================================================
# Comments
# ============================================================================


class CommentService:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _validate(
        self,
        target_type: str,
        target_id: str,
        guest_name: str,
        guest_email: str,
        content: str,
    ) -> tuple[TargetKind, str, str, str]:
        kind = TargetKind.parse(target_type or "")
        if kind is None or kind not in COMMENTABLE_KINDS:
            raise ValidationError(
                "Invalid target type", errors=[{"field": "target_type", "value": target_type}]
            )
        if not target_id.strip():
            raise ValidationError("Target id is required", errors=[{"field": "target_id"}])

        name = strip_html(guest_name)
        if not name:
            raise ValidationError("Name is required", errors=[{"field": "guest_name"}])
        if len(name) > COMMENT_NAME_MAX_LENGTH:
            raise ValidationError("Name is too long", errors=[{"field": "guest_name"}])

        try:
            email = validate_email(guest_email.strip(), check_deliverability=False).normalized
        except EmailNotValidError as e:
            raise ValidationError(
                "Invalid email address", errors=[{"field": "guest_email", "message": str(e)}]
            )

        if len(content) > COMMENT_MAX_LENGTH:
            raise ValidationError(
                f"Comment must be at most {COMMENT_MAX_LENGTH} characters",
                errors=[{"field": "content"}],
            )
        clean = sanitize_comment_html(content)
        if not strip_html(clean):
            raise ValidationError("Comment cannot be empty", errors=[{"field": "content"}])

        return kind, name, email, clean

    async def _recent_count(self, viewer: str) -> int:
        since = datetime.now(UTC) - timedelta(hours=1)
        result = await self.db.execute(
            select(func.count())
            .select_from(Comment)
            .where(Comment.viewer_hash == viewer, Comment.created_at > since)
        )
        return result.scalar() or 0

    async def get_by_id(self, comment_id: str) -> Comment:
        result = await self.db.execute(
            select(Comment).where(Comment.id == comment_id).execution_options(
                populate_existing=True
            )
        )
        comment = result.scalar_one_or_none()
        if comment is None:
            raise NotFoundError("Comment", comment_id)
        return comment

    async def _resolve_parent(
        self, parent_id: str, kind: TargetKind, target_id: str
    ) -> str:
        """Replies are one level deep: a reply to a reply hangs off the root."""
        result = await self.db.execute(select(Comment).where(Comment.id == parent_id))
        parent = result.scalar_one_or_none()
        if parent is None:
            raise NotFoundError("Comment", parent_id)
        if parent.target_type != kind.value or parent.target_id != target_id:
            raise ValidationError(
                "Parent comment belongs to different content",
                errors=[{"field": "parent_id", "value": parent_id}],
            )
        return parent.parent_id or parent.id

    async def submit(
        self,
        *,
        target_type: str,
        target_id: str,
        guest_name: str,
        guest_email: str,
        content: str,
        viewer: str,
        parent_id: str | None = None,
        ip_address: str | None = None,
    ) -> Comment:
        kind, name, email, clean = self._validate(
            target_type, target_id, guest_name, guest_email, content
        )

        if await self._recent_count(viewer) >= COMMENTS_PER_HOUR:
            logger.warning("comment_rate_limited", viewer_hash=viewer)
            raise TooManyRequestsError("Too many comments. Please try again later.")

        if not await target_exists(self.db, kind, target_id):
            raise NotFoundError(kind.value.capitalize(), target_id)

        if parent_id:
            parent_id = await self._resolve_parent(parent_id, kind, target_id)

        comment = Comment(
            target_type=kind.value,
            target_id=target_id,
            parent_id=parent_id or None,
            guest_name=name,
            guest_email=email,
            content=clean,
            status=CommentStatus.PENDING.value,
            ip_address=ip_address,
            viewer_hash=viewer,
        )
        self.db.add(comment)
        await self.db.commit()
        await self.db.refresh(comment)
        logger.info(
            "comment_submitted",
            comment_id=comment.id,
            target_type=kind.value,
            target_id=target_id,
        )

        await self._notify_admins(comment)
        return comment

    async def _notify_admins(self, comment: Comment) -> None:
        try:
            await NotificationService(self.db).notify_admins(
                kind=NotificationKind.NEW_COMMENT.value,
                title=f"New comment from {comment.guest_name}",
                message=strip_html(comment.content)[:200],
                target_type=comment.target_type,
                target_id=comment.target_id,
                action_url="/dashboard/comments",
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.warning("comment_notification_failed", comment_id=comment.id, error=str(e))

    # ------------------------------------------------------------------
    # Public read side
    # ------------------------------------------------------------------

    async def list_approved(
        self, target_type: str, target_id: str, *, page: int = 1, page_size: int = 20
    ) -> tuple[list[Comment], int]:
        kind = require_kind(target_type, COMMENTABLE_KINDS)
        stmt = select(Comment).where(
            Comment.target_type == kind.value,
            Comment.target_id == target_id,
            Comment.parent_id.is_(None),
            Comment.status == CommentStatus.APPROVED.value,
        )
        return await paginate_query(
            self.db, stmt, page=page, page_size=page_size, order_by=[Comment.created_at.asc()]
        )

    async def replies(self, comment_id: str) -> list[Comment]:
        result = await self.db.execute(
            select(Comment)
            .where(
                Comment.parent_id == comment_id,
                Comment.status == CommentStatus.APPROVED.value,
            )
            .order_by(Comment.created_at.asc())
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Moderation
    # ------------------------------------------------------------------

    async def list_for_moderation(
        self,
        *,
        status: str | None = None,
        target_type: str | None = None,
        target_id: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Comment], int]:
        stmt = select(Comment)
        if status:
            stmt = stmt.where(Comment.status == status)
        if target_type:
            stmt = stmt.where(
                Comment.target_type == require_kind(target_type, COMMENTABLE_KINDS).value
            )
        if target_id:
            stmt = stmt.where(Comment.target_id == target_id)
        return await paginate_query(
            self.db, stmt, page=page, page_size=page_size, order_by=[Comment.created_at.desc()]
        )

    async def moderate(self, comment_id: str, status: str) -> Comment:
        result = await self.db.execute(
            update(Comment)
            .where(Comment.id == comment_id)
            .values(status=status, updated_at=func.now())
        )
        if result.rowcount == 0:
            raise NotFoundError("Comment", comment_id)
        await self.db.commit()

        logger.info("comment_moderated", comment_id=comment_id, status=status)
        return await self.get_by_id(comment_id)

    @transactional
    async def batch_moderate(self, comment_ids: list[str], status: str) -> int:
        result = await self.db.execute(
            update(Comment)
            .where(Comment.id.in_(comment_ids))
            .values(status=status, updated_at=func.now())
        )
        logger.info("comments_batch_moderated", status=status, updated=result.rowcount)
        return result.rowcount

    @transactional
    async def delete(self, comment_id: str) -> None:
        """Delete a comment together with its replies."""
        await self.get_by_id(comment_id)
        replies = await self.db.execute(delete(Comment).where(Comment.parent_id == comment_id))
        await self.db.execute(delete(Comment).where(Comment.id == comment_id))
        logger.info("comment_deleted", comment_id=comment_id, replies_deleted=replies.rowcount)

    async def pending_count(self) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(Comment)
            .where(Comment.status == CommentStatus.PENDING.value)
        )
        return result.scalar() or 0
