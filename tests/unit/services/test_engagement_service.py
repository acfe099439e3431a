"""Unit tests for view, like and comment services."""

from datetime import UTC, date, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import SQLAlchemyError

from paayo.core.exceptions import (
    BadRequestError,
    NotFoundError,
    TooManyRequestsError,
    ValidationError,
)
from paayo.modules.engagement.models import Comment, CommentStatus, ContentView
from paayo.modules.engagement.service import (
    MIN_RETENTION_DAYS,
    CommentService,
    LikeService,
    ViewService,
)

VIEWER = "f" * 32


class TestViewService:
    """Tests for ViewService."""

    @pytest.fixture
    def service(self, mock_db: AsyncMock) -> ViewService:
        return ViewService(mock_db)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_record_view_success(
        self, service: ViewService, mock_db: AsyncMock, result_factory
    ) -> None:
        """New viewer should insert a row and resync the counter."""
        mock_db.execute.side_effect = [
            result_factory(scalar=False),  # not seen in window
            result_factory(scalar=True),  # target exists
            result_factory(scalar=7),  # count(*)
            result_factory(),  # UPDATE view_count
        ]

        recorded = await service.record_view("post", "p1", VIEWER, ip_address="1.2.3.4")

        assert recorded is True
        added = mock_db.add.call_args.args[0]
        assert isinstance(added, ContentView)
        assert added.viewer_hash == VIEWER
        mock_db.commit.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_record_view_deduplicated(
        self, service: ViewService, mock_db: AsyncMock, result_factory
    ) -> None:
        """Same viewer inside the window should not be counted twice."""
        mock_db.execute.return_value = result_factory(scalar=True)

        recorded = await service.record_view("post", "p1", VIEWER)

        assert recorded is False
        mock_db.add.assert_not_called()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_record_view_missing_target(
        self, service: ViewService, mock_db: AsyncMock, result_factory
    ) -> None:
        """Views of missing or unpublished content should be 404."""
        mock_db.execute.side_effect = [
            result_factory(scalar=False),
            result_factory(scalar=False),
        ]

        with pytest.raises(NotFoundError):
            await service.record_view("video", "v1", VIEWER)

        mock_db.add.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_record_view_unknown_kind(self, service: ViewService) -> None:
        with pytest.raises(BadRequestError):
            await service.record_view("region", "r1", VIEWER)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_trending_clamps_window(
        self, service: ViewService, mock_db: AsyncMock, result_factory
    ) -> None:
        """Days above the maximum should be clamped to 90."""
        mock_db.execute.return_value = result_factory(rows=[("p1", 12), ("p2", 4)])

        days, items = await service.trending("post", days=500, limit=5)

        assert days == 90
        assert items == [("p1", 12), ("p2", 4)]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_prune_respects_retention_floor(
        self, service: ViewService, mock_db: AsyncMock, result_factory
    ) -> None:
        """Retention shorter than the floor should be raised to it."""
        mock_db.execute.return_value = result_factory(rowcount=40)

        days, deleted = await service.prune(1)

        assert days == MIN_RETENTION_DAYS
        assert deleted == 40
        mock_db.commit.assert_awaited_once()


    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_aggregate_daily_upserts_per_target(
        self, service: ViewService, mock_db: AsyncMock, result_factory
    ) -> None:
        """Re-running a day overwrites counts instead of adding rows."""
        mock_db.execute.return_value = result_factory(rowcount=3)

        day, rows = await service.aggregate_daily(date(2026, 10, 16))

        assert (day, rows) == (date(2026, 10, 16), 3)
        stmt = mock_db.execute.await_args.args[0]
        sql = str(stmt.compile(dialect=postgresql.dialect()))
        assert sql.startswith("INSERT INTO view_aggregates")
        assert "ON CONFLICT (target_type, target_id, view_date) DO UPDATE" in sql
        assert "view_count = excluded.view_count" in sql
        assert "unique_viewers = excluded.unique_viewers" in sql
        assert "count(DISTINCT content_views.viewer_hash)" in sql
        mock_db.commit.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_aggregate_daily_defaults_to_yesterday(
        self, service: ViewService, mock_db: AsyncMock, result_factory
    ) -> None:
        mock_db.execute.return_value = result_factory(rowcount=0)

        day, rows = await service.aggregate_daily()

        assert day == datetime.now(UTC).date() - timedelta(days=1)
        assert rows == 0


class TestLikeService:
    """Tests for LikeService."""

    @pytest.fixture
    def service(self, mock_db: AsyncMock) -> LikeService:
        return LikeService(mock_db)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_toggle_unlikes_existing_like(
        self, service: LikeService, mock_db: AsyncMock, result_factory
    ) -> None:
        """Deleting an existing like should report liked=False."""
        mock_db.execute.side_effect = [
            result_factory(rowcount=1),  # DELETE removed the like
            result_factory(scalar=4),  # count(*)
            result_factory(),  # UPDATE like_count
        ]

        liked, count = await service.toggle("post", "p1", VIEWER)

        assert (liked, count) == (False, 4)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_toggle_likes(
        self, service: LikeService, mock_db: AsyncMock, result_factory
    ) -> None:
        mock_db.execute.side_effect = [
            result_factory(rowcount=0),  # nothing to delete
            result_factory(scalar=True),  # target exists
            result_factory(),  # INSERT ... ON CONFLICT DO NOTHING
            result_factory(scalar=5),
            result_factory(),
        ]

        liked, count = await service.toggle("photo", "ph1", VIEWER, ip_address="1.2.3.4")

        assert (liked, count) == (True, 5)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_toggle_missing_target_rolls_back(
        self, service: LikeService, mock_db: AsyncMock, result_factory
    ) -> None:
        mock_db.execute.side_effect = [
            result_factory(rowcount=0),
            result_factory(scalar=False),
        ]

        with pytest.raises(NotFoundError):
            await service.toggle("video", "v1", VIEWER)

        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_hotels_cannot_be_liked(self, service: LikeService) -> None:
        with pytest.raises(BadRequestError):
            await service.toggle("hotel", "h1", VIEWER)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_status(
        self, service: LikeService, mock_db: AsyncMock, result_factory
    ) -> None:
        mock_db.execute.side_effect = [result_factory(scalar=True), result_factory(scalar=9)]

        assert await service.status("post", "p1", VIEWER) == (True, 9)


class TestCommentService:
    """Tests for CommentService."""

    @pytest.fixture
    def service(self, mock_db: AsyncMock) -> CommentService:
        return CommentService(mock_db)

    @staticmethod
    def submit_kwargs(**overrides) -> dict:
        values = {
            "target_type": "post",
            "target_id": "p1",
            "guest_name": "Sita",
            "guest_email": "sita@gmail.com",
            "content": "Lovely trek, thanks for the tips!",
            "viewer": VIEWER,
        }
        values.update(overrides)
        return values

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_submit_creates_pending_comment(
        self, service: CommentService, mock_db: AsyncMock, result_factory
    ) -> None:
        """Accepted comment should be pending, sanitised and stripped of tags in the name."""
        mock_db.execute.side_effect = [
            result_factory(scalar=0),  # comments in the last hour
            result_factory(scalar=True),  # target exists
            result_factory(items=[]),  # no admins to notify
        ]

        comment = await service.submit(
            **self.submit_kwargs(
                guest_name="<b>Sita</b>",
                content="Great <script>x()</script><em>views</em>",
            )
        )

        assert isinstance(comment, Comment)
        assert comment.status == CommentStatus.PENDING.value
        assert comment.guest_name == "Sita"
        assert "<script" not in comment.content
        assert "<em>views</em>" in comment.content
        mock_db.commit.assert_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_name_with_ampersand_is_stored_as_text(
        self, service: CommentService, mock_db: AsyncMock, result_factory
    ) -> None:
        """The length limit counts characters, not HTML entities."""
        mock_db.execute.side_effect = [
            result_factory(scalar=0),
            result_factory(scalar=True),
            result_factory(items=[]),
        ]

        comment = await service.submit(**self.submit_kwargs(guest_name="&" * 100))

        assert comment.guest_name == "&" * 100

    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"target_type": "region"},
            {"target_id": "  "},
            {"guest_name": "<i></i>"},
            {"guest_name": "n" * 101},
            {"guest_email": "not-an-email"},
            {"content": "x" * 5001},
            {"content": "<b> </b>"},
        ],
    )
    async def test_submit_validation(
        self, service: CommentService, mock_db: AsyncMock, overrides: dict
    ) -> None:
        """Invalid input should be rejected before any query runs."""
        with pytest.raises(ValidationError):
            await service.submit(**self.submit_kwargs(**overrides))

        mock_db.execute.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_submit_hourly_limit(
        self, service: CommentService, mock_db: AsyncMock, result_factory
    ) -> None:
        mock_db.execute.return_value = result_factory(scalar=5)

        with pytest.raises(TooManyRequestsError):
            await service.submit(**self.submit_kwargs())

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reply_to_other_content_is_rejected(
        self, service: CommentService, mock_db: AsyncMock, result_factory
    ) -> None:
        parent = Comment(id="c1", target_type="post", target_id="other", parent_id=None)
        mock_db.execute.side_effect = [
            result_factory(scalar=0),
            result_factory(scalar=True),
            result_factory(scalar=parent),
        ]

        with pytest.raises(ValidationError):
            await service.submit(**self.submit_kwargs(parent_id="c1"))

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reply_to_reply_hangs_off_root(
        self, service: CommentService, mock_db: AsyncMock, result_factory
    ) -> None:
        """Replies stay one level deep."""
        parent = Comment(id="c2", target_type="post", target_id="p1", parent_id="c1")
        mock_db.execute.side_effect = [
            result_factory(scalar=0),
            result_factory(scalar=True),
            result_factory(scalar=parent),
            result_factory(items=[]),
        ]

        comment = await service.submit(**self.submit_kwargs(parent_id="c2"))

        assert comment.parent_id == "c1"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_notification_failure_does_not_fail_submit(
        self, service: CommentService, mock_db: AsyncMock, result_factory
    ) -> None:
        """A failed admin notification should be logged, not raised."""
        mock_db.execute.side_effect = [
            result_factory(scalar=0),
            result_factory(scalar=True),
            SQLAlchemyError("notifications table locked"),
        ]

        comment = await service.submit(**self.submit_kwargs())

        assert comment.status == CommentStatus.PENDING.value
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_moderate_missing_comment(
        self, service: CommentService, mock_db: AsyncMock, result_factory
    ) -> None:
        mock_db.execute.return_value = result_factory(rowcount=0)

        with pytest.raises(NotFoundError):
            await service.moderate("missing", "approved")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_delete_removes_replies(
        self, service: CommentService, mock_db: AsyncMock, result_factory
    ) -> None:
        comment = Comment(id="c1", target_type="post", target_id="p1")
        mock_db.execute.side_effect = [
            result_factory(scalar=comment),
            result_factory(rowcount=2),
            result_factory(rowcount=1),
        ]

        await service.delete("c1")

        assert mock_db.execute.await_count == 3
        mock_db.commit.assert_awaited_once()
