"""Unit tests for the shared content lifecycle."""

import importlib
import re
from typing import Any
from unittest.mock import AsyncMock, Mock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError

from paayo.core.base_service import STATUS_DRAFT, STATUS_PUBLISHED, effective_status
from paayo.core.exceptions import NotFoundError, PermissionDeniedError, SlugConflictError
from paayo.core.security import AuthenticatedUser
from paayo.core.slug import SLUG_ATTEMPTS
from paayo.modules.content.models import Region
from paayo.modules.content.schemas import RegionCreate, RegionUpdate
from paayo.modules.content.service import RegionService


def _integrity_error(sqlstate: str) -> IntegrityError:
    return IntegrityError("INSERT INTO regions ...", {}, Mock(sqlstate=sqlstate))


def _compiled(stmt):
    return stmt.compile(dialect=postgresql.dialect())


def _statement(mock_db: AsyncMock, index: int):
    return mock_db.execute.await_args_list[index].args[0]


class TestEffectiveStatus:
    """Tests for status visibility."""

    @pytest.mark.unit
    def test_anonymous_sees_published_only(self) -> None:
        assert effective_status(None, STATUS_DRAFT) == STATUS_PUBLISHED

    @pytest.mark.unit
    def test_regular_user_sees_published_only(self, regular_user: AuthenticatedUser) -> None:
        assert effective_status(regular_user, None) == STATUS_PUBLISHED

    @pytest.mark.unit
    def test_editor_filter_is_honoured(self, editor_user: AuthenticatedUser) -> None:
        assert effective_status(editor_user, STATUS_DRAFT) == STATUS_DRAFT
        assert effective_status(editor_user, None) is None


class TestContentLifecycle:
    """Tests for ContentService through RegionService."""

    @pytest.fixture
    def service(self, mock_db: AsyncMock) -> RegionService:
        return RegionService(mock_db)

    @pytest.fixture
    def region(self, editor_user: AuthenticatedUser) -> Region:
        return Region(
            id="r1",
            name="Kaski",
            slug="kaski-1a2b3c4d",
            status=STATUS_DRAFT,
            author_id=editor_user.id,
            is_featured=False,
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_inserts_draft_with_slug(
        self,
        service: RegionService,
        mock_db: AsyncMock,
        result_factory,
        region: Region,
        editor_user: AuthenticatedUser,
    ) -> None:
        mock_db.execute.return_value = result_factory(scalar=region)

        await service.create(RegionCreate(name="Kaski"), editor_user.id)

        added = mock_db.add.call_args.args[0]
        assert added.status == STATUS_DRAFT
        assert added.author_id == editor_user.id
        assert re.fullmatch(r"kaski-[0-9a-f]{8}", added.slug)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_retries_slug_collision(
        self,
        service: RegionService,
        mock_db: AsyncMock,
        result_factory,
        region: Region,
        editor_user: AuthenticatedUser,
    ) -> None:
        """A unique violation should be retried with a fresh suffix."""
        mock_db.flush.side_effect = [_integrity_error("23505"), None]
        mock_db.execute.return_value = result_factory(scalar=region)

        await service.create(RegionCreate(name="Kaski"), editor_user.id)

        first, second = (call.args[0] for call in mock_db.add.call_args_list)
        assert first.slug != second.slug
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_gives_up_after_attempts(
        self, service: RegionService, mock_db: AsyncMock, editor_user: AuthenticatedUser
    ) -> None:
        mock_db.flush.side_effect = _integrity_error("23505")

        with pytest.raises(SlugConflictError):
            await service.create(RegionCreate(name="Kaski"), editor_user.id)

        assert mock_db.add.call_count == SLUG_ATTEMPTS

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_reraises_other_integrity_errors(
        self, service: RegionService, mock_db: AsyncMock, editor_user: AuthenticatedUser
    ) -> None:
        """Foreign key violations are not slug collisions."""
        mock_db.flush.side_effect = _integrity_error("23503")

        with pytest.raises(IntegrityError):
            await service.create(RegionCreate(name="Kaski"), editor_user.id)

        assert mock_db.add.call_count == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_by_slug_hides_drafts(
        self, service: RegionService, mock_db: AsyncMock, result_factory
    ) -> None:
        """Anonymous lookup of a draft should look exactly like a missing row."""
        mock_db.execute.return_value = result_factory(scalar=None)

        with pytest.raises(NotFoundError) as exc_info:
            await service.get_by_slug("kaski-1a2b3c4d", None)

        assert exc_info.value.status_code == 404

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update_status_requires_author_or_admin(
        self, service: RegionService, mock_db: AsyncMock, result_factory, region: Region
    ) -> None:
        other_editor = AuthenticatedUser(
            id="other", email="other@paayo.com", name=None, role="editor", is_active=True
        )
        mock_db.execute.return_value = result_factory(scalar=region)

        with pytest.raises(PermissionDeniedError):
            await service.update_status("r1", STATUS_PUBLISHED, other_editor)

        mock_db.rollback.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update_status_publishes(
        self,
        service: RegionService,
        mock_db: AsyncMock,
        result_factory,
        region: Region,
        editor_user: AuthenticatedUser,
    ) -> None:
        mock_db.execute.return_value = result_factory(scalar=region)

        await service.update_status("r1", STATUS_PUBLISHED, editor_user)

        # get, UPDATE, get
        assert mock_db.execute.await_count == 3
        mock_db.commit.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_restore_missing_row(
        self, service: RegionService, mock_db: AsyncMock, result_factory
    ) -> None:
        """Restoring a row that is not soft-deleted should be 404."""
        mock_db.execute.return_value = result_factory(rowcount=0)

        with pytest.raises(NotFoundError):
            await service.restore("r1")


class TestContentUpdate:
    """Tests for the single-UPDATE partial update path."""

    @pytest.fixture
    def service(self, mock_db: AsyncMock) -> RegionService:
        return RegionService(mock_db)

    @pytest.fixture
    def region(self, editor_user: AuthenticatedUser) -> Region:
        return Region(
            id="r1",
            name="Kaski",
            slug="kaski-1a2b3c4d",
            status=STATUS_PUBLISHED,
            author_id=editor_user.id,
            is_featured=True,
            description="Lakes and ridges",
            cover_image="/uploads/kaski.avif",
            province="Gandaki",
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update_writes_every_writable_column(
        self,
        service: RegionService,
        mock_db: AsyncMock,
        result_factory,
        region: Region,
        editor_user: AuthenticatedUser,
    ) -> None:
        """Absent keeps, null clears, value writes; all in one statement."""
        mock_db.execute.return_value = result_factory(scalar=region)
        data = RegionUpdate(description=None, district="Kaski", name=None)

        with patch("paayo.core.base_service.logger") as logger:
            await service.update("r1", data, editor_user)

        # get, UPDATE, get
        assert mock_db.execute.await_count == 3
        params = _compiled(_statement(mock_db, 1)).params
        writable = set(RegionService.required_fields + RegionService.nullable_fields)
        assert writable <= params.keys()
        assert params["description"] is None
        assert params["district"] == "Kaski"
        assert params["cover_image"] == "/uploads/kaski.avif"
        assert params["province"] == "Gandaki"
        assert params["name"] == "Kaski"
        assert params["is_featured"] is True
        assert "slug" not in params
        assert logger.info.call_args.kwargs["changed"] == ["description", "district"]
        mock_db.commit.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_title_change_rederives_slug(
        self,
        service: RegionService,
        mock_db: AsyncMock,
        result_factory,
        region: Region,
        editor_user: AuthenticatedUser,
    ) -> None:
        mock_db.execute.side_effect = [
            result_factory(scalar=region),  # get
            result_factory(scalar=False),  # slug taken?
            result_factory(rowcount=1),  # UPDATE
            result_factory(scalar=region),  # get
        ]

        await service.update("r1", RegionUpdate(name="Pokhara Valley"), editor_user)

        params = _compiled(_statement(mock_db, 2)).params
        assert params["name"] == "Pokhara Valley"
        assert re.fullmatch(r"pokhara-valley-[0-9a-f]{8}", params["slug"])


class TestStatusAndDelete:
    """Tests for status transitions, soft delete and hard delete."""

    @pytest.fixture
    def service(self, mock_db: AsyncMock) -> RegionService:
        return RegionService(mock_db)

    @pytest.fixture
    def region(self, editor_user: AuthenticatedUser) -> Region:
        return Region(
            id="r1",
            name="Kaski",
            slug="kaski-1a2b3c4d",
            status=STATUS_PUBLISHED,
            author_id=editor_user.id,
            is_featured=False,
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_publish_stamps_published_at_once(
        self,
        service: RegionService,
        mock_db: AsyncMock,
        result_factory,
        region: Region,
        editor_user: AuthenticatedUser,
    ) -> None:
        mock_db.execute.return_value = result_factory(scalar=region)

        await service.update_status("r1", STATUS_PUBLISHED, editor_user)

        sql = str(_compiled(_statement(mock_db, 1)))
        assert "coalesce(regions.published_at, now())" in sql

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unpublish_keeps_published_at(
        self,
        service: RegionService,
        mock_db: AsyncMock,
        result_factory,
        region: Region,
        editor_user: AuthenticatedUser,
    ) -> None:
        mock_db.execute.return_value = result_factory(scalar=region)

        await service.update_status("r1", STATUS_DRAFT, editor_user)

        compiled = _compiled(_statement(mock_db, 1))
        assert compiled.params["status"] == STATUS_DRAFT
        assert "published_at" not in str(compiled)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_soft_delete_sets_tombstone(
        self,
        service: RegionService,
        mock_db: AsyncMock,
        result_factory,
        region: Region,
        editor_user: AuthenticatedUser,
    ) -> None:
        mock_db.execute.return_value = result_factory(scalar=region)

        await service.soft_delete("r1", editor_user)

        sql = str(_compiled(_statement(mock_db, 1)))
        assert sql.startswith("UPDATE regions SET deleted_at=now()")
        assert "regions.deleted_at IS NULL" in sql
        mock_db.commit.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_soft_delete_by_other_editor(
        self, service: RegionService, mock_db: AsyncMock, result_factory, region: Region
    ) -> None:
        other_editor = AuthenticatedUser(
            id="other", email="other@paayo.com", name=None, role="editor", is_active=True
        )
        mock_db.execute.return_value = result_factory(scalar=region)

        with pytest.raises(PermissionDeniedError):
            await service.soft_delete("r1", other_editor)

        assert mock_db.execute.await_count == 1
        mock_db.commit.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_hard_delete_removes_row(
        self, service: RegionService, mock_db: AsyncMock, result_factory
    ) -> None:
        mock_db.execute.return_value = result_factory(rowcount=1)

        await service.hard_delete("r1")

        sql = str(_compiled(_statement(mock_db, 0)))
        assert sql.startswith("DELETE FROM regions WHERE regions.id =")
        mock_db.commit.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_hard_delete_missing_row(
        self, service: RegionService, mock_db: AsyncMock, result_factory
    ) -> None:
        mock_db.execute.return_value = result_factory(rowcount=0)

        with pytest.raises(NotFoundError):
            await service.hard_delete("r1")

        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_awaited()


class TestFeaturedOrder:
    """Tests for the list ordering policy."""

    @pytest.mark.unit
    def test_order_clauses(self, mock_db: AsyncMock) -> None:
        """Featured, then explicit display order, then newest published."""
        order = RegionService(mock_db).featured_order()
        sql = str(_compiled(select(Region.id).order_by(*order)))
        clause = sql.split("ORDER BY ", 1)[1]

        expected = [
            "regions.is_featured DESC",
            "regions.display_order IS NULL",
            "regions.display_order ASC",
            "regions.published_at DESC NULLS LAST",
            "regions.created_at DESC",
        ]
        positions = [clause.index(part) for part in expected]
        assert positions == sorted(positions)


class TestServiceSurface:
    """Tests for the base service module surface."""

    @pytest.mark.unit
    def test_module_imports(self) -> None:
        module = importlib.import_module("paayo.core.base_service")

        assert module.ContentService.list_items is not None

    @pytest.mark.unit
    def test_builtin_list_not_shadowed(self) -> None:
        """A method named ``list`` would shadow the builtin in annotations."""
        module = importlib.import_module("paayo.core.base_service")

        assert not hasattr(module.ContentService, "list")
        assert module.ContentService.featured_order.__annotations__["return"] == list[Any]
