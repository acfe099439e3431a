"""API tests for content visibility and user endpoints."""

from datetime import UTC, datetime

import pytest
from httpx import AsyncClient

from paayo.modules.content.models import ContentLink


class TestDraftVisibility:
    """Drafts must be indistinguishable from missing rows for the public."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_hidden_post_is_not_found(
        self, client: AsyncClient, mock_db, result_factory
    ) -> None:
        mock_db.execute.return_value = result_factory(scalar=None)

        response = await client.get("/api/posts/secret-draft-1a2b3c4d")

        assert response.status_code == 404
        assert response.json() == {
            "error": "not_found",
            "message": "Post 'secret-draft-1a2b3c4d' not found",
        }

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_create_requires_login(self, client: AsyncClient, csrf_headers: dict) -> None:
        response = await client.post("/api/posts", json={"title": "Hi"}, headers=csrf_headers)

        assert response.status_code == 401


class TestUserEndpoints:
    """Tests for /api/users."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_me(self, client: AsyncClient, login, editor_user) -> None:
        login(editor_user)

        response = await client.get("/api/users/me")

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == editor_user.email
        assert data["role"] == "editor"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_me_anonymous(self, client: AsyncClient) -> None:
        response = await client.get("/api/users/me")

        assert response.status_code == 401

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_cannot_block_self(
        self, client: AsyncClient, login, admin_user, csrf_headers: dict
    ) -> None:
        login(admin_user)

        response = await client.post(f"/api/users/{admin_user.id}/block", headers=csrf_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "bad_request"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_user_list_requires_admin(
        self, client: AsyncClient, login, editor_user
    ) -> None:
        login(editor_user)

        response = await client.get("/api/users")

        assert response.status_code == 403


class TestContentLinkEndpoints:
    """Tests for /api/content-links."""

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_links_are_public(self, client: AsyncClient, mock_db, result_factory) -> None:
        link = ContentLink(
            id="l1",
            source_type="post",
            source_id="p1",
            target_type="video",
            target_id="v1",
            display_order=0,
            created_at=datetime(2026, 10, 1, tzinfo=UTC),
        )
        mock_db.execute.return_value = result_factory(items=[link])

        response = await client.get("/api/content-links/post/p1")

        assert response.status_code == 200
        assert [item["target_id"] for item in response.json()] == ["v1"]

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_unknown_source_type(self, client: AsyncClient) -> None:
        response = await client.get("/api/content-links/hotel/h1")

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_create_requires_login(self, client: AsyncClient, csrf_headers: dict) -> None:
        body = {"source_type": "post", "source_id": "p1", "target_type": "video", "target_id": "v1"}

        response = await client.post("/api/content-links", json=body, headers=csrf_headers)

        assert response.status_code == 401

    @pytest.mark.api
    @pytest.mark.asyncio
    async def test_create_requires_admin(
        self, client: AsyncClient, login, editor_user, csrf_headers: dict
    ) -> None:
        login(editor_user)
        body = {"source_type": "post", "source_id": "p1", "target_type": "video", "target_id": "v1"}

        response = await client.post("/api/content-links", json=body, headers=csrf_headers)

        assert response.status_code == 403
