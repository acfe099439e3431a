"""Unit tests for CSRF protection and Cache-Control policies."""

import pytest
from fastapi import FastAPI, HTTPException, Request
from httpx import ASGITransport, AsyncClient

from paayo.middleware.cache import (
    IMMUTABLE,
    LONG,
    MEDIUM,
    NO_CACHE,
    PRIVATE,
    SHORT,
    CacheControlMiddleware,
    get_cache_policy,
)
from paayo.middleware.csrf import CSRF_COOKIE, CSRF_HEADER, CSRFMiddleware, tokens_match


def _csrf_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(CSRFMiddleware, secure_cookie=False)

    @app.get("/api/posts")
    async def read() -> dict:
        return {"ok": True}

    @app.post("/api/posts")
    async def write() -> dict:
        return {"ok": True}

    @app.post("/api/auth/sign-in")
    async def sign_in() -> dict:
        return {"ok": True}

    return app


def _cache_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(CacheControlMiddleware)

    @app.get("/api/regions")
    async def regions() -> dict:
        return {"items": []}

    @app.get("/api/posts/missing")
    async def missing() -> None:
        raise HTTPException(status_code=404)

    @app.middleware("http")
    async def fake_session(request: Request, call_next):
        request.state.user = object() if "x-test-user" in request.headers else None
        return await call_next(request)

    return app


class TestTokensMatch:
    """Tests for tokens_match."""

    @pytest.mark.unit
    def test_equal_tokens_match(self) -> None:
        assert tokens_match("abc", "abc") is True

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("header", "cookie"),
        [("abc", "abd"), (None, "abc"), ("abc", None), ("", "")],
    )
    def test_mismatch_or_missing(self, header, cookie) -> None:
        assert tokens_match(header, cookie) is False


class TestCSRFMiddleware:
    """Tests for the double-submit cookie middleware."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_mints_cookie(self) -> None:
        """Safe request without a cookie should receive one."""
        async with AsyncClient(
            transport=ASGITransport(app=_csrf_app()), base_url="http://test"
        ) as client:
            response = await client.get("/api/posts")

        assert response.status_code == 200
        assert CSRF_COOKIE in response.cookies

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_post_without_token_is_rejected(self) -> None:
        async with AsyncClient(
            transport=ASGITransport(app=_csrf_app()), base_url="http://test"
        ) as client:
            response = await client.post("/api/posts")

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_post_with_mismatched_token_is_rejected(self) -> None:
        async with AsyncClient(
            transport=ASGITransport(app=_csrf_app()), base_url="http://test"
        ) as client:
            client.cookies.set(CSRF_COOKIE, "cookie-token")
            response = await client.post("/api/posts", headers={CSRF_HEADER: "other"})

        assert response.status_code == 403

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_post_with_matching_token_passes(self) -> None:
        async with AsyncClient(
            transport=ASGITransport(app=_csrf_app()), base_url="http://test"
        ) as client:
            client.cookies.set(CSRF_COOKIE, "same-token")
            response = await client.post("/api/posts", headers={CSRF_HEADER: "same-token"})

        assert response.status_code == 200

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_auth_prefix_is_exempt(self) -> None:
        async with AsyncClient(
            transport=ASGITransport(app=_csrf_app()), base_url="http://test"
        ) as client:
            response = await client.post("/api/auth/sign-in")

        assert response.status_code == 200


class TestCachePolicy:
    """Tests for Cache-Control selection."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/api/hero-slides", LONG),
            ("/api/regions/kaski", MEDIUM),
            ("/api/posts", SHORT),
            ("/api/content-links/post/p1", SHORT),
            ("/api/content/post/p1/like-status", NO_CACHE),
            ("/api/users/me", NO_CACHE),
            ("/uploads/abc.avif", IMMUTABLE),
            ("/api/unknown", NO_CACHE),
        ],
    )
    def test_get_policies(self, path: str, expected: str) -> None:
        assert get_cache_policy("GET", path) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/api/posts/trash", PRIVATE),
            ("/api/regions/kaski", PRIVATE),
            ("/api/hero-slides/admin", PRIVATE),
            ("/api/users/me", NO_CACHE),
            ("/uploads/abc.avif", IMMUTABLE),
        ],
    )
    def test_signed_in_reads_stay_private(self, path: str, expected: str) -> None:
        assert get_cache_policy("GET", path, authenticated=True) == expected

    @pytest.mark.unit
    def test_mutations_are_never_cached(self) -> None:
        assert get_cache_policy("POST", "/api/posts") == NO_CACHE

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_middleware_sets_header(self) -> None:
        async with AsyncClient(
            transport=ASGITransport(app=_cache_app()), base_url="http://test"
        ) as client:
            response = await client.get("/api/regions")

        assert response.headers["Cache-Control"] == MEDIUM

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_errors_are_not_cached(self) -> None:
        """Error responses under a public prefix should get no-cache."""
        async with AsyncClient(
            transport=ASGITransport(app=_cache_app()), base_url="http://test"
        ) as client:
            response = await client.get("/api/posts/missing")

        assert response.status_code == 404
        assert response.headers["Cache-Control"] == NO_CACHE

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_signed_in_response_is_private(self) -> None:
        async with AsyncClient(
            transport=ASGITransport(app=_cache_app()), base_url="http://test"
        ) as client:
            anonymous = await client.get("/api/regions")
            signed_in = await client.get("/api/regions", headers={"X-Test-User": "1"})

        assert anonymous.headers["Cache-Control"] == MEDIUM
        assert signed_in.headers["Cache-Control"] == PRIVATE
