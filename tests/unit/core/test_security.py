"""Unit tests for password hashing, session cookies and role gates."""

import pytest

from paayo.core.exceptions import PermissionDeniedError
from paayo.core.security import (
    SESSION_COOKIE,
    AuthenticatedUser,
    RoleChecker,
    ensure_can_modify,
    extract_session_token,
    hash_password,
    require_active_editor,
    verify_password,
)


class TestPasswordHashing:
    """Tests for password hashing functions."""

    @pytest.mark.unit
    def test_hash_password_creates_hash(self) -> None:
        """Hash password should create a bcrypt hash."""
        hashed = hash_password("namaste123")

        assert hashed != "namaste123"
        assert hashed.startswith("$2")

    @pytest.mark.unit
    def test_verify_password_correct(self) -> None:
        hashed = hash_password("namaste123")

        assert verify_password("namaste123", hashed) is True

    @pytest.mark.unit
    def test_verify_password_incorrect(self) -> None:
        hashed = hash_password("namaste123")

        assert verify_password("wrong", hashed) is False

    @pytest.mark.unit
    def test_verify_password_malformed_hash(self) -> None:
        """A malformed stored hash should fail verification, not raise."""
        assert verify_password("namaste123", "not-a-hash") is False


class TestSessionToken:
    """Tests for session cookie extraction."""

    @pytest.mark.unit
    def test_plain_cookie_wins(self) -> None:
        cookies = {
            SESSION_COOKIE: "plain",
            "better-auth.session_token": "signed.sig",
        }

        assert extract_session_token(cookies) == "plain"

    @pytest.mark.unit
    def test_signed_cookie_drops_signature(self) -> None:
        """Signed cookie should yield the part before the first dot."""
        cookies = {"__Secure-better-auth.session_token": "tok123.c2lnbmF0dXJl%3D"}

        assert extract_session_token(cookies) == "tok123"

    @pytest.mark.unit
    def test_no_cookie(self) -> None:
        assert extract_session_token({}) is None


class TestRoleChecker:
    """Tests for role gates."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_allowed_role_passes(self, admin_user: AuthenticatedUser) -> None:
        assert await RoleChecker("admin")(user=admin_user) is admin_user

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_other_role_is_denied(self, editor_user: AuthenticatedUser) -> None:
        with pytest.raises(PermissionDeniedError):
            await RoleChecker("admin")(user=editor_user)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_inactive_editor_is_denied(self) -> None:
        """Active-editor gate should reject inactive editors."""
        pending = AuthenticatedUser(
            id="e2", email="new@paayo.com", name=None, role="editor", is_active=False
        )

        with pytest.raises(PermissionDeniedError):
            await require_active_editor(user=pending)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_inactive_admin_passes(self) -> None:
        """Admins bypass the active check."""
        admin = AuthenticatedUser(
            id="a2", email="root@paayo.com", name=None, role="admin", is_active=False
        )

        assert await require_active_editor(user=admin) is admin


class TestEnsureCanModify:
    """Tests for author-or-admin checks."""

    @pytest.mark.unit
    def test_author_may_modify(self, editor_user: AuthenticatedUser) -> None:
        ensure_can_modify(editor_user, editor_user.id)

    @pytest.mark.unit
    def test_admin_may_modify_anything(self, admin_user: AuthenticatedUser) -> None:
        ensure_can_modify(admin_user, "someone-else")

    @pytest.mark.unit
    def test_other_editor_is_denied(self, editor_user: AuthenticatedUser) -> None:
        with pytest.raises(PermissionDeniedError):
            ensure_can_modify(editor_user, "someone-else")

    @pytest.mark.unit
    def test_orphaned_row_needs_admin(self, editor_user: AuthenticatedUser) -> None:
        """Rows whose author was deleted can only be changed by admins."""
        with pytest.raises(PermissionDeniedError):
            ensure_can_modify(editor_user, None)
