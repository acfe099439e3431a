"""Session-cookie authentication, role gates and password hashing."""

from dataclasses import dataclass
from typing import Annotated
from collections.abc import Mapping
from urllib.parse import unquote

import bcrypt
from fastapi import Depends, Request
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from paayo.core.exceptions import AuthenticationError, PermissionDeniedError
from paayo.core.logging import get_logger
from paayo.modules.auth.models import Session, User, UserRole

logger = get_logger(__name__)

SESSION_COOKIE = "paayo_session"
SIGNED_SESSION_COOKIES = (
    "__Secure-better-auth.session_token",
    "better-auth.session_token",
)

BCRYPT_ROUNDS = 10


# ============================================================================
# Password Utilities
# ============================================================================


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Bcrypt has a 72 byte limit, so we truncate if necessary.
    """
    password_bytes = password.encode("utf-8")[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8")[:72],
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        return False


# ============================================================================
# Session Resolution
# ============================================================================


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: str
    name: str | None
    role: str
    is_active: bool

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_privileged(self) -> bool:
        """Admins and editors see drafts."""
        return self.role in (UserRole.ADMIN.value, UserRole.EDITOR.value)


def extract_session_token(cookies: Mapping[str, str]) -> str | None:
    """Session token from cookies.

    The unsigned ``paayo_session`` cookie wins. Signed cookies carry
    ``<token>.<signature>``; only the token part is looked up.
    """
    token = cookies.get(SESSION_COOKIE)
    if token:
        return token

    for name in SIGNED_SESSION_COOKIES:
        value = cookies.get(name)
        if value:
            token = unquote(value).split(".", 1)[0]
            if token:
                return token
    return None


async def resolve_session(db: AsyncSession, token: str) -> AuthenticatedUser | None:
    """Look up a live session.

    Valid iff unexpired, the user is not banned, and the user is active or
    an admin.
    """
    stmt = (
        select(User.id, User.email, User.name, User.role, User.is_active)
        .join(Session, Session.user_id == User.id)
        .where(
            Session.token == token,
            Session.expires_at > func.now(),
            User.banned_at.is_(None),
            or_(User.is_active.is_(True), User.role == UserRole.ADMIN.value),
        )
    )
    row = (await db.execute(stmt)).one_or_none()
    if row is None:
        return None

    return AuthenticatedUser(
        id=row.id,
        email=row.email,
        name=row.name,
        role=row.role,
        is_active=row.is_active,
    )


# ============================================================================
# Extractors
# ============================================================================


async def get_optional_user(request: Request) -> AuthenticatedUser | None:
    """User attached by the session middleware, if any. Never fails."""
    return getattr(request.state, "user", None)


async def get_current_user(
    user: AuthenticatedUser | None = Depends(get_optional_user),
) -> AuthenticatedUser:
    if user is None:
        raise AuthenticationError()
    return user


class RoleChecker:
    """Dependency class for checking the caller's role.

    Usage:
        @router.delete("/posts/{id}/permanent")
        async def hard_delete(user: AuthenticatedUser = Depends(RoleChecker("admin"))):
            ...
    """

    def __init__(self, *roles: str, require_active: bool = False) -> None:
        self.roles = frozenset(roles)
        self.require_active = require_active

    async def __call__(
        self,
        user: AuthenticatedUser = Depends(get_current_user),
    ) -> AuthenticatedUser:
        if user.role not in self.roles:
            raise PermissionDeniedError()

        if self.require_active and not user.is_admin and not user.is_active:
            raise PermissionDeniedError("Your account is not active yet")

        return user


require_admin = RoleChecker(UserRole.ADMIN.value)
require_editor = RoleChecker(UserRole.ADMIN.value, UserRole.EDITOR.value)
require_active_editor = RoleChecker(
    UserRole.ADMIN.value, UserRole.EDITOR.value, require_active=True
)

CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
OptionalUser = Annotated[AuthenticatedUser | None, Depends(get_optional_user)]
AdminUser = Annotated[AuthenticatedUser, Depends(require_admin)]
EditorUser = Annotated[AuthenticatedUser, Depends(require_editor)]
ActiveEditorUser = Annotated[AuthenticatedUser, Depends(require_active_editor)]


def ensure_can_modify(user: AuthenticatedUser, author_id: str | None) -> None:
    """Only the author or an admin may mutate a row."""
    if user.is_admin or (author_id is not None and author_id == user.id):
        return
    raise PermissionDeniedError("Only the author or an admin can modify this item")
