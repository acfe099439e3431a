"""User administration and the bootstrap admin account.

Sign-in, sessions and password resets belong to the external auth provider.
This service only changes a user's status fields and role, deletes users,
and seeds the first admin.
"""

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from paayo.config import settings
from paayo.core.database import transactional
from paayo.core.exceptions import BadRequestError, NotFoundError
from paayo.core.logging import get_logger
from paayo.core.pagination import paginate_query
from paayo.core.security import AuthenticatedUser, hash_password
from paayo.modules.auth.models import Account, User, UserRole

logger = get_logger(__name__)

CREDENTIAL_PROVIDER = "credential"


class UserService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_id(self, user_id: str) -> User:
        result = await self.db.execute(
            select(User).where(User.id == user_id).execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def list_users(
        self,
        *,
        role: str | None = None,
        is_active: bool | None = None,
        blocked: bool | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[User], int]:
        stmt = select(User)
        if role:
            stmt = stmt.where(User.role == role)
        if is_active is not None:
            stmt = stmt.where(User.is_active.is_(is_active))
        if blocked is True:
            stmt = stmt.where(User.banned_at.is_not(None))
        elif blocked is False:
            stmt = stmt.where(User.banned_at.is_(None))
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(User.email.ilike(pattern) | User.name.ilike(pattern))
        return await paginate_query(
            self.db, stmt, page=page, page_size=page_size, order_by=[User.created_at.desc()]
        )

    async def counts(self) -> dict[str, int]:
        def count_if(condition):
            return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

        row = (
            await self.db.execute(
                select(
                    func.count(),
                    count_if(User.role == UserRole.ADMIN.value),
                    count_if(User.role == UserRole.EDITOR.value),
                    count_if(User.role == UserRole.USER.value),
                    count_if(User.is_active.is_(True) & User.banned_at.is_(None)),
                    count_if(User.is_active.is_(False) & User.banned_at.is_(None)),
                    count_if(User.banned_at.is_not(None)),
                ).select_from(User)
            )
        ).one()
        keys = ("total", "admins", "editors", "users", "active", "pending", "blocked")
        return {key: int(value or 0) for key, value in zip(keys, row)}

    def _forbid_self(self, actor: AuthenticatedUser, user_id: str, action: str) -> None:
        if actor.id == user_id:
            raise BadRequestError(f"You cannot {action} your own account")

    async def _set(self, user_id: str, **values) -> User:
        result = await self.db.execute(
            update(User).where(User.id == user_id).values(**values, updated_at=func.now())
        )
        if result.rowcount == 0:
            raise NotFoundError("User", user_id)
        await self.db.commit()
        return await self.get_by_id(user_id)

    async def activate(self, user_id: str) -> User:
        user = await self._set(user_id, is_active=True)
        logger.info("user_activated", user_id=user_id)
        return user

    async def deactivate(self, actor: AuthenticatedUser, user_id: str) -> User:
        self._forbid_self(actor, user_id, "deactivate")
        user = await self._set(user_id, is_active=False)
        logger.info("user_deactivated", user_id=user_id, by=actor.id)
        return user

    async def block(self, actor: AuthenticatedUser, user_id: str) -> User:
        self._forbid_self(actor, user_id, "block")
        user = await self._set(user_id, banned_at=func.now())
        logger.info("user_blocked", user_id=user_id, by=actor.id)
        return user

    async def unblock(self, user_id: str) -> User:
        user = await self._set(user_id, banned_at=None)
        logger.info("user_unblocked", user_id=user_id)
        return user

    async def change_role(self, actor: AuthenticatedUser, user_id: str, role: str) -> User:
        if actor.id == user_id and role != UserRole.ADMIN.value:
            raise BadRequestError("You cannot demote your own account")
        user = await self._set(user_id, role=role)
        logger.info("user_role_changed", user_id=user_id, role=role, by=actor.id)
        return user

    @transactional
    async def delete(self, actor: AuthenticatedUser, user_id: str) -> None:
        self._forbid_self(actor, user_id, "delete")
        result = await self.db.execute(delete(User).where(User.id == user_id))
        if result.rowcount == 0:
            raise NotFoundError("User", user_id)
        logger.info("user_deleted", user_id=user_id, by=actor.id)


async def seed_admin(db: AsyncSession) -> User | None:
    """Create the configured admin unless a user with that email exists.

    Returns the new user, or None when nothing was created.
    """
    email = settings.admin_email.strip().lower()
    if not email or not settings.admin_password:
        logger.info("admin_seed_skipped", reason="not_configured")
        return None

    existing = (
        await db.execute(select(User.id).where(func.lower(User.email) == email))
    ).scalar_one_or_none()
    if existing is not None:
        logger.debug("admin_seed_skipped", reason="exists", email=email)
        return None

    user = User(
        email=email,
        name=settings.admin_name,
        role=UserRole.ADMIN.value,
        is_active=True,
        email_verified=True,
    )
    db.add(user)
    await db.flush()
    db.add(
        Account(
            user_id=user.id,
            account_id=user.id,
            provider_id=CREDENTIAL_PROVIDER,
            password=hash_password(settings.admin_password),
        )
    )
    await db.commit()

    logger.info("admin_seeded", user_id=user.id, email=email)
    return user
