"""User, session and account models.

These tables are owned by the external auth provider (session issuance,
sign-in, password reset). The API reads sessions and only writes user
status fields plus the bootstrap admin.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from paayo.core.base_model import Base, StringIDMixin, TimestampMixin


class UserRole(str, Enum):
    ADMIN = "admin"
    EDITOR = "editor"
    USER = "user"


class User(Base, StringIDMixin, TimestampMixin):
    """Staff account. Editors start inactive until an admin activates them."""

    __tablename__ = "user"
    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'editor', 'user')",
            name="ck_user_role",
        ),
    )

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    email_verified: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(
        String(20), default=UserRole.EDITOR.value, server_default="editor", nullable=False
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    banned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User {self.email} role={self.role}>"


class Session(Base, StringIDMixin, TimestampMixin):
    __tablename__ = "session"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)


class Account(Base, StringIDMixin, TimestampMixin):
    """Credential row. ``provider_id='credential'`` holds a bcrypt hash."""

    __tablename__ = "account"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    account_id: Mapped[str] = mapped_column(String(255), nullable=False)
    provider_id: Mapped[str] = mapped_column(String(255), nullable=False)
    password: Mapped[str | None] = mapped_column(Text, nullable=True)
