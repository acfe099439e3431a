"""Pydantic schemas for authentication module."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr

from paayo.modules.auth.models import UserRole


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: EmailStr
    name: str | None = None
    image: str | None = None
    role: str
    is_active: bool
    email_verified: bool
    banned_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class MeResponse(BaseModel):
    id: str
    email: str
    name: str | None = None
    role: str
    is_active: bool


class UserRoleUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    role: UserRole


class UserCounts(BaseModel):
    total: int
    admins: int
    editors: int
    users: int
    active: int
    pending: int
    blocked: int
