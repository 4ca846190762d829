"""Schemas for user administration. Credentials are never part of a response."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class UserOut(BaseModel):
    """Public view of a user (no password hash, salt or recovery token)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    real_name: str
    role: str
    provider: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UsersListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    users: list[UserOut]


class UserUpdateRequest(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    email: str | None = Field(default=None, min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    real_name: str | None = Field(default=None, max_length=255)
    role: Literal["user", "admin"] | None = None
