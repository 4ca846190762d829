"""Schemas for reading the audit log."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AuditLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    old_value: str | None = None
    new_value: str | None = None
    user_id: int | None = None
    created_at: datetime | None = None


class AuditLogListResponse(BaseModel):
    entries: list[AuditLogOut]
