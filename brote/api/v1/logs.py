"""Read-only access to the audit log (admin only)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from brote.api.v1.auth import require_admin
from brote.core.database import get_db
from brote.schemas.audit import AuditLogListResponse, AuditLogOut
from brote.schemas.auth import TokenClaims
from brote.services.audit import list_entries

router = APIRouter()


@router.get("", response_model=AuditLogListResponse)
def get_logs(
    _admin: Annotated[TokenClaims, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    type: Annotated[str | None, Query(max_length=64)] = None,
) -> AuditLogListResponse:
    """Most recent audit entries first."""
    entries = list_entries(db, limit=limit, log_type=type)
    return AuditLogListResponse(entries=[AuditLogOut.model_validate(e) for e in entries])
