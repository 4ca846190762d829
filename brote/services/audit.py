"""Append-only audit log. Writes are best-effort and never affect the audited operation."""

import json
import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.orm import Session

from brote.models import AuditLogEntry

logger = logging.getLogger(__name__)

AUDIT_USER_CREATE = "user_create"
AUDIT_USER_UPDATE = "user_update"
AUDIT_USER_DELETE = "user_delete"
AUDIT_SUBMISSION_CREATE = "submission_create"
AUDIT_SUBMISSION_STATUS = "submission_status"


def serialize_value(value: Any) -> str | None:
    """Serialize a snapshot to JSON text; strings pass through unchanged."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str, sort_keys=True, ensure_ascii=False)


class AuditLog:
    """
    Records audit entries in a session of its own.

    The caller's transaction is never touched: a failed write is logged and
    dropped, and a rolled-back caller does not remove an already written entry.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def record(
        self,
        log_type: str,
        old_value: Any,
        new_value: Any,
        user_id: int | None,
    ) -> bool:
        """Append one entry. Returns False (after logging) when the write failed."""
        try:
            session = self._session_factory()
        except Exception:
            logger.exception("Audit log session unavailable", extra={"audit_type": log_type})
            return False
        try:
            session.add(
                AuditLogEntry(
                    type=log_type,
                    old_value=serialize_value(old_value),
                    new_value=serialize_value(new_value),
                    user_id=user_id,
                )
            )
            session.commit()
            return True
        except Exception:
            session.rollback()
            logger.exception(
                "Audit log write failed",
                extra={"audit_type": log_type, "user_id": user_id},
            )
            return False
        finally:
            session.close()


def list_entries(db: Session, limit: int = 100, log_type: str | None = None) -> list[AuditLogEntry]:
    """Most recent audit entries first, optionally filtered by type."""
    query = db.query(AuditLogEntry)
    if log_type:
        query = query.filter(AuditLogEntry.type == log_type)
    return query.order_by(AuditLogEntry.id.desc()).limit(limit).all()
