"""ORM models for append-only audit entries and social publication attempts."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func

from brote.models.base import Base


class AuditLogEntry(Base):
    """Who changed what: serialized before/after snapshots of a sensitive mutation."""

    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(64), nullable=False, index=True)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    user_id = Column(Integer, nullable=True, index=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class SocialActivityLog(Base):
    """Outcome of one best-effort publication of an approved submission."""

    __tablename__ = "social_activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    submission_id = Column(Integer, nullable=False, index=True)
    submission_type = Column(String(32), nullable=False)
    success = Column(Boolean, nullable=False)
    error_message = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
