"""ORM model for user-submitted content awaiting moderation."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from brote.models.base import Base, JSONType

SUBMISSION_STATUS_PENDING = "pending"
SUBMISSION_STATUS_APPROVED = "approved"
SUBMISSION_STATUS_REJECTED = "rejected"


class Submission(Base):
    """
    One user proposal (band, event, news, ...) with an opaque JSON payload.

    Starts pending; an admin moves it to approved or rejected exactly once.
    """

    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    type = Column(String(32), nullable=False, index=True)
    data = Column(JSONType, nullable=False)
    status = Column(String(16), nullable=False, default=SUBMISSION_STATUS_PENDING, index=True)
    reviewed_by = Column(Integer, nullable=True)
    comment = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
