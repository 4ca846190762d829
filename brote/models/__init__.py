"""SQLAlchemy ORM models."""

from brote.models.audit_log import AuditLogEntry, SocialActivityLog
from brote.models.base import Base
from brote.models.content import (
    ArtistLink,
    Band,
    Event,
    EventLink,
    News,
    Song,
    Venue,
    VenueLink,
    Video,
    events_bands,
    news_bands,
    videos_bands,
)
from brote.models.submission import Submission
from brote.models.user import User

__all__ = [
    "ArtistLink",
    "AuditLogEntry",
    "Band",
    "Base",
    "Event",
    "EventLink",
    "News",
    "SocialActivityLog",
    "Song",
    "Submission",
    "User",
    "Venue",
    "VenueLink",
    "Video",
    "events_bands",
    "news_bands",
    "videos_bands",
]
