"""Core app configuration, database and security primitives."""

from brote.core.config import get_settings, settings
from brote.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
