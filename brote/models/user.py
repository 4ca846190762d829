"""ORM model for platform users (credentials, role and password recovery state)."""

from sqlalchemy import Column, DateTime, Integer, String, func

from brote.models.base import Base


class User(Base):
    """
    User account for token authentication and role-based access control.

    role: 'admin' or 'user'. password_hash and salt are hex strings; neither
    they nor recovery_hash are ever exposed through response schemas.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    real_name = Column(String(255), nullable=False, default="")
    role = Column(String(32), nullable=False, default="user")
    provider = Column(String(32), nullable=False, default="local")
    password_hash = Column(String(128), nullable=False)
    salt = Column(String(64), nullable=False)
    recovery_hash = Column(String(128), nullable=True, unique=True, index=True)
    recovery_hash_time = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
