"""User registration, login and administration. Every mutation is audited."""

import logging
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from brote.core.errors import BadRequestError, ConflictError, InternalError, NotFoundError, UnauthorizedError
from brote.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    compare_passwords,
    generate_salt,
    hash_password,
)
from brote.models import User
from brote.services.audit import (
    AUDIT_USER_CREATE,
    AUDIT_USER_DELETE,
    AUDIT_USER_UPDATE,
    AuditLog,
)

logger = logging.getLogger(__name__)

ROLE_USER = "user"
ROLE_ADMIN = "admin"
USER_ROLES = (ROLE_USER, ROLE_ADMIN)


def user_snapshot(user: User) -> dict[str, Any]:
    """Audit snapshot of a user; credentials and recovery state are left out."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "real_name": user.real_name,
        "role": user.role,
        "provider": user.provider,
    }


def _validate_username(username: str) -> None:
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        raise BadRequestError("Invalid username length.")


def _validate_password(password: str) -> None:
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        raise BadRequestError("Invalid password length.")


def register_user(
    db: Session,
    audit: AuditLog,
    username: str,
    email: str,
    password: str,
    real_name: str = "",
    role: str = ROLE_USER,
    acting_user_id: int | None = None,
) -> User:
    """Create a local account with a fresh salt. Raises ConflictError on a taken username or e-mail."""
    username = username.strip()
    email = email.strip()
    _validate_username(username)
    _validate_password(password)
    if role not in USER_ROLES:
        raise BadRequestError(f"Unknown role: {role}")

    existing = (
        db.query(User)
        .filter(or_(User.username == username, User.email == email))
        .first()
    )
    if existing is not None:
        raise ConflictError("Username or email already registered.")

    salt = generate_salt()
    user = User(
        username=username,
        email=email,
        real_name=real_name.strip(),
        role=role,
        provider="local",
        password_hash=hash_password(password, salt),
        salt=salt,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Username or email already registered.") from e
    except SQLAlchemyError as e:
        db.rollback()
        raise InternalError("Could not create the user.") from e
    db.refresh(user)

    audit.record(AUDIT_USER_CREATE, None, user_snapshot(user), acting_user_id or user.id)
    logger.info("User registered", extra={"user_id": user.id, "role": user.role})
    return user


def authenticate(db: Session, username: str, password: str) -> User:
    """Return the user for valid credentials; UnauthorizedError otherwise (same message either way)."""
    user = db.query(User).filter(User.username == username.strip()).first()
    if user is None or not compare_passwords(user.password_hash, password, user.salt):
        raise UnauthorizedError("Invalid username or password.")
    return user


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.id).all()


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User not found.")
    return user


def update_user(
    db: Session,
    audit: AuditLog,
    user_id: int,
    changes: dict[str, Any],
    acting_user_id: int,
) -> User:
    """Apply profile/role changes (email, real_name, role) and audit the before/after state."""
    user = get_user(db, user_id)
    before = user_snapshot(user)

    if "role" in changes and changes["role"] not in USER_ROLES:
        raise BadRequestError(f"Unknown role: {changes['role']}")
    if "email" in changes and changes["email"] != user.email:
        taken = db.query(User).filter(User.email == changes["email"], User.id != user.id).first()
        if taken is not None:
            raise ConflictError("Email already registered.")
    for field in ("email", "real_name", "role"):
        if field in changes and changes[field] is not None:
            setattr(user, field, changes[field])
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise InternalError("Could not update the user.") from e
    db.refresh(user)

    audit.record(AUDIT_USER_UPDATE, before, user_snapshot(user), acting_user_id)
    return user


def delete_user(db: Session, audit: AuditLog, user_id: int, acting_user_id: int) -> None:
    user = get_user(db, user_id)
    before = user_snapshot(user)
    db.delete(user)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise InternalError("Could not delete the user.") from e

    audit.record(AUDIT_USER_DELETE, before, None, acting_user_id)
    logger.info("User deleted", extra={"user_id": user_id, "acting_user_id": acting_user_id})
