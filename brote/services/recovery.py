"""Password recovery: single-use, time-boxed reset tokens delivered by e-mail."""

import logging
import secrets
from datetime import UTC, datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from brote.core.errors import BadRequestError, ExpiredError, InternalError, NotFoundError
from brote.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    generate_salt,
    hash_password,
)
from brote.models import User
from brote.services.mailer import Mailer, MailerError, MailerNotConfiguredError

logger = logging.getLogger(__name__)

RECOVERY_TOKEN_BYTES = 32
RECOVERY_TOKEN_TTL_HOURS = 24


def generate_recovery_token() -> str:
    return secrets.token_hex(RECOVERY_TOKEN_BYTES)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; they are stored as UTC.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def request_password_recovery(
    db: Session,
    email: str,
    mailer: Mailer,
    now: datetime | None = None,
) -> str:
    """
    Issue a recovery token for the account owning `email` and mail it.

    Raises NotFoundError when no user has that e-mail and InternalError when
    the token cannot be stored or the e-mail cannot be sent. A token stored
    before a mail failure stays valid until it expires or is replaced.
    Returns the issued token.
    """
    user = db.query(User).filter(User.email == email.strip()).first()
    if user is None:
        raise NotFoundError("Email not found.")

    token = generate_recovery_token()
    user.recovery_hash = token
    user.recovery_hash_time = now or datetime.now(UTC)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Storing recovery token failed", extra={"user_id": user.id, "reason": str(e)[:500]})
        raise InternalError("Could not store the recovery token.") from e

    try:
        mailer.send_recovery_email(user.email, token)
    except (MailerError, MailerNotConfiguredError) as e:
        logger.error(
            "Recovery e-mail failed",
            extra={"user_id": user.id, "reason": (e.message or str(e))[:500]},
        )
        raise InternalError("Could not send the recovery e-mail.") from e

    logger.info("Recovery token issued", extra={"user_id": user.id})
    return token


def change_password(
    db: Session,
    token: str,
    new_password: str,
    ttl_hours: int = RECOVERY_TOKEN_TTL_HOURS,
    now: datetime | None = None,
) -> User:
    """
    Exchange a recovery token for a new password.

    Raises NotFoundError for an unknown or already used token, ExpiredError
    when the token is older than `ttl_hours`. The token is cleared in the same
    update that stores the new hash, so it cannot be replayed.
    """
    if not (PASSWORD_MIN_LEN <= len(new_password) <= PASSWORD_MAX_LEN):
        raise BadRequestError("Invalid password length.")
    if not token or not token.strip():
        raise NotFoundError("Recovery token not found.")

    user = db.query(User).filter(User.recovery_hash == token).first()
    if user is None:
        raise NotFoundError("Recovery token not found.")

    issued_at = _as_utc(user.recovery_hash_time)
    current = now or datetime.now(UTC)
    if issued_at is None or current - issued_at > timedelta(hours=ttl_hours):
        raise ExpiredError("The recovery token has expired.")

    salt = generate_salt()
    try:
        updated = (
            db.query(User)
            .filter(User.id == user.id, User.recovery_hash == token)
            .update(
                {
                    User.password_hash: hash_password(new_password, salt),
                    User.salt: salt,
                    User.recovery_hash: None,
                    User.recovery_hash_time: None,
                },
                synchronize_session="fetch",
            )
        )
        if updated == 0:
            db.rollback()
            raise NotFoundError("Recovery token not found.")
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Password change failed", extra={"user_id": user.id, "reason": str(e)[:500]})
        raise InternalError("Could not update the password.") from e

    db.refresh(user)
    logger.info("Password changed through recovery", extra={"user_id": user.id})
    return user
