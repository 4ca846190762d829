"""Password hashing (Argon2id) and session token creation/verification."""

import binascii
import hmac
import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from argon2.low_level import Type, hash_secret_raw
from pydantic import ValidationError

from brote.core.errors import UnauthorizedError
from brote.schemas.auth import TokenClaims

logger = logging.getLogger(__name__)

# Argon2id parameters; changing any of them invalidates every stored hash.
ARGON2_TIME_COST = 1
ARGON2_MEMORY_COST_KIB = 64 * 1024
ARGON2_PARALLELISM = 4
ARGON2_HASH_LEN = 32
SALT_BYTES = 16

# Min/max lengths for username and password validation.
USERNAME_MIN_LEN = 1
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 1
PASSWORD_MAX_LEN = 128

TOKEN_EXPIRE_DAYS = 180


def generate_salt() -> str:
    """Return 16 random bytes from the OS CSPRNG, hex encoded."""
    return secrets.token_hex(SALT_BYTES)


def _derive(password: str, salt_bytes: bytes) -> bytes:
    return hash_secret_raw(
        secret=password.encode("utf-8"),
        salt=salt_bytes,
        time_cost=ARGON2_TIME_COST,
        memory_cost=ARGON2_MEMORY_COST_KIB,
        parallelism=ARGON2_PARALLELISM,
        hash_len=ARGON2_HASH_LEN,
        type=Type.ID,
    )


def hash_password(password: str, salt: str) -> str:
    """Hash a plain-text password with the given hex salt. Returns the hex-encoded key."""
    return _derive(password, bytes.fromhex(salt)).hex()


def compare_passwords(stored_hash: str, password: str, salt: str) -> bool:
    """
    Recompute the hash for a candidate password and compare in constant time.

    Malformed hex in the stored hash or salt counts as a mismatch.
    """
    try:
        salt_bytes = bytes.fromhex(salt)
        stored_bytes = bytes.fromhex(stored_hash)
    except (ValueError, TypeError, binascii.Error):
        logger.warning("Stored credentials are not valid hex; treating as mismatch")
        return False
    return hmac.compare_digest(stored_bytes, _derive(password, salt_bytes))


class TokenError(UnauthorizedError):
    """Base class for session token validation failures."""


class InvalidSignatureError(TokenError):
    """Signing key or algorithm does not match."""


class TokenExpiredError(TokenError):
    pass


class MalformedTokenError(TokenError):
    """Token cannot be parsed or lacks the expected claims."""


class TokenService:
    """
    Issues and validates HMAC-signed session tokens.

    Built once from settings and shared through app state; holds the only
    reference to the signing secret.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expire_days: int = TOKEN_EXPIRE_DAYS,
    ) -> None:
        if not secret:
            raise ValueError("Token secret must be non-empty")
        self._secret = secret
        self.algorithm = algorithm
        self.expire_days = expire_days

    def issue_token(
        self,
        user_id: int,
        username: str,
        real_name: str,
        role: str,
        now: datetime | None = None,
    ) -> str:
        """Create a signed token with identity claims and exp set expire_days ahead."""
        issued_at = now or datetime.now(UTC)
        expire = issued_at + timedelta(days=self.expire_days)
        payload: dict[str, Any] = {
            "user_id": user_id,
            "user_name": username,
            "real_name": real_name or "",
            "role": role,
            "exp": int(expire.timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def validate_token(self, token: str) -> TokenClaims:
        """
        Verify signature and expiry and return the claims.
        Raises InvalidSignatureError, TokenExpiredError or MalformedTokenError.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "user_id", "role"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as e:
            raise InvalidSignatureError("Token signature is invalid") from e
        except jwt.PyJWTError as e:
            raise MalformedTokenError("Token is malformed") from e
        try:
            return TokenClaims.model_validate(payload)
        except ValidationError as e:
            raise MalformedTokenError("Token claims are malformed") from e
