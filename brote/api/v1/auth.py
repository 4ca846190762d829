"""Login, registration, password recovery and the bearer-token auth dependencies."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from brote.api.v1.deps import (
    get_app_settings,
    get_audit_log,
    get_mailer,
    get_token_service,
    http_error,
)
from brote.core.config import Settings
from brote.core.database import get_db
from brote.core.errors import ForbiddenError, ServiceError, UnauthorizedError
from brote.core.rate_limit import enforce_rate_limit
from brote.core.security import TokenService
from brote.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RecoveryRequest,
    RegisterRequest,
    TokenClaims,
    TokenResponse,
)
from brote.services import recovery
from brote.services.audit import AuditLog
from brote.services.mailer import Mailer
from brote.services.users import ROLE_ADMIN, authenticate, register_user

logger = logging.getLogger(__name__)
router = APIRouter()

BEARER_SCHEME = "Bearer"


def parse_bearer_header(header: str | None) -> str:
    """
    Extract the token from an Authorization header of the exact form "Bearer <token>".
    Raises UnauthorizedError for a missing header or any other shape.
    """
    if not header:
        raise UnauthorizedError("Not authenticated")
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != BEARER_SCHEME or not parts[1]:
        raise UnauthorizedError("Invalid authorization header format")
    return parts[1]


def get_current_claims(
    request: Request,
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> TokenClaims:
    """
    Dependency: require a valid bearer token and return its claims.

    Claims are validated once per request and cached on request.state.
    Raises 401 if the header is missing, malformed, or the token is invalid.
    """
    cached = getattr(request.state, "claims", None)
    if cached is not None:
        return cached
    try:
        token = parse_bearer_header(request.headers.get("Authorization"))
        claims = token_service.validate_token(token)
    except UnauthorizedError as e:
        logger.info(
            "Rejected request credentials",
            extra={"path": request.url.path, "reason": type(e).__name__},
        )
        raise http_error(e) from e
    request.state.claims = claims
    return claims


def require_admin(
    claims: Annotated[TokenClaims, Depends(get_current_claims)],
) -> TokenClaims:
    """Dependency: require an authenticated caller with role 'admin'. Raises 403 otherwise."""
    if claims.role != ROLE_ADMIN:
        raise http_error(ForbiddenError("Admin access required"))
    return claims


@router.post("/login", response_model=TokenResponse, dependencies=[Depends(enforce_rate_limit)])
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> TokenResponse:
    """
    Authenticate with username and password; returns a signed access token.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    try:
        user = authenticate(db, body.username, body.password)
    except ServiceError as e:
        raise http_error(e) from e
    token = token_service.issue_token(user.id, user.username, user.real_name, user.role)
    return TokenResponse(access_token=token, token_type="bearer")


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_rate_limit)],
)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
    audit: Annotated[AuditLog, Depends(get_audit_log)],
    token_service: Annotated[TokenService, Depends(get_token_service)],
) -> TokenResponse:
    """Create a local account (role 'user') and log it in."""
    try:
        user = register_user(
            db,
            audit,
            username=body.username,
            email=body.email,
            password=body.password,
            real_name=body.real_name,
        )
    except ServiceError as e:
        raise http_error(e) from e
    token = token_service.issue_token(user.id, user.username, user.real_name, user.role)
    return TokenResponse(access_token=token, token_type="bearer")


@router.post(
    "/request-recovery",
    response_model=MessageResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
def request_recovery(
    body: RecoveryRequest,
    db: Annotated[Session, Depends(get_db)],
    mailer: Annotated[Mailer, Depends(get_mailer)],
) -> MessageResponse:
    """Mail a single-use recovery token to the account owning the e-mail address."""
    try:
        recovery.request_password_recovery(db, body.email, mailer)
    except ServiceError as e:
        raise http_error(e) from e
    return MessageResponse(message="Recovery instructions sent.")


@router.post(
    "/change-password",
    response_model=MessageResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
def change_password(
    body: ChangePasswordRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> MessageResponse:
    """Set a new password using a recovery token; the token is consumed."""
    try:
        recovery.change_password(
            db,
            body.token,
            body.new_password,
            ttl_hours=settings.RECOVERY_TOKEN_TTL_HOURS,
        )
    except ServiceError as e:
        raise http_error(e) from e
    return MessageResponse(message="Password updated.")


@router.get("/me", response_model=TokenClaims)
def me(claims: Annotated[TokenClaims, Depends(get_current_claims)]) -> TokenClaims:
    """Identity of the caller as carried by the token."""
    return claims
