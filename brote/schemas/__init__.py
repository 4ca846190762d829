"""Pydantic request/response schemas."""

from brote.schemas.audit import AuditLogListResponse, AuditLogOut
from brote.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RecoveryRequest,
    RegisterRequest,
    TokenClaims,
    TokenResponse,
)
from brote.schemas.health import HealthResponse
from brote.schemas.submissions import (
    PAYLOAD_SCHEMAS,
    SUBMISSION_TYPES,
    SubmissionCreate,
    SubmissionOut,
    SubmissionStatusUpdate,
    TransitionResponse,
)
from brote.schemas.users import UserOut, UsersListResponse, UserUpdateRequest

__all__ = [
    "AuditLogListResponse",
    "AuditLogOut",
    "ChangePasswordRequest",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "PAYLOAD_SCHEMAS",
    "RecoveryRequest",
    "RegisterRequest",
    "SUBMISSION_TYPES",
    "SubmissionCreate",
    "SubmissionOut",
    "SubmissionStatusUpdate",
    "TokenClaims",
    "TokenResponse",
    "TransitionResponse",
    "UserOut",
    "UserUpdateRequest",
    "UsersListResponse",
]
