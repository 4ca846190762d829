"""User administration (admin only). Mutations are audited by the users service."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from brote.api.v1.auth import require_admin
from brote.api.v1.deps import get_audit_log, http_error
from brote.core.database import get_db
from brote.core.errors import ServiceError
from brote.schemas.auth import TokenClaims
from brote.schemas.users import UserOut, UsersListResponse, UserUpdateRequest
from brote.services import users as users_service
from brote.services.audit import AuditLog

router = APIRouter()


@router.get("", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[TokenClaims, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List all users. Password hashes and salts are never included."""
    users = users_service.list_users(db)
    return UsersListResponse(users=[UserOut.model_validate(u) for u in users])


@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: int,
    _admin: Annotated[TokenClaims, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    try:
        return UserOut.model_validate(users_service.get_user(db, user_id))
    except ServiceError as e:
        raise http_error(e) from e


@router.put("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    body: UserUpdateRequest,
    admin: Annotated[TokenClaims, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    audit: Annotated[AuditLog, Depends(get_audit_log)],
) -> UserOut:
    try:
        user = users_service.update_user(
            db,
            audit,
            user_id,
            body.model_dump(exclude_unset=True, exclude_none=True),
            acting_user_id=admin.user_id,
        )
    except ServiceError as e:
        raise http_error(e) from e
    return UserOut.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    admin: Annotated[TokenClaims, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    audit: Annotated[AuditLog, Depends(get_audit_log)],
) -> Response:
    try:
        users_service.delete_user(db, audit, user_id, acting_user_id=admin.user_id)
    except ServiceError as e:
        raise http_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
