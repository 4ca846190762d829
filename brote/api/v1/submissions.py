"""Submission endpoints: create, list, review, and signed one-click approval."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from brote.api.v1.auth import get_current_claims, require_admin
from brote.api.v1.deps import (
    get_app_settings,
    get_audit_log,
    get_publisher,
    get_session_factory,
    http_error,
)
from brote.core.config import Settings
from brote.core.database import get_db
from brote.core.errors import ForbiddenError, ServiceError
from brote.models.submission import SUBMISSION_STATUS_APPROVED
from brote.schemas.auth import TokenClaims
from brote.schemas.submissions import (
    SubmissionCreate,
    SubmissionCreatedResponse,
    SubmissionListResponse,
    SubmissionOut,
    SubmissionStatusUpdate,
    TransitionResponse,
)
from brote.services.audit import AuditLog
from brote.services.publisher import Publisher
from brote.services.submissions import (
    SubmissionWorkflow,
    TransitionResult,
    publish_submission,
    verify_approval_token,
)
from brote.services.users import ROLE_ADMIN

logger = logging.getLogger(__name__)
router = APIRouter()


def _review(
    workflow: SubmissionWorkflow,
    background_tasks: BackgroundTasks,
    publisher: Publisher,
    session_factory: Callable[[], Session],
    submission_id: int,
    new_status: str,
    comment: str | None,
    reviewer_id: int,
) -> TransitionResponse:
    try:
        result: TransitionResult = workflow.transition(submission_id, new_status, comment, reviewer_id)
    except ServiceError as e:
        raise http_error(e) from e
    if result.publication is not None:
        background_tasks.add_task(publish_submission, publisher, session_factory, result.publication)
    return TransitionResponse(
        submission=SubmissionOut.model_validate(result.submission),
        entity_type=result.entity_type,
        entity_id=result.entity_id,
        publication_scheduled=result.publication is not None,
    )


@router.post("", response_model=SubmissionCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_submission(
    body: SubmissionCreate,
    claims: Annotated[TokenClaims, Depends(get_current_claims)],
    db: Annotated[Session, Depends(get_db)],
    audit: Annotated[AuditLog, Depends(get_audit_log)],
) -> SubmissionCreatedResponse:
    """Queue content for moderation. Always starts as pending, regardless of the caller's role."""
    try:
        submission = SubmissionWorkflow(db, audit).create(claims.user_id, body.type, body.data)
    except ServiceError as e:
        raise http_error(e) from e
    return SubmissionCreatedResponse(id=submission.id)


@router.get("", response_model=SubmissionListResponse)
def list_submissions(
    _admin: Annotated[TokenClaims, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    audit: Annotated[AuditLog, Depends(get_audit_log)],
    status_filter: Annotated[
        str | None, Query(alias="status", pattern="^(pending|approved|rejected)$")
    ] = None,
) -> SubmissionListResponse:
    """All submissions, newest first; filter with ?status=pending."""
    submissions = SubmissionWorkflow(db, audit).list_submissions(status=status_filter)
    return SubmissionListResponse(
        submissions=[SubmissionOut.model_validate(s) for s in submissions]
    )


@router.get("/{submission_id}", response_model=SubmissionOut)
def get_submission(
    submission_id: int,
    claims: Annotated[TokenClaims, Depends(get_current_claims)],
    db: Annotated[Session, Depends(get_db)],
    audit: Annotated[AuditLog, Depends(get_audit_log)],
) -> SubmissionOut:
    """Visible to the submitting user and to admins."""
    try:
        submission = SubmissionWorkflow(db, audit).get(submission_id)
    except ServiceError as e:
        raise http_error(e) from e
    if claims.role != ROLE_ADMIN and submission.user_id != claims.user_id:
        raise http_error(ForbiddenError("Not allowed to view this submission"))
    return SubmissionOut.model_validate(submission)


@router.put("/{submission_id}", response_model=TransitionResponse)
def update_submission_status(
    submission_id: int,
    body: SubmissionStatusUpdate,
    background_tasks: BackgroundTasks,
    admin: Annotated[TokenClaims, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    audit: Annotated[AuditLog, Depends(get_audit_log)],
    publisher: Annotated[Publisher, Depends(get_publisher)],
    session_factory: Annotated[Callable[[], Session], Depends(get_session_factory)],
) -> TransitionResponse:
    """
    Approve or reject a pending submission. The reviewer is the calling admin.

    Approval creates the catalogue entity; publishing to social media runs
    after the response and never undoes the approval.
    """
    return _review(
        SubmissionWorkflow(db, audit),
        background_tasks,
        publisher,
        session_factory,
        submission_id,
        body.status,
        body.comment,
        admin.user_id,
    )


@router.post("/{submission_id}/approve", response_model=TransitionResponse)
def approve_submission(
    submission_id: int,
    background_tasks: BackgroundTasks,
    admin: Annotated[TokenClaims, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    audit: Annotated[AuditLog, Depends(get_audit_log)],
    publisher: Annotated[Publisher, Depends(get_publisher)],
    session_factory: Annotated[Callable[[], Session], Depends(get_session_factory)],
) -> TransitionResponse:
    return _review(
        SubmissionWorkflow(db, audit),
        background_tasks,
        publisher,
        session_factory,
        submission_id,
        SUBMISSION_STATUS_APPROVED,
        None,
        admin.user_id,
    )


@router.get("/{submission_id}/direct-approve", response_model=TransitionResponse)
def direct_approve(
    submission_id: int,
    background_tasks: BackgroundTasks,
    token: Annotated[str, Query(min_length=1, max_length=128)],
    settings: Annotated[Settings, Depends(get_app_settings)],
    db: Annotated[Session, Depends(get_db)],
    audit: Annotated[AuditLog, Depends(get_audit_log)],
    publisher: Annotated[Publisher, Depends(get_publisher)],
    session_factory: Annotated[Callable[[], Session], Depends(get_session_factory)],
) -> TransitionResponse:
    """
    Approve from a signed link (HMAC of the submission id with APPROVAL_SECRET).
    The reviewer recorded is DEFAULT_REVIEWER_ID.
    """
    if settings.APPROVAL_SECRET is None or not settings.APPROVAL_SECRET.get_secret_value():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Direct approval is not configured; set APPROVAL_SECRET.",
        )
    if not verify_approval_token(submission_id, token, settings.APPROVAL_SECRET.get_secret_value()):
        logger.warning("Invalid direct-approval token", extra={"submission_id": submission_id})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid approval token",
        )
    return _review(
        SubmissionWorkflow(db, audit),
        background_tasks,
        publisher,
        session_factory,
        submission_id,
        SUBMISSION_STATUS_APPROVED,
        None,
        settings.DEFAULT_REVIEWER_ID,
    )
