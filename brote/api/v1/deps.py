"""Dependencies exposing the collaborators built in create_app (stored on app.state)."""

from collections.abc import Callable

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from brote.core.config import Settings
from brote.core.errors import ServiceError
from brote.core.security import TokenService
from brote.services.audit import AuditLog
from brote.services.mailer import Mailer
from brote.services.publisher import Publisher


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_audit_log(request: Request) -> AuditLog:
    return request.app.state.audit_log


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_publisher(request: Request) -> Publisher:
    return request.app.state.publisher


def get_session_factory(request: Request) -> Callable[[], Session]:
    return request.app.state.session_factory


def http_error(e: ServiceError) -> HTTPException:
    """Translate a service error into the HTTP response the client sees."""
    headers = {"WWW-Authenticate": "Bearer"} if e.status_code == 401 else None
    return HTTPException(status_code=e.status_code, detail=e.message, headers=headers)
