"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

import logging
from collections.abc import Callable

from dotenv import load_dotenv

load_dotenv()

from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from brote.api.v1 import router as v1_router
from brote.core.config import Settings, get_settings
from brote.core.database import SessionLocal
from brote.core.rate_limit import TokenBucket, enforce_rate_limit
from brote.core.security import TokenService
from brote.services.audit import AuditLog
from brote.services.mailer import Mailer
from brote.services.publisher import Publisher

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Content-Security-Policy": "default-src 'self'",
}


def create_app(
    settings: Settings | None = None,
    session_factory: Callable[[], Session] | None = None,
) -> FastAPI:
    """
    Build the API with its shared collaborators on app.state: settings, the
    session token service, the process-wide rate limiter, the audit log, the
    mailer and the social publisher.
    """
    settings = settings or get_settings()
    session_factory = session_factory or SessionLocal

    app = FastAPI(
        title="Brote API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.token_service = TokenService(
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
        expire_days=settings.JWT_EXPIRE_DAYS,
    )
    app.state.rate_limiter = TokenBucket(
        capacity=settings.RATE_LIMIT_CAPACITY,
        refill_rate=settings.RATE_LIMIT_REFILL_PER_SEC,
    )
    app.state.audit_log = AuditLog(session_factory)
    app.state.mailer = Mailer(settings)
    app.state.publisher = Publisher(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else settings.CORS_ORIGINS,
        allow_credentials=settings.APP_ENV != "dev",
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)

    @app.get("/", dependencies=[Depends(enforce_rate_limit)])
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Brote API"}

    return app


app = create_app()
