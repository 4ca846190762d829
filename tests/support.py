"""Shared fixtures for tests: in-memory database, settings and an API client."""

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from brote.core.config import Settings
from brote.models import Base, User

TEST_JWT_SECRET = "test-jwt-secret-that-is-long-enough-for-hs256"
FAKE_HASH = "00" * 32
FAKE_SALT = "11" * 16


def make_session_factory() -> sessionmaker:
    """Fresh in-memory SQLite database with every table created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def make_settings(**overrides) -> Settings:
    values = {
        "APP_ENV": "dev",
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": TEST_JWT_SECRET,
        "RATE_LIMIT_CAPACITY": 1000,
        "MAILGUN_DOMAIN": None,
        "MAILGUN_API_KEY": None,
        "FACEBOOK_PAGE_ID": None,
        "FACEBOOK_ACCESS_TOKEN": None,
        "APPROVAL_SECRET": None,
    }
    values.update(overrides)
    return Settings(**values)


def add_user(db: Session, username: str, role: str = "user", email: str | None = None) -> User:
    """Insert a user directly (no password hashing) for tests that only need an id."""
    user = User(
        username=username,
        email=email or f"{username}@example.org",
        real_name=username.title(),
        role=role,
        provider="local",
        password_hash=FAKE_HASH,
        salt=FAKE_SALT,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_client(settings: Settings | None = None, session_factory: sessionmaker | None = None):
    """Build the app against the given database and return (TestClient, app)."""
    from fastapi.testclient import TestClient

    from brote.core.database import get_db
    from brote.main import create_app

    settings = settings or make_settings()
    session_factory = session_factory or make_session_factory()
    app = create_app(settings=settings, session_factory=session_factory)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app), app
