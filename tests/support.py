"""Shared fixtures for the test suite: settings, a controllable clock, and an in-memory store."""

from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.database import build_engine, build_session_factory
from app.core.security import hash_password
from app.models import Base, User, UserSession
from app.services.auth import AuthService
from app.services.stores import CredentialStore, SessionStore

# bcrypt's minimum cost keeps the suite fast; production settings enforce >= 12.
TEST_BCRYPT_ROUNDS = 4


def make_settings(**overrides: object) -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    values: dict[str, object] = {
        "APP_ENV": "dev",
        "DATABASE_URL": "sqlite://",
        "BCRYPT_ROUNDS": TEST_BCRYPT_ROUNDS,
        "SESSION_CLEANUP_SCHEDULER_ENABLED": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 3, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_engine() -> Engine:
    """Fresh in-memory SQLite database with all tables created."""
    engine = build_engine(make_settings())
    Base.metadata.create_all(engine)
    return engine


def open_session(engine: Engine) -> Session:
    return build_session_factory(engine)()


def add_user(
    db: Session,
    email: str = "admin@croquet.nl",
    password: str = "admin123",
    role: str = "admin",
    name: str | None = None,
) -> User:
    user = User(
        email=email,
        password_hash=hash_password(password, rounds=TEST_BCRYPT_ROUNDS),
        role=role,
        name=name,
    )
    db.add(user)
    db.commit()
    return user


def add_session(db: Session, user: User, token: str, created_at: datetime, ttl: timedelta) -> UserSession:
    row = UserSession(
        token=token,
        user_id=user.id,
        created_at=created_at,
        expires_at=created_at + ttl,
        last_activity=created_at,
    )
    db.add(row)
    db.commit()
    return row


def count_sessions(db: Session, token: str | None = None) -> int:
    query = select(func.count()).select_from(UserSession)
    if token is not None:
        query = query.where(UserSession.token == token)
    return db.execute(query).scalar_one()


def make_service(db: Session, clock: FakeClock, ttl: timedelta = timedelta(days=30)) -> AuthService:
    return AuthService(
        CredentialStore(db),
        SessionStore(db),
        session_ttl=ttl,
        bcrypt_rounds=TEST_BCRYPT_ROUNDS,
        clock=clock,
    )
