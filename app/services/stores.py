"""Persistence adapters for users and sessions over a SQLAlchemy session.

Writes commit immediately: every operation here touches a single row (or one bulk
DELETE), so the primary key on users.id / sessions.token is the only concurrency
control needed.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import User, UserSession
from app.schemas.auth import ROLE_VALUES


class StoreUnavailableError(Exception):
    """Raised when the data store cannot complete an operation (connection lost, SQL error)."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class DuplicateEmailError(Exception):
    """Raised when creating a user whose email is already registered."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"Email already registered: {email}")


def _check_role(role: object) -> None:
    if role not in ROLE_VALUES:
        raise ValueError(f"Unknown role: {role!r}")


@contextmanager
def _store_errors(db: Session, operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreUnavailableError(f"Store operation failed: {operation}", cause=e) from e


class CredentialStore:
    """User records: lookup by email/id, create, update."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_email(self, email: str) -> User | None:
        with _store_errors(self._db, "find user by email"):
            return self._db.execute(select(User).where(User.email == email)).scalar_one_or_none()

    def find_by_id(self, user_id: int) -> User | None:
        with _store_errors(self._db, "find user by id"):
            return self._db.get(User, user_id)

    def list_users(self) -> list[User]:
        with _store_errors(self._db, "list users"):
            return list(self._db.execute(select(User).order_by(User.id)).scalars().all())

    def create(
        self,
        email: str,
        password_hash: str,
        role: str,
        name: str | None = None,
    ) -> User:
        _check_role(role)
        user = User(email=email, password_hash=password_hash, role=role, name=name)
        try:
            self._db.add(user)
            self._db.commit()
        except IntegrityError as e:
            self._db.rollback()
            raise DuplicateEmailError(email) from e
        except SQLAlchemyError as e:
            self._db.rollback()
            raise StoreUnavailableError("Store operation failed: create user", cause=e) from e
        return user

    def update(self, user: User, **fields: object) -> User:
        if "role" in fields:
            _check_role(fields["role"])
        with _store_errors(self._db, "update user"):
            for key, value in fields.items():
                setattr(user, key, value)
            self._db.commit()
            return user


class SessionStore:
    """Session records keyed by token."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def insert(self, session: UserSession) -> UserSession:
        with _store_errors(self._db, "insert session"):
            self._db.add(session)
            self._db.commit()
            return session

    def find_by_token(self, token: str) -> UserSession | None:
        with _store_errors(self._db, "find session"):
            return self._db.execute(
                select(UserSession).where(UserSession.token == token)
            ).scalar_one_or_none()

    def touch(self, token: str, now: datetime) -> int:
        """Set last_activity; returns 0 if the row vanished (concurrent logout)."""
        with _store_errors(self._db, "touch session"):
            result = self._db.execute(
                update(UserSession)
                .where(UserSession.token == token)
                .values(last_activity=now)
                .execution_options(synchronize_session=False)
            )
            self._db.commit()
            return result.rowcount

    def delete_by_token(self, token: str) -> int:
        with _store_errors(self._db, "delete session"):
            result = self._db.execute(
                delete(UserSession)
                .where(UserSession.token == token)
                .execution_options(synchronize_session=False)
            )
            self._db.commit()
            return result.rowcount

    def delete_expired_before(self, now: datetime) -> int:
        with _store_errors(self._db, "delete expired sessions"):
            result = self._db.execute(
                delete(UserSession)
                .where(UserSession.expires_at < now)
                .execution_options(synchronize_session=False)
            )
            self._db.commit()
            return result.rowcount
