"""Session-based authentication: credential checks, token issuance, lookup and revocation.

Expected outcomes (wrong password, unknown token, duplicate email) come back as
values. Only infrastructure failures raise, as StoreUnavailableError from the stores.
"""

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.core.security import (
    BCRYPT_ROUNDS,
    dummy_password_hash,
    generate_session_token,
    hash_password,
    normalize_email,
    verify_password,
)
from app.models import User, UserSession
from app.schemas.auth import DEFAULT_ROLE, Principal
from app.services.stores import CredentialStore, DuplicateEmailError, SessionStore

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = timedelta(days=30)

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes read back from the store as UTC (SQLite drops tzinfo)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class AuthError(str, enum.Enum):
    """Expected failures. INVALID_CREDENTIALS covers both unknown email and wrong password."""

    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_TAKEN = "email_taken"


# Messages shown to clients; one message for both halves of a bad login.
AUTH_ERROR_MESSAGES = {
    AuthError.INVALID_CREDENTIALS: "Invalid email or password",
    AuthError.EMAIL_TAKEN: "Email already exists",
}


@dataclass(frozen=True)
class AuthSuccess:
    token: str
    principal: Principal
    expires_at: datetime


@dataclass(frozen=True)
class AuthFailure:
    error: AuthError

    @property
    def message(self) -> str:
        return AUTH_ERROR_MESSAGES[self.error]


AuthResult = AuthSuccess | AuthFailure


@dataclass(frozen=True)
class ResolvedSession:
    """A live session and the principal it belongs to."""

    token: str
    principal: Principal
    created_at: datetime
    expires_at: datetime
    last_activity: datetime


def to_principal(user: User) -> Principal:
    return Principal.model_validate(user)


class AuthService:
    """Answers "who, if anyone" for a credential pair or a session token."""

    def __init__(
        self,
        credentials: CredentialStore,
        sessions: SessionStore,
        session_ttl: timedelta = DEFAULT_SESSION_TTL,
        bcrypt_rounds: int = BCRYPT_ROUNDS,
        clock: Clock = system_clock,
    ) -> None:
        self._credentials = credentials
        self._sessions = sessions
        self._session_ttl = session_ttl
        self._bcrypt_rounds = bcrypt_rounds
        self._clock = clock

    def authenticate(self, email: str, password: str) -> AuthResult:
        """Verify credentials and open a new session. One session row per success."""
        user = self._credentials.find_by_email(normalize_email(email))
        if user is None:
            # Burn the same bcrypt time as a real comparison so latency does not reveal accounts.
            verify_password(password, dummy_password_hash(self._bcrypt_rounds))
            logger.info("Login rejected: invalid credentials")
            return AuthFailure(AuthError.INVALID_CREDENTIALS)
        if not verify_password(password, user.password_hash):
            logger.info("Login rejected: invalid credentials")
            return AuthFailure(AuthError.INVALID_CREDENTIALS)

        now = self._clock()
        token = generate_session_token()
        expires_at = now + self._session_ttl
        self._sessions.insert(
            UserSession(
                token=token,
                user_id=user.id,
                created_at=now,
                expires_at=expires_at,
                last_activity=now,
            )
        )
        logger.info("Login succeeded: user_id=%s", user.id)
        return AuthSuccess(token=token, principal=to_principal(user), expires_at=expires_at)

    def get_session(self, token: str | None) -> ResolvedSession | None:
        """
        Resolve a token to its live session, or None.

        An expired row is deleted on sight and reported as absent, so a session never
        outlives its TTL even if the sweep has not run yet.
        """
        if not token:
            return None
        row = self._sessions.find_by_token(token)
        if row is None:
            return None

        now = self._clock()
        expires_at = as_utc(row.expires_at)
        if expires_at < now:
            self._sessions.delete_by_token(token)
            logger.info("Session expired on lookup: user_id=%s", row.user_id)
            return None

        if self._sessions.touch(token, now) == 0:
            # Logged out between the read and the activity bump.
            return None
        return ResolvedSession(
            token=row.token,
            principal=to_principal(row.user),
            created_at=as_utc(row.created_at),
            expires_at=expires_at,
            last_activity=now,
        )

    def delete_session(self, token: str | None) -> None:
        """Idempotent logout: deleting an unknown token is a no-op."""
        if not token:
            return
        self._sessions.delete_by_token(token)

    def cleanup_expired_sessions(self) -> int:
        """Bulk-delete every session past expires_at; returns the number removed."""
        return self._sessions.delete_expired_before(self._clock())

    def create_user(
        self,
        email: str,
        password: str,
        role: str = DEFAULT_ROLE,
        name: str | None = None,
    ) -> Principal | AuthFailure:
        normalized = normalize_email(email)
        if self._credentials.find_by_email(normalized) is not None:
            return AuthFailure(AuthError.EMAIL_TAKEN)
        try:
            user = self._credentials.create(
                email=normalized,
                password_hash=hash_password(password, rounds=self._bcrypt_rounds),
                role=role,
                name=name,
            )
        except DuplicateEmailError:
            return AuthFailure(AuthError.EMAIL_TAKEN)
        logger.info("User created: user_id=%s role=%s", user.id, role)
        return to_principal(user)

    def change_role(self, user_id: int, role: str) -> Principal | None:
        user = self._credentials.find_by_id(user_id)
        if user is None:
            return None
        self._credentials.update(user, role=role)
        logger.info("Role changed: user_id=%s role=%s", user_id, role)
        return to_principal(user)

    def list_principals(self) -> list[Principal]:
        return [to_principal(u) for u in self._credentials.list_users()]


def build_auth_service(db: Session, settings: "Settings", clock: Clock = system_clock) -> AuthService:
    """Wire an AuthService over one DB session using the configured TTL and hash cost."""
    return AuthService(
        CredentialStore(db),
        SessionStore(db),
        session_ttl=timedelta(days=settings.SESSION_TTL_DAYS),
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
        clock=clock,
    )
