"""Cookie-session login, logout, current user, and the auth dependencies other routes use."""

import json
import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.cookies import clear_session_cookie, read_session_token, set_session_cookie
from app.core.database import get_db
from app.schemas.auth import LoginRequest, Principal, Role, UserResponse
from app.services.auth import AuthFailure, AuthService, build_auth_service
from app.services.stores import StoreUnavailableError

logger = logging.getLogger(__name__)
router = APIRouter()

MISSING_CREDENTIALS_MESSAGE = "Email and password are required"


class SessionRejectedError(Exception):
    """No usable session on the request. clear_cookie is set when a dead token was presented."""

    def __init__(self, message: str, clear_cookie: bool) -> None:
        self.message = message
        self.clear_cookie = clear_cookie
        super().__init__(message)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_service(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> AuthService:
    """Dependency: AuthService bound to this request's DB session and the app clock."""
    return build_auth_service(db, settings, clock=request.app.state.clock)


def get_current_principal(
    request: Request,
    auth: Annotated[AuthService, Depends(get_auth_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> Principal:
    """Dependency: resolve the session cookie to a principal. Raises SessionRejectedError (401)."""
    token = read_session_token(request, settings)
    if token is None:
        raise SessionRejectedError("No session token", clear_cookie=False)
    session = auth.get_session(token)
    if session is None:
        raise SessionRejectedError("Invalid or expired session", clear_cookie=True)
    return session.principal


def require_roles(*roles: Role) -> Callable[..., Principal]:
    """Build a dependency that admits only principals holding one of the given roles."""
    allowed = frozenset(roles)

    def dependency(
        principal: Annotated[Principal, Depends(get_current_principal)],
    ) -> Principal:
        if principal.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {', '.join(sorted(allowed))}",
            )
        return principal

    return dependency


require_admin = require_roles("admin")


async def _read_login_request(request: Request) -> LoginRequest:
    """Parse the JSON login body; anything unusable is a 400, not FastAPI's default 422."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=400, detail=MISSING_CREDENTIALS_MESSAGE) from e
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail=MISSING_CREDENTIALS_MESSAGE)
    try:
        login = LoginRequest.model_validate(body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=MISSING_CREDENTIALS_MESSAGE) from e
    if not login.email or not login.email.strip() or not login.password:
        raise HTTPException(status_code=400, detail=MISSING_CREDENTIALS_MESSAGE)
    return login


@router.post("/login", response_model=UserResponse)
async def login(
    request: Request,
    response: Response,
    auth: Annotated[AuthService, Depends(get_auth_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> UserResponse:
    """
    Authenticate with email and password.

    On success the session token is set as an HttpOnly cookie and the user is returned.
    Unknown email and wrong password produce the same 401.
    """
    body = await _read_login_request(request)
    # bcrypt is deliberately slow; keep it off the event loop.
    result = await run_in_threadpool(auth.authenticate, body.email, body.password)
    if isinstance(result, AuthFailure):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=result.message)
    set_session_cookie(response, result.token, settings)
    return UserResponse(user=result.principal)


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    auth: Annotated[AuthService, Depends(get_auth_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> dict:
    """Delete the presented session (if any) and always clear the cookie."""
    token = read_session_token(request, settings)
    if token is not None:
        try:
            auth.delete_session(token)
        except StoreUnavailableError:
            # The row expires on its own; the client still loses the cookie.
            logger.exception("Session delete failed during logout")
    clear_session_cookie(response, settings)
    return {}


@router.get("/me", response_model=UserResponse)
def me(
    principal: Annotated[Principal, Depends(get_current_principal)],
) -> UserResponse:
    """Return the user behind the session cookie. 401 and a cleared cookie when it is dead."""
    return UserResponse(user=principal)
