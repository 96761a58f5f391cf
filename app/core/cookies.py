"""Session cookie helpers: the only place cookie attributes are decided."""

from fastapi import Request, Response

from app.core.config import Settings


def read_session_token(request: Request, settings: Settings) -> str | None:
    """Return the presented session token, or None when the cookie is absent or blank."""
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token is None or not token.strip():
        return None
    return token.strip()


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    """HttpOnly, SameSite=Lax, Path=/, Max-Age = session TTL; Secure in prod."""
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.session_ttl_seconds,
        path="/",
        secure=settings.cookie_secure,
        httponly=True,
        samesite="lax",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    """Expire the session cookie on the client (Max-Age=0)."""
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        secure=settings.cookie_secure,
        httponly=True,
        samesite="lax",
    )
