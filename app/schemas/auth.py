"""Request/response schemas for auth and user administration endpoints."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.core.security import EMAIL_MAX_LEN, PASSWORD_MAX_LEN, PASSWORD_MIN_LEN

# Permission tiers consulted by route dependencies; the auth core never branches on them.
Role = Literal["admin", "member", "rules_committee", "guest"]

ROLE_VALUES: frozenset[str] = frozenset({"admin", "member", "rules_committee", "guest"})

DEFAULT_ROLE: Role = "member"


def _validate_email(value: str) -> str:
    """Trim, lowercase and sanity-check an email address."""
    normalized = value.strip().lower()
    if not normalized:
        raise ValueError("email must be non-empty")
    if len(normalized) > EMAIL_MAX_LEN:
        raise ValueError(f"email must be at most {EMAIL_MAX_LEN} characters")
    local, sep, domain = normalized.partition("@")
    if not sep or not local or not domain:
        raise ValueError("email must look like name@domain")
    return normalized


class LoginRequest(BaseModel):
    """Credentials for login. Presence is checked by the route so a missing field is a 400."""

    model_config = {"extra": "ignore"}

    email: str | None = Field(default=None, description="Account email (case-insensitive)")
    password: str | None = Field(default=None, description="Account password")


class Principal(BaseModel):
    """Authenticated identity: the non-secret fields of a user."""

    id: int
    email: str
    name: str | None = None
    role: Role

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    """Body for login, /auth/me and single-user admin responses."""

    user: Principal


class UsersListResponse(BaseModel):
    """Response for GET /users (admin only)."""

    users: list[Principal]


class UserCreateRequest(BaseModel):
    """Admin request to create an account."""

    email: str = Field(..., min_length=3, max_length=EMAIL_MAX_LEN, description="Account email")
    password: str = Field(
        ...,
        min_length=PASSWORD_MIN_LEN,
        max_length=PASSWORD_MAX_LEN,
        description="Initial password",
    )
    role: Role = Field(default=DEFAULT_ROLE, description="Permission tier")
    name: str | None = Field(default=None, max_length=255, description="Display name")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _validate_email(v)


class RoleUpdateRequest(BaseModel):
    """Admin request to change a user's role."""

    role: Role
