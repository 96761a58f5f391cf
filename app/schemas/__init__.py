"""Pydantic request/response schemas."""

from app.schemas.auth import (
    DEFAULT_ROLE,
    ROLE_VALUES,
    LoginRequest,
    Principal,
    Role,
    RoleUpdateRequest,
    UserCreateRequest,
    UserResponse,
    UsersListResponse,
)
from app.schemas.health import HealthResponse

__all__ = [
    "DEFAULT_ROLE",
    "HealthResponse",
    "LoginRequest",
    "Principal",
    "ROLE_VALUES",
    "Role",
    "RoleUpdateRequest",
    "UserCreateRequest",
    "UserResponse",
    "UsersListResponse",
]
