"""User administration (admin only): list accounts, create accounts, change roles."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.v1.auth import get_auth_service, require_admin
from app.schemas.auth import (
    Principal,
    RoleUpdateRequest,
    UserCreateRequest,
    UserResponse,
    UsersListResponse,
)
from app.services.auth import AuthFailure, AuthService

router = APIRouter()


@router.get("", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[Principal, Depends(require_admin)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> UsersListResponse:
    """List all users without password hashes."""
    return UsersListResponse(users=auth.list_principals())


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    body: UserCreateRequest,
    _admin: Annotated[Principal, Depends(require_admin)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> UserResponse:
    result = auth.create_user(body.email, body.password, role=body.role, name=body.name)
    if isinstance(result, AuthFailure):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=result.message)
    return UserResponse(user=result)


@router.patch("/{user_id}/role", response_model=UserResponse)
def change_role(
    user_id: int,
    body: RoleUpdateRequest,
    _admin: Annotated[Principal, Depends(require_admin)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> UserResponse:
    """Change a user's role. Existing sessions pick up the new role on their next lookup."""
    principal = auth.change_role(user_id, body.role)
    if principal is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse(user=principal)
