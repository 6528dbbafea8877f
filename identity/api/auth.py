"""Authentication API endpoints."""

import structlog
from fastapi import APIRouter, Depends, status

from identity.api.dependencies import get_auth_service, get_current_user
from identity.models.auth import (
    AuthResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    UserResponse,
)
from identity.models.user import User
from identity.services.auth_service import AuthService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Register a new account.

    Returns:
        AuthResponse with tokens and the public user view

    Raises:
        DuplicateIdentityError (409): If username or email is taken
    """
    return await auth_service.register(
        username=request.username,
        email=request.email,
        password=request.password,
        display_name=request.display_name,
    )


@router.post("/login")
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Login with username or email and password.

    Raises:
        InvalidCredentialsError (401): Unknown identifier or wrong password
        AccountDisabledError (403): Account is deactivated
    """
    return await auth_service.login(request.identifier, request.password)


@router.post("/refresh")
async def refresh(
    request: RefreshRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Exchange a refresh token for a new access and refresh token pair.

    Raises:
        InvalidTokenError (401): If the refresh token is invalid or expired
        AccountDisabledError (403): Account is deactivated
    """
    return await auth_service.refresh(request.refresh_token)


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Get the public view of the authenticated user."""
    return UserResponse.from_user(current_user)
