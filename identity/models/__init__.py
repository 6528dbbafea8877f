"""Models package exports."""

from identity.models.auth import (
    AuthResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    UserResponse,
)
from identity.models.user import User, UserRecord, UserStatus

__all__ = [
    "AuthResponse",
    "LoginRequest",
    "RefreshRequest",
    "RegisterRequest",
    "User",
    "UserRecord",
    "UserResponse",
    "UserStatus",
]
