"""Auth request and response models with validation."""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from identity.models.user import User, UserStatus

# No "@" so a username can never equal an email, and no whitespace.
USERNAME_PATTERN = re.compile(r"^[^@\s]+$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# bcrypt only considers the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72


def _check_password(v: str) -> str:
    if not v.strip():
        raise ValueError("Password cannot be empty or whitespace only")
    if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return v


class RegisterRequest(BaseModel):
    """New account registration.

    Attributes:
        username: Unique handle (1-50 chars, no "@" or whitespace)
        email: Unique email address (max 100 chars)
        password: Plain-text password (8 chars to 72 bytes)
        display_name: Optional display name, defaults to the username
    """

    username: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=8)
    display_name: Optional[str] = Field(default=None, max_length=100)

    @field_validator("username")
    @classmethod
    def username_valid_chars(cls, v: str) -> str:
        """Keep usernames disjoint from emails so login lookups stay unambiguous."""
        if not USERNAME_PATTERN.fullmatch(v):
            raise ValueError("Username must not contain '@' or whitespace")
        return v

    @field_validator("email")
    @classmethod
    def email_valid_format(cls, v: str) -> str:
        """Ensure email looks like local@domain.tld."""
        if not EMAIL_PATTERN.fullmatch(v):
            raise ValueError("Email address is not valid")
        return v

    @field_validator("password")
    @classmethod
    def password_valid(cls, v: str) -> str:
        """Ensure password is not blank and fits bcrypt's input limit."""
        return _check_password(v)

    @field_validator("display_name")
    @classmethod
    def blank_display_name_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat a blank display name as absent."""
        if v is not None and not v.strip():
            return None
        return v


class LoginRequest(BaseModel):
    """Login credentials.

    Attributes:
        identifier: Username or email
        password: Plain-text password
    """

    identifier: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    """Request to exchange a refresh token for a new token pair."""

    refresh_token: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Public view of a user, safe to return to clients."""

    id: int
    username: str
    email: str
    display_name: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    status: UserStatus
    is_verified: bool
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        """Project a user onto its public fields."""
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            display_name=user.display_name,
            avatar=user.avatar,
            bio=user.bio,
            status=user.status,
            is_verified=user.is_verified,
            created_at=user.created_at,
        )


class AuthResponse(BaseModel):
    """Successful authentication response with a token pair.

    Attributes:
        access_token: Short-lived JWT for API access
        refresh_token: Long-lived JWT for obtaining new access tokens
        token_type: Always "Bearer"
        expires_in: Access token lifetime in seconds
        user: Public view of the authenticated user
    """

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(ge=1, description="Access token lifetime in seconds")
    user: UserResponse
