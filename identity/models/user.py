"""User models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class UserStatus(str, Enum):
    """Presence status of a user."""

    ONLINE = "ONLINE"
    AWAY = "AWAY"
    DND = "DND"
    OFFLINE = "OFFLINE"


class User(BaseModel):
    """A registered account, without credential material."""

    id: int
    username: str
    email: str
    display_name: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    status: UserStatus = UserStatus.OFFLINE
    custom_status: Optional[str] = None
    is_verified: bool = False
    is_active: bool = True
    created_at: datetime
    updated_at: datetime
    last_seen_at: Optional[datetime] = None


class UserRecord(User):
    """A user row as stored, including the bcrypt password hash.

    Only the user store and the auth service handle this type.
    """

    password_hash: str

    def to_user(self) -> User:
        """Drop the password hash."""
        return User.model_validate(self.model_dump(exclude={"password_hash"}))
