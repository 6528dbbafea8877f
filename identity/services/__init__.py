"""Services package exports."""

from identity.services.auth_service import AuthService
from identity.services.logging_service import configure_logging, get_logger
from identity.services.password_hasher import PasswordHasher
from identity.services.token_service import TokenService
from identity.services.user_service import UserService

__all__ = [
    "AuthService",
    "PasswordHasher",
    "TokenService",
    "UserService",
    "configure_logging",
    "get_logger",
]
