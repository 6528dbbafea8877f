"""FastAPI dependencies wiring the services and authenticating requests."""

from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from identity.config import get_settings
from identity.errors import InvalidTokenError
from identity.models.user import User
from identity.services.auth_service import AuthService
from identity.services.password_hasher import PasswordHasher
from identity.services.token_service import TokenService
from identity.services.user_service import UserService

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_token_service() -> TokenService:
    """Build the token service once from the startup configuration."""
    return TokenService(get_settings().token_settings)


@lru_cache
def get_password_hasher() -> PasswordHasher:
    """Build the password hasher once from the startup configuration."""
    return PasswordHasher(rounds=get_settings().bcrypt_rounds)


def get_auth_service(
    token_service: TokenService = Depends(get_token_service),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> AuthService:
    """Create an AuthService for the current request."""
    return AuthService(
        user_service=UserService(),
        hasher=hasher,
        token_service=token_service,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """Resolve the user from an access token in the Authorization header.

    Raises:
        InvalidTokenError: If the header is missing or the token is invalid,
            expired, a refresh token, or names an unknown user
        AccountDisabledError: If the user is deactivated
    """
    if credentials is None:
        raise InvalidTokenError("Missing bearer token")
    return await auth_service.authenticate(credentials.credentials)
