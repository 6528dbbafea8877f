"""Registration, login and token refresh."""

import asyncio
from typing import Optional

import structlog

from identity.errors import (
    AccountDisabledError,
    DuplicateIdentityError,
    InvalidCredentialsError,
    InvalidTokenError,
)
from identity.models.auth import AuthResponse, UserResponse
from identity.models.user import User, UserStatus
from identity.services.password_hasher import PasswordHasher
from identity.services.token_service import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    TokenService,
)
from identity.services.user_service import UserService

logger = structlog.get_logger(__name__)


class AuthService:
    """Owns the account rules around the user store, hasher and token service."""

    def __init__(
        self,
        user_service: UserService,
        hasher: PasswordHasher,
        token_service: TokenService,
    ):
        self.user_service = user_service
        self.hasher = hasher
        self.token_service = token_service

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        display_name: Optional[str] = None,
    ) -> AuthResponse:
        """Create an account and sign it in.

        The uniqueness checks and the insert run in one transaction; the
        store's unique constraints catch registrations that race past the
        checks.

        Raises:
            DuplicateIdentityError: If the username or email is taken
        """
        password_hash = await asyncio.to_thread(self.hasher.hash, password)

        async with self.user_service.transaction() as users:
            if await users.exists_by_username(username):
                logger.info("register_rejected", reason="username_taken")
                raise DuplicateIdentityError("Username already exists")

            if await users.exists_by_email(email):
                logger.info("register_rejected", reason="email_taken")
                raise DuplicateIdentityError("Email already exists")

            user = await users.create_user(
                username=username,
                email=email,
                password_hash=password_hash,
                display_name=display_name or username,
                status=UserStatus.ONLINE,
            )

        logger.info("user_registered", user_id=user.id, username=user.username)
        return self._build_auth_response(user)

    async def login(self, identifier: str, password: str) -> AuthResponse:
        """Authenticate by username or email and mark the account online.

        The lookup and the bcrypt check run without holding a transaction;
        only the status change does, and it re-checks ``is_active`` so an
        account deactivated in between is not marked online.

        Raises:
            InvalidCredentialsError: If no account matches or the password is wrong
            AccountDisabledError: If the account is deactivated
        """
        record = await self.user_service.get_by_identifier(identifier)

        if record is None:
            # Spend the same bcrypt time as a real check.
            await asyncio.to_thread(self._verify_dummy, password)
            logger.info("login_failed", reason="unknown_identifier")
            raise InvalidCredentialsError()

        verified = await asyncio.to_thread(
            self.hasher.verify, password, record.password_hash
        )
        if not verified:
            logger.info("login_failed", reason="bad_password", user_id=record.id)
            raise InvalidCredentialsError()

        if not record.is_active:
            logger.info("login_failed", reason="account_disabled", user_id=record.id)
            raise AccountDisabledError()

        async with self.user_service.transaction() as users:
            user = await users.mark_online(record.id)
            if user is None:
                logger.info("login_failed", reason="account_disabled", user_id=record.id)
                raise AccountDisabledError()

        logger.info("user_logged_in", user_id=user.id, username=user.username)
        return self._build_auth_response(user)

    def _verify_dummy(self, password: str) -> bool:
        return self.hasher.verify(password, self.hasher.dummy_hash)

    async def refresh(self, refresh_token: str) -> AuthResponse:
        """Exchange a refresh token for a new token pair.

        Raises:
            InvalidTokenError: If the token is not a valid refresh token or
                its user no longer exists
            AccountDisabledError: If the account is deactivated
        """
        user_id = self.token_service.subject_of(
            refresh_token, token_type=REFRESH_TOKEN_TYPE
        )
        user = await self._load_active_user(user_id)

        logger.info("tokens_refreshed", user_id=user.id)
        return self._build_auth_response(user)

    async def authenticate(self, access_token: str) -> User:
        """Resolve the user an access token was issued to.

        Raises:
            InvalidTokenError: If the token is not a valid access token or
                its user no longer exists
            AccountDisabledError: If the account is deactivated
        """
        user_id = self.token_service.subject_of(
            access_token, token_type=ACCESS_TOKEN_TYPE
        )
        return await self._load_active_user(user_id)

    async def _load_active_user(self, user_id: int) -> User:
        user = await self.user_service.get_by_id(user_id)
        if user is None:
            logger.info("token_rejected", reason="unknown_subject", user_id=user_id)
            raise InvalidTokenError()
        if not user.is_active:
            raise AccountDisabledError()
        return user

    def _build_auth_response(self, user: User) -> AuthResponse:
        """Issue a fresh access and refresh token pair for ``user``."""
        return AuthResponse(
            access_token=self.token_service.issue_access(user.id, user.username),
            refresh_token=self.token_service.issue_refresh(user.id),
            token_type="Bearer",
            expires_in=self.token_service.access_expires_in,
            user=UserResponse.from_user(user),
        )
