"""User store backed by PostgreSQL."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import asyncpg
import structlog

from identity.database import get_pool
from identity.errors import DuplicateIdentityError, StoreUnavailableError
from identity.models.user import User, UserRecord, UserStatus

logger = structlog.get_logger(__name__)

USER_COLUMNS = """
    id, username, email, display_name, avatar, bio, status, custom_status,
    is_verified, is_active, created_at, updated_at, last_seen_at
"""

# Failures that mean the store itself is unreachable, as opposed to a query
# being rejected.
CONNECTIVITY_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    asyncpg.InterfaceError,
    asyncpg.PostgresConnectionError,
    asyncpg.CannotConnectNowError,
)


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        display_name=row["display_name"] or row["username"],
        avatar=row["avatar"],
        bio=row["bio"],
        status=UserStatus(row["status"]),
        custom_status=row["custom_status"],
        is_verified=row["is_verified"],
        is_active=row["is_active"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        last_seen_at=row["last_seen_at"],
    )


def _row_to_record(row) -> UserRecord:
    user = _row_to_user(row)
    return UserRecord(**user.model_dump(), password_hash=row["password_hash"])


class UserService:
    """Service for user persistence.

    An instance either acquires a pooled connection per call or, when created
    by ``transaction()``, runs every call on one connection inside an open
    transaction.
    """

    def __init__(self, conn: Optional[asyncpg.Connection] = None):
        self._conn = conn

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[asyncpg.Connection]:
        if self._conn is not None:
            yield self._conn
            return

        pool = await get_pool()
        try:
            async with pool.acquire() as conn:
                yield conn
        except CONNECTIVITY_ERRORS as e:
            logger.error("user_store_unavailable", error=str(e))
            raise StoreUnavailableError() from e

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["UserService"]:
        """Run a sequence of store calls atomically.

        Yields:
            A UserService bound to a single connection in a transaction.
            The transaction commits when the block exits normally and rolls
            back when it raises.
        """
        async with self._connection() as conn:
            async with conn.transaction():
                yield UserService(conn)

    async def exists_by_username(self, username: str) -> bool:
        """Check whether a username is taken."""
        async with self._connection() as conn:
            return await conn.fetchval(
                "SELECT EXISTS(SELECT 1 FROM users WHERE username = $1)",
                username,
            )

    async def exists_by_email(self, email: str) -> bool:
        """Check whether an email is taken."""
        async with self._connection() as conn:
            return await conn.fetchval(
                "SELECT EXISTS(SELECT 1 FROM users WHERE email = $1)",
                email,
            )

    async def create_user(
        self,
        username: str,
        email: str,
        password_hash: str,
        display_name: str,
        status: UserStatus = UserStatus.ONLINE,
    ) -> User:
        """Insert a new user. The store assigns id and timestamps.

        Args:
            username: Unique username
            email: Unique email
            password_hash: Bcrypt hash of the password
            display_name: User's display name
            status: Initial presence status

        Returns:
            Created User model

        Raises:
            DuplicateIdentityError: If username or email violates uniqueness
        """
        try:
            async with self._connection() as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO users (username, email, password_hash, display_name,
                                       status, is_verified, is_active)
                    VALUES ($1, $2, $3, $4, $5, FALSE, TRUE)
                    RETURNING {USER_COLUMNS}
                    """,
                    username,
                    email,
                    password_hash,
                    display_name,
                    status.value,
                )
        except asyncpg.UniqueViolationError as e:
            logger.info(
                "user_create_conflict",
                username=username,
                constraint=getattr(e, "constraint_name", None),
            )
            raise DuplicateIdentityError() from e

        user = _row_to_user(row)
        logger.info("user_created", user_id=user.id, username=user.username)
        return user

    async def get_by_identifier(self, identifier: str) -> Optional[UserRecord]:
        """Get a user whose username or email equals ``identifier``.

        Args:
            identifier: Username or email

        Returns:
            UserRecord including the password hash, or None if not found
        """
        async with self._connection() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {USER_COLUMNS}, password_hash
                FROM users
                WHERE username = $1 OR email = $1
                ORDER BY (username = $1) DESC
                LIMIT 1
                """,
                identifier,
            )

        if row is None:
            return None
        return _row_to_record(row)

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Get a user by id.

        Returns:
            User model or None if not found
        """
        async with self._connection() as conn:
            row = await conn.fetchrow(
                f"SELECT {USER_COLUMNS} FROM users WHERE id = $1",
                user_id,
            )

        if row is None:
            return None
        return _row_to_user(row)

    async def mark_online(self, user_id: int) -> Optional[User]:
        """Set status to ONLINE and stamp last_seen_at on an active account.

        Returns:
            Updated User model, or None if the user is missing or inactive
        """
        async with self._connection() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE users
                SET status = $1, last_seen_at = NOW(), updated_at = NOW()
                WHERE id = $2 AND is_active
                RETURNING {USER_COLUMNS}
                """,
                UserStatus.ONLINE.value,
                user_id,
            )

        if row is None:
            return None
        return _row_to_user(row)

    async def set_active(self, user_id: int, is_active: bool) -> Optional[User]:
        """Activate or deactivate an account. Accounts are never deleted.

        Returns:
            Updated User model, or None if user not found
        """
        async with self._connection() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE users
                SET is_active = $1, updated_at = NOW()
                WHERE id = $2
                RETURNING {USER_COLUMNS}
                """,
                is_active,
                user_id,
            )

        if row is None:
            logger.warning("user_set_active_not_found", user_id=user_id)
            return None

        logger.info("user_active_changed", user_id=user_id, is_active=is_active)
        return _row_to_user(row)
