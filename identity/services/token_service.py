"""Stateless JWT issuance and verification for access and refresh tokens."""

from datetime import datetime, timezone
from typing import Any, Optional

import jwt
import structlog

from identity.config import TokenSettings
from identity.errors import InvalidTokenError

logger = structlog.get_logger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenService:
    """Signs and verifies tokens with a single symmetric key.

    Access and refresh tokens share the key and algorithm. They differ in
    lifetime and claims: only access tokens carry ``username``. Nothing is
    stored server-side, so a token stays valid until it expires.
    """

    def __init__(self, settings: TokenSettings):
        self._settings = settings

    @property
    def access_expires_in(self) -> int:
        """Access token lifetime in whole seconds."""
        return int(self._settings.access_ttl.total_seconds())

    def issue_access(self, user_id: int, username: str) -> str:
        """Create a signed access token.

        Args:
            user_id: Numeric user id (placed in 'sub' as a string)
            username: Username claim

        Returns:
            Encoded JWT string
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "username": username,
            "type": ACCESS_TOKEN_TYPE,
            "iat": now,
            "exp": now + self._settings.access_ttl,
        }
        token = self._encode(payload)
        logger.debug("access_token_issued", user_id=user_id)
        return token

    def issue_refresh(self, user_id: int) -> str:
        """Create a signed refresh token (no username claim)."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "type": REFRESH_TOKEN_TYPE,
            "iat": now,
            "exp": now + self._settings.refresh_ttl,
        }
        token = self._encode(payload)
        logger.debug("refresh_token_issued", user_id=user_id)
        return token

    def decode(self, token: str, token_type: Optional[str] = None) -> dict[str, Any]:
        """Verify signature and expiry and return the claims.

        Args:
            token: Encoded JWT string
            token_type: If given, the 'type' claim must equal it

        Raises:
            InvalidTokenError: If the token is expired, mis-signed, malformed
                or of the wrong type
        """
        try:
            claims = jwt.decode(
                token,
                self._settings.secret,
                algorithms=[self._settings.algorithm],
                options={"require": ["sub", "exp", "iat", "type"]},
            )
        except jwt.InvalidTokenError as e:
            logger.info("token_rejected", reason=type(e).__name__)
            raise InvalidTokenError() from e

        if token_type is not None and claims.get("type") != token_type:
            logger.info(
                "token_rejected",
                reason="wrong_type",
                expected=token_type,
                actual=claims.get("type"),
            )
            raise InvalidTokenError()

        return claims

    def subject_of(self, token: str, token_type: Optional[str] = None) -> int:
        """Return the user id a valid token was issued for.

        Raises:
            InvalidTokenError: If verification fails or 'sub' is not an integer
        """
        claims = self.decode(token, token_type)
        try:
            return int(claims["sub"])
        except (TypeError, ValueError) as e:
            logger.info("token_rejected", reason="bad_subject")
            raise InvalidTokenError() from e

    def is_valid(self, token: str, token_type: Optional[str] = None) -> bool:
        """Non-raising check: True if ``subject_of`` would succeed."""
        try:
            self.subject_of(token, token_type)
        except InvalidTokenError:
            return False
        return True

    def _encode(self, payload: dict[str, Any]) -> str:
        return jwt.encode(
            payload,
            self._settings.secret,
            algorithm=self._settings.algorithm,
        )
