"""Password hashing and verification with bcrypt."""

from functools import cached_property

import bcrypt


class PasswordHasher:
    """One-way, salted password hashing.

    Every call to ``hash`` draws a fresh salt, so hashing the same password
    twice yields two different digests that both verify.
    """

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain-text password to hash

        Returns:
            Bcrypt hash string
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @cached_property
    def dummy_hash(self) -> str:
        """A throwaway hash, checked against when no account matches."""
        return self.hash(bcrypt.gensalt().decode("utf-8"))

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against a bcrypt hash.

        Returns False for a mismatch and for a malformed hash.
        """
        try:
            return bcrypt.checkpw(
                password.encode("utf-8"),
                password_hash.encode("utf-8"),
            )
        except (ValueError, TypeError):
            return False
