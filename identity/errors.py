"""Domain errors raised by the identity core.

Each error carries the HTTP status and a stable error code so the API layer
can render it without knowing which service raised it. Messages are safe to
return to clients.
"""


class IdentityError(Exception):
    """Base class for all identity service errors."""

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateIdentityError(IdentityError):
    """Raised when a username or email is already registered."""

    status_code = 409
    error_code = "DUPLICATE_IDENTITY"
    default_message = "Username or email already exists"


class InvalidCredentialsError(IdentityError):
    """Raised for an unknown identifier or a wrong password.

    Both cases share this error and its message.
    """

    status_code = 401
    error_code = "INVALID_CREDENTIALS"
    default_message = "Invalid credentials"


class AccountDisabledError(IdentityError):
    """Raised when valid credentials belong to a deactivated account."""

    status_code = 403
    error_code = "ACCOUNT_DISABLED"
    default_message = "Account is disabled"


class InvalidTokenError(IdentityError):
    """Raised when a token fails signature, expiry, type or subject checks."""

    status_code = 401
    error_code = "INVALID_TOKEN"
    default_message = "Invalid or expired token"


class StoreUnavailableError(IdentityError):
    """Raised when the user store cannot be reached."""

    status_code = 503
    error_code = "STORE_UNAVAILABLE"
    default_message = "User store is unavailable"
