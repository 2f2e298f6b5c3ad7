"""
Authentication error hierarchy.

Services raise these; route handlers translate them to HTTP responses.
The message is safe to show to the client. Anything more specific (which
check failed, which family was revoked) goes to the server log only.
"""


class AuthError(Exception):
    """Base class for authentication failures."""

    default_message = "Authentication failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidCredentialError(AuthError):
    """Unknown, reused, revoked or transplanted credential, or a bad password."""

    default_message = "Invalid refresh token"


class ExpiredCredentialError(AuthError):
    """The refresh token family reached its absolute expiry."""

    default_message = "Refresh token expired"


class AccountExistsError(AuthError):
    """An account with this e-mail address already exists."""

    default_message = "Email already exists"


class AccountCreationError(AuthError):
    """The account could not be created (e.g. password policy)."""

    default_message = "Account creation failed"
