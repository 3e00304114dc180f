"""
Domain exceptions - Semantic error types for account authentication.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
"""


class AuthError(Exception):
    """Base class for account authentication domain errors."""

    pass


class InvalidRequestError(AuthError):
    """A required input (email, password, name) is missing."""

    pass


class InvalidCredentialsError(AuthError):
    """
    Unknown email or password mismatch.

    Both cases share one message so callers cannot probe for account existence.
    """

    def __init__(self) -> None:
        super().__init__("Invalid email or password.")


class InvalidTokenError(AuthError):
    """No account holds the given API token."""

    def __init__(self, token: str) -> None:
        super().__init__("Invalid token.")
        self.token = token


class NotFoundError(AuthError):
    """No account matches the switch-site token within its freshness window."""

    def __init__(self, token: str) -> None:
        super().__init__(f"No account found for switch site token {token!r}")
        self.token = token


class InvariantViolationError(AuthError):
    """Removal would leave a site without any administrator."""

    def __init__(self, site_id: str, message: str = "cannot remove last administrator") -> None:
        super().__init__(message)
        self.site_id = site_id


class PersistenceError(AuthError):
    """The storage collaborator failed."""

    pass
