from abc import ABC


class UserError(ABC, Exception):
    """Base class for errors whose message is shown to the client.

    Each subclass carries the HTTP status and machine-readable type the web
    layer answers with. Messages must not leak sensitive information.
    """

    status_code: int = 400
    error_type: str = "bad_request"


class NotFoundError(UserError):
    """A user, category, transaction or session does not exist."""

    status_code = 404
    error_type = "not_found"

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Missing, invalid or expired credentials."""

    status_code = 401
    error_type = "authentication_error"

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Authenticated, but the resource belongs to someone else or needs admin."""

    status_code = 403
    error_type = "access_denied"

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message)


class ValidationError(UserError):
    """Raised when user input fails validation."""

    error_type = "validation_error"
