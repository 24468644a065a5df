"""
Application Errors

Domain services raise these exceptions; the handlers registered in
main.create_app() turn them into JSON responses of the form
{"detail": "<message>"} with the matching status code.

Taxonomy:
- ValidationError (400): malformed or missing input
- Conflict (409): duplicate email, ISBN or review
- NotFound (404)
- Unauthorized (401) / Forbidden (403): authentication and ownership failures
- InternalError (500): store or unexpected failure

Messages never carry internal details (SQL, stack traces, token contents).
"""

from fastapi import status


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "An internal error occurred."
    headers: dict[str, str] | None = None

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


# =============================================================================
# Input
# =============================================================================
class ValidationError(AppError, ValueError):
    """
    Caller-correctable input error.

    Also a ValueError, so a validator raising it inside a Pydantic
    field_validator is reported as a regular request validation error.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid input"


# =============================================================================
# Conflicts
# =============================================================================
class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    detail = "Resource already exists"


class DuplicateEmail(Conflict):
    detail = "Email already registered"


class DuplicateIsbn(Conflict):
    detail = "A book with this ISBN already exists"


class DuplicateReview(Conflict):
    detail = "You have already reviewed this book. You can update your existing review."


# =============================================================================
# Lookup
# =============================================================================
class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Resource not found"


# =============================================================================
# Authentication / Authorization
# =============================================================================
class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Could not validate credentials"
    headers = {"WWW-Authenticate": "Bearer"}


class InvalidCredentials(Unauthorized):
    # Same message for unknown email and wrong password
    detail = "Invalid credentials"


class MissingToken(Unauthorized):
    detail = "Refresh token required"


class InvalidToken(Unauthorized):
    # Same message for bad signature, expiry and superseded tokens
    detail = "Invalid refresh token"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "You do not have permission to perform this action"


# =============================================================================
# Internal
# =============================================================================
class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "An internal error occurred."
