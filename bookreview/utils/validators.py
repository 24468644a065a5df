"""
Input Validators

Plain functions that normalize a value or raise ValidationError.

They run before anything touches the database: the Pydantic schemas call
them from field validators (so bad request bodies become 422 responses),
and services call them directly for values that arrive outside a schema,
such as query parameters.
"""

import re

from bookreview.exceptions import ValidationError

ISBN_PATTERN = re.compile(r"^\d{13}$")

MIN_RATING = 1.0
MAX_RATING = 5.0

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128


def normalize_email(email: str) -> str:
    """Trim and lower-case an email so uniqueness is case-insensitive."""
    return email.strip().lower()


def validate_password(password: str) -> str:
    """Check password length. The value is returned untouched."""
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
        )
    if len(password) > PASSWORD_MAX_LENGTH:
        raise ValidationError(
            f"Password must be at most {PASSWORD_MAX_LENGTH} characters long"
        )
    return password


def validate_isbn(isbn: str) -> str:
    """
    Validate an ISBN.

    Only the 13-digit form is accepted, without hyphens or spaces.

    >>> validate_isbn(" 9780451524935 ")
    '9780451524935'
    """
    cleaned = isbn.strip()
    if not ISBN_PATTERN.match(cleaned):
        raise ValidationError("ISBN must be exactly 13 digits")
    return cleaned


def require_text(value: str, field: str) -> str:
    """Trim a required string, rejecting blank values."""
    cleaned = value.strip()
    if not cleaned:
        raise ValidationError(f"{field} cannot be empty or whitespace")
    return cleaned


def optional_text(value: str | None) -> str | None:
    """Trim an optional string; blank becomes None."""
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def validate_rating(rating: float) -> float:
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError("Rating must be a number between 1 and 5")
    return float(rating)


def validate_comment(comment: str) -> str:
    cleaned = comment.strip()
    if not cleaned:
        raise ValidationError("Comment is required")
    return cleaned


def validate_search_query(q: str | None) -> str:
    """Search terms are required and must not be blank."""
    if q is None:
        raise ValidationError("Query 'q' is required")
    cleaned = q.strip()
    if not cleaned:
        raise ValidationError("Query cannot be empty")
    return cleaned


def escape_like(term: str, escape: str = "\\") -> str:
    """
    Escape LIKE wildcards so user input is matched literally.

    >>> escape_like("100%_sure")
    '100\\\\%\\\\_sure'
    """
    return (
        term.replace(escape, escape * 2)
        .replace("%", f"{escape}%")
        .replace("_", f"{escape}_")
    )
