"""
Pydantic Schemas Package

Schema Naming Convention:
- XxxCreate: Fields required when creating a new record
- XxxUpdate: Fields allowed when updating (all optional)
- XxxResponse: Fields returned in API responses
- XxxListResponse: Paginated list of XxxResponse
"""

from bookreview.schemas.user import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    PasswordChange,
    RefreshTokenRequest,
    TokenResponse,
    UserCreate,
    UserResponse,
    UserSummary,
)
from bookreview.schemas.review import (
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdate,
)
from bookreview.schemas.book import (
    BookBase,
    BookCreate,
    BookDetailResponse,
    BookListResponse,
    BookRatingStats,
    BookResponse,
    BookUpdate,
)

__all__ = [
    # User / auth schemas
    "UserCreate",
    "UserResponse",
    "UserSummary",
    "PasswordChange",
    "LoginRequest",
    "RefreshTokenRequest",
    "TokenResponse",
    "AuthResponse",
    "MessageResponse",
    # Review schemas
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewResponse",
    "ReviewListResponse",
    # Book schemas
    "BookBase",
    "BookCreate",
    "BookUpdate",
    "BookResponse",
    "BookListResponse",
    "BookDetailResponse",
    "BookRatingStats",
]
