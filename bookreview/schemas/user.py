"""
User and Authentication Pydantic Schemas

Schemas:
- UserCreate: Registration data (email, password, optional name)
- LoginRequest: Email/password login
- RefreshTokenRequest: Refresh token for /auth/refresh and /auth/logout
- TokenResponse / AuthResponse: Issued token pairs
- UserSummary: Public user data (never exposes password or token digests)
- PasswordChange: Change password request

Validation is delegated to bookreview.utils.validators so the same rules
apply wherever the values come from.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from bookreview.utils.validators import (
    normalize_email,
    optional_text,
    validate_password,
)


class UserCreate(BaseModel):
    """
    Schema for user registration.

    Example request body:
    {
        "email": "john@example.com",
        "name": "John Doe",
        "password": "SecurePass123"
    }
    """

    email: EmailStr = Field(
        ...,
        description="User's email address (case-insensitive)",
        examples=["john@example.com"],
    )

    name: str | None = Field(
        default=None,
        max_length=100,
        description="User's display name",
        examples=["John Doe"],
    )

    password: str = Field(
        ...,
        description="Password (8-128 characters)",
        examples=["SecurePass123"],
    )

    @field_validator("email")
    @classmethod
    def email_to_lowercase(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("name")
    @classmethod
    def name_trimmed(cls, v: str | None) -> str | None:
        return optional_text(v)

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return validate_password(v)


class LoginRequest(BaseModel):
    """Schema for email/password login."""

    email: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Registered email address",
        examples=["john@example.com"],
    )
    password: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="Account password",
    )


class RefreshTokenRequest(BaseModel):
    """
    Schema carrying a refresh token.

    The token is optional at the schema level so that a missing token is
    reported by the auth service (MissingToken) rather than as a 422.
    """

    refresh_token: str | None = Field(
        default=None,
        description="Refresh token issued by register/login/refresh",
    )


class UserSummary(BaseModel):
    """
    Schema for user data returned by the API.

    SECURITY: Never includes password hash or refresh token digest.
    """

    id: int = Field(..., description="Unique user identifier", examples=[1])
    name: str | None = Field(default=None, description="User's display name")
    email: str = Field(..., description="User's email address")

    model_config = ConfigDict(from_attributes=True)


class UserResponse(UserSummary):
    """Full profile of the authenticated user."""

    created_at: datetime = Field(..., description="When the user registered")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "name": "John Doe",
                "email": "john@example.com",
                "created_at": "2024-01-15T10:30:00Z",
            }
        },
    )


class TokenResponse(BaseModel):
    """Access/refresh token pair."""

    access_token: str = Field(..., description="Short-lived bearer token")
    refresh_token: str = Field(..., description="Rotating refresh token")
    token_type: str = Field(default="bearer", description="Always 'bearer'")
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class AuthResponse(TokenResponse):
    """Token pair plus the user it was issued to (register/login)."""

    user: UserSummary = Field(..., description="Authenticated user")


class MessageResponse(BaseModel):
    message: str


class PasswordChange(BaseModel):
    """Schema for password change request."""

    current_password: str = Field(
        ...,
        min_length=1,
        description="Current password for verification",
    )

    new_password: str = Field(
        ...,
        description="New password (8-128 characters)",
    )

    @field_validator("new_password")
    @classmethod
    def new_password_length(cls, v: str) -> str:
        return validate_password(v)
