"""
Authentication Router

Handles user authentication endpoints:
- Registration (email/password → token pair)
- Login (email/password → token pair)
- Token refresh (refresh token → new token pair, old one revoked)
- Logout (end the session the refresh token belongs to)
- Get current user (from the access token)

Security:
=========
- Passwords are hashed with bcrypt before storage
- Plain text passwords and tokens are never logged or stored
- Access tokens are short-lived (15 min default)
- Refresh tokens are longer-lived (7 days default) and single-use:
  each register/login/refresh replaces the user's previous one
"""

from fastapi import APIRouter, Request, status

from bookreview.config import get_settings
from bookreview.dependencies import CurrentUser, DbSession, Tokens
from bookreview.schemas.user import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    RefreshTokenRequest,
    TokenResponse,
    UserCreate,
    UserResponse,
    UserSummary,
)
from bookreview.services import auth as auth_service
from bookreview.services.auth import AuthResult
from bookreview.services.rate_limiter import limiter
from bookreview.services.tokens import TokenService

settings = get_settings()

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        401: {"description": "Unauthorized"},
    },
)


def build_auth_response(result: AuthResult, tokens: TokenService) -> AuthResponse:
    return AuthResponse(
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
        expires_in=tokens.access_token_expires_in,
        user=UserSummary.model_validate(result.user),
    )


# -------------------------------------------------------------------------
# Registration Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="""
    Create a new user account and log it in.

    **Password Requirements:**
    - 8 to 128 characters

    Emails are case-insensitive: `John@Example.com` and `john@example.com`
    are the same account.
    """,
    responses={409: {"description": "Email already registered"}},
)
@limiter.limit(settings.rate_limit_auth)
def register(
    request: Request,
    user_data: UserCreate,
    db: DbSession,
    tokens: Tokens,
) -> AuthResponse:
    """
    Register a new user with email and password.

    1. Validates email and password format (handled by Pydantic)
    2. Checks for a duplicate email
    3. Hashes the password and creates the user
    4. Returns a token pair and the user summary
    """
    result = auth_service.register(
        db,
        tokens,
        email=user_data.email,
        name=user_data.name,
        password=user_data.password,
    )
    return build_auth_response(result, tokens)


# -------------------------------------------------------------------------
# Login Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login with email and password",
    description="""
    Authenticate with email and password to receive a token pair.

    **Returns:**
    - `access_token`: Short-lived token for API authentication
    - `refresh_token`: Exchange it at `/auth/refresh` for a new pair
    - `expires_in`: Access token lifetime in seconds

    Logging in invalidates any refresh token issued earlier.

    **Usage:**
    ```
    Authorization: Bearer <access_token>
    ```
    """,
)
@limiter.limit(settings.rate_limit_auth)
def login(
    request: Request,
    credentials: LoginRequest,
    db: DbSession,
    tokens: Tokens,
) -> AuthResponse:
    result = auth_service.login(db, tokens, credentials.email, credentials.password)
    return build_auth_response(result, tokens)


# -------------------------------------------------------------------------
# Token Refresh Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh tokens",
    description="""
    Exchange the current refresh token for a new access/refresh pair.

    The presented refresh token stops working immediately; a token that was
    already exchanged (or superseded by a later login) is rejected.
    """,
)
@limiter.limit(settings.rate_limit_auth)
def refresh_token(
    request: Request,
    db: DbSession,
    tokens: Tokens,
    body: RefreshTokenRequest | None = None,
) -> TokenResponse:
    pair = auth_service.refresh(db, tokens, body.refresh_token if body else None)

    return TokenResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        expires_in=tokens.access_token_expires_in,
    )


# -------------------------------------------------------------------------
# Logout Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout user",
    description="""
    End the session that the refresh token belongs to.

    Always succeeds. An expired, invalid or already-superseded refresh token
    changes nothing. Access tokens stay valid until they expire.
    """,
)
@limiter.limit(settings.rate_limit_default)
def logout(
    request: Request,
    db: DbSession,
    tokens: Tokens,
    body: RefreshTokenRequest | None = None,
) -> MessageResponse:
    auth_service.logout(db, tokens, body.refresh_token if body else None)
    return MessageResponse(message="Logged out successfully")


# -------------------------------------------------------------------------
# Get Current User Endpoint
# -------------------------------------------------------------------------
@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    description="""
    Get the currently authenticated user's profile.

    Requires a valid access token in the Authorization header:
    ```
    Authorization: Bearer <access_token>
    ```
    """,
)
def get_me(current_user: CurrentUser) -> UserResponse:
    return UserResponse.model_validate(current_user)
