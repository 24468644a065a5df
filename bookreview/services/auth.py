"""
Authentication Service

Credential handling and session lifecycle.

Flows:
======
- register: create user with a bcrypt hash, start a session
- login: verify credentials, start a session (rotates the refresh token)
- refresh: exchange the current refresh token for a new pair
- logout: end the session (best-effort, never fails for bad tokens)
- require_auth: validate an access token and return the caller's identity
- change_password: re-hash and end the current session

Single Active Session:
======================
The user row stores the digest of the latest refresh token. Every new
session or refresh overwrites it, so older refresh tokens stop working even
while their signatures are still valid. Rotation on refresh is one
conditional UPDATE (compare-and-swap on the stored digest): when two
requests present the same token concurrently, only one of them rotates it.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookreview.exceptions import (
    DuplicateEmail,
    InvalidCredentials,
    InvalidToken,
    MissingToken,
    Unauthorized,
)
from bookreview.models.user import User
from bookreview.services.security import (
    dummy_verify,
    hash_password,
    hash_token,
    token_matches,
    verify_password,
)
from bookreview.services.tokens import AuthIdentity, TokenPair, TokenService
from bookreview.utils.validators import normalize_email, validate_password

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    """Outcome of register/login: the new token pair and the user."""

    tokens: TokenPair
    user: User


# =============================================================================
# Lookups
# =============================================================================
def get_user_by_email(db: Session, email: str) -> User | None:
    stmt = select(User).where(func.lower(User.email) == normalize_email(email))
    return db.execute(stmt).scalar_one_or_none()


def get_authenticated_user(db: Session, identity: AuthIdentity) -> User:
    """
    Load the user behind a verified identity.

    Raises:
        Unauthorized: if the account no longer exists
    """
    user = db.get(User, identity.user_id)
    if user is None:
        raise Unauthorized()
    return user


# =============================================================================
# Credential Store
# =============================================================================
def authenticate(db: Session, email: str, password: str) -> User:
    """
    Verify an email/password pair.

    Unknown email and wrong password raise the same error, so callers
    cannot probe which emails are registered.

    Raises:
        InvalidCredentials: if the credentials don't match a user
    """
    user = get_user_by_email(db, email)

    if user is None:
        dummy_verify()
        logger.warning(f"Login failed: user not found for {normalize_email(email)}")
        raise InvalidCredentials()

    if not verify_password(password, user.hashed_password):
        logger.warning(f"Login failed: incorrect password for {user.email}")
        raise InvalidCredentials()

    return user


def _start_session(db: Session, tokens: TokenService, user: User) -> TokenPair:
    """Issue a pair and make its refresh token the user's only valid one."""
    pair = tokens.issue(user.id, user.email)
    user.refresh_token_hash = hash_token(pair.refresh_token)
    db.commit()
    db.refresh(user)
    return pair


def register(
    db: Session,
    tokens: TokenService,
    email: str,
    name: str | None,
    password: str,
) -> AuthResult:
    """
    Register a new user and log them in.

    1. Normalizes the email (case-insensitive uniqueness)
    2. Checks for a duplicate email
    3. Hashes the password with bcrypt
    4. Creates the user and starts a session

    Raises:
        DuplicateEmail: if the email is already registered
        ValidationError: if the password does not meet the length policy
    """
    email = normalize_email(email)
    validate_password(password)

    if get_user_by_email(db, email) is not None:
        logger.info(f"Registration rejected, email already registered: {email}")
        raise DuplicateEmail()

    user = User(
        email=email,
        name=name,
        hashed_password=hash_password(password),
    )
    db.add(user)

    try:
        db.flush()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        db.rollback()
        raise DuplicateEmail() from None

    pair = _start_session(db, tokens, user)

    logger.info(f"New user registered: {user.email}")

    return AuthResult(tokens=pair, user=user)


def login(db: Session, tokens: TokenService, email: str, password: str) -> AuthResult:
    """
    Authenticate and start a new session.

    Any refresh token issued before this login is invalidated.

    Raises:
        InvalidCredentials: if the email/password pair is wrong
    """
    user = authenticate(db, email, password)
    pair = _start_session(db, tokens, user)

    logger.info(f"User logged in: {user.email}")

    return AuthResult(tokens=pair, user=user)


def change_password(
    db: Session,
    user: User,
    current_password: str,
    new_password: str,
) -> None:
    """
    Replace a user's password.

    The current session is ended; the user has to log in again.

    Raises:
        InvalidCredentials: if current_password is wrong
    """
    if not verify_password(current_password, user.hashed_password):
        logger.warning(f"Password change failed: incorrect password for {user.email}")
        raise InvalidCredentials("Current password is incorrect")

    validate_password(new_password)
    user.hashed_password = hash_password(new_password)
    user.refresh_token_hash = None
    db.commit()

    logger.info(f"Password changed for user: {user.email}")


# =============================================================================
# Token Rotation
# =============================================================================
def refresh(db: Session, tokens: TokenService, refresh_token: str | None) -> TokenPair:
    """
    Exchange the current refresh token for a new access/refresh pair.

    Raises:
        MissingToken: if no token was presented
        InvalidToken: if the token fails verification, its user is gone,
            or it is not the user's current refresh token
    """
    if not refresh_token or not refresh_token.strip():
        raise MissingToken()

    identity = tokens.verify_refresh_token(refresh_token)
    if identity is None:
        raise InvalidToken()

    user = db.get(User, identity.user_id)
    if user is None or not token_matches(refresh_token, user.refresh_token_hash):
        logger.warning(f"Refresh rejected for user id {identity.user_id}: token is not current")
        raise InvalidToken()

    pair = tokens.issue(user.id, user.email)

    stmt = (
        update(User)
        .where(
            User.id == user.id,
            User.refresh_token_hash == hash_token(refresh_token),
        )
        .values(refresh_token_hash=hash_token(pair.refresh_token))
    )
    result = db.execute(stmt)

    if result.rowcount != 1:
        # Another request rotated the same token first
        logger.warning(f"Refresh rejected for user id {user.id}: concurrent rotation")
        raise InvalidToken()

    db.commit()

    logger.info(f"Token refreshed for user id {identity.user_id}")

    return pair


def logout(db: Session, tokens: TokenService, refresh_token: str | None) -> None:
    """
    End the session belonging to a refresh token.

    Best-effort: a missing, invalid, expired or superseded token is not an
    error, because the caller ends up without a valid session either way.
    Only the session the token belongs to is cleared.
    """
    if not refresh_token:
        return

    identity = tokens.verify_refresh_token(refresh_token)
    if identity is None:
        logger.info("Logout with an invalid or expired refresh token; nothing to clear")
        return

    stmt = (
        update(User)
        .where(
            User.id == identity.user_id,
            User.refresh_token_hash == hash_token(refresh_token),
        )
        .values(refresh_token_hash=None)
    )
    result = db.execute(stmt)
    db.commit()

    if result.rowcount:
        logger.info(f"User logged out: id {identity.user_id}")
    else:
        logger.info(f"Logout for user id {identity.user_id} with a superseded token; nothing to clear")


# =============================================================================
# Auth Guard
# =============================================================================
def require_auth(tokens: TokenService, bearer_token: str | None) -> AuthIdentity:
    """
    Validate an access token and return the caller's identity.

    No database access: the identity is exactly what the token encodes.

    Raises:
        Unauthorized: if the token is missing, malformed, expired,
            badly signed or not an access token
    """
    if not bearer_token:
        raise Unauthorized()

    identity = tokens.verify_access_token(bearer_token)
    if identity is None:
        raise Unauthorized()

    return identity
