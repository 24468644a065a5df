"""
Token Service

Issues and verifies the signed JWTs used for authentication.

Token Types:
============
- access: short-lived (15 min default), sent as "Authorization: Bearer"
- refresh: longer-lived (7 days default), exchanged at /auth/refresh for a
  new pair. Only the latest refresh token of a user is valid; that rule is
  enforced by services.auth against the digest stored on the user.

Both carry {sub, email, type, jti, iat, exp}. "type" stops a refresh token
from being used as an access token and vice versa. "jti" is a random nonce,
so two tokens issued in the same second are still different.

The signing key is handed to TokenService explicitly. get_token_service()
builds the process-wide instance from settings once.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache

from jose import JWTError, jwt

from bookreview.config import get_settings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class AuthIdentity:
    """The authenticated caller, as encoded in a verified token."""

    user_id: int
    email: str


class TokenService:
    """
    Create and verify access/refresh JWTs with a fixed signing key.

    Usage:
        service = TokenService(secret_key=settings.secret_key)
        pair = service.issue(user.id, user.email)
        identity = service.verify_access_token(pair.access_token)
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_token_ttl: timedelta = timedelta(minutes=15),
        refresh_token_ttl: timedelta = timedelta(days=7),
    ) -> None:
        if not secret_key:
            raise ValueError("A signing key is required")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.access_token_ttl = access_token_ttl
        self.refresh_token_ttl = refresh_token_ttl

    @property
    def access_token_expires_in(self) -> int:
        """Access token lifetime in seconds."""
        return int(self.access_token_ttl.total_seconds())

    # -------------------------------------------------------------------------
    # Issuing
    # -------------------------------------------------------------------------
    def _encode(
        self,
        user_id: int,
        email: str,
        token_type: str,
        lifetime: timedelta,
    ) -> str:
        now = datetime.now(UTC)
        claims = {
            "sub": str(user_id),
            "email": email,
            "type": token_type,
            "jti": secrets.token_hex(16),
            "iat": now,
            "exp": now + lifetime,
        }
        return jwt.encode(claims, self._secret_key, algorithm=self.algorithm)

    def create_access_token(
        self,
        user_id: int,
        email: str,
        expires_delta: timedelta | None = None,
    ) -> str:
        return self._encode(
            user_id, email, ACCESS_TOKEN_TYPE, expires_delta or self.access_token_ttl
        )

    def create_refresh_token(
        self,
        user_id: int,
        email: str,
        expires_delta: timedelta | None = None,
    ) -> str:
        return self._encode(
            user_id, email, REFRESH_TOKEN_TYPE, expires_delta or self.refresh_token_ttl
        )

    def issue(self, user_id: int, email: str) -> TokenPair:
        """Create a fresh access/refresh pair for a user."""
        return TokenPair(
            access_token=self.create_access_token(user_id, email),
            refresh_token=self.create_refresh_token(user_id, email),
        )

    # -------------------------------------------------------------------------
    # Verification
    # -------------------------------------------------------------------------
    def decode(self, token: str) -> dict | None:
        """
        Decode and validate a JWT (signature and expiry).

        Returns:
            Decoded payload if valid, None if invalid or expired
        """
        try:
            return jwt.decode(token, self._secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning(f"JWT decode error: {e}")
            return None

    def verify(self, token: str, expected_type: str) -> AuthIdentity | None:
        """
        Decode a token, check its type and extract the identity.

        Returns:
            AuthIdentity if the token is valid and of the expected type,
            None otherwise
        """
        payload = self.decode(token)
        if payload is None:
            return None

        if payload.get("type") != expected_type:
            logger.warning(f"Token type mismatch: expected {expected_type}")
            return None

        email = payload.get("email")
        try:
            user_id = int(payload.get("sub"))
        except (TypeError, ValueError):
            logger.warning("Token has no usable subject")
            return None
        if not isinstance(email, str):
            return None

        return AuthIdentity(user_id=user_id, email=email)

    def verify_access_token(self, token: str) -> AuthIdentity | None:
        return self.verify(token, ACCESS_TOKEN_TYPE)

    def verify_refresh_token(self, token: str) -> AuthIdentity | None:
        return self.verify(token, REFRESH_TOKEN_TYPE)


@lru_cache
def get_token_service() -> TokenService:
    """Process-wide TokenService configured from settings."""
    settings = get_settings()
    return TokenService(
        secret_key=settings.secret_key,
        algorithm=settings.jwt_algorithm,
        access_token_ttl=timedelta(minutes=settings.access_token_expire_minutes),
        refresh_token_ttl=timedelta(days=settings.refresh_token_expire_days),
    )
