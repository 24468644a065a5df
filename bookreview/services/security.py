"""
Security Service

Password hashing and refresh-token digests.

Security Features:
==================
1. Password hashing with bcrypt (passlib): salted, so hashing the same
   password twice gives two different hashes; verification is the only way
   to compare
2. Refresh tokens are stored as SHA-256 digests, never as the raw token
3. Constant-time comparisons for both

Usage:
    from bookreview.services.security import hash_password, verify_password

    hashed = hash_password("SecurePass123")
    is_valid = verify_password("SecurePass123", hashed)
"""

import hashlib
import hmac

from passlib.context import CryptContext

# -------------------------------------------------------------------------
# Password Hashing Configuration
# -------------------------------------------------------------------------
# - schemes: bcrypt only
# - deprecated: "auto" means old hashes are automatically upgraded
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Hash a plain text password using bcrypt.

    Example:
        >>> hashed = hash_password("SecurePass123")
        >>> hashed.startswith("$2b$")
        True
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Example:
        >>> hashed = hash_password("SecurePass123")
        >>> verify_password("SecurePass123", hashed)
        True
        >>> verify_password("WrongPassword", hashed)
        False
    """
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify() -> None:
    """
    Spend the time of a real bcrypt verification.

    Called when a login names an unknown email, so response timing does not
    reveal which emails are registered.
    """
    pwd_context.dummy_verify()


# -------------------------------------------------------------------------
# Refresh Token Digests
# -------------------------------------------------------------------------
def hash_token(token: str) -> str:
    """
    Hash a refresh token using SHA-256.

    Returns:
        SHA-256 hex digest (64 characters)
    """
    return hashlib.sha256(token.encode()).hexdigest()


def token_matches(token: str, stored_hash: str | None) -> bool:
    """Check a presented token against the stored digest."""
    if stored_hash is None:
        return False
    return hmac.compare_digest(hash_token(token), stored_hash)
