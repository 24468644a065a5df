"""
Tests for password hashing and refresh-token digests.
"""

from bookreview.services.security import (
    hash_password,
    hash_token,
    token_matches,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_is_not_plaintext(self):
        hashed = hash_password("SecurePass123")

        assert hashed != "SecurePass123"
        assert hashed.startswith("$2b$")

    def test_same_password_hashes_differently(self):
        """Salted: equality can only be tested through verification."""
        first = hash_password("SecurePass123")
        second = hash_password("SecurePass123")

        assert first != second
        assert verify_password("SecurePass123", first)
        assert verify_password("SecurePass123", second)

    def test_verify_rejects_other_passwords(self):
        hashed = hash_password("SecurePass123")

        assert not verify_password("SecurePass124", hashed)
        assert not verify_password("", hashed)


class TestTokenDigest:
    def test_digest_is_stable(self):
        assert hash_token("abc") == hash_token("abc")
        assert len(hash_token("abc")) == 64

    def test_token_matches(self):
        stored = hash_token("refresh-token-value")

        assert token_matches("refresh-token-value", stored)
        assert not token_matches("another-token", stored)

    def test_token_matches_without_stored_session(self):
        assert not token_matches("refresh-token-value", None)
