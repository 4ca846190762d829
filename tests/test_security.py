"""Tests for password hashing and session token issue/validation."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt

from brote.core.security import (
    InvalidSignatureError,
    MalformedTokenError,
    TokenExpiredError,
    TokenService,
    compare_passwords,
    generate_salt,
    hash_password,
)
from tests.support import TEST_JWT_SECRET


class TestPasswordHashing(unittest.TestCase):
    """Argon2id hashing with a per-user salt."""

    def test_salt_is_32_hex_chars_and_random(self) -> None:
        a, b = generate_salt(), generate_salt()
        self.assertEqual(len(a), 32)
        bytes.fromhex(a)
        self.assertNotEqual(a, b)

    def test_same_password_and_salt_give_same_hash(self) -> None:
        salt = generate_salt()
        self.assertEqual(hash_password("s3cret-pass", salt), hash_password("s3cret-pass", salt))

    def test_different_salts_give_different_hashes(self) -> None:
        self.assertNotEqual(
            hash_password("s3cret-pass", generate_salt()),
            hash_password("s3cret-pass", generate_salt()),
        )

    def test_hash_is_32_bytes_hex(self) -> None:
        self.assertEqual(len(hash_password("s3cret-pass", generate_salt())), 64)

    def test_compare_accepts_correct_and_rejects_wrong_password(self) -> None:
        salt = generate_salt()
        stored = hash_password("s3cret-pass", salt)
        self.assertTrue(compare_passwords(stored, "s3cret-pass", salt))
        self.assertFalse(compare_passwords(stored, "s3cret-pasS", salt))

    def test_malformed_stored_hash_is_a_mismatch(self) -> None:
        self.assertFalse(compare_passwords("not-hex", "whatever1", generate_salt()))
        self.assertFalse(compare_passwords("00" * 32, "whatever1", "zz"))


class TestTokenService(unittest.TestCase):
    """Issue and validate HS256 session tokens."""

    def setUp(self) -> None:
        self.service = TokenService(TEST_JWT_SECRET)

    def test_round_trip_carries_identity_claims(self) -> None:
        token = self.service.issue_token(7, "alice", "Alice Liddell", "admin")
        claims = self.service.validate_token(token)
        self.assertEqual(claims.user_id, 7)
        self.assertEqual(claims.user_name, "alice")
        self.assertEqual(claims.real_name, "Alice Liddell")
        self.assertEqual(claims.role, "admin")

    def test_expiry_is_180_days_after_issue(self) -> None:
        now = datetime.now(UTC).replace(microsecond=0)
        token = self.service.issue_token(1, "bob", "", "user", now=now)
        claims = self.service.validate_token(token)
        self.assertEqual(claims.exp, int((now + timedelta(days=180)).timestamp()))

    def test_expired_token_is_rejected(self) -> None:
        issued = datetime.now(UTC) - timedelta(days=181)
        token = self.service.issue_token(1, "bob", "", "user", now=issued)
        with self.assertRaises(TokenExpiredError):
            self.service.validate_token(token)

    def test_token_signed_with_other_secret_is_rejected(self) -> None:
        other = TokenService("another-secret-that-is-also-long-enough!!")
        token = other.issue_token(1, "bob", "", "admin")
        with self.assertRaises(InvalidSignatureError):
            self.service.validate_token(token)

    def test_garbage_is_malformed(self) -> None:
        with self.assertRaises(MalformedTokenError):
            self.service.validate_token("not.a.token")

    def test_missing_role_claim_is_malformed(self) -> None:
        exp = int((datetime.now(UTC) + timedelta(days=1)).timestamp())
        token = jwt.encode({"user_id": 1, "exp": exp}, TEST_JWT_SECRET, algorithm="HS256")
        with self.assertRaises(MalformedTokenError):
            self.service.validate_token(token)

    def test_empty_secret_is_refused(self) -> None:
        with self.assertRaises(ValueError):
            TokenService("")


if __name__ == "__main__":
    unittest.main()
