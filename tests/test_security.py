"""Unit tests for app.core.security: bcrypt hashing and session token generation."""

import unittest

from support import TEST_BCRYPT_ROUNDS

from app.core.security import (
    dummy_password_hash,
    generate_session_token,
    hash_password,
    normalize_email,
    verify_password,
)


class TestPasswordHashing(unittest.TestCase):
    """hash_password produces salted bcrypt hashes that verify_password accepts."""

    def test_roundtrip(self) -> None:
        hashed = hash_password("admin123", rounds=TEST_BCRYPT_ROUNDS)
        self.assertTrue(verify_password("admin123", hashed))
        self.assertFalse(verify_password("admin124", hashed))

    def test_hash_is_salted(self) -> None:
        a = hash_password("same", rounds=TEST_BCRYPT_ROUNDS)
        b = hash_password("same", rounds=TEST_BCRYPT_ROUNDS)
        self.assertNotEqual(a, b)
        self.assertNotIn("same", a)

    def test_cost_is_encoded_in_hash(self) -> None:
        hashed = hash_password("x", rounds=TEST_BCRYPT_ROUNDS)
        self.assertTrue(hashed.startswith("$2b$04$"))

    def test_malformed_hash_does_not_verify(self) -> None:
        self.assertFalse(verify_password("admin123", "not-a-bcrypt-hash"))
        self.assertFalse(verify_password("admin123", ""))

    def test_dummy_hash_is_cached_and_never_matches_empty(self) -> None:
        first = dummy_password_hash(TEST_BCRYPT_ROUNDS)
        self.assertIs(first, dummy_password_hash(TEST_BCRYPT_ROUNDS))
        self.assertFalse(verify_password("", first))


class TestSessionToken(unittest.TestCase):
    """generate_session_token returns 256-bit hex tokens."""

    def test_length_and_alphabet(self) -> None:
        token = generate_session_token()
        self.assertEqual(len(token), 64)
        self.assertTrue(all(c in "0123456789abcdef" for c in token))

    def test_tokens_are_unique(self) -> None:
        tokens = {generate_session_token() for _ in range(200)}
        self.assertEqual(len(tokens), 200)


class TestNormalizeEmail(unittest.TestCase):
    def test_strips_and_lowercases(self) -> None:
        self.assertEqual(normalize_email("  Admin@Croquet.NL\n"), "admin@croquet.nl")


if __name__ == "__main__":
    unittest.main()
