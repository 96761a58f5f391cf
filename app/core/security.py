"""Password hashing and session token generation."""

import secrets
from functools import lru_cache

import bcrypt

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# 32 random bytes = 256 bits, hex encoded to 64 characters.
SESSION_TOKEN_BYTES = 32

# Min/max lengths for email and password validation.
EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 1
PASSWORD_MAX_LEN = 128


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache(maxsize=4)
def dummy_password_hash(rounds: int = BCRYPT_ROUNDS) -> str:
    """A throwaway hash at the given cost, compared against when no user matches a login."""
    return hash_password(secrets.token_hex(16), rounds=rounds)


def generate_session_token() -> str:
    """Return a new opaque session token from the OS CSPRNG."""
    return secrets.token_hex(SESSION_TOKEN_BYTES)


def normalize_email(email: str) -> str:
    return email.strip().lower()
