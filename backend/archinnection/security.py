"""
Archinnection Backend: Password Hashing & Session Tokens
==========================================================

What:  bcrypt password hashing and opaque session token generation.
How:   bcrypt with a configurable work factor; tokens come from `secrets`.
Who:   Used by AuthService for sign-up, sign-in and session creation.
"""

import secrets

import bcrypt

from archinnection.config import settings

# bcrypt only considers the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a plaintext password for storage."""
    password_bytes = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.bcrypt_rounds))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plaintext password against a stored hash."""
    password_bytes = plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def generate_session_token() -> str:
    """Opaque, URL-safe session token (256 bits of entropy)."""
    return secrets.token_urlsafe(32)
