"""Password hashing with bcrypt."""

from __future__ import annotations

import bcrypt

_ROUNDS = 10


def hash_password(plain: str) -> str:
    """Hash a plaintext password with a fresh salt."""
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt(rounds=_ROUNDS)).decode()


def compare_password(plain: str, hashed: str) -> bool:
    """Check a plaintext password against a bcrypt hash in constant time."""
    try:
        return bcrypt.checkpw(plain.encode(), hashed.encode())
    except ValueError:
        # Malformed hash
        return False
