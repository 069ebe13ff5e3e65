"""
Password hashing with bcrypt.

bcrypt salts every digest and its cost factor is adjustable, so stored digests
stay expensive to brute-force as hardware improves. Comparison is delegated to
bcrypt.checkpw, which does a constant amount of work regardless of where the
digests differ.
"""
from __future__ import annotations

import bcrypt

DEFAULT_ROUNDS = 12

# bcrypt ignores everything past 72 bytes; newer releases raise instead.
_MAX_PASSWORD_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_PASSWORD_BYTES]


# PUBLIC_INTERFACE
def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt digest of password."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


# PUBLIC_INTERFACE
def verify_password(password: str, password_hash: str) -> bool:
    """Return True when password matches password_hash. Malformed digests never match."""
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False
