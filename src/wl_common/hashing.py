"""Salted secret hashing with bcrypt.

Account passwords and transfer PINs both go through here. The ``bcrypt``
library is used directly (>=4.0); passlib is unmaintained and breaks on it.
"""

import bcrypt

DEFAULT_ROUNDS = 12


def hash_secret(secret: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """bcrypt hash with a fresh salt, as a utf-8 string."""
    return bcrypt.hashpw(secret.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_secret(secret: str, hashed: str) -> bool:
    return bcrypt.checkpw(secret.encode("utf-8"), hashed.encode("utf-8"))
