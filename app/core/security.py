"""
app/core/security.py

Purpose: Password hashing

- Salted one-way bcrypt hashes for stored credentials
- Constant-time verification
"""

import bcrypt

BCRYPT_ROUNDS = 12


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """
    Hashes a plaintext password with a fresh salt.

    Args:
        password: Plaintext password
        rounds: bcrypt work factor

    Returns:
        The bcrypt hash as a string
    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Checks a plaintext password against a stored bcrypt hash.
    Malformed or missing hashes never verify.
    """
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False
