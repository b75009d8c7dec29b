"""Password hashing with bcrypt."""

import logging
import os

import bcrypt

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

# bcrypt ignores everything past 72 bytes; newer releases raise instead
BCRYPT_MAX_BYTES = 72


def _to_bytes(password) -> bytes:
    if isinstance(password, str):
        password = password.encode("utf-8")
    return password[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain text password, returning the bcrypt string."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_to_bytes(password), salt).decode("utf-8")


def verify_password(attempt: str, password_hash: str) -> bool:
    """Check a login attempt against a stored bcrypt hash."""
    if not password_hash:
        return False
    if isinstance(password_hash, str):
        password_hash = password_hash.encode("utf-8")
    try:
        return bcrypt.checkpw(_to_bytes(attempt), password_hash)
    except ValueError as e:
        logger.error("Stored password hash is unusable: %s", e)
        return False
