"""
Password hashing utilities using bcrypt.

Staff passwords are stored as bcrypt hashes. Verification is used at login
time by the auth collaborator and again when a supervisor re-enters their
password to authorize an order cancellation.
"""

import bcrypt

from shared.config.logging import get_logger

logger = get_logger(__name__)

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")

# bcrypt only hashes the first 72 bytes and bcrypt>=5 refuses longer input
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = 12) -> str:
    """
    Hash a password using bcrypt.

    Example:
        hashed = hash_password("mypassword123")
        # Returns something like: $2b$12$...
    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """
    Verify a password against its bcrypt hash.

    Anything that is not a bcrypt hash (plaintext, empty) never matches.
    """
    if not plain_password or not hashed_password:
        return False
    if not hashed_password.startswith(_BCRYPT_PREFIXES):
        logger.warning("SECURITY: non-bcrypt password hash rejected")
        return False

    candidate = plain_password.encode("utf-8")
    if len(candidate) > MAX_PASSWORD_BYTES:
        return False

    return bcrypt.checkpw(candidate, hashed_password.encode("utf-8"))
