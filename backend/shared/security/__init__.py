"""
Security module: JWT authentication, password hashing and rate limiting.
"""

from shared.security.auth import (
    sign_jwt,
    verify_jwt,
    get_bearer_token,
    current_user_context,
    require_roles,
)
from shared.security.password import hash_password, verify_password
from shared.security.rate_limit import (
    limiter,
    rate_limit_exceeded_handler,
    WRITE_LIMIT,
    CANCEL_LIMIT,
)

__all__ = [
    # auth
    "sign_jwt",
    "verify_jwt",
    "get_bearer_token",
    "current_user_context",
    "require_roles",
    # password
    "hash_password",
    "verify_password",
    # rate limiting
    "limiter",
    "rate_limit_exceeded_handler",
    "WRITE_LIMIT",
    "CANCEL_LIMIT",
]
