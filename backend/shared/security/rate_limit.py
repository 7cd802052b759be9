"""
Rate limiting with slowapi, keyed by client IP.

Three tiers:
- a global default applied by SlowAPIMiddleware to undecorated routes
- WRITE_LIMIT on every mutating route
- CANCEL_LIMIT on order cancellation, which re-checks a supervisor password

Limits are configured through settings and use limits' string syntax
("60/minute"). Counters live in memory unless RATE_LIMIT_STORAGE_URI
points at Redis, which is needed when several API workers run.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from shared.config.logging import security_audit_logger
from shared.config.settings import settings


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.global_rate_limit],
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)

WRITE_LIMIT = settings.write_rate_limit
CANCEL_LIMIT = settings.cancel_rate_limit


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 with the limit that was hit, in the same shape as domain errors."""
    security_audit_logger.warning(
        "Rate limit exceeded",
        path=request.url.path,
        client=get_remote_address(request),
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Muitas requisições. Tente novamente mais tarde.",
            "code": "RateLimited",
            "limite": str(exc.detail),
        },
        headers={"Retry-After": "60"},
    )
