"""Rate limiting configuration using slowapi.

Limits the scheduled trigger endpoints (each run sweeps whole tables) and
listing extension (each call records a charge).

When auth is enabled, keys on the JWT subject so users behind a shared IP
do not throttle each other. Everything else keys on the client IP.

Usage in routers:
    from jobmarket.core.rate_limiting import limiter

    @router.post("/{listing_id}/extend")
    @limiter.limit(lambda: settings.rate_limit_extend)
    async def extend(request: Request, ...):
        ...
"""

import jwt
from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from jobmarket.core.config import settings

_MAX_SUB_LENGTH = 36


def _rate_limit_key_func(request: Request) -> str:
    """Get rate limit key from request.

    Key format:
    - Auth disabled: "{ip}"
    - Auth enabled + valid JWT: "user:{sub}"
    - Auth enabled + no/invalid JWT: "unauth:{ip}"
    """
    if not settings.auth_enabled:
        return get_remote_address(request)

    # Keying only needs the sub claim; full validation happens in deps.py.
    token = request.cookies.get(settings.auth_cookie_name)
    if token:
        try:
            payload = jwt.decode(
                token,
                settings.auth_secret.get_secret_value(),
                algorithms=["HS256"],
                audience="jobmarket",
                issuer=settings.auth_issuer,
            )
            sub = payload["sub"]
            if len(sub) <= _MAX_SUB_LENGTH:
                return f"user:{sub}"
        except (jwt.InvalidTokenError, KeyError, TypeError):
            pass

    return f"unauth:{get_remote_address(request)}"


# In-memory storage (single-instance deployment)
limiter = Limiter(
    key_func=_rate_limit_key_func,
    enabled=settings.rate_limit_enabled,
)


def rate_limit_exceeded_handler(
    _request: Request,
    exc: RateLimitExceeded,
) -> Response:
    """Return 429 with the standard error envelope and a Retry-After header."""
    # exc.detail looks like "10 per 1 minute"
    try:
        retry_after = str(exc.detail.split()[-1])
        int(retry_after.rstrip("s"))
    except (ValueError, AttributeError, IndexError):
        retry_after = "60"

    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "RATE_LIMITED",
                "message": f"Rate limit exceeded: {exc.detail}",
                "details": None,
            }
        },
        headers={"Retry-After": retry_after},
    )
