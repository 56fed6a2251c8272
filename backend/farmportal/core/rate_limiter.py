"""
Rate Limiting
=============
slowapi limiter with in-memory storage (RATE_LIMIT_STORAGE_URI).

Sensitive endpoints carry their own limits:
- /api/register/step1: RATE_LIMIT_REGISTRATION (sends email)
- /api/admin/login: RATE_LIMIT_LOGIN (brute force protection)
- /api/auth/forgot-password: RATE_LIMIT_PASSWORD_RESET
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from farmportal.core.config import settings
from farmportal.core.logging_config import logger


def get_client_identifier(request: Request) -> str:
    """Rate limit key: client IP address"""
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Render 429 with the same {message} body as every other error"""
    retry_after = exc.detail.split(":")[-1].strip() if exc.detail else "60"

    logger.warning(
        f"[RateLimit] Exceeded for {get_client_identifier(request)} on {request.url.path}: {exc.detail}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "message": "Too many requests. Please slow down.",
            "code": "RATE_LIMIT_EXCEEDED",
            "detail": str(exc.detail),
        },
        headers={"Retry-After": retry_after if retry_after.isdigit() else "60"},
    )


def registration_rate_limit():
    return limiter.limit(settings.RATE_LIMIT_REGISTRATION)


def login_rate_limit():
    return limiter.limit(settings.RATE_LIMIT_LOGIN)


def password_reset_rate_limit():
    return limiter.limit(settings.RATE_LIMIT_PASSWORD_RESET)
