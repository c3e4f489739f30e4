"""
Rate Limiting for StudentTrack API
==================================
slowapi limiter, in-memory by default (RATE_LIMIT_STORAGE_URI).

Only login is limited: it is the one public endpoint and the obvious
password-guessing target.
"""

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging_config import logger


def get_client_identifier(request: Request) -> str:
    """Rate limit key: client IP address"""
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_client_identifier,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED,
    strategy="fixed-window",
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Answer with the standard error envelope and a Retry-After header"""
    logger.event(
        logging.WARNING,
        f"[RateLimit] Exceeded for {get_client_identifier(request)}: {exc.detail}",
        "rate_limited",
        http_path=request.url.path
    )

    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "code": "RATE_LIMITED",
            "message": "Too many requests. Please try again later.",
            "details": {"limit": str(exc.detail)},
        },
        headers={"Retry-After": "60"}
    )


def login_rate_limit():
    """Rate limit for the login endpoint (LOGIN_RATE_LIMIT)"""
    return limiter.limit(settings.LOGIN_RATE_LIMIT)
