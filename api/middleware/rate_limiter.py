"""
Rate Limiting Middleware
========================

Per-IP rate limiting using slowapi.
"""

from fastapi import FastAPI
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from config import get_settings


# Create limiter instance with IP-based rate limiting
limiter = Limiter(
    key_func=get_remote_address,
    enabled=get_settings().rate_limit_enabled
)


def register_limit() -> str:
    return get_settings().rate_limit_register


def login_limit() -> str:
    return get_settings().rate_limit_login


def setup_rate_limiting(app: FastAPI) -> None:
    """
    Set up rate limiting for the FastAPI application.

    Attaches the limiter to the app state and registers
    the exception handler for rate limit exceeded errors.

    Usage in routes:
        from api.middleware.rate_limiter import limiter, login_limit

        @router.post("/login")
        @limiter.limit(login_limit)
        async def login(request: Request, ...):
            ...
    """
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
