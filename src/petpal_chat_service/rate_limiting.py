import sys

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from .config import settings
from .logging_config import logger

# Determine if we're in test mode by checking if pytest is running
IS_TEST_MODE = "pytest" in sys.modules

SEND_MESSAGE_LIMIT = settings.SEND_MESSAGE_RATE_LIMIT

limiter = Limiter(
    key_func=get_remote_address,
    strategy="fixed-window",
    enabled=not IS_TEST_MODE,
)


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Custom handler for rate limit exceeded exceptions"""
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded", "retry_after": getattr(exc, "retry_after", None)},
    )


def setup_rate_limiting(app):
    """Configure rate limiting for the FastAPI application"""
    app.state.limiter = limiter

    if IS_TEST_MODE:
        logger.info("Rate limiting is disabled in test mode")
    else:
        logger.info(f"Rate limiting is enabled: SendMessage={SEND_MESSAGE_LIMIT}")

    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
