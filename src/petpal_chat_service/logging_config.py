# src/petpal_chat_service/logging_config.py
import logging
import sys
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from .config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("petpal_chat_service")


def setup_logging() -> None:
    """Configure the service logger. Safe to call more than once."""
    level = getattr(logging, settings.LOGGING_LEVEL.upper(), logging.INFO)
    logger.setLevel(level)

    if not any(getattr(h, "_petpal_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._petpal_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    # Keep uvicorn's access log from duplicating LoggingMiddleware output
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logger.debug("Logging initialized at level %s", settings.LOGGING_LEVEL.upper())


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration for each HTTP request."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.exception(
                "%s %s failed after %.1fms", request.method, request.url.path, elapsed_ms
            )
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s -> %s (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response


def setup_middleware(app: FastAPI) -> None:
    """Install CORS and request logging on the application."""
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
