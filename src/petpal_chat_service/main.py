import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import settings
from .db import dispose_engine
from .errors import ChatServiceError
from .logging_config import setup_logging, setup_middleware
from .rate_limiting import setup_rate_limiting
from .realtime import RoomRouter
from .routers import (
    adoption_events_router,
    conversations_router,
    health_router,
    messages_router,
    ws_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.logger.info(f"'{settings.PROJECT_NAME}' startup sequence initiated.")
    app.startup_time = time.time()
    if not settings.session_binding_enabled():
        app.logger.warning(
            "Session binding disabled: sender identity is taken from request bodies"
        )
    yield
    app.logger.info(f"'{settings.PROJECT_NAME}' shutdown sequence initiated.")
    await dispose_engine()


# Configure logging before app initialization
setup_logging()

app = FastAPI(
    title=settings.PROJECT_NAME,
    description=(
        "Adoption chat between requesters and pet owners: conversation registry, "
        "message delivery with read tracking, and a live WebSocket event channel."
    ),
    version="0.1.0",
    root_path=settings.ROOT_PATH,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Health", "description": "Service health endpoints"},
        {"name": "Conversations", "description": "Conversation lists, history and read state"},
        {"name": "Messages", "description": "Sending messages"},
        {"name": "Adoption Events", "description": "Adoption status changes from the adoption service"},
        {"name": "WebSocket", "description": "Live conversation events"},
    ],
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    swagger_ui_parameters={"persistAuthorization": True},
)

# Initialize application logger
app.logger = logging.getLogger("petpal_chat_service")

# One room router per process, owned by the app
app.state.room_router = RoomRouter()

# Setup middleware
setup_middleware(app)
setup_rate_limiting(app)


# Exception handlers
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    content = {"detail": exc.detail}
    if isinstance(exc, ChatServiceError):
        content["code"] = exc.code.value
        app.logger.info(f"{exc.code.value}: {exc.detail} ({request.method} {request.url.path})")
    else:
        app.logger.error(f"HTTPException: {exc.status_code} - {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    app.logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


# Routers
app.include_router(health_router)
app.include_router(conversations_router)
app.include_router(messages_router)
app.include_router(adoption_events_router)
app.include_router(ws_router)


@app.get("/", tags=["Health"], include_in_schema=False)
async def root():
    """Root endpoint for basic service information."""
    return {"service": settings.PROJECT_NAME, "version": "0.1.0"}
