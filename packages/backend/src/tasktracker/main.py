"""FastAPI application factory.

Learn: create_app() returns a configured FastAPI instance. Lifespan
manages startup/shutdown, and middleware, exception handlers, static
mounts and routers are all registered here.

Error mapping:
- FieldValidationError → 400 {"detail", "field"} (shown inline by the UI)
- SQLAlchemyError      → 503, a retryable upstream failure. Never a login
  redirect, so an outage can't pass for an expired session.
"""

from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from tasktracker import __version__
from tasktracker.api import api_router
from tasktracker.config import settings
from tasktracker.errors import FieldValidationError
from tasktracker.pages.routes import router as pages_router

logger = structlog.get_logger()

STATIC_DIR = Path(__file__).resolve().parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "tasktracker.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    yield

    logger.info("tasktracker.shutdown")
    from tasktracker.db.engine import engine
    await engine.dispose()


async def field_validation_handler(request: Request, exc: FieldValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": exc.message, "field": exc.field},
    )


async def upstream_failure_handler(request: Request, exc: SQLAlchemyError):
    logger.error("db.error", error=str(exc), exc_type=type(exc).__name__)
    return JSONResponse(
        status_code=503,
        content={"detail": "Service temporarily unavailable"},
        headers={"Retry-After": "5"},
    )


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Task Tracker",
        description="Personal task lists behind a cookie session",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → handler

    from tasktracker.middleware.request_id import RequestIdMiddleware
    from tasktracker.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(FieldValidationError, field_validation_handler)
    app.add_exception_handler(SQLAlchemyError, upstream_failure_handler)

    media_dir = Path(settings.media_dir)
    media_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
    app.mount(settings.media_url, StaticFiles(directory=media_dir), name="media")

    app.include_router(api_router)
    app.include_router(pages_router)

    return app


# Default app instance (used by uvicorn: tasktracker.main:app)
app = create_app()
