"""FastAPI application factory.

Main entry point for the SkillTrack Web API.
"""

import sqlite3
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from skilltrack import __version__
from skilltrack.core.errors import FormSchemaError, FormValidationError, SkillTrackError
from skilltrack.db.database import current_db_path, init_db
from skilltrack.utils.retry import format_error_message, translate_backend_error
from skilltrack.web.routes import (
    admin_router,
    affiliations_router,
    assignments_router,
    auth_router,
    categories_router,
    classes_router,
    health_router,
    logs_router,
    profile_router,
    progress_router,
    reports_router,
    skills_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    db_path = current_db_path()
    init_db(db_path)
    logger.info("api_startup", db_path=str(db_path.absolute()))
    yield


def _error_body(exc: SkillTrackError) -> dict:
    body: dict = {"detail": str(exc)}
    if isinstance(exc, FormValidationError):
        body["errors"] = exc.errors
    elif isinstance(exc, FormSchemaError):
        body["errors"] = exc.problems
    return body


async def handle_domain_error(request: Request, exc: SkillTrackError) -> JSONResponse:
    logger.warning(
        "api.request_failed",
        path=request.url.path,
        method=request.method,
        error=type(exc).__name__,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc))


async def handle_database_error(request: Request, exc: sqlite3.Error) -> JSONResponse:
    translated = translate_backend_error(exc)
    status_code = getattr(translated, "status_code", 500)
    logger.error(
        "api.database_error",
        path=request.url.path,
        method=request.method,
        error=str(exc),
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": format_error_message(translated)},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="SkillTrack API",
        description="Skill assignment, verification and progress tracking",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(SkillTrackError, handle_domain_error)
    app.add_exception_handler(sqlite3.Error, handle_database_error)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(admin_router)
    app.include_router(categories_router)
    app.include_router(skills_router)
    app.include_router(classes_router)
    app.include_router(assignments_router)
    app.include_router(logs_router)
    app.include_router(progress_router)
    app.include_router(affiliations_router)
    app.include_router(reports_router)

    return app


# Default app instance for uvicorn
app = create_app()
