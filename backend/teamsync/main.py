"""
TeamSync
FastAPI Application Entry Point
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from teamsync.api import activities, live, meetings, notifications, projects, reports, tasks, users
from teamsync.config import settings
from teamsync.core.workspace import Workspace
from teamsync.database import create_engine, create_tables
from teamsync.errors import (
    EntityNotFoundError,
    MissingIndexError,
    PermissionDeniedError,
    StoreUnavailableError,
    ValidationError,
)
from teamsync.logging_config import configure_logging
from teamsync.store import DocumentStore, MemoryDocumentStore
from teamsync.store.sql import SqlDocumentStore

logger = logging.getLogger(__name__)


async def build_store() -> DocumentStore:
    """Document store selected by settings.store_backend."""
    if settings.store_backend == "sql":
        engine = create_engine()
        await create_tables(engine)
        return SqlDocumentStore(engine, strict_indexes=settings.strict_indexes)
    return MemoryDocumentStore(strict_indexes=settings.strict_indexes)


def create_app(workspace: Optional[Workspace] = None, start_reminders: Optional[bool] = None) -> FastAPI:
    """
    Build the application. Passing a workspace skips store construction and
    leaves closing it to the caller.
    """
    run_reminders = settings.reminder_enabled if start_reminders is None else start_reminders

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        configure_logging()
        owned = workspace is None
        ws = workspace or Workspace.from_settings(await build_store(), settings)
        app.state.workspace = ws
        stop_reminders = None
        if run_reminders:
            stop_reminders = await ws.start_reminder_service()
        logger.info("TeamSync started (store: %s)", settings.store_backend)
        yield
        # Shutdown
        if stop_reminders:
            stop_reminders()
        if owned:
            await ws.close()

    app = FastAPI(
        title="TeamSync API",
        description="Team projects, tasks, meetings and reports with live views and meeting reminders",
        version="1.0.0",
        lifespan=lifespan,
    )
    if workspace is not None:
        app.state.workspace = workspace

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc), "errors": exc.errors},
        )

    @app.exception_handler(PermissionDeniedError)
    async def permission_error_handler(request: Request, exc: PermissionDeniedError):
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})

    @app.exception_handler(EntityNotFoundError)
    async def not_found_handler(request: Request, exc: EntityNotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
        logger.error("Store unavailable during %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)})

    @app.exception_handler(MissingIndexError)
    async def missing_index_handler(request: Request, exc: MissingIndexError):
        logger.error("Query needs a composite index: %s", exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)})

    # Include routers
    app.include_router(users.router, prefix="/api/users", tags=["Users"])
    app.include_router(projects.router, prefix="/api/projects", tags=["Projects"])
    app.include_router(tasks.router, prefix="/api/tasks", tags=["Tasks"])
    app.include_router(meetings.router, prefix="/api/meetings", tags=["Meetings"])
    app.include_router(reports.router, prefix="/api/reports", tags=["Reports"])
    app.include_router(notifications.router, prefix="/api/notifications", tags=["Notifications"])
    app.include_router(activities.router, prefix="/api/activities", tags=["Activity"])
    app.include_router(live.router, prefix="/api/live", tags=["Live"])

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"status": "healthy", "service": "TeamSync API", "version": "1.0.0"}

    @app.get("/health")
    async def health_check(request: Request):
        """Detailed health check."""
        ws = getattr(request.app.state, "workspace", None)
        return {
            "status": "healthy",
            "store": settings.store_backend,
            "store_ready": ws is not None,
            "reminders_enabled": run_reminders,
        }

    return app


app = create_app()


def run() -> None:
    """Serve the API on the configured host and port."""
    uvicorn.run("teamsync.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())
