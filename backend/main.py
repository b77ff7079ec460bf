"""nCore profile tracker - FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded

from config import get_settings, setup_logging
from exceptions import StorageError
from middleware.rate_limit import limiter, rate_limit_exceeded_handler
from routers import profiles_router
from state import AppState, build_state

logger = logging.getLogger(__name__)


def mount_dashboard(app: FastAPI, web_dir: str) -> None:
    """Serve the static dashboard at / if the folder exists."""
    if not Path(web_dir).is_dir():
        logger.info(f"No dashboard folder at {web_dir}, serving API only")
        return
    app.mount("/", StaticFiles(directory=web_dir, html=True), name="dashboard")


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app(state: AppState | None = None) -> FastAPI:
    """Build the application.

    If no state is given, settings are loaded and the database opened on
    startup (missing credentials fail startup). The fetcher starts with the
    app and is stopped on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_state = app.state.ctx is None
        if owns_state:
            settings = get_settings()
            setup_logging(settings.log_level)
            app.state.ctx = await build_state(settings)
        ctx: AppState = app.state.ctx

        mount_dashboard(app, ctx.settings.web_dir)
        ctx.scheduler.start()

        yield

        logger.info("Shutdown signal received, initiating graceful shutdown...")
        if owns_state:
            await ctx.close()
        else:
            await ctx.scheduler.stop()
        logger.info("Server shutdown complete")

    app = FastAPI(
        title="nCore Tracker API",
        description="Tracks nCore profile statistics over time",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.ctx = state

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(StorageError, storage_error_handler)

    app.include_router(profiles_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "ncore-tracker"}

    return app


app = create_app()
