"""
MotW Watcher - Main FastAPI Application

Control surface for the zone-watch engine:
- Watcher start/stop/status
- Manual "run rules now" scans
- Single-file Mark of the Web operations
- Processing statistics
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from app.api import admin, health, markers
from app.models.schemas import WatcherConfig
from app.utils.config import Settings, get_settings
from app.utils.log_setup import configure_logging
from app.utils.watcher_config import load_watcher_config
from domains.zone_watch.service import WatcherService
from domains.zone_watch.statistics import StatisticsStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    configure_logging(settings)
    logger.info(f"Starting {settings.api_title} v{settings.api_version}")

    config = app.state.watcher_config
    if config is None:
        config = load_watcher_config(settings.config_file)
    statistics = StatisticsStore(settings.stats_file, history_days=settings.stats_history_days)
    service = WatcherService(config, settings=settings, statistics=statistics)
    app.state.watcher = service

    if config.start_watching_on_launch:
        service.start()

    yield

    # Cleanup
    logger.info("Shutting down application...")
    service.close()
    app.state.watcher = None
    logger.success("Application shut down complete")


def create_app(settings: Optional[Settings] = None, config: Optional[WatcherConfig] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (cached settings by default)
        config: Watcher configuration (loaded from the config file by default)
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="Directory-watching Mark of the Web zone policy engine",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.watcher_config = config
    app.state.watcher = None

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler."""
        logger.error(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if settings.log_level == "DEBUG" else "An error occurred"
            }
        )

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(admin.router, prefix="/admin", tags=["Admin"])
    app.include_router(markers.router, prefix="/markers", tags=["Markers"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": "MotW Watcher",
            "version": settings.api_version,
            "status": "operational",
            "docs": "/docs",
            "health": "/health"
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host="127.0.0.1",
        port=settings.api_port,
        log_level=settings.log_level.lower()
    )
