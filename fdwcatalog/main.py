from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from fdwcatalog import __version__
from fdwcatalog.config import settings
from fdwcatalog.core.database import close_db, init_db
from fdwcatalog.core.errors import FdwCatalogError
from fdwcatalog.core.errors.middleware import fdwcatalog_error_handler
from fdwcatalog.core.errors.registry import error_registry
from fdwcatalog.core.structured_logging import setup_logging
from fdwcatalog.routers import remote_servers

# Initialize structured logging before any logger calls
setup_logging(log_dir=settings.log_dir, log_level=settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info("Starting %s v%s", settings.app_name, __version__)

    error_registry.load()
    error_registry.ensure_registered()
    init_db()
    logger.info("Database initialized")

    yield

    close_db()
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="fdw-catalog API",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_exception_handler(FdwCatalogError, fdwcatalog_error_handler)

    app.include_router(remote_servers.router, prefix="/api/v1", tags=["remote-servers"])

    return app


app = create_app()
