"""FastAPI app factory"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..core.config.settings import get_config
from ..core.logging import configure_logging
from ..core.storage.database import init_db
from .errors import register_error_handlers

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager.

    Configures logging, opens the database and creates missing tables on
    startup; disposes of the connection pool on shutdown.
    """
    # Startup
    config = get_config()
    configure_logging(config)
    db = init_db(config.get_database_url(), echo=config.db_echo)
    await db.create_tables()

    # Store in app state for access in routes
    app.state.db = db
    app.state.config = config

    logger.info(f"prassign API started (storage={config.storage})")

    yield

    # Shutdown
    await db.close()
    logger.info("prassign API stopped")


def create_app() -> FastAPI:
    """Create FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="prassign API",
        description="Pull request reviewer assignment and workload balancing",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Register routes
    from .routes import pull_requests, stats, teams, users

    app.include_router(teams.router, tags=["teams"])
    app.include_router(users.router, tags=["users"])
    app.include_router(pull_requests.router, tags=["pull requests"])
    app.include_router(stats.router, tags=["statistics"])

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "service": "prassign"}

    return app


app = create_app()
