"""
Meridian - Trading Performance Dashboard
FastAPI Backend Application
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from meridian import __version__
from meridian.api.api import api_router
from meridian.core.config import Settings, settings
from meridian.core.security import AdminAllowlist
from meridian.db.base import Base
from meridian.db.session import engine
from meridian.monitoring.logger import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create all database tables
    Base.metadata.create_all(bind=engine)
    yield


def create_app(config: Settings = settings) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        config: Settings to build the app from

    Returns:
        FastAPI: Configured application
    """
    setup_logging(config)

    app = FastAPI(
        title="Meridian API",
        description="Trading performance dashboard API",
        version=__version__,
        lifespan=lifespan
    )

    app.state.admin_allowlist = AdminAllowlist.from_settings(config)
    logger.info(f"Admin allowlist loaded with {len(app.state.admin_allowlist)} id(s)")

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix=config.api_prefix)

    @app.get(f"{config.api_prefix}/health", tags=["Health"])
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "version": __version__}

    return app


app = create_app()


if __name__ == "__main__":
    # Run the application
    uvicorn.run(
        "meridian.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
