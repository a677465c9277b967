from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Any, Optional
import uvicorn
import logging

from .config import Settings, get_settings
from .api.v1.router import api_router
from .agents.standup_coordinator import StandupCoordinator
from .models.types import utc_now
from .services.team_commands import TeamCommands
from .utils.logging import setup_logging


def create_app(config: Optional[Settings] = None, llm_provider: Optional[Any] = None) -> FastAPI:
    """Build the application; the coordinator lives on app.state for the app's lifetime"""
    config = config or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events"""
        # Startup
        setup_logging(config.log_level, config.log_file)
        logger = logging.getLogger(__name__)
        logger.info(f"Starting Standup Agent with {config.storage_backend} storage")

        coordinator = await StandupCoordinator.create(config, llm_provider=llm_provider)
        app.state.coordinator = coordinator
        app.state.team_commands = TeamCommands(
            coordinator.storage_factory.get_storage(config.database_name, config.team_container)
        )

        yield

        # Shutdown
        logger.info("Shutting down Standup Agent")
        await coordinator.close()

    app = FastAPI(
        title=config.app_name,
        version=config.app_version,
        description="Chat agents that run team standups and keep a team registry",
        docs_url="/docs" if config.debug else None,
        redoc_url="/redoc" if config.debug else None,
        lifespan=lifespan
    )
    app.state.settings = config

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # Include API routes
    app.include_router(api_router, prefix="/api/v1")

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "version": config.app_version,
            "storage": config.storage_backend,
            "timestamp": utc_now().isoformat()
        }

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "standup_agent.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
