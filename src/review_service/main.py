"""Main FastAPI application for Review Ledger Service."""

import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware

from .config.settings import get_settings, Settings
from .infrastructure.ledger import create_ledger_provider, LedgerProvider
from .core.dispatcher import Dispatcher
from .core.response_builder import ResponseBuilder
from .core.review_manager import ReviewManager
from .api.dependencies import get_ledger
from .api.routes import ledger, reviews
from .models.requests import HealthResponse

VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings):
    """Configure root logging from settings."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def create_app(settings: Optional[Settings] = None, ledger_provider: Optional[LedgerProvider] = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to use; loaded from the environment if omitted
        ledger_provider: Ledger to use; created from settings if omitted
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events."""
        logger.info(f"Starting {settings.service_name} v{VERSION}")

        logger.info("Initializing ledger...")
        ledger_client = ledger_provider or create_ledger_provider(settings)
        await ledger_client.initialize()

        responses = ResponseBuilder(settings.max_payload_bytes, logging.getLogger("review_service.responses"))
        manager = ReviewManager(ledger_client, settings, responses=responses)

        app.state.settings = settings
        app.state.ledger = ledger_client
        app.state.dispatcher = Dispatcher(manager, responses)

        logger.info(f"{settings.service_name} is ready")

        yield

        # Cleanup
        logger.info("Shutting down...")
        await ledger_client.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Review Ledger Service",
        description="Review document storage on a key-value ledger",
        version=VERSION,
        lifespan=lifespan
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(ledger.router)
    app.include_router(reviews.router)

    @app.get("/health", response_model=HealthResponse)
    async def health_check(ledger_client: LedgerProvider = Depends(get_ledger)):
        """Health check endpoint."""
        ledger_connected = await ledger_client.health_check()

        return HealthResponse(
            status="healthy" if ledger_connected else "degraded",
            service=settings.service_name,
            version=VERSION,
            ledger_backend=settings.ledger_backend,
            ledger_connected=ledger_connected
        )

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": settings.service_name,
            "version": VERSION,
            "status": "running"
        }

    return app


configure_logging(get_settings())
app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "review_service.main:app",
        host=settings.host,
        port=settings.port,
        reload=True
    )
