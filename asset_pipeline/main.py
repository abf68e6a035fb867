# Standard library imports
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

# External package imports
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Local application imports
from .api.v1 import assets_router, notifications_router
from .core.config import get_settings
from .di.container import DIContainer
from .utils.datetime_utils import now_iso

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events.

    Builds the container unless one was supplied, then starts the queue,
    the event broadcaster and the worker pool. Shutdown runs in reverse.
    """
    container: Optional[DIContainer] = getattr(app.state, "container", None)
    if container is None:
        container = DIContainer()
        app.state.container = container

    await container.init()
    logger.info("Asset pipeline started")

    yield

    try:
        await container.shutdown()
    except Exception as e:
        logger.error(f"Error during pipeline shutdown: {e}", exc_info=True)
    logger.info("Application shutdown complete")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_application(container: Optional[DIContainer] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    This function sets up the FastAPI application with:
    - Environment variable loading
    - Logging configuration
    - CORS middleware configuration
    - API route registration

    Args:
        container: Pre-built container (tests pass one wired to in-memory doubles)

    Returns:
        Configured FastAPI application instance
    """
    # Load environment variables from .env file
    env_path = Path(__file__).resolve().parent.parent / ".env"
    load_dotenv(env_path)
    settings = get_settings()
    configure_logging(settings.log_level)

    application = FastAPI(
        title="Asset Pipeline API",
        version="1.0.0",
        description="Queued image analysis with real-time completion events",
        lifespan=lifespan
    )
    if container is not None:
        application.state.container = container

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(assets_router, prefix="/api/v1/assets")
    application.include_router(notifications_router, prefix="/api/v1/notifications")

    @application.get("/health")
    async def health() -> dict:
        return {"status": "ok", "timestamp": now_iso()}

    return application


# Create application instance
app = create_application()
