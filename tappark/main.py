"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tappark.api.v1.router import router as v1_router
from tappark.config import get_settings
from tappark.database import close_db
from tappark.redis_client import close_redis
from tappark.schemas.common import ErrorResponse
from tappark.tasks import background_tasks

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info(f"Starting {settings.APP_NAME}...")

    # The database pool is created on first use
    logger.info("Database will connect on first use")

    # Start background tasks
    await background_tasks.start(settings)

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}...")

    # Stop sweeps before the pool goes away
    await background_tasks.stop()

    await close_redis()
    await close_db()
    logger.info("Connections closed")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
## TapPark Expiration Engine

Reclaims parking reservations whose holders never arrived.

- **Grace period sweeps**: reservations still `reserved` and not started
  after the grace period are moved to `invalid`
- **Capacity release**: the held spot is freed and the section's
  reserved counter is decremented in the same transaction
- **Audit trail**: every expiry appends an audit event for notification delivery
- **Reconciliation**: section counters can be compared with reservation rows
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Include API routers
    app.include_router(v1_router, prefix="/api")

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        scheduler = background_tasks.scheduler
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "sweeps_scheduled": bool(scheduler and scheduler.is_active),
        }

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        body = ErrorResponse(
            error="Internal Server Error",
            detail=str(exc) if settings.DEBUG else None,
            timestamp=datetime.now(),
        )
        return JSONResponse(status_code=500, content=body.model_dump(mode="json"))

    return app


# Create application instance
app = create_app()


def run():
    """Run the application with uvicorn."""
    uvicorn.run(
        "tappark.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
