"""
FastAPI application entry point.

Initializes the forum backend: channels, threaded messages and the
draft/publish lifecycle.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
from sqlalchemy import text

from config import settings
from database import init_db, close_db
from middleware import setup_cors
from middleware.logging import logging_middleware
from middleware.security import security_headers_middleware
from routers import channels, messages, tags
from services.errors import ForumError
import signal
import sys

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
    force=True
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    logger.info("Starting forum backend...")
    try:
        await init_db()
        logger.info("Database connection initialized")
    except Exception as e:
        # Log warning but don't crash - the database may still be starting
        logger.warning(f"Database initialization failed: {e}")
        logger.info("Server will start anyway - database will connect on first request")

    yield

    # Shutdown
    logger.info("Shutting down forum backend...")
    try:
        await close_db()
        logger.info("Database connection closed")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")


# Create FastAPI application
app = FastAPI(
    title="Social Polymath Forum",
    description="Topic-tagged channels with threaded messages, drafts and edit history",
    version="1.0.0",
    lifespan=lifespan,
)

# Setup middleware
setup_cors(app)
app.middleware("http")(logging_middleware)
app.middleware("http")(security_headers_middleware)

# Include routers
app.include_router(channels.router)
app.include_router(messages.router)
app.include_router(tags.router)


# Graceful shutdown handler
def handle_shutdown_signal(signum, frame):
    """Handle SIGTERM/SIGINT for graceful shutdown."""
    logger.info(f"Received shutdown signal ({signum}), initiating graceful shutdown...")
    sys.exit(0)


@app.exception_handler(ForumError)
async def forum_error_handler(request: Request, exc: ForumError):
    """
    Map domain errors (validation, not found, permission, conflict) to JSON.
    """
    level = logging.INFO if exc.status_code < 500 else logging.ERROR
    logger.log(level, f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for uncaught errors (store failures included).
    """
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later.",
            "type": "server_error"
        },
    )


@app.get("/health")
async def health_check():
    """
    Health check endpoint.

    Checks:
    - Database connection
    - Service status

    Returns:
        dict: Service status with component health
    """
    from database import engine

    health_status = {
        "status": "healthy",
        "service": "forum-backend",
        "version": "1.0.0",
        "components": {}
    }

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        health_status["components"]["database"] = "healthy"
    except Exception as e:
        health_status["components"]["database"] = f"unhealthy: {str(e)}"
        health_status["status"] = "degraded"

    return health_status


@app.get("/")
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message
    """
    return {
        "message": "Social Polymath Forum API",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    signal.signal(signal.SIGTERM, handle_shutdown_signal)
    signal.signal(signal.SIGINT, handle_shutdown_signal)

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
    )
