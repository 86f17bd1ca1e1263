"""
Application entry point: logging, lifecycle of the database pool and the
Gemini HTTP client, middleware and routers.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from scout.config import settings
from scout.db.pool import db_pool
from scout.db.schema import ensure_schema
from scout.infrastructure.observability.logging import get_logger, setup_logging
from scout.middleware.request_context import RequestContextMiddleware
from scout.routes import admin, analytics, deliveries, generation, health
from scout.services.gemini_client import close_gemini_client

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the pool and make sure the schema exists; close everything on shutdown."""
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    try:
        logger.info("Initializing database pool")
        await db_pool.initialize()
        await ensure_schema()
        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize services", error=str(e))
        try:
            await db_pool.close()
        except Exception as cleanup_error:
            logger.error("Error cleaning up database pool", error=str(cleanup_error))
        raise

    yield

    logger.info("Application shutting down")

    shutdown_errors = []
    for name, close in (("Gemini", close_gemini_client), ("Database", db_pool.close)):
        try:
            await close()
        except Exception as e:
            logger.error("Error during shutdown", component=name, error=str(e))
            shutdown_errors.append(f"{name}: {e}")

    if shutdown_errors:
        logger.warning("Some services had shutdown errors", errors=shutdown_errors)
    else:
        logger.info("All services closed successfully")


app = FastAPI(
    title="Scout Message Tool",
    description="Scout message generation and delivery log",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)

app.include_router(health.router)
app.include_router(generation.router)
app.include_router(deliveries.router)
app.include_router(analytics.router)
app.include_router(admin.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    logger.info(
        "HTTP request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
