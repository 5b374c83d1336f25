"""
FastAPI application for the user directory service.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from user_directory.config import settings
from user_directory.infrastructure.observability.logging import get_logger, setup_logging
from user_directory.middleware import RequestContextMiddleware
from user_directory.routes import health, users
from user_directory.services.user_list_service import get_user_list_service

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the user list service on startup and release it on shutdown."""

    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    try:
        service = get_user_list_service()
        logger.info(
            "User list service initialized",
            upstream=service.endpoint,
            observers=len(service.pipeline),
            caching=service.cache is not None,
        )
    except Exception as e:
        logger.error("Failed to initialize user list service", error=str(e))
        raise

    yield

    logger.info("Application shutting down")
    try:
        service.close()
        logger.info("User list service closed")
    except Exception as e:
        logger.error("Error closing user list service", error=str(e))


app = FastAPI(
    title="User Directory",
    description="Cached, filterable view over the ReqRes users API",
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(health.router)
app.include_router(users.router)


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


# Outermost: log_requests runs inside the bound request context
app.add_middleware(RequestContextMiddleware)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
