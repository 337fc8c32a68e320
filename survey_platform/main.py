"""
Main FastAPI Application

Entry point for the survey platform backend.
Configures middleware, routes, error handlers, and startup/shutdown events.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import time
from contextlib import asynccontextmanager

from survey_platform import __version__
from survey_platform.config import get_settings
from survey_platform.database import engine, init_db
from survey_platform.middleware.rate_limit import RateLimitMiddleware
from survey_platform.utils.logging import setup_logging, get_logger
from survey_platform.core.exceptions import (
    AuthenticationError,
    DatabaseError,
    RateLimitExceeded
)

from survey_platform.api.endpoints import (
    action_classes,
    attribute_classes,
    auth,
    client,
    environments,
    people,
    teams,
    users,
    webhooks,
)

settings = get_settings()

setup_logging(
    log_level=settings.LOG_LEVEL,
    json_format=(settings.ENVIRONMENT == "production")
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info(f"Starting application in {settings.ENVIRONMENT} mode")

    # Initialize database tables (dev only - use migrations in production)
    if settings.ENVIRONMENT == "development":
        logger.warning("Initializing database tables (dev mode)")
        init_db()

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application")
    engine.dispose()
    logger.info("Application shutdown complete")


app = FastAPI(
    title="Survey Platform",
    description="Environment-scoped survey targeting backend: people, actions, attributes and webhooks",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


# ============================================================================
# MIDDLEWARE CONFIGURATION
# ============================================================================

# The client API is called from customer websites, so any origin may reach it
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add X-Process-Time header to track request duration."""
    start_time = time.time()
    response = await call_next(request)
    response.headers["X-Process-Time"] = str(time.time() - start_time)
    return response


app.add_middleware(RateLimitMiddleware)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "type": "authentication_error"},
        headers=exc.headers or {}
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_error_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded: {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "type": "rate_limit_exceeded"},
        headers=exc.headers or {}
    )


@app.exception_handler(DatabaseError)
async def database_error_handler(request: Request, exc: DatabaseError):
    """The underlying SQLAlchemy error was logged where it was wrapped."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "type": "database_error"}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all exception handler.

    SECURITY: Don't expose internal errors in production.
    Log full details but return generic error to client.
    """
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
        exc_info=True,
        extra={"path": request.url.path, "method": request.method}
    )

    if settings.DEBUG:
        return JSONResponse(
            status_code=500,
            content={
                "detail": str(exc),
                "type": type(exc).__name__,
                "traceback": "See logs for traceback"
            }
        )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "type": "internal_error"
        }
    )


# ============================================================================
# ROUTES
# ============================================================================

@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint for load balancers."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": __version__
    }


@app.get("/", tags=["root"])
async def root():
    return {
        "message": "Survey Platform API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


app.include_router(auth.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(teams.router, prefix="/api/v1")
app.include_router(environments.router, prefix="/api/v1")
app.include_router(action_classes.router, prefix="/api/v1")
app.include_router(attribute_classes.router, prefix="/api/v1")
app.include_router(webhooks.router, prefix="/api/v1")
app.include_router(people.router, prefix="/api/v1")
app.include_router(client.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug: {settings.DEBUG}")

    uvicorn.run(
        "survey_platform.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
