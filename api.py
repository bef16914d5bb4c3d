"""
SnapNote FastAPI Application

Main entry point for the SnapNote journaling API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Common library imports
from common.database import MongoDB
from common.utils import success_response

# App-specific imports
from snapnote.config import settings
from snapnote.database import ensure_indexes
from snapnote.error_handlers import register_exception_handlers

# Import routers
from snapnote.routers import (
    auth_router,
    journal_router,
    user_router,
)

# Import service initialization
from snapnote.dependencies import init_all_services, rate_limit

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Database Instance
# =============================================================================
main_db = MongoDB()


# =============================================================================
# Application Lifespan
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown tasks like database connections
    and service initialization.
    """
    # Startup
    logger.info("Starting SnapNote API...")

    settings.validate_required()

    await main_db.connect(
        uri=settings.MONGODB_URI,
        database_name=settings.MONGODB_DATABASE,
    )

    await ensure_indexes(main_db.db)

    init_all_services(db=main_db.db, settings=settings)
    logger.info("All services initialized successfully")

    yield

    # Shutdown
    logger.info("Shutting down SnapNote API...")
    await main_db.disconnect()


# =============================================================================
# FastAPI Application
# =============================================================================
app = FastAPI(
    title="SnapNote API",
    description="One reflective journal entry per day, sixty seconds at a time",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.is_development() else None,
    redoc_url="/redoc" if settings.is_development() else None,
)

register_exception_handlers(app, expose_errors=settings.is_development())

# =============================================================================
# CORS Middleware
# =============================================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =============================================================================
# Include Routers (all under /api prefix, general rate limit on everything)
# =============================================================================
API_PREFIX = "/api"
API_DEPENDENCIES = [Depends(rate_limit("api"))]

app.include_router(auth_router, prefix=API_PREFIX, dependencies=API_DEPENDENCIES, tags=["Authentication"])
app.include_router(journal_router, prefix=API_PREFIX, dependencies=API_DEPENDENCIES, tags=["Journal"])
app.include_router(user_router, prefix=API_PREFIX, dependencies=API_DEPENDENCIES, tags=["User"])


# =============================================================================
# Health Check Endpoint
# =============================================================================
@app.get("/health", tags=["Health"])
async def health():
    """
    Health check endpoint.

    Returns the status of the API and database connection.
    """
    return success_response({
        "status": "ok",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
        "database": main_db.is_connected,
    })


# =============================================================================
# Run with Uvicorn
# =============================================================================
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development(),
    )
