"""
FastAPI main application for the Local Library catalog.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import RedirectResponse

from api.config import config as api_config
from api.models import HealthResponse
from api.rendering import render_error
from api.routes import router
from catalog.controllers import CatalogControllers
from catalog.database import MongoDBManager
from catalog.errors import CatalogError
from catalog.repository import CatalogRepositories
from utilities.config import config
from utilities.logger import setup_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )
    logger.info("Starting Local Library")

    db_manager = MongoDBManager(config.mongodb_url, config.mongodb_database)
    try:
        database = await db_manager.connect()
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    app.state.db_manager = db_manager
    app.state.controllers = CatalogControllers(CatalogRepositories.from_database(database))

    yield

    logger.info("Shutting down Local Library")
    await db_manager.disconnect()


app = FastAPI(
    title=api_config.api_title,
    description=api_config.api_description,
    version=api_config.api_version,
    lifespan=lifespan
)
app.include_router(router)


# Exception handlers
@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError):
    """Render catalog errors (e.g. missing records) with their status."""
    logger.info("Catalog error", error=exc.message, status_code=exc.status_code, path=request.url.path)
    return render_error(request, exc.message, exc.status_code)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions, including store failures."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return render_error(
        request,
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(exc) if api_config.debug else None,
    )


@app.get("/", include_in_schema=False)
async def home():
    return RedirectResponse("/catalog/", status_code=status.HTTP_302_FOUND)


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint."""
    db_manager = getattr(request.app.state, "db_manager", None)
    if db_manager is None:
        return HealthResponse(
            status="degraded",
            timestamp=datetime.now(timezone.utc),
            version=api_config.api_version,
            database_status="unavailable"
        )

    health_info = await db_manager.health_check()
    db_status = health_info.get("status", "unknown")
    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=api_config.api_version,
        database_status=db_status,
        detail=health_info.get("error")
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug,
        log_level=api_config.log_level.lower()
    )
