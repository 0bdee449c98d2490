"""
FastAPI main application for RoomSpark
"""
import logging
import re
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from roomspark.core.config import settings
from roomspark.core.container import build_container
from roomspark.core.database import create_tables
from roomspark.core.exceptions import setup_exception_handlers
from roomspark.core.logging import setup_logging
from roomspark.middleware import RequestLoggingMiddleware
from roomspark.routers import files, generation, products, projects, upload
from roomspark.services.blob_storage import FILES_ROUTE
from roomspark.services.room_pipeline import RoomTransformationPipeline

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info(f"Starting {settings.app_name}...")

    sanitized = re.sub(r":\/\/[^:]*:[^@]*@", "://***:***@", settings.database_url)
    logger.info(f"Database: {sanitized}")

    await create_tables()

    # Providers are resolved once here and shared by every request
    container = build_container(settings)
    app.state.container = container
    app.state.pipeline = RoomTransformationPipeline(container)

    logger.info("Application started")

    yield

    logger.info(f"Shutting down {settings.app_name}...")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description="Room photo restyling and shoppable product discovery",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.environment == "development" else None,
        redoc_url="/redoc" if settings.environment == "development" else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    setup_exception_handlers(app)

    app.include_router(upload.router, prefix="/api", tags=["images"])
    app.include_router(generation.router, prefix="/api", tags=["images"])
    app.include_router(products.router, prefix="/api", tags=["products"])
    app.include_router(projects.router, prefix="/api", tags=["projects"])
    app.include_router(files.router, prefix=FILES_ROUTE, tags=["files"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": settings.app_name, "version": settings.version}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("roomspark.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
