# manuorder/main.py

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles

from .logging import logger
from .core.config import settings
from .core.error_handlers import setup_error_handlers, add_request_id_middleware
from .api.main import api_router
from .database.core import engine
from .database.models import Base
from .monitoring.metrics import generate_metrics_response, METRICS_CONTENT_TYPE


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting database initialization...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
    yield
    logger.info("Shutting down")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.API_TITLE,
        description=settings.API_DESCRIPTION,
        version=settings.API_VERSION,
        lifespan=lifespan,
    )

    setup_error_handlers(app)
    app.middleware("http")(add_request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api/v1")

    # Local fallback uploads are served straight from disk
    os.makedirs(settings.UPLOAD_ROOT, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_ROOT), name="uploads")

    @app.get("/health", tags=["Health"])
    def health_check():
        return {"status": "healthy", "version": settings.API_VERSION}

    @app.get("/metrics", tags=["Monitoring"])
    def metrics():
        return Response(content=generate_metrics_response(), media_type=METRICS_CONTENT_TYPE)

    return app


app = create_app()
