from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from prometheus_client import make_asgi_app

from api.api import api_router, stream_router
from core.config import Settings, get_settings
from core.logger import setup_logging
from gallery.services.metadata_extractor import MetadataExtractor
from gallery.services.path_guard import PathGuard
from gallery.services.scanner import DirectoryScanner
from gallery.services.transcoder import Transcoder

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info(f"🔧 Serving images from {settings.EXTERNAL_IMAGE_DIR}")
        logger.info("Available routes:")
        logger.info("- GET /api/images?folder=<subfolder>")
        logger.info("- GET /stream/image/<filepath>?w=<width>&q=<quality>&format=auto|webp|original")
        yield
        # Shutdown
        logger.info("🛑 Shutting down image server...")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Image listing and on-the-fly transcoding server",
        version="2.0.0",
        lifespan=lifespan,
    )

    path_guard = PathGuard(settings.EXTERNAL_IMAGE_DIR)
    app.state.settings = settings
    app.state.path_guard = path_guard
    app.state.scanner = DirectoryScanner(path_guard, MetadataExtractor())
    app.state.transcoder = Transcoder()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "HEAD", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        logger.info(
            f"📥 {request.method} {request.url.path} query={dict(request.query_params)}"
        )
        return await call_next(request)

    app.include_router(api_router, prefix="/api")
    app.include_router(stream_router, prefix="/stream")
    app.mount("/metrics", make_asgi_app())

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    @app.get("/test", response_class=PlainTextResponse)
    async def test_endpoint():
        logger.info("Test endpoint called")
        return "Test endpoint working"

    return app


if __name__ == "__main__":
    configs = get_settings()
    uvicorn.run(create_app(configs), host=configs.HOST, port=configs.PORT, log_config=None)
