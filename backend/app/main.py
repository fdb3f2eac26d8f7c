"""
backend/app/main.py

FastAPI Entrypoint.

Responsibilities:
- Build the settings once and attach them to the app
- Setup middleware (origin guard) and error handlers
- Register the prediction proxy router
- Health check endpoint
"""

from typing import Optional

from fastapi import FastAPI

from app.core.config import Settings
from app.core.cors import OriginGuardMiddleware
from app.core.errors import register_error_handlers
from app.core.logger import logger, setup_logger
from app.routes import predict


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logger(settings.log_level)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Server-side proxy from image uploads to Replicate image-to-3D predictions",
        version="0.1.0",
    )
    app.state.settings = settings

    app.add_middleware(OriginGuardMiddleware, allowed_origin=settings.allowed_origin)
    register_error_handlers(app)

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"message": f"{settings.PROJECT_NAME} is running"}

    app.include_router(predict.router)

    if not settings.replicate_api_token:
        logger.warning("REPLICATE_API_TOKEN is not set; prediction requests will fail")
    logger.info(
        f"Staging backend: {settings.staging_backend}; "
        f"allowed origin: {settings.allowed_origin or 'localhost (development fallback)'}"
    )
    return app


app = create_app()
