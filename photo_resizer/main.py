from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from photo_resizer.config import Settings, get_settings
from photo_resizer.errors import ImageProcessingError, ImageRequestError
from photo_resizer.handlers import process_image_handler
from photo_resizer.services.image_processor import ImageProcessor, PipelineOptions

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API with its configuration injected; nothing is read from globals after this."""

    settings = settings or get_settings()

    app = FastAPI(title="Photo Resizer API")
    app.state.settings = settings
    app.state.processor = ImageProcessor(PipelineOptions.from_settings(settings))

    cors_headers = {
        "Access-Control-Allow-Origin": settings.cors_allow_origin,
        "Access-Control-Allow-Methods": settings.cors_allow_methods,
        "Access-Control-Allow-Headers": settings.cors_allow_headers,
    }

    @app.middleware("http")
    async def cors(request: Request, call_next):
        # Preflight never reaches the routes.
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=cors_headers)
        response = await call_next(request)
        response.headers.update(cors_headers)
        return response

    @app.exception_handler(ImageRequestError)
    async def request_error(request: Request, exc: ImageRequestError):
        return JSONResponse(status_code=exc.status, content=exc.to_dict())

    @app.exception_handler(ImageProcessingError)
    async def processing_error(request: Request, exc: ImageProcessingError):
        logger.error("Error processing image: %s", exc.details)
        return JSONResponse(status_code=exc.status, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        message = "Method not allowed" if exc.status_code == 405 else exc.detail
        return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)

    app.include_router(process_image_handler.router)

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    return app


_settings = get_settings()
logging.basicConfig(level=_settings.log_level.upper())

app = create_app(_settings)
