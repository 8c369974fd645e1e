"""
AI Prime API - Video Production Dashboard
FastAPI Backend Entry Point
"""

import logging
import mimetypes
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from aiprime.api import jobs, system, video
from aiprime.api.deps import AppServices, build_services
from aiprime.core.config import settings
from aiprime.core.database import init_db
from aiprime.core.errors import ErrorKey, PipelineError, error_payload
from aiprime.core.logging import setup_logging

VERSION = "0.1.0"

setup_logging()
logger = logging.getLogger(__name__)


def create_app(services: Optional[AppServices] = None) -> FastAPI:
    """
    Build the application.

    ``services`` replaces the default service graph (tests pass one wired
    to in-memory state and fake Gemini clients).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        logger.info("Starting AI Prime API...")
        app_services = services
        if app_services is None:
            init_db()
            app_services = build_services()
        app.state.services = app_services

        if app_services.settings.PROCESSOR_AUTOSTART:
            await app_services.processor.start()
        yield

        logger.info("Shutting down AI Prime API...")
        await app_services.processor.stop()
        app_services.state_storage.close()

    app = FastAPI(
        title="AI Prime API",
        description="Video production queue with Gemini prompt enhancement and Veo rendering",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    config = services.settings if services is not None else settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PipelineError)
    async def _pipeline_error_handler(_request: Request, exc: PipelineError) -> JSONResponse:
        logger.error(f"Pipeline error ({exc.error_key.value}): {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=error_payload(exc.message, exc.error_key))

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning(f"Request validation error: {exc.errors()}")
        message = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return JSONResponse(status_code=400, content=error_payload(message or "Invalid request."))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=error_payload(str(exc.detail)))

    @app.exception_handler(Exception)
    async def _generic_error_handler(_request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content=error_payload("An unexpected error occurred.", ErrorKey.GENERIC),
        )

    # Include routers
    app.include_router(jobs.router, prefix="/api/jobs", tags=["Jobs"])
    app.include_router(video.router, prefix="/api", tags=["Video Generation"])
    app.include_router(system.directives_router, prefix="/api/directives", tags=["Directives"])
    app.include_router(system.router, prefix="/api/system", tags=["System"])

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """
        Health check endpoint for Cloud Run and monitoring.
        Returns detailed status of critical services.
        """
        app_services: AppServices = request.app.state.services
        status = {
            "status": "healthy",
            "version": VERSION,
            "environment": {
                "state": app_services.state_storage.backend_name,
                "storage": "gcs" if app_services.settings.USE_GCS else "local",
                "gemini": "configured" if app_services.settings.GEMINI_API_KEY else "missing",
            },
            "services": {},
            "processor": {
                "running": app_services.processor.running,
                "busy": app_services.processor.busy,
            },
        }

        state_health = app_services.state_storage.health_check()
        status["services"]["state"] = state_health["status"]
        if state_health["status"] != "ok":
            status["status"] = "degraded"

        try:
            status["services"]["storage"] = app_services.storage.health_check()
        except Exception as e:
            status["services"]["storage"] = f"error: {str(e)}"
            status["status"] = "degraded"

        return status

    @app.get("/files/{file_path:path}", tags=["Files"])
    async def serve_file(file_path: str, request: Request):
        """Serve generated videos from storage."""
        storage = request.app.state.services.storage
        try:
            file_bytes = await storage.get_file(file_path)
        except (FileNotFoundError, ValueError) as e:
            raise HTTPException(status_code=404, detail=f"File not found: {file_path}") from e

        content_type = mimetypes.guess_type(file_path)[0] or "application/octet-stream"
        return Response(
            content=file_bytes,
            media_type=content_type,
            headers={"Cache-Control": "public, max-age=3600"},
        )

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint."""
        return {
            "message": "AI Prime API - Video Production Dashboard",
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()
