"""
drive_uploader/api/app.py

FastAPI application factory. Provider clients are built once per process in
the lifespan and injected into a single coordinator.
"""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings
from ..errors import UploaderError
from ..orchestrator import UploadCoordinator
from ..services import AppsScriptClient, DriveAPIClient, OAuthTokenSource
from .routes import router

logger = logging.getLogger(__name__)


def build_coordinator(settings: Settings, http_client: httpx.AsyncClient) -> UploadCoordinator:
    """Wire provider adapters around one shared HTTP client."""
    token_source = OAuthTokenSource(
        settings.client_id,
        settings.client_secret,
        settings.redirect_uri,
        settings.refresh_token,
        http_client=http_client,
    )
    drive = DriveAPIClient(token_source, http_client=http_client)
    lookup = None
    if settings.folder_lookup_url:
        lookup = AppsScriptClient(settings.folder_lookup_url, http_client=http_client)
    return UploadCoordinator(
        settings.root_folder_id,
        token_source,
        drive,
        folder_lookup=lookup,
        artifact_wait_timeout=settings.artifact_wait_timeout,
        artifact_poll_interval=settings.artifact_poll_interval,
    )


def _register_error_handlers(application: FastAPI) -> None:
    @application.exception_handler(UploaderError)
    async def _uploader_error(request: Request, exc: UploaderError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @application.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        messages = [
            f"{'.'.join(str(p) for p in error.get('loc', ()) if p != 'body')}: {error.get('msg')}"
            for error in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"error": "; ".join(messages) or "Invalid request."})

    @application.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": str(exc) or type(exc).__name__})


def create_app(
    settings: Optional[Settings] = None,
    coordinator: Optional[UploadCoordinator] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Passing ``coordinator`` skips provider wiring (used by tests). Otherwise
    settings are read from the environment, and a ConfigError aborts startup.
    """
    if coordinator is None and settings is None:
        settings = Settings.from_env()

    @asynccontextmanager
    async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
        if coordinator is not None:
            yield
            return

        async with httpx.AsyncClient(timeout=settings.http_timeout, follow_redirects=True) as client:
            application.state.coordinator = build_coordinator(settings, client)
            logger.info("Server is starting up and ready to receive requests!")
            try:
                yield
            finally:
                logger.info("Server shutting down")

    application = FastAPI(
        title="Drive Uploader",
        version=__version__,
        lifespan=_lifespan,
    )

    origins = list(settings.cors_origins) if settings else ["*"]
    application.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "Content-Range"],
    )

    if coordinator is not None:
        application.state.coordinator = coordinator

    _register_error_handlers(application)
    application.include_router(router)
    return application
