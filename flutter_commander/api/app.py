"""FastAPI application factory for flutter-commander."""

from __future__ import annotations

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..core.config import config
from ..core.exceptions import FlutterCommanderError
from ..core.logger import log
from .routes import (
    get_commander,
    inspection_router,
    interaction_router,
    session_router,
    to_http_error,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # The flutter process must not outlive the server
    await get_commander().shutdown()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="flutter-commander API",
        description="Dev session control and UI inspection for Flutter apps on Android",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request logging with latency
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        log.info(f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.0f}ms)")
        return response

    # Anything a route did not map itself
    @app.exception_handler(FlutterCommanderError)
    async def commander_error_handler(request: Request, exc: FlutterCommanderError) -> JSONResponse:
        error = to_http_error(exc)
        log.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse(status_code=error.status_code, content={"detail": error.detail})

    # Include routers
    app.include_router(session_router, prefix="/api/v1/session", tags=["session"])
    app.include_router(inspection_router, prefix="/api/v1/inspection", tags=["inspection"])
    app.include_router(interaction_router, prefix="/api/v1/interaction", tags=["interaction"])

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "flutter-commander API",
            "version": __version__,
        }

    log.debug("FastAPI application created")
    return app
