"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes
- Middleware (CORS, logging, rate limiting)
- Error handlers
- Startup/shutdown of the rate limiter cache

create_app() builds an independent application (own limiter, own cache),
which is what tests use; `app` is the instance served by uvicorn.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shortener import __version__
from shortener.api import endpoints
from shortener.core.cache import Clock
from shortener.core.exceptions import URLShortenerException
from shortener.core.rate_limit import initialize_rate_limiter, shutdown_rate_limiter
from shortener.core.setting import Settings, settings
from shortener.middleware.logging import add_logging_middleware
from shortener.middleware.rate_limit import add_rate_limit_middleware

logger = logging.getLogger(__name__)


def create_app(config: Optional[Settings] = None, clock: Optional[Clock] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Settings to use (defaults to the environment-loaded settings)
        clock: Clock for the rate limit cache (defaults to time.monotonic)
    """
    config = config or settings

    # Swagger UI / ReDoc are not exposed in production
    docs_enabled = not config.is_production
    app = FastAPI(
        title="URL Shortener Service",
        description="Shortens URLs, redirects short codes and counts hits",
        version=__version__,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )
    app.state.settings = config

    # Last added runs first: CORS -> logging -> rate limit -> routes
    if config.RATE_LIMIT_ENABLED:
        add_rate_limit_middleware(app)
    add_logging_middleware(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(URLShortenerException)
    async def url_shortener_exception_handler(request: Request, exc: URLShortenerException):
        logger.error(f"Unhandled service error on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "title": "An unexpected error occurred.",
                "detail": None if config.is_production else str(exc),
            },
        )

    # Health endpoints defined before router to match before any other route
    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint for health checks."""
        return {
            "message": "URL Shortener Service",
            "version": __version__,
            "docs": "/docs" if docs_enabled else None,
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        return {"status": "healthy"}

    app.include_router(endpoints.router, tags=["URL Shortener"])

    @app.on_event("startup")
    async def startup_event():
        await initialize_rate_limiter(app, config, clock=clock)

    @app.on_event("shutdown")
    async def shutdown_event():
        await shutdown_rate_limiter(app)

    return app


app = create_app()
