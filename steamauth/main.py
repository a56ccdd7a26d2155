"""
FastAPI Application Factory
===========================

Entry point for the Steam sign-in service.

Routers:
    - /auth/*   : Steam OpenID sign-in, logout, profile and refresh
    - /health   : Health check endpoint

Environment Variables:
    - STEAM_AUTH_API_KEY: Steam Web API key (required)
    - STEAM_AUTH_LOGIN_PAGE / STEAM_AUTH_LOGOUT_PAGE: Optional redirect pages
    - STEAM_AUTH_SKIP_API: Only keep the steamid (default: false)
    - SESSION_SECRET: Secret for signing the session cookie
    - LOG_LEVEL: Logging level (default: INFO)

Running the Service:
    Development:
        uvicorn steamauth.main:app --reload --host 0.0.0.0 --port 8080

    Production:
        uvicorn steamauth.main:app --host 0.0.0.0 --port 8080 --workers 4
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from steamauth import __version__
from steamauth.auth import MissingCredential, auth_router
from steamauth.config import get_settings
from steamauth.models import ErrorResponse, HealthResponse


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup: configure logging and log service information.
    Shutdown: log shutdown information.
    """
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    logger = logging.getLogger("steamauth.main")

    logger.info(
        "Starting Steam sign-in service",
        extra={"version": __version__, "log_level": settings.LOG_LEVEL}
    )

    yield

    logger.info("Steam sign-in service shutdown complete")


def create_app(
    steam_options: Optional[Dict[str, Any]] = None,
    http_client: Optional[httpx.Client] = None,
) -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application instance with:
        - Lifespan management
        - Signed cookie sessions
        - Route handlers
        - Exception handlers

    Args:
        steam_options: Explicit AuthSession arguments (api_key, login_page, ...);
            STEAM_AUTH_* environment variables override them
        http_client: Shared client for Steam calls; one per call if omitted

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Steam Sign-in Service",
        description="Sign in through Steam using OpenID 2.0",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.steam_options = dict(steam_options or {})
    app.state.http_client = http_client

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET,
        session_cookie=settings.SESSION_COOKIE_NAME,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        https_only=settings.SESSION_HTTPS_ONLY,
        same_site="lax",
    )

    app.include_router(auth_router)

    @app.get("/health", tags=["System"], response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="ok", service="steamauth", version=__version__)

    @app.exception_handler(MissingCredential)
    async def missing_credential_handler(request: Request, exc: MissingCredential) -> JSONResponse:
        """The service cannot talk to Steam without an API key."""
        logging.getLogger("steamauth.main").error(
            f"Configuration error: {exc}",
            extra={"path": request.url.path}
        )
        body = ErrorResponse(error="configuration_error", message=str(exc))
        return JSONResponse(status_code=500, content=body.model_dump(mode="json"))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled errors.

        Logs the error and returns a standardized error response.
        """
        logging.getLogger("steamauth.main").error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

        body = ErrorResponse(
            error="internal_server_error",
            message="An unexpected error occurred",
            detail=str(exc) if settings.debug_enabled else None,
        )
        return JSONResponse(status_code=500, content=body.model_dump(mode="json"))

    return app


# Create app instance for uvicorn
app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "steamauth.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
