"""FastAPI application entry point."""

import uuid as _uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from crm_engine import __version__
from crm_engine.api.v1.router import api_router
from crm_engine.config import get_settings
from crm_engine.dependencies import create_backend_client
from crm_engine.exceptions import BackendError, SelectionValidationError
from crm_engine.utils.logging import get_logger, setup_logging

settings = get_settings()
logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Rate limiter (shared instance used by routers via app.state.limiter)
# ---------------------------------------------------------------------------
limiter = Limiter(key_func=get_remote_address, default_limits=["120/minute"])

# Upstream statuses the caller should see as-is
_PASSTHROUGH_STATUSES = {
    status.HTTP_401_UNAUTHORIZED,
    status.HTTP_403_FORBIDDEN,
    status.HTTP_404_NOT_FOUND,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager — owns all shared resources."""
    logger.info("Starting CRM Selection Engine...")
    logger.info("Environment: %s", settings.environment)
    logger.info("CRM backend: %s", settings.backend_api_url)

    app.state.backend_client = create_backend_client(settings)

    yield

    logger.info("Shutting down CRM Selection Engine...")
    try:
        await app.state.backend_client.close()
    except Exception:
        logger.warning("Failed to close CRM backend client", exc_info=True)
    logger.info("Shutdown complete.")


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "n/a")


# ---------------------------------------------------------------------------
# Request ID middleware — inject X-Request-ID for distributed tracing
# ---------------------------------------------------------------------------


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Inject a unique request ID into every request/response cycle."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(_uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


# ---------------------------------------------------------------------------
# Security headers middleware
# ---------------------------------------------------------------------------


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add standard security headers to every response."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = (
                "max-age=63072000; includeSubDomains; preload"
            )
        return response


# ---------------------------------------------------------------------------
# Exception handlers — typed engine errors, never leak internals
# ---------------------------------------------------------------------------


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SelectionValidationError)
    async def _selection_error_handler(request: Request, exc: SelectionValidationError):
        return JSONResponse(
            status_code=422,
            content={"detail": exc.errors},
        )

    @app.exception_handler(BackendError)
    async def _backend_error_handler(request: Request, exc: BackendError):
        logger.warning(
            "CRM backend failure on %s %s (request_id=%s): %s",
            request.method,
            request.url.path,
            _request_id(request),
            exc,
        )
        if exc.status_code in _PASSTHROUGH_STATUSES:
            return JSONResponse(
                status_code=exc.status_code,
                content={"detail": "Rejected by CRM backend"},
            )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": "CRM backend unavailable"},
        )

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled exception on %s %s (request_id=%s)",
            request.method,
            request.url.path,
            _request_id(request),
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_application() -> FastAPI:
    """Application factory."""
    setup_logging(settings.log_level)

    app = FastAPI(
        title="CRM Selection Engine API",
        description="Audience segmentation previews and customer directory queries.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Request ID and security headers (outermost = runs first)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"]
        if settings.is_development
        else [settings.frontend_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    _register_exception_handlers(app)

    app.include_router(api_router, prefix="/api/v1")

    # ------------------------------------------------------------------
    # Health check endpoints (no prefix)
    # ------------------------------------------------------------------

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        """Liveness check — is the process running?"""
        return {
            "status": "healthy",
            "service": "crm-selection-engine",
            "version": __version__,
        }

    @app.get("/ready", tags=["Health"])
    async def readiness_check(request: Request):
        """Readiness check — can the CRM backend be reached?"""
        reachable = await request.app.state.backend_client.ping()
        payload = {
            "status": "ready" if reachable else "degraded",
            "checks": {"backend": "ok" if reachable else "unavailable"},
        }
        if not reachable:
            return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=payload)
        return payload

    return app


# Create the application instance
app = create_application()
