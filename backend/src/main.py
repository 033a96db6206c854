"""Inbox Dispatch Backend - Main FastAPI Application

Multi-tenant omnichannel message dispatch

This module creates and configures the main FastAPI application, including:
- API routers (messages, channels, conversations, contacts)
- Middleware (request ID correlation, tenant context, CORS)
- Exception handlers rendering {success: false, error, message, details?}
- Health and observability endpoints
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from dependencies import close_adapter_registry, get_adapter_registry

# Observability
from observability.logging_config import configure_logging
from observability.middleware import RequestIDMiddleware
from observability.router import router as observability_router

# Tenancy
from tenancy.middleware import TenantContextMiddleware

# Domain Routers
from messaging.errors import DispatchError, ErrorKind
from messaging.router import router as messages_router
from inbox.router import router as inbox_router

# Configure logging
configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)

_docs_enabled = settings.ENVIRONMENT != "production"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    - Startup: build the adapter registry (fails fast if incomplete)
    - Shutdown: close adapters and their HTTP client
    """
    logger.info("Inbox dispatch API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    get_adapter_registry()

    yield

    logger.info("Inbox dispatch API shutting down...")
    close_adapter_registry()


app = FastAPI(
    title="Inbox Dispatch API",
    description="Omnichannel message dispatch and identity resolution for a multi-tenant inbox",
    version="1.0.0",
    docs_url="/docs" if _docs_enabled else None,
    redoc_url="/redoc" if _docs_enabled else None,
    openapi_url="/openapi.json" if _docs_enabled else None,
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE CONFIGURATION
# =============================================================================

# Tenant context first so request logs (outer middleware) can read it
app.add_middleware(TenantContextMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

# Request ID Middleware (outermost for proper correlation)
app.add_middleware(RequestIDMiddleware)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

@app.exception_handler(DispatchError)
async def dispatch_exception_handler(request: Request, exc: DispatchError) -> JSONResponse:
    """Render dispatch errors with their kind and HTTP status."""
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        f"{exc.kind.value} on {request.method} {request.url.path}: {exc.message}",
        extra={"error_kind": exc.kind.value, "status_code": exc.http_status},
    )
    return JSONResponse(status_code=exc.http_status, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors.

    Returns 400 VALIDATION_ERROR with field-level details.
    """
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg"),
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]
    logger.warning(
        f"Validation error on {request.method} {request.url.path}",
        extra={"error_kind": ErrorKind.VALIDATION_ERROR.value},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": ErrorKind.VALIDATION_ERROR.value,
            "message": "Invalid request data",
            "details": details,
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (401, 404, 405) in the standard error shape."""
    error = "UNAUTHORIZED" if exc.status_code == status.HTTP_401_UNAUTHORIZED else "HTTP_ERROR"
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": error, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """Handle database errors.

    Logs the full error but returns a generic message to prevent
    information leakage.
    """
    logger.error(
        f"Database error on {request.method} {request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "DATABASE_ERROR",
            "message": "A database error occurred. Please try again later.",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle uncaught exceptions.

    Full details are logged but not exposed to the client.
    """
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


# =============================================================================
# ROUTER REGISTRATION
# =============================================================================

# Observability (health, metrics, ready, /api/v1/health)
app.include_router(observability_router)

# Messaging
app.include_router(messages_router, prefix="/api/v1")

# Channels, conversations, contacts
app.include_router(inbox_router, prefix="/api/v1")


# =============================================================================
# ROOT ENDPOINTS
# =============================================================================

@app.get("/", include_in_schema=False)
async def root() -> dict[str, Any]:
    """Root endpoint - API information."""
    return {
        "name": "Inbox Dispatch API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs" if _docs_enabled else None,
    }


@app.get("/api/v1", include_in_schema=False)
async def api_root() -> dict[str, Any]:
    """API v1 root endpoint."""
    return {
        "version": "v1",
        "status": "active",
        "endpoints": {
            "messages": "/api/v1/messages",
            "channels": "/api/v1/channels",
            "conversations": "/api/v1/conversations",
            "contacts": "/api/v1/contacts",
            "health": "/api/v1/health",
        }
    }


def create_app() -> FastAPI:
    """Application factory for creating test instances."""
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
