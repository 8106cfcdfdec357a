"""List entry API main application module.

This module initializes the FastAPI application and configures
core middleware, routers, and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from listentries.api.health import router as health_router
from listentries.api.listentries import router as listentries_router
from listentries.api.middleware import setup_middleware
from listentries.domain.exceptions import (
    AuthorizationDeniedError,
    DomainError,
    EntityNotFoundError,
    InvalidStateTransitionError,
    ValidationFailedError,
)
from listentries.infrastructure.config import settings
from listentries.infrastructure.database import create_tables, dispose_engine
from listentries.infrastructure.index_client import IndexedSearchError
from listentries.infrastructure.indexed_search import close_indexed_search
from listentries.infrastructure.logging_config import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    configure_logging()
    logger.info(
        "Starting list entry API",
        version=settings.api_version,
        debug=settings.debug,
        entry_store=settings.entry_store_backend,
        indexed_search=bool(settings.search_service_url),
    )

    if settings.entry_store_backend == "database":
        await create_tables()
        logger.info("Database tables ready")

    yield

    logger.info("Shutting down list entry API")
    await close_indexed_search()
    if settings.entry_store_backend == "database":
        await dispose_engine()


app = FastAPI(
    title="Catalog List Entry API",
    description="Unified search, link, move and delete over catalog categories and products",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware (must be added before custom middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware (request ID, API key auth, error handling)
setup_middleware(app)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(listentries_router)


# ============================================================================
# Custom Exception Handlers
# ============================================================================


DOMAIN_ERROR_STATUS: dict[type[DomainError], int] = {
    AuthorizationDeniedError: status.HTTP_403_FORBIDDEN,
    ValidationFailedError: status.HTTP_400_BAD_REQUEST,
    EntityNotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidStateTransitionError: status.HTTP_409_CONFLICT,
}


def _status_for(exc: DomainError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in DOMAIN_ERROR_STATUS:
            return DOMAIN_ERROR_STATUS[error_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_body(
    request: Request, error_code: str, message: str, details: dict | list
) -> dict:
    return {
        "error_code": error_code,
        "message": message,
        "details": details,
        "request_id": getattr(request.state, "request_id", None),
    }


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Map domain errors to their transport status."""
    status_code = _status_for(exc)
    logger.warning(
        "Request rejected",
        path=request.url.path,
        error_code=exc.error_code,
        status_code=status_code,
        error=exc.message,
    )
    return JSONResponse(
        status_code=status_code,
        content=_error_body(request, exc.error_code, exc.message, exc.details),
    )


@app.exception_handler(IndexedSearchError)
async def indexed_search_error_handler(request: Request, exc: IndexedSearchError) -> JSONResponse:
    """Report index service failures as a bad gateway."""
    logger.error(
        "Indexed search failed",
        path=request.url.path,
        kind=exc.kind,
        upstream_status=exc.status_code,
        error=exc.message,
    )
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=_error_body(
            request,
            "INDEXED_SEARCH_ERROR",
            exc.message,
            {"kind": exc.kind, "upstream_status": exc.status_code},
        ),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error_code", "ERROR")
        message = detail.get("message", str(detail))
        details = detail.get("details", {})
    else:
        error_code = "ERROR"
        message = str(detail)
        details = {}

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, error_code, message, details),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with consistent format."""
    logger.exception(
        "Unhandled exception in handler",
        path=request.url.path,
        method=request.method,
        error=str(exc),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, "INTERNAL_ERROR", "An internal error occurred", {}),
    )
