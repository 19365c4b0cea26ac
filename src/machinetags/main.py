"""
Machinetags - Main Application.

FastAPI application exposing record tagging and tagged-with search.
"""

import logging
import sys
from contextlib import asynccontextmanager
from uuid import UUID, uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from machinetags import __version__
from machinetags.config import get_settings
from machinetags.deps import require_metrics
from machinetags.exceptions import MachineTagsException, ValidationException
from machinetags.modules import records_router, tags_router
from machinetags.observability import get_metrics_store
from machinetags.schemas import ErrorDetail, ErrorResponse, HealthResponse

# Configure standard logging
logging.basicConfig(
    level=get_settings().app_log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("machinetags")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    logger.info(
        f"Starting machinetags API v{__version__} "
        f"[env={settings.app_env}] "
        f"[store={settings.store.database_path}] "
        f"[features={settings.features.to_dict()}]"
    )
    yield
    logger.info("Shutting down machinetags API")


# Create FastAPI application
app = FastAPI(
    title="Machinetags API",
    description="Tag records with plain and machine tags and query them by tag.",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# =============================================================================
# Middleware
# =============================================================================


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID to all requests."""
    request_id = request.headers.get("X-Request-ID") or str(uuid4())
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    return response


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(f"[{request_id}] {request.method} {request.url.path}")

    response = await call_next(request)

    logger.info(f"[{request_id}] {request.method} {request.url.path} -> {response.status_code}")

    return response


# =============================================================================
# Exception Handlers
# =============================================================================


def _request_uuid(request: Request) -> UUID | None:
    """Request ID as a UUID, or None when the caller sent something else."""
    request_id = getattr(request.state, "request_id", None)
    if not request_id:
        return None
    try:
        return UUID(request_id)
    except (ValueError, TypeError):
        return None


def _error_response(request: Request, exc: MachineTagsException) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorDetail(
            code=exc.code,
            message=exc.message,
            details=exc.details,
            request_id=_request_uuid(request),
        )
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


@app.exception_handler(MachineTagsException)
async def machinetags_exception_handler(request: Request, exc: MachineTagsException):
    """Handle machinetags custom exceptions."""
    logger.warning(f"MachineTagsException: {exc.code} - {exc.message}")
    get_metrics_store().record_error(exc.code)
    return _error_response(request, exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies and parameters as VALIDATION_ERROR."""
    errors = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    return await machinetags_exception_handler(request, ValidationException("Invalid request", errors=errors))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled {type(exc).__name__} on {request.url.path}")
    get_metrics_store().record_error("INTERNAL_ERROR")

    message = str(exc) if get_settings().app_debug else "An unexpected error occurred"
    body = ErrorResponse(
        error=ErrorDetail(code="INTERNAL_ERROR", message=message, request_id=_request_uuid(request))
    )
    return JSONResponse(status_code=500, content=body.model_dump(mode="json"))


# =============================================================================
# Health Check / Metrics
# =============================================================================


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """Health check endpoint."""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        version=__version__,
        features=settings.features.to_dict(),
        app_env=settings.app_env,
        is_production=settings.is_production,
        store_backend="sqlite",
    )


@app.get("/metrics", tags=["health"], dependencies=[require_metrics])
async def metrics():
    """In-process query, parse and error metrics."""
    return get_metrics_store().get_summary()


# =============================================================================
# Register Module Routers
# =============================================================================

app.include_router(tags_router)
app.include_router(records_router)
