"""
Registry Service - Main Application
===================================

FastAPI application for confidential income verification.

Version: 0.1.0
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from incomeguard.config import settings
from incomeguard.fhe import get_confidential_service
from incomeguard.ledger import get_ledger_host
from incomeguard.logging import clear_context, get_logger, setup_logging
from incomeguard.models import ErrorResponse, HealthResponse
from incomeguard.registry import (
    ExpiredError,
    InvalidInputError,
    NotActiveError,
    NotFoundError,
    NotPendingError,
    RegistryError,
    UnauthorizedError,
    get_registry,
)
from services.registry.routes import registry, requests, verifications


# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="registry",
)

logger = get_logger(__name__)

# Most specific first: NotFoundError is also an InvalidInputError
ERROR_STATUS: list[tuple[type[RegistryError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (UnauthorizedError, status.HTTP_403_FORBIDDEN),
    (NotPendingError, status.HTTP_409_CONFLICT),
    (NotActiveError, status.HTTP_409_CONFLICT),
    (ExpiredError, status.HTTP_410_GONE),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "registry_service_starting",
        environment=settings.environment.value,
        port=settings.ports.registry,
    )

    try:
        deployed = get_registry()
        logger.info(
            "registry_ready",
            address=deployed.address,
            authority=deployed.authority,
            ledger_mode=settings.ledger.mode.value,
            fhe_mode=settings.fhe.mode.value,
        )
    except Exception as e:
        logger.error("startup_failed", error=str(e))
        raise

    yield

    logger.info("registry_service_shutting_down")


app = FastAPI(
    title="IncomeGuard Registry Service",
    description="Confidential income verification over encrypted claims",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """
    Service health check.

    Returns health status of the service and its dependencies.
    """
    components: dict[str, dict[str, Any]] = {
        "ledger": get_ledger_host().health_check(),
        "fhe": get_confidential_service().health_check(),
    }

    all_healthy = all(c.get("status") == "healthy" for c in components.values())

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        service="registry",
        version="0.1.0",
        components=components,
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "IncomeGuard Registry Service",
        "version": "0.1.0",
        "docs": "/docs",
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(
    requests.router,
    prefix="/api/v1/requests",
    tags=["Requests"],
)

app.include_router(
    verifications.router,
    prefix="/api/v1/verifications",
    tags=["Verifications"],
)

app.include_router(
    registry.router,
    prefix="/api/v1/registry",
    tags=["Registry"],
)


# ============================================================================
# Error Handlers
# ============================================================================


def _status_for(exc: RegistryError) -> int:
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


@app.exception_handler(RegistryError)
async def registry_exception_handler(request: Request, exc: RegistryError) -> JSONResponse:
    """Translate registry failures into HTTP errors."""
    status_code = _status_for(exc)
    logger.warning(
        "registry_error",
        error_code=exc.code,
        detail=exc.message,
        status_code=status_code,
        path=request.url.path,
    )
    clear_context()
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=exc.message, error_code=exc.code).model_dump(mode="json"),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(mode="json"),
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error="Internal server error").model_dump(mode="json"),
    )


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.registry.main:app",
        host="0.0.0.0",
        port=settings.ports.registry,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )
