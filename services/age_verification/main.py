"""
Age Verification Service - Main Application
===========================================

FastAPI application for privacy-preserving age verification and bet
eligibility checks.

Version: 0.1.0
"""

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from services.age_verification import __version__
from services.age_verification.dependencies import get_verification_service
from services.age_verification.routes import commitment, eligibility, proofs
from shared.config import settings
from shared.logging import bind_context, clear_context, get_logger, setup_logging
from shared.models.common import ErrorResponse, HealthResponse


# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="age-verification",
)

logger = get_logger(__name__)


async def sweep_expired_credentials(interval_seconds: float) -> None:
    """Periodically drop expired credentials from the store."""
    while True:
        await asyncio.sleep(interval_seconds)
        get_verification_service().store.purge_expired()


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "age_verification_service_starting",
        environment=settings.environment.value,
        port=settings.ports.age_verification,
        proof_backend=settings.proof.backend.value,
    )

    # Startup
    service = get_verification_service()
    logger.info("proof_backend_ready", backend=service.backend.name)

    sweeper = asyncio.create_task(
        sweep_expired_credentials(settings.credentials.sweep_interval_seconds)
    )

    yield

    # Shutdown
    logger.info("age_verification_service_shutting_down")
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper


# Create FastAPI application
app = FastAPI(
    title="AgeProof Verification Service",
    description="Privacy-preserving age verification for sports betting",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID"],
)


@app.middleware("http")
async def request_context(request: Request, call_next: Any) -> Any:
    """Bind request-scoped logging context."""
    request_id = request.headers.get("x-request-id") or uuid4().hex
    clear_context()
    bind_context(request_id=request_id, method=request.method, path=request.url.path)

    logger.info("request_received")
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """
    Service liveness check.

    Reports the proof backend and credential cache alongside the service
    status.
    """
    service = get_verification_service()

    components: dict[str, dict[str, Any]] = {
        "proof_backend": await service.backend.health_check(),
        "credential_store": {"status": "healthy", "credentials": len(service.store)},
    }

    all_healthy = all(c.get("status") == "healthy" for c in components.values())

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        service="age-verification",
        version=__version__,
        components=components,
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "AgeProof Verification Service",
        "version": __version__,
        "docs": "/docs",
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(
    commitment.router,
    prefix="/commitment",
    tags=["Identity Commitments"],
)

app.include_router(
    proofs.router,
    prefix="/proof",
    tags=["Age Proofs"],
)

app.include_router(
    eligibility.router,
    prefix="/eligibility",
    tags=["Bet Eligibility"],
)


# ============================================================================
# Error Handlers
# ============================================================================


def _error_response(status_code: int, error: str, **kwargs: Any) -> JSONResponse:
    body = ErrorResponse(error=error, status_code=status_code, **kwargs)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle malformed request bodies.

    Submitted values are dropped from the error details since they may be
    private attributes.
    """
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    logger.warning("request_validation_error", path=request.url.path, fields=[d["field"] for d in details])
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "Invalid request fields",
        error_code="INVALID_REQUEST",
        details=details,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.age_verification.main:app",
        host="0.0.0.0",
        port=settings.ports.age_verification,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )
