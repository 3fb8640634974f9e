"""FastAPI application entry point.

Configures the application with logging, exception handling, metrics
and health checks.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from src import __version__
from src.api.routes import router
from src.config import get_settings
from src.exceptions import ErrorCode, VectorServiceError
from src.logging_config import get_logger, setup_logging
from src.memory.service import VectorMemoryService
from src.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Builds and initializes the service unless one was injected; startup
    fails if the model or the collection cannot be prepared.
    """
    settings = get_settings()
    setup_logging(level=settings.log_level)
    logger.info(
        "Starting vector service",
        extra={
            "version": __version__,
            "environment": settings.environment.value,
        },
    )

    owned = app.state.service is None
    if owned:
        service = VectorMemoryService.from_settings(settings)
        await service.initialize()
        app.state.service = service

    yield

    logger.info("Shutting down vector service")
    if owned and app.state.service is not None:
        await app.state.service.close()
        app.state.service = None


def create_app(service: VectorMemoryService | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        service: Pre-built service. When omitted, one is created from
            settings at startup.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Semantic Vector Store",
        description="Text embedding storage and vector similarity search",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.service = service

    app.add_middleware(MetricsMiddleware)
    app.add_exception_handler(VectorServiceError, service_exception_handler)

    app.include_router(router)
    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/ready", readiness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/live", liveness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], include_in_schema=False)

    return app


async def service_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Convert VectorServiceError exceptions to structured JSON responses."""
    if not isinstance(exc, VectorServiceError):
        return JSONResponse(
            status_code=500,
            content={"error": {"code": ErrorCode.INTERNAL_ERROR.value, "message": str(exc), "details": {}}},
        )

    status_code = _get_status_code(exc.code)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"Request failed: {exc.message}",
        extra={
            "error_code": exc.code.value,
            "path": request.url.path,
            "details": exc.details,
        },
    )

    return JSONResponse(
        status_code=status_code,
        content=exc.to_dict(),
    )


_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.DIMENSION_MISMATCH: 400,
    ErrorCode.RECORD_NOT_FOUND: 404,
    ErrorCode.COLLECTION_NOT_FOUND: 404,
    ErrorCode.COLLECTION_EXISTS: 409,
    ErrorCode.NOT_INITIALIZED: 503,
    ErrorCode.EMBEDDING_SERVICE_ERROR: 502,
    ErrorCode.EMBEDDING_MODEL_LOAD_ERROR: 502,
    ErrorCode.EMBEDDING_OUTPUT_ERROR: 502,
    ErrorCode.VECTOR_STORE_ERROR: 502,
}


def _get_status_code(error_code: ErrorCode) -> int:
    """Map error code to HTTP status code."""
    return _STATUS_BY_CODE.get(error_code, 500)


async def health_check() -> dict[str, Any]:
    """Basic health check endpoint.

    Returns:
        Health status with version and timestamp.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def readiness_check(request: Request) -> JSONResponse:
    """Kubernetes readiness probe.

    Ready once the service is initialized and its collaborators answer.
    """
    service: VectorMemoryService | None = request.app.state.service
    checks: dict[str, str] = {"config": "ok"}

    if service is None or not service.is_initialized:
        checks["service"] = "not_initialized"
    else:
        checks["service"] = "ok"
        for component, healthy in (await service.health_details()).items():
            checks[component] = "ok" if healthy else "unavailable"

    all_ok = all(v == "ok" for v in checks.values())
    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ready" if all_ok else "not_ready",
            "checks": checks,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness probe.

    Returns:
        Liveness status.
    """
    return {"status": "alive"}


async def metrics_endpoint() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


def run() -> None:
    """Run the API server with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "src.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )


# Create the application instance
app = create_app()
