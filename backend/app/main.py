"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.dependencies import ServiceStatusDep
from app.api.routes import config, services, setup
from app.config import settings
from app.core.exceptions import ConfigurationError, ServiceNotFoundError
from app.core.fanout import gather_settled
from app.core.probes import postgres_check, redis_check, timed_probe
from app.middleware.request_id import RequestIDLogFilter, RequestIDMiddleware
from app.models.envelope import ApiError, error_response
from app.models.health import DetailedHealth
from app.services.connections import ProbeResources

logger = logging.getLogger(__name__)

# Configure logging format based on dev_mode
if not settings.dev_mode:
    _log_format = (
        '{"time":"%(asctime)s","level":"%(levelname)s","name":"%(name)s",'
        '"request_id":"%(request_id)s","message":"%(message)s"}'
    )
else:
    _log_format = "%(asctime)s %(levelname)-8s %(name)s [%(request_id)s]: %(message)s"

_log_handler = logging.StreamHandler()
_log_handler.setFormatter(logging.Formatter(_log_format))
_log_handler.addFilter(RequestIDLogFilter())
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    handlers=[_log_handler],
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - opens and closes probe resources."""
    app.state.probe_resources = ProbeResources.open(settings)
    yield
    resources: ProbeResources = app.state.probe_resources
    app.state.probe_resources = None
    await resources.aclose()

app = FastAPI(
    title="Dev Environment Readiness API",
    description="Prerequisite, service health and setup progress for the developer dashboard",
    version="0.1.0",
    docs_url="/docs" if settings.dev_mode else None,
    redoc_url="/redoc" if settings.dev_mode else None,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Security headers middleware
# ---------------------------------------------------------------------------

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        # Readiness data is recomputed on every request.
        response.headers.setdefault("Cache-Control", "no-store")
        return response


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIDMiddleware)


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

@app.exception_handler(ServiceNotFoundError)
async def _service_not_found_handler(_request: Request, exc: ServiceNotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content=error_response([ApiError(code="SERVICE_NOT_FOUND", message=str(exc), field="service_id")]),
    )


@app.exception_handler(ConfigurationError)
async def _configuration_handler(_request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.warning("Configuration unavailable: %s", exc)
    return JSONResponse(
        status_code=503,
        content=error_response([ApiError(code="CONFIGURATION_UNAVAILABLE", message=str(exc))]),
    )


@app.exception_handler(Exception)
async def _global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception on %s %s", request.method, request.url.path, exc_info=True)
    detail = str(exc) if settings.dev_mode else "Internal server error"
    return JSONResponse(
        status_code=500,
        content=error_response([ApiError(code="INTERNAL_ERROR", message=detail)]),
    )


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "X-Request-ID"],
)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(setup.router, prefix="/api/setup", tags=["setup"])
app.include_router(services.router, prefix="/api/services", tags=["services"])
app.include_router(config.router, prefix="/api/config", tags=["config"])

# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@app.get("/health")
async def health_check() -> dict:
    """Liveness check: verifies the API process is alive."""
    return {"status": "healthy", "service": "backend-api", "version": app.version}


@app.get("/health/ready")
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness check: verifies DB and Redis are reachable."""
    resources: ProbeResources | None = getattr(request.app.state, "probe_resources", None)
    checks: dict[str, str] = {"database": "unavailable", "redis": "unavailable"}

    if resources is not None:
        outcomes = await gather_settled([
            ("database", timed_probe(postgres_check(resources.engine), settings.health_probe_timeout)),
            ("redis", timed_probe(redis_check(resources.redis), settings.health_probe_timeout)),
        ])
        for outcome in outcomes:
            if outcome.ok and outcome.value is not None and outcome.value.healthy:
                checks[outcome.key] = "ok"

    all_ok = all(v == "ok" for v in checks.values())
    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={"status": "ready" if all_ok else "degraded", "services": checks},
    )


@app.get("/health/detailed", response_model=DetailedHealth, response_model_exclude_none=True)
async def detailed_health_check(aggregator: ServiceStatusDep) -> DetailedHealth:
    """Dependency health: database, Redis and each frontend, probed together."""
    return await aggregator.dependency_health()


@app.get("/api/version")
async def version() -> dict:
    """Return build / version metadata."""
    return {"version": app.version, "title": app.title}
