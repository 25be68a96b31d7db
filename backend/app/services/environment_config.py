"""Environment configuration loading.

The configuration is derived from settings. When ``ENVIRONMENT_CONFIG_PATH``
points at a JSON file, that file is used instead and must validate.
"""

import asyncio
import logging
from pathlib import Path

import httpx
from pydantic import ValidationError
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from app.config import Settings
from app.core.exceptions import ConfigurationError
from app.models.environment_config import (
    DatabaseEndpoint,
    EnvironmentConfig,
    HealthChecksConfig,
    ServiceEndpoint,
    ServicesConfig,
)

logger = logging.getLogger(__name__)


def _endpoint(url: str, default_port: int) -> ServiceEndpoint:
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise ConfigurationError(f"Invalid service URL {url!r}: {exc}") from exc
    return ServiceEndpoint(host=parsed.host or "localhost", port=parsed.port or default_port)


def derive_environment_config(settings: Settings) -> EnvironmentConfig:
    try:
        db_url = make_url(settings.database_url)
    except ArgumentError as exc:
        raise ConfigurationError(f"Invalid DATABASE_URL: {exc}") from exc

    return EnvironmentConfig(
        services=ServicesConfig(
            app_frontend=_endpoint(settings.app_frontend_url, 3000),
            backend=_endpoint(settings.api_server_url, 3003),
            database=DatabaseEndpoint(
                host=db_url.host or "localhost",
                port=db_url.port or 5432,
                name=db_url.database or "",
                user=db_url.username or "",
            ),
            redis=_endpoint(settings.redis_url, 6379),
        ),
        health_checks=HealthChecksConfig(
            interval=settings.health_check_interval_seconds,
            timeout=settings.health_probe_timeout_ms,
        ),
    )


def load_environment_config(settings: Settings) -> EnvironmentConfig:
    """Load the environment configuration or raise ConfigurationError."""
    if not settings.environment_config_path:
        return derive_environment_config(settings)

    path = Path(settings.environment_config_path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read configuration file {path}: {exc}") from exc

    try:
        return EnvironmentConfig.model_validate_json(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration file {path}: {exc}") from exc


async def configuration_available(settings: Settings) -> bool:
    """Whether the configuration loads. The file read runs off the event loop."""
    try:
        await asyncio.to_thread(load_environment_config, settings)
    except ConfigurationError:
        logger.warning("Environment configuration unavailable", exc_info=True)
        return False
    return True
