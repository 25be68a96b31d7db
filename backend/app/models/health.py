"""Detailed health report models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DependencyState(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class OverallHealth(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"


class _HealthModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class DependencyHealth(_HealthModel):
    status: DependencyState
    response_time: float  # milliseconds
    error: str | None = None


class DetailedHealth(_HealthModel):
    """Health of the API's dependencies, keyed by service id."""

    status: OverallHealth
    timestamp: datetime
    service: str = "backend-api"
    response_time: float  # milliseconds, whole report
    dependencies: dict[str, DependencyHealth]
