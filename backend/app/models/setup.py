"""Setup readiness and service status models.

Serialised with camelCase aliases, the shape the dashboard consumes.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class PrerequisiteState(str, Enum):
    CHECKING = "checking"
    INSTALLED = "installed"
    MISSING = "missing"


class ServiceState(str, Enum):
    OPERATIONAL = "operational"
    DEGRADED = "degraded"
    DOWN = "down"


class StepState(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"


class _ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Prerequisite(_ApiModel):
    """A tool the developer needs installed."""

    name: str
    status: PrerequisiteState = PrerequisiteState.CHECKING
    version: str | None = None
    required: bool
    description: str


class ServiceStatus(_ApiModel):
    """Point-in-time health of one dependent service."""

    id: str
    name: str
    endpoint: str
    status: ServiceState
    response_time: float  # milliseconds
    uptime: float  # ratio, 0..1
    last_checked: datetime


class SetupStep(_ApiModel):
    """One entry of the ordered setup sequence."""

    id: str
    name: str
    status: StepState
    service: str | None = None
    duration: float | None = None  # milliseconds


class SetupReadiness(_ApiModel):
    """Composed readiness view served to the dashboard."""

    prerequisites: list[Prerequisite]
    steps: list[SetupStep]
    all_prerequisites_met: bool
    completed_steps: int
    total_steps: int
    progress_percentage: float
    is_complete: bool
