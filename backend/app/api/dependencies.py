"""API dependencies: settings, probe resources and per-request aggregators."""

from typing import Annotated

from fastapi import Depends, Request

from app.config import Settings, settings
from app.core.probes import CommandRunner, SubprocessRunner
from app.services.connections import ProbeResources
from app.services.environment_config import configuration_available
from app.services.prerequisites import PrerequisiteAggregator
from app.services.service_status import (
    ServiceStatusAggregator,
    build_health_checks,
    default_service_definitions,
)
from app.services.setup import SetupService

# ---------------------------------------------------------------------------
# Settings and shared resources
# ---------------------------------------------------------------------------


def get_settings() -> Settings:
    return settings


SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_probe_resources(request: Request) -> ProbeResources:
    """Resources opened by the application lifespan."""
    resources: ProbeResources | None = getattr(request.app.state, "probe_resources", None)
    if resources is None:
        raise RuntimeError("Probe resources are not initialized")
    return resources


def get_command_runner() -> CommandRunner:
    return SubprocessRunner()


# ---------------------------------------------------------------------------
# Aggregators, built fresh for every request
# ---------------------------------------------------------------------------


def get_prerequisite_aggregator(
    app_settings: SettingsDep,
    runner: Annotated[CommandRunner, Depends(get_command_runner)],
) -> PrerequisiteAggregator:
    return PrerequisiteAggregator(
        runner,
        cloud_override=app_settings.cloud_provider,
        command_timeout=app_settings.command_probe_timeout_seconds,
    )


def get_service_status_aggregator(
    app_settings: SettingsDep,
    resources: Annotated[ProbeResources, Depends(get_probe_resources)],
) -> ServiceStatusAggregator:
    definitions = default_service_definitions(app_settings)
    return ServiceStatusAggregator(
        definitions,
        build_health_checks(definitions, resources),
        timeout=app_settings.health_probe_timeout,
        degraded_threshold_ms=app_settings.degraded_latency_threshold_ms,
    )


ServiceStatusDep = Annotated[ServiceStatusAggregator, Depends(get_service_status_aggregator)]


def get_setup_service(
    app_settings: SettingsDep,
    prerequisites: Annotated[PrerequisiteAggregator, Depends(get_prerequisite_aggregator)],
    services: ServiceStatusDep,
) -> SetupService:
    return SetupService(
        prerequisites,
        services,
        config_loaded=lambda: configuration_available(app_settings),
    )


SetupServiceDep = Annotated[SetupService, Depends(get_setup_service)]
