"""Service status aggregation.

Health-probes every dependent service concurrently and classifies each one as
operational, degraded or down. A failing probe only ever affects its own entry.
"""

import logging
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from app.config import Settings
from app.core.exceptions import ServiceNotFoundError
from app.core.fanout import gather_settled
from app.core.probes import (
    HealthCheck,
    HealthProbeResult,
    http_check,
    postgres_check,
    redis_check,
    self_check,
    timed_probe,
)
from app.models.health import DependencyHealth, DependencyState, DetailedHealth, OverallHealth
from app.models.setup import ServiceState, ServiceStatus
from app.services.connections import ProbeResources

logger = logging.getLogger(__name__)


class ServiceKind(str, Enum):
    SELF = "self"
    POSTGRES = "postgres"
    REDIS = "redis"
    HTTP = "http"


# Dependencies whose failure degrades the API itself.
CRITICAL_KINDS = frozenset({ServiceKind.POSTGRES, ServiceKind.REDIS})


@dataclass(frozen=True)
class ServiceDefinition:
    id: str
    name: str
    endpoint: str
    kind: ServiceKind


def _redact(url: str) -> str:
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return url


def default_service_definitions(settings: Settings) -> list[ServiceDefinition]:
    return [
        ServiceDefinition("api-server", "API Server", settings.api_server_url, ServiceKind.SELF),
        ServiceDefinition("database", "Database", _redact(settings.database_url), ServiceKind.POSTGRES),
        ServiceDefinition("cache", "Cache Service", _redact(settings.redis_url), ServiceKind.REDIS),
        ServiceDefinition("app-frontend", "App Frontend", settings.app_frontend_url, ServiceKind.HTTP),
        ServiceDefinition(
            "dashboard-frontend", "Dashboard", settings.dashboard_frontend_url, ServiceKind.HTTP,
        ),
        ServiceDefinition("collabcanva", "CollabCanva", settings.collabcanva_url, ServiceKind.HTTP),
    ]


def build_health_checks(
    definitions: Sequence[ServiceDefinition],
    resources: ProbeResources,
) -> dict[str, HealthCheck]:
    """Bind each definition to a check using the shared probe resources."""
    checks: dict[str, HealthCheck] = {}
    for definition in definitions:
        if definition.kind is ServiceKind.SELF:
            checks[definition.id] = self_check()
        elif definition.kind is ServiceKind.POSTGRES:
            checks[definition.id] = postgres_check(resources.engine)
        elif definition.kind is ServiceKind.REDIS:
            checks[definition.id] = redis_check(resources.redis)
        else:
            checks[definition.id] = http_check(resources.http, definition.endpoint)
    return checks


class ServiceStatusAggregator:
    """Runs one round of health probes and classifies the results."""

    def __init__(
        self,
        definitions: Sequence[ServiceDefinition],
        checks: Mapping[str, HealthCheck],
        timeout: float = 5.0,
        degraded_threshold_ms: float = 1000.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.definitions = list(definitions)
        self.checks = dict(checks)
        self.timeout = timeout
        self.degraded_threshold_ms = degraded_threshold_ms
        self._clock = clock or (lambda: datetime.now(UTC))

    def classify(self, result: HealthProbeResult) -> ServiceState:
        if not result.healthy:
            return ServiceState.DOWN
        if result.warning or result.response_time_ms > self.degraded_threshold_ms:
            return ServiceState.DEGRADED
        return ServiceState.OPERATIONAL

    async def _probe(self, definition: ServiceDefinition) -> HealthProbeResult:
        check = self.checks.get(definition.id)
        if check is None:
            return HealthProbeResult(healthy=False, response_time_ms=0.0, error="no health check configured")
        return await timed_probe(check, self.timeout)

    async def probe_all(
        self, definitions: Sequence[ServiceDefinition],
    ) -> list[tuple[ServiceDefinition, HealthProbeResult]]:
        """One concurrent probe round, in definition order."""
        outcomes = await gather_settled((d.id, self._probe(d)) for d in definitions)
        by_id = {o.key: o for o in outcomes}

        results: list[tuple[ServiceDefinition, HealthProbeResult]] = []
        for definition in definitions:
            outcome = by_id.get(definition.id)
            if outcome is None or not outcome.ok or outcome.value is None:
                error = outcome.error if outcome is not None else None
                logger.warning("Health probe for %s did not settle: %r", definition.id, error)
                result = HealthProbeResult(healthy=False, response_time_ms=0.0, error="probe failed")
            else:
                result = outcome.value
            results.append((definition, result))
        return results

    async def _collect(self, definitions: Sequence[ServiceDefinition]) -> list[ServiceStatus]:
        checked_at = self._clock()

        statuses: list[ServiceStatus] = []
        for definition, result in await self.probe_all(definitions):
            state = self.classify(result)
            if state is not ServiceState.OPERATIONAL:
                logger.info(
                    "Service %s is %s (%.1fms%s)",
                    definition.id,
                    state.value,
                    result.response_time_ms,
                    f", {result.error or result.warning}" if result.error or result.warning else "",
                )

            statuses.append(
                ServiceStatus(
                    id=definition.id,
                    name=definition.name,
                    endpoint=definition.endpoint,
                    status=state,
                    response_time=result.response_time_ms if result.healthy else 0.0,
                    uptime=0.0 if state is ServiceState.DOWN else 1.0,
                    last_checked=checked_at,
                )
            )
        return statuses

    async def get_service_statuses(self) -> list[ServiceStatus]:
        return await self._collect(self.definitions)

    async def get_service_status(self, service_id: str) -> ServiceStatus:
        for definition in self.definitions:
            if definition.id == service_id:
                statuses = await self._collect([definition])
                return statuses[0]
        raise ServiceNotFoundError(service_id)

    async def dependency_health(self) -> DetailedHealth:
        """Probe every dependency of the API and report each one's health.

        The API server itself is left out. Overall health follows the
        database and cache only; an unreachable frontend is reported but
        never degrades the API.
        """
        started = time.perf_counter()
        checked_at = self._clock()
        dependencies = [d for d in self.definitions if d.kind is not ServiceKind.SELF]

        report: dict[str, DependencyHealth] = {}
        critical_ok = True
        for definition, result in await self.probe_all(dependencies):
            problem = result.error or result.warning
            healthy = result.healthy and not result.warning
            report[definition.id] = DependencyHealth(
                status=DependencyState.HEALTHY if healthy else DependencyState.UNHEALTHY,
                response_time=result.response_time_ms if result.healthy else 0.0,
                error=problem,
            )
            if definition.kind in CRITICAL_KINDS and not healthy:
                critical_ok = False

        return DetailedHealth(
            status=OverallHealth.HEALTHY if critical_ok else OverallHealth.DEGRADED,
            timestamp=checked_at,
            response_time=round((time.perf_counter() - started) * 1000, 2),
            dependencies=report,
        )
