"""Setup readiness composition.

Pure functions: the same prerequisites and service statuses always produce the
same steps and metrics. Nothing here performs I/O or reads the clock.
"""

from collections.abc import Sequence

from app.models.setup import (
    Prerequisite,
    PrerequisiteState,
    ServiceState,
    ServiceStatus,
    SetupReadiness,
    SetupStep,
    StepState,
)

# (service id, step name), in installation order.
INFRASTRUCTURE_STEPS: tuple[tuple[str, str], ...] = (
    ("database", "Start PostgreSQL"),
    ("cache", "Start Redis"),
    ("api-server", "Start Backend API"),
)

SERVICE_DISPLAY_NAMES: dict[str, str] = {
    "app-frontend": "Application Frontend",
    "dashboard-frontend": "Dashboard Frontend",
    "collabcanva": "CollabCanva",
}

_SERVICE_TO_STEP: dict[ServiceState, StepState] = {
    ServiceState.OPERATIONAL: StepState.COMPLETED,
    ServiceState.DEGRADED: StepState.IN_PROGRESS,
}


def step_state_for(service: ServiceStatus | None) -> StepState:
    """operational -> completed, degraded -> in-progress, anything else -> pending."""
    if service is None:
        return StepState.PENDING
    return _SERVICE_TO_STEP.get(service.status, StepState.PENDING)


def health_check_state(services: Sequence[ServiceStatus]) -> StepState:
    # An empty list means nothing is healthy yet, not that everything is.
    if not services:
        return StepState.PENDING
    operational = sum(1 for s in services if s.status == ServiceState.OPERATIONAL)
    if operational == len(services):
        return StepState.COMPLETED
    if operational:
        return StepState.IN_PROGRESS
    return StepState.PENDING


def build_setup_steps(
    services: Sequence[ServiceStatus],
    config_loaded: bool = True,
) -> list[SetupStep]:
    """Derive the ordered setup sequence from current service statuses."""
    by_id = {s.id: s for s in services}
    entries: list[tuple[str, StepState, str | None]] = [
        ("Validate Prerequisites", StepState.COMPLETED, None),
        ("Load Configuration", StepState.COMPLETED if config_loaded else StepState.FAILED, None),
    ]

    for service_id, step_name in INFRASTRUCTURE_STEPS:
        entries.append((step_name, step_state_for(by_id.get(service_id)), service_id))

    infrastructure_ids = {service_id for service_id, _ in INFRASTRUCTURE_STEPS}
    for service in services:
        if service.id in infrastructure_ids:
            continue
        display_name = SERVICE_DISPLAY_NAMES.get(service.id, service.name)
        entries.append((f"Start {display_name}", step_state_for(service), service.id))

    entries.append(("Health Checks", health_check_state(services), None))

    return [
        SetupStep(id=str(index), name=name, status=status, service=service_id)
        for index, (name, status, service_id) in enumerate(entries, start=1)
    ]


def prerequisites_met(prerequisites: Sequence[Prerequisite]) -> bool:
    return all(
        not p.required or p.status == PrerequisiteState.INSTALLED
        for p in prerequisites
    )


def progress_percentage(completed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return 100 * completed / total


def compose_readiness(
    prerequisites: Sequence[Prerequisite],
    services: Sequence[ServiceStatus],
    config_loaded: bool = True,
) -> SetupReadiness:
    """Merge prerequisite and service status results into one readiness view."""
    steps = build_setup_steps(services, config_loaded=config_loaded)
    all_met = prerequisites_met(prerequisites)
    completed = sum(1 for s in steps if s.status == StepState.COMPLETED)
    total = len(steps)

    return SetupReadiness(
        prerequisites=list(prerequisites),
        steps=steps,
        all_prerequisites_met=all_met,
        completed_steps=completed,
        total_steps=total,
        progress_percentage=progress_percentage(completed, total),
        is_complete=all_met and completed == total,
    )
