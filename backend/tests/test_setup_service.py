"""Tests for the setup readiness service."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.models.setup import StepState
from app.services.setup import SetupService
from fakes import make_prerequisite, make_service


async def _config_loaded() -> bool:
    return True


async def _config_missing() -> bool:
    return False


def _aggregators(prerequisites=None, statuses=None):
    prerequisite_aggregator = MagicMock()
    prerequisite_aggregator.get_prerequisites = AsyncMock(
        return_value=prerequisites or [make_prerequisite("Docker")],
    )
    service_aggregator = MagicMock()
    service_aggregator.get_service_statuses = AsyncMock(
        return_value=statuses or [make_service("database")],
    )
    return prerequisite_aggregator, service_aggregator


class TestGetStatus:

    async def test_composes_both_aggregators(self):
        prerequisites, services = _aggregators()
        readiness = await SetupService(prerequisites, services, _config_loaded).get_status()

        assert [p.name for p in readiness.prerequisites] == ["Docker"]
        assert readiness.total_steps == len(readiness.steps)
        prerequisites.get_prerequisites.assert_awaited_once()
        services.get_service_statuses.assert_awaited_once()

    async def test_failure_cancels_the_other_aggregator(self):
        started = asyncio.Event()
        cancelled = asyncio.Event()

        async def slow_prerequisites():
            started.set()
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        async def failing_services():
            await started.wait()
            raise RuntimeError("worker pool exhausted")

        prerequisites, services = _aggregators()
        prerequisites.get_prerequisites = slow_prerequisites
        services.get_service_statuses = failing_services

        with pytest.raises(RuntimeError, match="worker pool exhausted"):
            await SetupService(prerequisites, services, _config_loaded).get_status()

        await asyncio.wait_for(cancelled.wait(), timeout=1.0)

    async def test_config_failure_marks_step_failed(self):
        prerequisites, services = _aggregators()
        readiness = await SetupService(prerequisites, services, _config_missing).get_status()
        assert readiness.steps[1].name == "Load Configuration"
        assert readiness.steps[1].status == StepState.FAILED
        assert readiness.is_complete is False


async def test_get_steps_uses_service_statuses_only():
    prerequisites, services = _aggregators()
    steps = await SetupService(prerequisites, services, _config_loaded).get_steps()

    assert steps[2].service == "database"
    assert steps[2].status == StepState.COMPLETED
    prerequisites.get_prerequisites.assert_not_called()
