"""Setup readiness service.

Wires the prerequisite and service status aggregators into the readiness
composer. Every call recomputes from fresh probes.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from app.core.readiness import build_setup_steps, compose_readiness
from app.models.setup import Prerequisite, SetupReadiness, SetupStep
from app.services.prerequisites import PrerequisiteAggregator
from app.services.service_status import ServiceStatusAggregator

logger = logging.getLogger(__name__)


class SetupService:
    def __init__(
        self,
        prerequisites: PrerequisiteAggregator,
        services: ServiceStatusAggregator,
        config_loaded: Callable[[], Awaitable[bool]],
    ) -> None:
        self.prerequisites = prerequisites
        self.services = services
        self.config_loaded = config_loaded

    async def get_prerequisites(self) -> list[Prerequisite]:
        return await self.prerequisites.get_prerequisites()

    async def get_steps(self) -> list[SetupStep]:
        statuses = await self.services.get_service_statuses()
        return build_setup_steps(statuses, config_loaded=await self.config_loaded())

    async def get_status(self) -> SetupReadiness:
        # Aggregator failures propagate: a partial readiness view is never returned.
        # The surviving sibling is cancelled so its probes do not outlive the request.
        tasks = (
            asyncio.create_task(self.prerequisites.get_prerequisites()),
            asyncio.create_task(self.services.get_service_statuses()),
        )
        try:
            prerequisites, statuses = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise
        readiness = compose_readiness(
            prerequisites, statuses, config_loaded=await self.config_loaded(),
        )
        logger.debug(
            "Setup readiness: %d/%d steps, prerequisites met=%s",
            readiness.completed_steps, readiness.total_steps, readiness.all_prerequisites_met,
        )
        return readiness
