"""Prerequisite aggregation.

Probes every developer tool concurrently and reports them in declaration
order, whatever order the probes finish in.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from app.core.environment import (
    CloudProvider,
    RuntimeContext,
    detect_cloud_provider,
    detect_runtime_context,
)
from app.core.fanout import gather_settled
from app.core.probe_policy import resolve_strategy
from app.core.probes import CommandRunner, CommandSpec, ProbeResult, probe_command
from app.models.setup import Prerequisite, PrerequisiteState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrerequisiteDefinition:
    name: str
    command: str
    required: bool
    description: str


BASE_PREREQUISITES: tuple[PrerequisiteDefinition, ...] = (
    PrerequisiteDefinition("Docker", "docker", True, "Container runtime"),
    PrerequisiteDefinition("kubectl", "kubectl", True, "Kubernetes CLI"),
    PrerequisiteDefinition("Node.js", "node", True, "v18 or higher"),
    PrerequisiteDefinition("pnpm", "pnpm", True, "Package manager"),
)

CLOUD_PREREQUISITES: dict[CloudProvider, PrerequisiteDefinition] = {
    CloudProvider.AWS: PrerequisiteDefinition("AWS CLI", "aws", False, "For EKS access"),
    CloudProvider.AZURE: PrerequisiteDefinition("Azure CLI", "az", False, "For AKS access"),
    CloudProvider.GCP: PrerequisiteDefinition("gcloud CLI", "gcloud", False, "For GKE access"),
}

COMMAND_SPECS: dict[str, CommandSpec] = {
    "docker": CommandSpec("docker"),
    "kubectl": CommandSpec("kubectl", ("version", "--client")),
    "node": CommandSpec("node"),
    "pnpm": CommandSpec("pnpm"),
    "aws": CommandSpec("aws"),
    "az": CommandSpec("az"),
    "gcloud": CommandSpec("gcloud"),
}


class PrerequisiteAggregator:
    """Runs all prerequisite probes for one poll cycle."""

    def __init__(
        self,
        runner: CommandRunner,
        env: Mapping[str, str] | None = None,
        cloud_override: str = "",
        command_timeout: float = 5.0,
    ) -> None:
        self.runner = runner
        self.env = env
        self.cloud_override = cloud_override
        self.command_timeout = command_timeout

    def definitions(self) -> list[PrerequisiteDefinition]:
        """Base prerequisites plus at most one cloud CLI, in display order."""
        result = list(BASE_PREREQUISITES)
        provider = detect_cloud_provider(self.env, override=self.cloud_override)
        cloud = CLOUD_PREREQUISITES.get(provider)
        if cloud is not None:
            result.append(cloud)
        return result

    async def _probe(self, definition: PrerequisiteDefinition, context: RuntimeContext) -> ProbeResult:
        spec = COMMAND_SPECS.get(definition.command, CommandSpec(definition.command))
        strategy = resolve_strategy(context, definition.command)
        return await probe_command(spec, self.runner, strategy, timeout=self.command_timeout)

    async def get_prerequisites(self) -> list[Prerequisite]:
        definitions = self.definitions()
        context = detect_runtime_context(self.env)

        outcomes = await gather_settled(
            (d.name, self._probe(d, context)) for d in definitions
        )
        by_name = {o.key: o for o in outcomes}

        prerequisites: list[Prerequisite] = []
        for definition in definitions:
            outcome = by_name.get(definition.name)
            result: ProbeResult | None = None
            if outcome is None:
                logger.warning("No probe outcome for prerequisite %s", definition.name)
            elif not outcome.ok:
                logger.warning(
                    "Probe for prerequisite %s failed: %r", definition.name, outcome.error,
                )
            else:
                result = outcome.value
                if result.detail:
                    logger.debug("Prerequisite %s: %s", definition.name, result.detail)

            installed = result is not None and result.installed
            prerequisites.append(
                Prerequisite(
                    name=definition.name,
                    status=PrerequisiteState.INSTALLED if installed else PrerequisiteState.MISSING,
                    version=result.version if result is not None else None,
                    required=definition.required,
                    description=definition.description,
                )
            )

        logger.debug(
            "Prerequisites checked (%s): %s",
            context.value,
            ", ".join(f"{p.name}={p.status.value}" for p in prerequisites),
        )
        return prerequisites
