"""Which probe strategy applies to a command in a given runtime context.

Inside containers the host's tooling (docker, kubectl, cloud CLIs) cannot be
observed, so those probes are reported as installed instead of spawning a
process that can never succeed there. Tools that live in the image itself
(node, pnpm) are still probed.
"""

from enum import Enum

from app.core.environment import RuntimeContext


class ProbeStrategy(str, Enum):
    SPAWN = "spawn"
    ASSUME_INSTALLED = "assume_installed"


_CONTAINER_OVERRIDES: dict[str, ProbeStrategy] = {
    "docker": ProbeStrategy.ASSUME_INSTALLED,
    "kubectl": ProbeStrategy.ASSUME_INSTALLED,
    "aws": ProbeStrategy.ASSUME_INSTALLED,
    "az": ProbeStrategy.ASSUME_INSTALLED,
    "gcloud": ProbeStrategy.ASSUME_INSTALLED,
}

PROBE_POLICY: dict[RuntimeContext, dict[str, ProbeStrategy]] = {
    RuntimeContext.HOST: {},
    RuntimeContext.DOCKER: _CONTAINER_OVERRIDES,
    RuntimeContext.KUBERNETES: _CONTAINER_OVERRIDES,
}


def resolve_strategy(context: RuntimeContext, command: str) -> ProbeStrategy:
    """Look up the strategy for *command*; unlisted commands are spawned."""
    return PROBE_POLICY.get(context, {}).get(command, ProbeStrategy.SPAWN)
