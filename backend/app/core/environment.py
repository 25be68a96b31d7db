"""Runtime context and cloud provider detection.

Both are pure functions of an environment mapping so they can be exercised
without touching ``os.environ``.
"""

import os
from collections.abc import Mapping
from enum import Enum


class RuntimeContext(str, Enum):
    HOST = "host"
    DOCKER = "docker"
    KUBERNETES = "kubernetes"


class CloudProvider(str, Enum):
    AWS = "aws"
    AZURE = "azure"
    GCP = "gcp"
    UNKNOWN = "unknown"


_TRUTHY = {"true", "1", "yes"}

# Checked in order; the first provider with any signal present wins.
_CLOUD_SIGNALS: tuple[tuple[CloudProvider, tuple[str, ...]], ...] = (
    (CloudProvider.AWS, ("AWS_EXECUTION_ENV", "AWS_REGION", "AWS_DEFAULT_REGION", "AWS_PROFILE")),
    (CloudProvider.AZURE, ("AZURE_SUBSCRIPTION_ID", "AZURE_TENANT_ID", "AZURE_CLIENT_ID")),
    (CloudProvider.GCP, ("GCP_PROJECT_ID", "GOOGLE_CLOUD_PROJECT", "GCLOUD_PROJECT", "CLOUDSDK_CORE_PROJECT")),
)


def _env(env: Mapping[str, str] | None) -> Mapping[str, str]:
    return os.environ if env is None else env


def is_kubernetes(env: Mapping[str, str] | None = None) -> bool:
    values = _env(env)
    return bool(values.get("KUBERNETES_SERVICE_HOST") or values.get("KUBERNETES_SERVICE_PORT"))


def is_docker(env: Mapping[str, str] | None = None) -> bool:
    """True inside a plain Docker container (Kubernetes pods excluded)."""
    values = _env(env)
    if is_kubernetes(values):
        return False
    return any(
        values.get(key, "").strip().lower() in _TRUTHY
        for key in ("DOCKER", "IN_DOCKER")
    )


def detect_runtime_context(env: Mapping[str, str] | None = None) -> RuntimeContext:
    values = _env(env)
    if is_kubernetes(values):
        return RuntimeContext.KUBERNETES
    if is_docker(values):
        return RuntimeContext.DOCKER
    return RuntimeContext.HOST


def detect_cloud_provider(
    env: Mapping[str, str] | None = None,
    override: str = "",
) -> CloudProvider:
    """Detect the cloud the environment targets.

    An explicit ``override`` (``CLOUD_PROVIDER`` setting) wins when it names a
    known provider; otherwise well-known SDK environment variables decide.
    """
    values = _env(env)
    explicit = (override or values.get("CLOUD_PROVIDER", "")).strip().lower()
    if explicit:
        try:
            return CloudProvider(explicit)
        except ValueError:
            pass

    for provider, keys in _CLOUD_SIGNALS:
        if any(values.get(key) for key in keys):
            return provider
    return CloudProvider.UNKNOWN
