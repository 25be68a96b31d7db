"""Readiness API exceptions."""


class ReadinessError(Exception):
    """Base exception for readiness and service status operations."""

    pass


class ServiceNotFoundError(ReadinessError):
    """Raised when a service id is not among the configured services."""

    def __init__(self, service_id: str):
        super().__init__(f"Service '{service_id}' not found")
        self.service_id = service_id


class ConfigurationError(ReadinessError):
    """Raised when the environment configuration cannot be loaded."""

    pass
