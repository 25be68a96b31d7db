"""Environment configuration models."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ServiceEndpoint(BaseModel):
    host: str
    port: int


class DatabaseEndpoint(ServiceEndpoint):
    name: str
    user: str


class ServicesConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    app_frontend: ServiceEndpoint = Field(alias="app-frontend")
    backend: ServiceEndpoint
    database: DatabaseEndpoint
    redis: ServiceEndpoint


class HealthChecksConfig(BaseModel):
    interval: int  # seconds
    timeout: int  # milliseconds


class EnvironmentConfig(BaseModel):
    """Ports and hosts of the development environment's services."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    services: ServicesConfig
    health_checks: HealthChecksConfig
