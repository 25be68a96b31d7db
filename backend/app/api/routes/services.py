"""Service status endpoints."""

from fastapi import APIRouter

from app.api.dependencies import ServiceStatusDep
from app.models.setup import ServiceStatus

router = APIRouter()


@router.get("", response_model=list[ServiceStatus])
async def list_services(services: ServiceStatusDep) -> list[ServiceStatus]:
    """Health of every dependent service."""
    return await services.get_service_statuses()


@router.get("/{service_id}", response_model=ServiceStatus)
async def get_service(service_id: str, services: ServiceStatusDep) -> ServiceStatus:
    """Health of a single service; 404 when the id is unknown."""
    return await services.get_service_status(service_id)
