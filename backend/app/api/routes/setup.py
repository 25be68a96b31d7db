"""Setup readiness endpoints."""

from fastapi import APIRouter

from app.api.dependencies import SetupServiceDep
from app.models.setup import Prerequisite, SetupReadiness, SetupStep

router = APIRouter()


@router.get("/prerequisites", response_model=list[Prerequisite], response_model_exclude_none=True)
async def get_prerequisites(setup: SetupServiceDep) -> list[Prerequisite]:
    """Installed/missing status of every developer tool."""
    return await setup.get_prerequisites()


@router.get("/steps", response_model=list[SetupStep], response_model_exclude_none=True)
async def get_setup_steps(setup: SetupServiceDep) -> list[SetupStep]:
    """Ordered setup steps derived from current service health."""
    return await setup.get_steps()


@router.get("/status", response_model=SetupReadiness, response_model_exclude_none=True)
async def get_setup_status(setup: SetupServiceDep) -> SetupReadiness:
    """Prerequisites, steps and overall progress in one response."""
    return await setup.get_status()
