"""Environment configuration endpoint."""

import asyncio

from fastapi import APIRouter

from app.api.dependencies import SettingsDep
from app.models.environment_config import EnvironmentConfig
from app.services.environment_config import load_environment_config

router = APIRouter()


@router.get("", response_model=EnvironmentConfig)
async def get_config(app_settings: SettingsDep) -> EnvironmentConfig:
    return await asyncio.to_thread(load_environment_config, app_settings)
