"""Transfer settings API routes."""

from dataclasses import asdict

from fastapi import APIRouter

from vault import service_locator
from vault.schemas.settings import SettingsResponse, SettingsUpdateRequest

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=SettingsResponse)
async def get_settings():
    return SettingsResponse(**asdict(service_locator.get_settings_registry().current()))


@router.patch("", response_model=SettingsResponse)
async def update_settings(request: SettingsUpdateRequest):
    """
    Publish a new settings version. Transfers already running keep the
    snapshot they started with.

    Raises:
        - 400: A value violates the transfer constraints
    """
    updated = service_locator.get_settings_registry().update(**request.model_dump(exclude_none=True))
    return SettingsResponse(**asdict(updated))
