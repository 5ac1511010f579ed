from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from api.dependencies import get_settings_store
from hateblock.settings_store import SettingsStore
from schemas.api import SettingsResponse, SettingsUpdate

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=SettingsResponse)
async def get_settings(
    store: SettingsStore = Depends(get_settings_store),
):
    """Return the live engine settings."""
    return SettingsResponse(**store.snapshot().model_dump())


@router.patch("/", response_model=SettingsResponse)
async def update_settings(
    body: SettingsUpdate,
    store: SettingsStore = Depends(get_settings_store),
):
    """Enable/disable blocking or change the toxicity threshold.

    Running engines pick the change up through their subscription.
    """
    try:
        changes = store.update(**body.model_dump(exclude_none=True))
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False))

    if changes:
        logger.info("Settings updated: %s", ", ".join(sorted(changes)))
    return SettingsResponse(**store.snapshot().model_dump())
