from __future__ import annotations

from fastapi import APIRouter, Query

from defi_pulse.health import get_health_status


router = APIRouter()


@router.get("/health")
async def health(deep: bool = Query(default=False, description="Also probe upstream sources")):
    # health structure is already a dict with status, components
    return await get_health_status(deep=deep)
