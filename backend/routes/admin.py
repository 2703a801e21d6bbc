from __future__ import annotations

from fastapi import APIRouter, Depends

from backend.dependencies import get_service
from backend.models.responses import success_envelope


router = APIRouter()


@router.post("/cache/clear")
def clear_cache(service=Depends(get_service)):
    service.clear_cache()
    return success_envelope(None)


@router.get("/cache/stats")
def cache_stats(service=Depends(get_service)):
    return success_envelope(service.cache_stats())
