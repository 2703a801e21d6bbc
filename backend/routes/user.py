from __future__ import annotations

from fastapi import APIRouter, Depends

from backend.dependencies import get_service
from backend.error_handlers import respond
from backend.models.requests import UserPositionRequest


router = APIRouter()


@router.post("/insights")
async def insights(request: UserPositionRequest, service=Depends(get_service)):
    position = request.to_position()
    return await respond(lambda: service.compute_user_insights(position), "Failed to calculate user insights")
