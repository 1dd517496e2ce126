"""Health check endpoint."""

import datetime as dt

from fastapi import APIRouter, Depends

from rental_api.models.common import HealthResponse
from rental_shared.config import Settings, get_settings

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness check", response_model=HealthResponse)
async def health(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(environment=settings.environment, timestamp=dt.datetime.now(dt.UTC))
