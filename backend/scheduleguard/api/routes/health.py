from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from scheduleguard.api.deps import get_app_settings
from scheduleguard.core.config import Settings

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live(settings: Settings = Depends(get_app_settings)) -> dict:
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "backend": settings.backend_base_url,
        "room_type_match": settings.room_type_match,
    }
