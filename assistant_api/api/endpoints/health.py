from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ... import __version__
from ...config import Settings, get_settings

router = APIRouter()


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    return {
        "status": "healthy",
        "service": "Voice Assistant API",
        "version": __version__,
        "environment": "development" if settings.debug else "production",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
