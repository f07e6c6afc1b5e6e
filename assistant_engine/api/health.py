from __future__ import annotations

from fastapi import APIRouter, Depends

from assistant_engine.core.config import Settings
from assistant_engine.core.dependencies import get_settings

router = APIRouter()


@router.get("/ping")
def ping() -> dict[str, str]:
    return {"message": "pong"}


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/")
def root(settings: Settings = Depends(get_settings)) -> dict[str, object]:  # noqa: B008
    """Liveness plus the backend this instance talks to."""
    return {
        "status": "ok",
        "message": "marketplace assistant engine is running",
        "backend": settings.assistant_api_base_url,
        "devMode": settings.dev_mode,
    }
