"""
Module routes/health.py
Role:
- Health endpoint (service OK + session storage mode).

Integrations:
- settings: app name.
- SessionService store: backend label and `degraded` flag (durable store down,
  session kept in memory).
"""
from fastapi import APIRouter, Depends

from spyprompt.config.settings import settings
from spyprompt.services.session_service import SessionService, get_session_service

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health(service: SessionService = Depends(get_session_service)):
    """Minimal OK with the configured service name and storage status."""
    return {
        "ok": True,
        "service": settings.APP_NAME,
        "backend": service.store.backend,
        "degraded": bool(getattr(service.store, "degraded", False)),
    }
