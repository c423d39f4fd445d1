"""
FastAPI application: entry point
=================================

Role
----
- Builds the FastAPI app and configures CORS for the front,
- Mounts the routers (players, host/game, health),
- Configures logging and warms up the session service at startup.

Notes
-----
- Router imports are explicit to avoid auto-discovery surprises.
- Keep `settings.ALLOWED_ORIGINS` in sync with the front URLs.
- ⚠️ The CORS middleware must be added BEFORE include_router.
- Run with: `uvicorn spyprompt.main:app --host 0.0.0.0 --port 8000`
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spyprompt.config.settings import settings
from spyprompt.routes.game import router as game_router
from spyprompt.routes.health import router as health_router
from spyprompt.routes.players import router as players_router
from spyprompt.services.session_service import get_session_service

logger = logging.getLogger(__name__)


def configure_logging(level: str = settings.LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# --- Main FastAPI app ---
app = FastAPI(title=settings.APP_NAME)

# ===========================
# CORS (dev: localhost only)
# ===========================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ===========================
# Routers
# ===========================
app.include_router(players_router)
app.include_router(game_router)
app.include_router(health_router)


# --- Root, handy for a plain "ping" ---
@app.get("/")
async def root():
    """Basic ping: the app is up."""
    return {"ok": True, "service": settings.APP_NAME}


# --- Startup hook ---
@app.on_event("startup")
async def startup():
    """
    On startup:
    - applies LOG_LEVEL,
    - builds the session service (fails fast on a broken prompt table),
    - logs the storage backend and the prompt count.
    """
    configure_logging()
    service = get_session_service()
    logger.info(
        "Session service ready",
        extra={"store_backend": service.store.backend, "prompt_count": len(service.prompts)},
    )
