"""
Module routes/game.py
Role:
- Host side of the game: start a round, reset, and the status/debug snapshots
  polled by the host dashboard.

Integrations:
- SessionService: start_round / reset_game / get_session / current_prompt.
- Store `degraded` flag exposed by /debug (in-memory fallback in use).
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from spyprompt.services.errors import InsufficientPlayersError
from spyprompt.services.session_service import SessionService, get_session_service

router = APIRouter(tags=["game"])


def _players_view(session):
    return [{"id": p.id, "name": p.name} for p in session.players]


@router.post("/start-round")
def start_round(service: SessionService = Depends(get_session_service)):
    """Draw a new prompt + spy. 400 while fewer than two players joined."""
    try:
        started = service.start_round()
    except InsufficientPlayersError as exc:
        session = service.get_session()
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "message": str(exc),
                "debug": {
                    "playerCount": len(session.players),
                    "players": _players_view(session),
                    "isRoundActive": session.is_round_active,
                },
            },
        )

    return {
        "success": True,
        "prompt": started.prompt,
        "spyId": started.spy_id,
        "roundNumber": started.round_number,
        "playerCount": len(started.players),
        "players": _players_view(started),
    }


@router.post("/reset")
def reset(service: SessionService = Depends(get_session_service)):
    """Empty the session (players, round, counter)."""
    service.reset_game()
    return {
        "success": True,
        "message": "Game reset successfully",
        "playerCount": 0,
    }


@router.get("/game-status")
def game_status(service: SessionService = Depends(get_session_service)):
    """Snapshot for the host dashboard."""
    session = service.get_session()
    return {"success": True, **session.to_public(service.current_prompt(session))}


@router.get("/debug")
def debug(service: SessionService = Depends(get_session_service)):
    """Raw session + storage diagnostics."""
    session = service.get_session()
    return {
        "success": True,
        "gameState": session.to_public(service.current_prompt(session)),
        "backend": service.store.backend,
        "degraded": bool(getattr(service.store, "degraded", False)),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
