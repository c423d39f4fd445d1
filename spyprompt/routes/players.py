"""
Module routes/players.py
Role:
- Player side of the game: join by name, then poll for the current role.

Integrations:
- SessionService: register_player / get_player_role / find_player.
- The player id is generated here (uuid4) and kept by the player's device.

Notes:
- Name validation and "unknown player" detection live here, not in the service.
- Handlers are sync: FastAPI runs them in its threadpool and the service lock
  serialises the session writes.
"""
from uuid import uuid4

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from spyprompt.models.player import Player
from spyprompt.services.session_service import SessionService, get_session_service

router = APIRouter(tags=["players"])


class JoinPayload(BaseModel):
    name: str | None = None


@router.post("/join")
def join(payload: JoinPayload, service: SessionService = Depends(get_session_service)):
    """Register a player -> returns its new player_id."""
    name = (payload.name or "").strip()
    if not name:
        return JSONResponse(status_code=400, content={"success": False, "message": "Player name is required"})

    player_id = str(uuid4())
    player_count = service.join(Player(id=player_id, name=name))

    return {
        "success": True,
        "playerId": player_id,
        "playerCount": player_count,
    }


@router.get("/get-role")
def get_role(
    player_id: str | None = Query(default=None, alias="playerId", description="Id returned by /join"),
    service: SessionService = Depends(get_session_service),
):
    """Role of a registered player for the current round (prompt hidden while idle)."""
    if not player_id:
        return JSONResponse(status_code=400, content={"success": False, "message": "Player ID is required"})

    player = service.find_player(player_id)
    if player is None:
        return JSONResponse(status_code=404, content={"success": False, "message": "Player not found"})

    role = service.get_player_role(player_id)
    return {
        "success": True,
        "isSpy": role.is_spy,
        "prompt": role.prompt,
        "message": "You are the spy." if role.is_spy else role.prompt,
        "playerName": player.name,
    }
