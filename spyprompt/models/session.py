"""
Models / session.py
Role:
- Typed snapshot of the single game session, as persisted by the session stores.
- Small result models returned by the session service.

Fields (GameSession):
- players: ordered list of players, unique by id.
- active_round: prompt index + spy id of the running round, or None when idle.
  Both values live together so a spy without a prompt cannot be represented.
- rounds_played: rounds started since the last reset (0 = none yet).

Notes:
- `round_number` never goes below 1: the first round keeps it at 1, later ones bump it.
- `to_public()` renders the camelCase view consumed by the host/player pages.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .player import Player


class RoundState(BaseModel):
    """Round-scoped part of the session (only exists while a round is active)."""
    prompt_index: int  # index into the prompt table
    spy_id: str  # player_id of the spy for this round


class GameSession(BaseModel):
    """The one shared session record (players + current round)."""
    players: List[Player] = Field(default_factory=list)
    active_round: Optional[RoundState] = None
    rounds_played: int = 0

    @property
    def is_round_active(self) -> bool:
        return self.active_round is not None

    @property
    def current_prompt_index(self) -> Optional[int]:
        return self.active_round.prompt_index if self.active_round else None

    @property
    def spy_id(self) -> Optional[str]:
        return self.active_round.spy_id if self.active_round else None

    @property
    def round_number(self) -> int:
        return max(self.rounds_played, 1)

    def find_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def to_public(self, current_prompt: Optional[str] = None) -> Dict[str, Any]:
        """Dashboard view (camelCase keys polled by the host page)."""
        return {
            "players": [{"id": p.id, "name": p.name} for p in self.players],
            "playerCount": len(self.players),
            "isRoundActive": self.is_round_active,
            "currentPrompt": current_prompt,
            "currentPromptIndex": self.current_prompt_index,
            "spyId": self.spy_id,
            "roundNumber": self.round_number,
        }


class RoundStart(BaseModel):
    """Outcome of a successful start_round()."""
    prompt: str
    spy_id: str
    round_number: int = 1
    players: List[Player] = Field(default_factory=list)


class PlayerRole(BaseModel):
    """What a given player should see for the current round."""
    is_spy: bool = False
    prompt: Optional[str] = None
