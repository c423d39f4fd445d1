"""
Service: session_service.py
Role:
- Game rules of the single shared session: join, start round (prompt + spy draw),
  per-player role, reset, snapshot.
- Every operation is load -> validate -> mutate -> save on the injected store.

Concurrency:
- One RLock per service. Mutations hold it for their whole read-modify-write
  cycle so concurrent requests apply in some serial order (no lost joins).
- Reads hold it only around `load()`; they never see a half-applied write.

Internal API used by the routes:
- SERVICE.register_player(player)
- SERVICE.join(player) -> player count after the join
- SERVICE.start_round() -> RoundStart  (raises InsufficientPlayersError)
- SERVICE.get_player_role(player_id) -> PlayerRole
- SERVICE.reset_game()
- SERVICE.get_session() -> GameSession
"""
from __future__ import annotations

import logging
import random
from threading import RLock
from typing import Optional

from spyprompt.models.player import Player
from spyprompt.models.prompts import PromptTable
from spyprompt.models.session import GameSession, PlayerRole, RoundStart, RoundState
from .errors import InsufficientPlayersError
from .prompt_table import get_prompt_table
from .session_store import SessionStore, build_session_store

logger = logging.getLogger(__name__)

MIN_PLAYERS = 2


class SessionService:
    def __init__(
        self,
        store: SessionStore,
        prompts: PromptTable,
        *,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.store = store
        self.prompts = prompts
        self.rng = rng or random.Random()
        self._lock = RLock()

    # === reads ===
    def _load(self) -> GameSession:
        """Load the session and drop a round that no longer matches players/prompts."""
        session = self.store.load()
        current = session.active_round
        if current is None:
            return session
        if not 0 <= current.prompt_index < len(self.prompts) or session.find_player(current.spy_id) is None:
            logger.warning(
                "Stored round is inconsistent, back to idle",
                extra={"prompt_index": current.prompt_index, "spy_id": current.spy_id},
            )
            session.active_round = None
        return session

    def get_session(self) -> GameSession:
        with self._lock:
            return self._load()

    def find_player(self, player_id: str) -> Optional[Player]:
        return self.get_session().find_player(player_id)

    def current_prompt(self, session: GameSession) -> Optional[str]:
        """Full text of the running round (None when idle)."""
        if session.active_round is None:
            return None
        return self.prompts.full_text(session.active_round.prompt_index)

    def get_player_role(self, player_id: str) -> PlayerRole:
        """
        Spy gets the redacted prompt, everybody else the full one.
        No membership check here: unknown ids simply are not the spy.
        """
        session = self.get_session()
        current = session.active_round
        if current is None:
            return PlayerRole(is_spy=False, prompt=None)
        is_spy = current.spy_id == player_id
        if is_spy:
            prompt = self.prompts.redacted_text(current.prompt_index)
        else:
            prompt = self.prompts.full_text(current.prompt_index)
        return PlayerRole(is_spy=is_spy, prompt=prompt)

    # === mutations ===
    def register_player(self, player: Player) -> None:
        """Append a new player, or rename the existing one with the same id."""
        with self._lock:
            session = self._load()
            existing = session.find_player(player.id)
            if existing is not None:
                existing.name = player.name
                logger.info("Player renamed", extra={"player_id": player.id})
            else:
                session.players.append(Player(id=player.id, name=player.name))
                logger.info(
                    "Player joined",
                    extra={"player_id": player.id, "player_count": len(session.players)},
                )
            self.store.save(session)

    def join(self, player: Player) -> int:
        """register_player + the player count it produced, in one locked step."""
        with self._lock:
            self.register_player(player)
            return len(self._load().players)

    def start_round(self) -> RoundStart:
        """
        Draw a prompt and a spy, both uniformly and independently of the previous round.
        Raises InsufficientPlayersError (session untouched) below MIN_PLAYERS.
        """
        with self._lock:
            session = self._load()
            if len(session.players) < MIN_PLAYERS:
                logger.info("Round refused", extra={"player_count": len(session.players)})
                raise InsufficientPlayersError(len(session.players), MIN_PLAYERS)

            prompt_index = self.rng.randrange(len(self.prompts))
            spy = self.rng.choice(session.players)
            session.active_round = RoundState(prompt_index=prompt_index, spy_id=spy.id)
            session.rounds_played += 1
            self.store.save(session)

            logger.info(
                "Round started",
                extra={
                    "round_number": session.round_number,
                    "prompt_index": prompt_index,
                    "spy_id": spy.id,
                },
            )
            return RoundStart(
                prompt=self.prompts.full_text(prompt_index),
                spy_id=spy.id,
                round_number=session.round_number,
                players=session.players,
            )

    def reset_game(self) -> None:
        """Back to the initial session: no players, idle, round 1."""
        with self._lock:
            previous = self._load()
            self.store.save(GameSession())
            logger.info("Game reset", extra={"previous_player_count": len(previous.players)})


# -----------------------------
# Process-wide instance
# -----------------------------
_instance: Optional[SessionService] = None
_instance_lock = RLock()


def get_session_service() -> SessionService:
    """Guarantee a single SessionService for the whole backend (lazy-load)."""
    global _instance
    with _instance_lock:
        if _instance is None:
            _instance = SessionService(build_session_store(), get_prompt_table())
        return _instance
