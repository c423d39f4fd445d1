"""
Errors raised by the session core.

Only `InsufficientPlayersError` reaches the API layer. `StoreUnavailableError`
is raised by durable stores and absorbed by `FallbackSessionStore`.
"""


class SessionError(RuntimeError):
    """Base class for session core errors."""


class InsufficientPlayersError(SessionError):
    """start_round() called with fewer players than a round needs."""

    def __init__(self, player_count: int, required: int) -> None:
        self.player_count = player_count
        self.required = required
        super().__init__(f"Need at least {required} players to start a round")


class StoreUnavailableError(SessionError):
    """A durable session store failed to load or save."""
