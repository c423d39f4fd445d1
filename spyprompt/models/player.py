"""
Models / player.py
Role:
- Minimal structure of a player (Pydantic model).

Fields:
- id: unique player id, generated at join time (uuid4) and stable for the session.
- name: display name, updated in place when the same id joins again.
"""
from pydantic import BaseModel


class Player(BaseModel):
    """Player profile used by the session and the API layer."""
    id: str  # unique player_id
    name: str  # display name (typed at join)
