"""
Application settings
====================

Role
----
- Centralise the app parameters (name, host/port, data paths, session backend, logging).
- Defaults suit a local dev environment with an in-memory session.
- Every value can be overridden through a `.env` file or the environment.

Integrations
------------
- `pydantic-settings` reads env variables and `.env` automatically.
- Services and routers import `from spyprompt.config.settings import settings`.

Notes
-----
- `SESSION_BACKEND` picks the storage of the single game session:
  `memory` (process only), `file` (JSON on disk) or `supabase` (one PostgREST row).
- Durable backends always run behind the in-memory fallback, see `session_store`.
- *Do not commit* a real `SUPABASE_ANON_KEY`. Use `.env`.

Example `.env`
--------------
APP_NAME="Spy Prompt (Staging)"
PORT=8080
SESSION_BACKEND="supabase"
SUPABASE_URL="https://xyzcompany.supabase.co"
SUPABASE_ANON_KEY="put-the-anon-key-here"
LOG_LEVEL="DEBUG"
"""
from pathlib import Path
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
import os


class Settings(BaseSettings):
    # Service name (shown by /health)
    APP_NAME: str = "Spy Prompt Backend"
    # Network bind (FastAPI / Uvicorn)
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Static data shipped with the package (prompt table)
    # Default: <package>/data
    DATA_DIR: str = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")
    # Explicit prompt table file, otherwise DATA_DIR/prompts.json
    PROMPTS_PATH: Optional[str] = None

    # Session storage
    SESSION_BACKEND: Literal["memory", "file", "supabase"] = "memory"
    # File backend target, otherwise DATA_DIR/runtime/game_session.json
    SESSION_FILE: Optional[str] = None

    # Supabase backend (row {id, data, updated_at} in SUPABASE_TABLE)
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_TABLE: str = "game_state"
    SUPABASE_ROW_ID: str = "main"
    STORE_TIMEOUT_S: float = 5.0

    # Frontends allowed by CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    LOG_LEVEL: str = "INFO"

    # pydantic-settings:
    # - reads .env (UTF-8) when present
    # - ignores unknown keys
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    def prompts_path(self) -> Path:
        if self.PROMPTS_PATH:
            return Path(self.PROMPTS_PATH).expanduser().resolve()
        return Path(self.DATA_DIR) / "prompts.json"

    def session_file(self) -> Path:
        if self.SESSION_FILE:
            return Path(self.SESSION_FILE).expanduser().resolve()
        return Path(self.DATA_DIR) / "runtime" / "game_session.json"


# Single importable instance: `settings`
settings = Settings()
