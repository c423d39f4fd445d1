"""
Session stores
==============

Hold and persist the single `GameSession` of the deployment behind a
`load()` / `save(session)` contract. `load()` returns an empty, idle session
when nothing was ever saved.

Implementations
---------------
- `MemorySessionStore`: process-local copy (dev default, and the fallback).
- `FileSessionStore`: one JSON document on disk (orjson, atomic rename).
- `SupabaseSessionStore`: one row `{id, data, updated_at}` of a PostgREST table.
- `FallbackSessionStore`: wraps a durable store; when it fails the session keeps
  living in memory for the rest of the process (logged, exposed as `degraded`).

Stores hand out deep copies: mutating a loaded session does nothing until `save()`.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from threading import RLock
from typing import Any, Dict, Optional, Protocol

import orjson
import requests
from pydantic import ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from spyprompt.config.settings import Settings, settings
from spyprompt.models.session import GameSession
from .errors import StoreUnavailableError
from .io_utils import read_json, write_json

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    backend: str

    def load(self) -> GameSession:
        ...

    def save(self, session: GameSession) -> None:
        ...


def _parse_session(data: Any, *, source: str) -> GameSession:
    if data is None:
        return GameSession()
    try:
        return GameSession.model_validate(data)
    except ValidationError as exc:
        raise StoreUnavailableError(f"{source}: stored session is invalid ({exc})") from exc


class MemorySessionStore:
    backend = "memory"

    def __init__(self, initial: Optional[GameSession] = None) -> None:
        self._session = (initial or GameSession()).model_copy(deep=True)

    def load(self) -> GameSession:
        return self._session.model_copy(deep=True)

    def save(self, session: GameSession) -> None:
        self._session = session.model_copy(deep=True)


class FileSessionStore:
    backend = "file"

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> GameSession:
        try:
            data = read_json(self.path)
        except (OSError, orjson.JSONDecodeError) as exc:
            raise StoreUnavailableError(f"cannot read {self.path}: {exc}") from exc
        return _parse_session(data, source=str(self.path))

    def save(self, session: GameSession) -> None:
        try:
            write_json(self.path, session.model_dump(mode="json"))
        except OSError as exc:
            raise StoreUnavailableError(f"cannot write {self.path}: {exc}") from exc


class SupabaseSessionStore:
    """
    Session persisted as one row of a Supabase (PostgREST) table.
    - Reads `GET /rest/v1/<table>?id=eq.<row_id>&select=data`.
    - Writes an upsert (`Prefer: resolution=merge-duplicates`).
    - Transport, HTTP and payload errors surface as StoreUnavailableError.
    """

    backend = "supabase"

    def __init__(
        self,
        url: str,
        api_key: str,
        *,
        table: str = "game_state",
        row_id: str = "main",
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.endpoint = f"{url.rstrip('/')}/rest/v1/{table}"
        self.row_id = row_id
        self.timeout = timeout
        self.api_key = api_key
        self.session = session or self._build_session()

    @staticmethod
    def _build_session() -> requests.Session:
        session = requests.Session()
        retry = Retry(
            total=2,
            backoff_factor=0.3,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=frozenset({"GET", "POST"}),
            respect_retry_after_header=True,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def _headers(self, **extra: str) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        headers.update(extra)
        return headers

    def load(self) -> GameSession:
        try:
            response = self.session.get(
                self.endpoint,
                params={"id": f"eq.{self.row_id}", "select": "data"},
                headers=self._headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
            rows = response.json()
        except requests.RequestException as exc:
            raise StoreUnavailableError(f"supabase load failed: {exc}") from exc
        except ValueError as exc:
            raise StoreUnavailableError("supabase returned a non-JSON body") from exc

        if not isinstance(rows, list):
            raise StoreUnavailableError("supabase returned an unexpected payload")
        if not rows:
            return GameSession()
        if not isinstance(rows[0], dict):
            raise StoreUnavailableError("supabase returned an unexpected payload")
        return _parse_session(rows[0].get("data"), source="supabase")

    def save(self, session: GameSession) -> None:
        row = {
            "id": self.row_id,
            "data": session.model_dump(mode="json"),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            response = self.session.post(
                self.endpoint,
                json=[row],
                headers=self._headers(Prefer="resolution=merge-duplicates,return=minimal"),
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise StoreUnavailableError(f"supabase save failed: {exc}") from exc


class FallbackSessionStore:
    """
    Durable store with an in-process safety net.

    Every save lands in the memory store first. While the durable copy is
    behind (its last save failed) loads are served from memory; the next
    successful durable save catches it up and clears `degraded`.
    """

    def __init__(self, primary: SessionStore, fallback: Optional[MemorySessionStore] = None) -> None:
        self.primary = primary
        self.fallback = fallback or MemorySessionStore()
        self.backend = primary.backend
        self._lock = RLock()
        self._degraded = False
        self._primary_behind = False

    @property
    def degraded(self) -> bool:
        return self._degraded

    def _mark_recovered(self) -> None:
        if self._degraded:
            logger.info("Session store recovered", extra={"store_backend": self.backend})
        self._degraded = False

    def load(self) -> GameSession:
        with self._lock:
            if self._primary_behind:
                return self.fallback.load()
            try:
                session = self.primary.load()
            except StoreUnavailableError as exc:
                logger.warning(
                    "Session store load failed, using in-memory session",
                    extra={"store_backend": self.backend, "store_error": str(exc)},
                )
                self._degraded = True
                return self.fallback.load()
            self._mark_recovered()
            self.fallback.save(session)
            return session

    def save(self, session: GameSession) -> None:
        with self._lock:
            self.fallback.save(session)
            try:
                self.primary.save(session)
            except StoreUnavailableError as exc:
                logger.warning(
                    "Session store save failed, keeping session in memory",
                    extra={"store_backend": self.backend, "store_error": str(exc)},
                )
                self._degraded = True
                self._primary_behind = True
                return
            self._primary_behind = False
            self._mark_recovered()


def build_session_store(cfg: Settings = settings) -> SessionStore:
    """Store selected by `SESSION_BACKEND`; durable ones are wrapped in the fallback."""
    backend = cfg.SESSION_BACKEND
    if backend == "file":
        return FallbackSessionStore(FileSessionStore(cfg.session_file()))
    if backend == "supabase":
        if not (cfg.SUPABASE_URL and cfg.SUPABASE_ANON_KEY):
            logger.warning("SUPABASE_URL/SUPABASE_ANON_KEY missing, using in-memory session")
            return MemorySessionStore()
        return FallbackSessionStore(
            SupabaseSessionStore(
                cfg.SUPABASE_URL,
                cfg.SUPABASE_ANON_KEY,
                table=cfg.SUPABASE_TABLE,
                row_id=cfg.SUPABASE_ROW_ID,
                timeout=cfg.STORE_TIMEOUT_S,
            )
        )
    return MemorySessionStore()
