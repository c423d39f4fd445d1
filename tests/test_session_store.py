from __future__ import annotations

from unittest.mock import Mock

import pytest
import requests

from spyprompt.config.settings import Settings
from spyprompt.models.player import Player
from spyprompt.models.session import GameSession, RoundState
from spyprompt.services.errors import StoreUnavailableError
from spyprompt.services.session_store import (
    FallbackSessionStore,
    FileSessionStore,
    MemorySessionStore,
    SupabaseSessionStore,
    build_session_store,
)
from spyprompt.services.prompt_table import load_prompt_table
from spyprompt.services.session_service import SessionService


def _session() -> GameSession:
    return GameSession(
        players=[Player(id="p1", name="Alice"), Player(id="p2", name="Bob")],
        active_round=RoundState(prompt_index=2, spy_id="p2"),
        rounds_played=3,
    )


class FlakyStore:
    """Durable store stub that fails while `down` is True."""

    backend = "flaky"

    def __init__(self) -> None:
        self.down = False
        self.saved: GameSession | None = None

    def load(self) -> GameSession:
        if self.down:
            raise StoreUnavailableError("down")
        return (self.saved or GameSession()).model_copy(deep=True)

    def save(self, session: GameSession) -> None:
        if self.down:
            raise StoreUnavailableError("down")
        self.saved = session.model_copy(deep=True)


def test_memory_store_defaults_and_copies():
    store = MemorySessionStore()
    loaded = store.load()
    assert loaded == GameSession()
    assert loaded.round_number == 1

    loaded.players.append(Player(id="x", name="X"))
    assert store.load().players == []

    store.save(loaded)
    assert [p.id for p in store.load().players] == ["x"]


def test_file_store_missing_file_gives_default(tmp_path):
    store = FileSessionStore(tmp_path / "nested" / "session.json")
    assert store.load() == GameSession()


def test_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "session.json"
    FileSessionStore(path).save(_session())

    assert FileSessionStore(path).load() == _session()
    assert not (tmp_path / "session.json.tmp").exists()


def test_file_store_corrupt_file_raises(tmp_path):
    path = tmp_path / "session.json"
    path.write_bytes(b"{not json")

    with pytest.raises(StoreUnavailableError):
        FileSessionStore(path).load()


def test_file_store_invalid_document_raises(tmp_path):
    path = tmp_path / "session.json"
    path.write_bytes(b'{"players": "nope"}')

    with pytest.raises(StoreUnavailableError):
        FileSessionStore(path).load()


def test_fallback_keeps_playing_when_primary_is_down():
    primary = FlakyStore()
    primary.down = True
    store = FallbackSessionStore(primary)

    assert store.load() == GameSession()
    assert store.degraded is True

    store.save(_session())
    assert store.load() == _session()
    # memory copy persists across calls
    assert store.load() == _session()


def test_fallback_prefers_memory_until_primary_catches_up():
    primary = FlakyStore()
    store = FallbackSessionStore(primary)
    store.save(GameSession(players=[Player(id="old", name="Old")]))

    primary.down = True
    store.save(_session())
    primary.down = False

    # durable copy is stale, memory wins
    assert store.load() == _session()
    assert store.degraded is True

    store.save(_session())
    assert store.degraded is False
    assert primary.saved == _session()
    assert store.load() == _session()


def test_fallback_load_recovers():
    primary = FlakyStore()
    primary.saved = _session()
    primary.down = True
    store = FallbackSessionStore(primary)

    store.load()
    assert store.degraded is True

    primary.down = False
    assert store.load() == _session()
    assert store.degraded is False


def _response(json_body=None, status_error: Exception | None = None):
    response = Mock()
    response.json.return_value = json_body
    response.raise_for_status.side_effect = status_error
    return response


@pytest.fixture
def http_stub():
    return Mock(spec=requests.Session)


def test_supabase_load_reads_row(http_stub):
    http_stub.get.return_value = _response([{"data": _session().model_dump(mode="json")}])
    store = SupabaseSessionStore("https://demo.supabase.co/", "anon", session=http_stub)

    assert store.load() == _session()

    args, kwargs = http_stub.get.call_args
    assert args[0] == "https://demo.supabase.co/rest/v1/game_state"
    assert kwargs["params"] == {"id": "eq.main", "select": "data"}
    assert kwargs["headers"]["apikey"] == "anon"
    assert kwargs["headers"]["Authorization"] == "Bearer anon"


def test_supabase_load_without_row_gives_default(http_stub):
    http_stub.get.return_value = _response([])
    store = SupabaseSessionStore("https://demo.supabase.co", "anon", session=http_stub)

    assert store.load() == GameSession()


def test_supabase_save_upserts_row(http_stub):
    http_stub.post.return_value = _response()
    store = SupabaseSessionStore(
        "https://demo.supabase.co", "anon", table="games", row_id="room-1", session=http_stub
    )

    store.save(_session())

    args, kwargs = http_stub.post.call_args
    assert args[0] == "https://demo.supabase.co/rest/v1/games"
    (row,) = kwargs["json"]
    assert row["id"] == "room-1"
    assert row["data"] == _session().model_dump(mode="json")
    assert row["updated_at"]
    assert "merge-duplicates" in kwargs["headers"]["Prefer"]


@pytest.mark.parametrize(
    "error",
    [requests.ConnectionError("refused"), requests.Timeout("slow"), requests.HTTPError("503")],
)
def test_supabase_errors_become_store_unavailable(http_stub, error):
    http_stub.get.side_effect = error
    http_stub.post.side_effect = error
    store = SupabaseSessionStore("https://demo.supabase.co", "anon", session=http_stub)

    with pytest.raises(StoreUnavailableError):
        store.load()
    with pytest.raises(StoreUnavailableError):
        store.save(GameSession())


def test_supabase_non_json_body(http_stub):
    response = _response()
    response.json.side_effect = ValueError("no json")
    http_stub.get.return_value = response
    store = SupabaseSessionStore("https://demo.supabase.co", "anon", session=http_stub)

    with pytest.raises(StoreUnavailableError):
        store.load()


def test_build_store_memory_by_default():
    store = build_session_store(Settings(SESSION_BACKEND="memory"))
    assert isinstance(store, MemorySessionStore)


def test_build_store_file_is_wrapped(tmp_path):
    store = build_session_store(Settings(SESSION_BACKEND="file", SESSION_FILE=str(tmp_path / "s.json")))
    assert isinstance(store, FallbackSessionStore)
    assert isinstance(store.primary, FileSessionStore)
    assert store.backend == "file"


def test_build_store_supabase_without_credentials_uses_memory():
    store = build_session_store(Settings(SESSION_BACKEND="supabase", SUPABASE_URL=None, SUPABASE_ANON_KEY=None))
    assert isinstance(store, MemorySessionStore)


def test_build_store_supabase():
    store = build_session_store(
        Settings(SESSION_BACKEND="supabase", SUPABASE_URL="https://demo.supabase.co", SUPABASE_ANON_KEY="anon")
    )
    assert isinstance(store, FallbackSessionStore)
    assert isinstance(store.primary, SupabaseSessionStore)


@pytest.mark.parametrize("rows", [[None], ["row"], [["data"]]])
def test_supabase_malformed_row_degrades_to_memory(http_stub, rows):
    http_stub.get.return_value = _response(rows)
    http_stub.post.return_value = _response()
    supabase = SupabaseSessionStore("https://demo.supabase.co", "anon", session=http_stub)

    with pytest.raises(StoreUnavailableError):
        supabase.load()

    store = FallbackSessionStore(supabase)
    service = SessionService(store, load_prompt_table())

    assert service.get_session() == GameSession()
    assert store.degraded is True
