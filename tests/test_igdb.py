"""
Tests for the IGDB wrapper and the game cache built on it.

No network: the HTTP session and the client are replaced with mocks.
"""
import threading
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from questboard.extensions import db
from questboard.models import Game
from questboard.models._base import utcnow
from questboard.utils.game_service import get_or_create_game, search_games
from questboard.utils.igdb import (
    IGDBClient, IGDBError, TokenCache, category_label, normalize_game,
)


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def _response(status=200, payload=None):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.json.return_value = payload
    resp.text = ""
    return resp


# ── Token cache ───────────────────────────────────────────────────────────────

class TestTokenCache:

    def test_fetches_once_while_valid(self):
        fetch = MagicMock(return_value=("tok", 3600))
        cache = TokenCache(fetch, clock=FakeClock())
        assert cache.get() == "tok"
        assert cache.get() == "tok"
        assert fetch.call_count == 1

    def test_refreshes_five_minutes_early(self):
        clock = FakeClock()
        fetch = MagicMock(side_effect=[("one", 3600), ("two", 3600)])
        cache = TokenCache(fetch, clock=clock)
        cache.get()

        clock.now += 3600 - 301
        assert cache.get() == "one"
        clock.now += 1
        assert cache.get() == "two"

    def test_invalidate_forces_refetch(self):
        fetch = MagicMock(side_effect=[("one", 3600), ("two", 3600)])
        cache = TokenCache(fetch, clock=FakeClock())
        cache.get()
        cache.invalidate()
        assert cache.get() == "two"

    def test_concurrent_callers_share_one_fetch(self):
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow_fetch():
            calls.append(1)
            started.set()
            release.wait(timeout=5)
            return "tok", 3600

        cache = TokenCache(slow_fetch, clock=FakeClock())
        results = []
        threads = [threading.Thread(target=lambda: results.append(cache.get())) for _ in range(5)]
        threads[0].start()
        started.wait(timeout=5)
        for t in threads[1:]:
            t.start()
        release.set()
        for t in threads:
            t.join(timeout=5)

        assert len(calls) == 1
        assert results == ["tok"] * 5

    def test_fetch_failure_propagates(self):
        cache = TokenCache(MagicMock(side_effect=IGDBError("down")), clock=FakeClock())
        with pytest.raises(IGDBError):
            cache.get()


# ── Client ────────────────────────────────────────────────────────────────────

class TestClient:

    def _client(self, *responses):
        session = MagicMock()
        session.post.side_effect = list(responses)
        return IGDBClient("id", "secret", session=session), session

    def test_query_sends_bearer_token(self):
        client, session = self._client(
            _response(payload={"access_token": "tok", "expires_in": 3600}),
            _response(payload=[{"id": 1}]),
        )
        assert client.query("games", "fields id;") == [{"id": 1}]
        headers = session.post.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer tok"
        assert headers["Client-ID"] == "id"

    def test_401_invalidates_token(self):
        client, _ = self._client(
            _response(payload={"access_token": "old", "expires_in": 3600}),
            _response(status=401),
            _response(payload={"access_token": "new", "expires_in": 3600}),
            _response(payload=[]),
        )
        with pytest.raises(IGDBError) as exc:
            client.query("games", "fields id;")
        assert exc.value.status_code == 401
        assert client.query("games", "fields id;") == []
        assert client.tokens.get() == "new"

    def test_missing_credentials(self):
        client = IGDBClient("", "", session=MagicMock())
        with pytest.raises(IGDBError, match="must be set"):
            client.query("games", "fields id;")

    def test_token_endpoint_failure(self):
        client, _ = self._client(_response(status=500))
        with pytest.raises(IGDBError):
            client.query("games", "fields id;")


# ── Normalisation ─────────────────────────────────────────────────────────────

class TestNormalize:

    raw = {
        "id": 42, "name": "Hollow Knight", "slug": "hollow-knight",
        "cover": {"image_id": "abc"}, "first_release_date": 1487894400,
        "genres": [{"name": "Platform"}], "platforms": [{"name": "PC"}],
        "rating": 91.5, "category": 0,
    }

    def test_fields(self):
        data = normalize_game(self.raw)
        assert data["igdb_id"] == 42
        assert data["slug"] == "hollow-knight"
        assert data["cover_url"].endswith("/t_cover_big/abc.jpg")
        assert data["genres"] == ["Platform"]
        assert data["release_date"].year == 2017
        assert data["category_label"] is None

    def test_category_labels(self):
        assert category_label({"category": 1}) == "DLC"
        assert category_label({"category": 2}) == "Expansion"
        assert category_label({"category": 0, "parent_game": 7}) == "DLC"


# ── Game cache ────────────────────────────────────────────────────────────────

class TestGameCache:

    def _install(self, app, client):
        app.extensions["igdb"] = client

    def test_fresh_row_skips_igdb(self, app, make_game):
        game = make_game(igdb_id=5)
        client = MagicMock()
        self._install(app, client)
        assert get_or_create_game(igdb_id=5) is game
        client.by_id.assert_not_called()

    def test_missing_row_is_fetched(self, app):
        client = MagicMock()
        client.by_id.return_value = {"id": 77, "name": "Celeste", "slug": "celeste"}
        self._install(app, client)

        game = get_or_create_game(igdb_id=77)
        assert game.name == "Celeste"
        assert Game.query.filter_by(igdb_id=77).count() == 1

    def test_stale_row_refreshed(self, app, make_game):
        game = make_game(name="Old name", igdb_id=9, slug="nine")
        game.cached_at = utcnow() - timedelta(days=30)
        db.session.commit()
        client = MagicMock()
        client.by_id.return_value = {"id": 9, "name": "New name", "slug": "nine"}
        self._install(app, client)

        assert get_or_create_game(igdb_id=9).name == "New name"

    def test_failure_returns_stale_row(self, app, make_game):
        game = make_game(igdb_id=10)
        game.cached_at = utcnow() - timedelta(days=30)
        db.session.commit()
        client = MagicMock()
        client.by_id.side_effect = IGDBError("timeout")
        self._install(app, client)

        assert get_or_create_game(igdb_id=10) is game

    def test_failure_without_cache_returns_none(self, app):
        client = MagicMock()
        client.by_slug.side_effect = IGDBError("timeout")
        self._install(app, client)
        assert get_or_create_game(slug="unknown") is None

    def test_requires_a_key(self, app):
        with pytest.raises(ValueError):
            get_or_create_game()

    def test_search_failure_is_empty(self, app):
        client = MagicMock()
        client.search.side_effect = IGDBError("down")
        self._install(app, client)
        assert search_games("zelda") == []

    def test_search_caches_hits(self, app):
        client = MagicMock()
        client.search.return_value = [{"id": 1, "name": "Zelda", "slug": "zelda"}]
        self._install(app, client)
        assert [g.name for g in search_games("zelda")] == ["Zelda"]
        assert Game.query.filter_by(slug="zelda").count() == 1
