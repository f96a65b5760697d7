"""
IGDB API wrapper: pure HTTP layer, no database interaction.

IGDB authenticates with a Twitch app access token (OAuth client-credentials
grant). The token is cached until five minutes before it expires and
refreshed by a single caller at a time. Queries are IGDB's "apicalypse"
text bodies posted to ``/v4/<endpoint>``. Every failure raises IGDBError so
callers can degrade gracefully.

IGDB API reference: https://api-docs.igdb.com/
"""
import logging
import threading
import time
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Optional

import requests

log = logging.getLogger(__name__)

TOKEN_URL = "https://id.twitch.tv/oauth2/token"
API_BASE = "https://api.igdb.com/v4"
COVER_URL = "https://images.igdb.com/igdb/image/upload/t_{size}/{image_id}.jpg"

TOKEN_REFRESH_MARGIN = 300  # seconds

GAME_FIELDS = (
    "id, name, slug, summary, cover.image_id, first_release_date, "
    "genres.name, platforms.name, rating, category, version_parent, parent_game"
)

CATEGORY_LABELS = {
    1:  "DLC",
    2:  "Expansion",
    3:  "Bundle",
    4:  "Standalone DLC",
    5:  "Mod",
    6:  "Episode",
    7:  "Season",
    8:  "Remake",
    9:  "Remaster",
    10: "Expanded Edition",
    11: "Port",
    13: "Pack",
    14: "Update",
}

# Name fragments that mark fan games, mods and demakes in search results
_MOD_PATTERNS = (
    "reforged", "randomizer", "convergence", "ascended", "dark moon", " mod",
    "demake", " gb", " nes", " snes", "(fan", "fan game", "fan-made",
)


class IGDBError(Exception):
    """Raised when IGDB or Twitch returns an error or the network fails."""
    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class _Token:
    value: str
    expires_at: float


class TokenCache:
    """Holds one OAuth token; ``get`` refreshes it under a lock when due."""

    def __init__(self, fetch, clock=time.time):
        self._fetch = fetch
        self._clock = clock
        self._token: Optional[_Token] = None
        self._lock = threading.Lock()

    def _valid(self) -> bool:
        return (self._token is not None
                and self._clock() < self._token.expires_at - TOKEN_REFRESH_MARGIN)

    def get(self) -> str:
        if self._valid():
            return self._token.value
        with self._lock:
            # another thread may have refreshed while we waited
            if not self._valid():
                value, expires_in = self._fetch()
                self._token = _Token(value, self._clock() + expires_in)
            return self._token.value

    def invalidate(self) -> None:
        with self._lock:
            self._token = None


class IGDBClient:
    def __init__(self, client_id: str, client_secret: str, timeout: float = 10,
                 session: requests.Session = None):
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self.session = session or requests.Session()
        self.tokens = TokenCache(self._request_token)

    @classmethod
    def from_config(cls, config) -> "IGDBClient":
        return cls(
            config.get("TWITCH_CLIENT_ID", ""),
            config.get("TWITCH_CLIENT_SECRET", ""),
            timeout=config.get("IGDB_TIMEOUT", 10),
        )

    # ── Internal helpers ──────────────────────────────────────────────────────

    def _request_token(self):
        if not self.client_id or not self.client_secret:
            raise IGDBError("TWITCH_CLIENT_ID and TWITCH_CLIENT_SECRET must be set")
        try:
            resp = self.session.post(TOKEN_URL, data={
                "client_id":     self.client_id,
                "client_secret": self.client_secret,
                "grant_type":    "client_credentials",
            }, timeout=self.timeout)
        except requests.RequestException as exc:
            raise IGDBError(f"Network error contacting Twitch: {exc}") from exc
        if not resp.ok:
            raise IGDBError(f"Failed to get Twitch token: {resp.status_code}", status_code=resp.status_code)
        data = resp.json()
        log.info("Obtained new IGDB access token (expires in %ss)", data.get("expires_in"))
        return data["access_token"], data["expires_in"]

    def query(self, endpoint: str, body: str) -> list:
        """POST an apicalypse query and return the parsed JSON list."""
        token = self.tokens.get()
        clean = " ".join(line.strip() for line in body.splitlines() if line.strip())
        try:
            resp = self.session.post(
                f"{API_BASE}/{endpoint}",
                data=clean.encode("utf-8"),
                headers={
                    "Client-ID":     self.client_id,
                    "Authorization": f"Bearer {token}",
                    "Content-Type":  "text/plain",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise IGDBError(f"Network error contacting IGDB: {exc}") from exc
        if resp.status_code == 401:
            self.tokens.invalidate()
        if not resp.ok:
            raise IGDBError(f"IGDB request failed: {resp.status_code} {resp.text[:200]}",
                            status_code=resp.status_code)
        return resp.json()

    # ── Queries ───────────────────────────────────────────────────────────────

    def search(self, term: str, limit: int = 10) -> list:
        """Search by name; editions, fan games and platform-less entries are
        filtered out and the rest ordered by release date."""
        term = term.replace('"', "")
        hits = self.query("games", f'search "{term}"; fields id; limit {limit * 3};')
        if not hits:
            return []
        ids = ",".join(str(h["id"]) for h in hits)
        games = self.query("games", f"fields {GAME_FIELDS}; where id = ({ids}); limit {limit * 3};")
        games = [g for g in games if _is_main_listing(g)]
        games.sort(key=lambda g: g.get("first_release_date") or float("inf"))
        return games[:limit]

    def by_slug(self, slug: str) -> Optional[dict]:
        slug = slug.replace('"', "")
        games = self.query("games", f'fields {GAME_FIELDS}; where slug = "{slug}"; limit 1;')
        return games[0] if games else None

    def by_id(self, igdb_id: int) -> Optional[dict]:
        games = self.query("games", f"fields {GAME_FIELDS}; where id = {int(igdb_id)}; limit 1;")
        return games[0] if games else None

    def by_ids(self, igdb_ids: list) -> list:
        if not igdb_ids:
            return []
        ids = ",".join(str(int(i)) for i in igdb_ids)
        return self.query("games", f"fields {GAME_FIELDS}; where id = ({ids}); limit {len(igdb_ids)};")


def _is_main_listing(game: dict) -> bool:
    if game.get("version_parent"):
        return False
    name = (game.get("name") or "").lower()
    if any(p in name for p in _MOD_PATTERNS):
        return False
    return bool(game.get("platforms"))


def cover_url(image_id: str, size: str = "cover_big") -> str:
    return COVER_URL.format(size=size, image_id=image_id)


def category_label(game: dict) -> Optional[str]:
    label = CATEGORY_LABELS.get(game.get("category"))
    if label is None and game.get("parent_game"):
        label = "DLC"
    return label


def normalize_game(data: dict) -> dict:
    """
    Convert a raw IGDB game object into a flat dict matching our Game model.
    """
    cover = data.get("cover") or {}
    released = data.get("first_release_date")
    return {
        "igdb_id":        data["id"],
        "name":           data["name"],
        "slug":           data.get("slug"),
        "summary":        data.get("summary") or None,
        "cover_url":      cover_url(cover["image_id"]) if cover.get("image_id") else None,
        "release_date":   (datetime.fromtimestamp(released, tz=timezone.utc).replace(tzinfo=None)
                           if released else None),
        "genres":         [g["name"] for g in data.get("genres") or []],
        "platforms":      [p["name"] for p in data.get("platforms") or []],
        "rating":         data.get("rating") or None,
        "category_label": category_label(data),
    }
