"""
Game service layer: bridges the IGDB API with the games table.

Blueprints never call IGDB directly. Everything goes through here so the
read-through cache, staleness window and failure handling stay in one place.
Provider failures are logged and never retried; callers get the cached row
(stale or not) when there is one, otherwise None or an empty list.
"""
import logging
from datetime import timedelta
from typing import Optional

from flask import current_app

from questboard.extensions import db
from questboard.models import ArticleGame, CollectionEntry, Game, QuestLog, Review
from questboard.models._base import utcnow
from questboard.utils.igdb import IGDBClient, IGDBError, normalize_game

log = logging.getLogger(__name__)


def get_client() -> IGDBClient:
    """The app-wide IGDB client, created on first use."""
    client = current_app.extensions.get("igdb")
    if client is None:
        client = IGDBClient.from_config(current_app.config)
        current_app.extensions["igdb"] = client
    return client


def upsert_game(data: dict) -> Game:
    """Insert or refresh a Game keyed by igdb_id. Caller commits."""
    game = Game.query.filter_by(igdb_id=data["igdb_id"]).first()
    if game is None and data.get("slug"):
        game = Game.query.filter_by(slug=data["slug"]).first()
    if game is None:
        game = Game(igdb_id=data["igdb_id"], name=data["name"])
        db.session.add(game)
    for attr, value in data.items():
        setattr(game, attr, value)
    game.cached_at = utcnow()
    db.session.flush()
    return game


def get_or_create_game(igdb_id: int = None, slug: str = None,
                       force_refresh: bool = False) -> Optional[Game]:
    """
    Return a Game from the local cache, fetching from IGDB if needed.

    Lookup is by igdb_id when given, otherwise by slug. A fresh cached row is
    returned as is; a stale or missing one is refetched and upserted.
    """
    if igdb_id is None and not slug:
        raise ValueError("Provide igdb_id or slug")

    if igdb_id is not None:
        game = Game.query.filter_by(igdb_id=igdb_id).first()
    else:
        game = Game.query.filter_by(slug=slug).first()

    if game and not game.is_stale and not force_refresh:
        return game

    try:
        client = get_client()
        raw = client.by_id(igdb_id) if igdb_id is not None else client.by_slug(slug)
    except IGDBError as exc:
        log.warning("IGDB lookup failed for %s: %s", igdb_id or slug, exc)
        return game

    if raw is None:
        return game

    game = upsert_game(normalize_game(raw))
    db.session.commit()
    return game


def get_game(game_id: str) -> Optional[Game]:
    return db.session.get(Game, game_id)


def search_games(term: str, limit: int = 10) -> list:
    """Search IGDB and cache every hit. Returns [] when IGDB is unreachable."""
    term = (term or "").strip()
    if not term:
        return []
    try:
        raw = get_client().search(term, limit=limit)
    except IGDBError as exc:
        log.warning("IGDB search for %r failed: %s", term, exc)
        return []
    games = [upsert_game(normalize_game(r)) for r in raw]
    db.session.commit()
    return games


def search_cached(term: str, limit: int = 10) -> list:
    """Name search over already cached games only."""
    term = (term or "").strip()
    if not term:
        return []
    return (Game.query
            .filter(Game.name.ilike(f"%{term}%"))
            .order_by(Game.name)
            .limit(limit)
            .all())


# ── Maintenance jobs ──────────────────────────────────────────────────────────

def refresh_stale_games(limit: int = 50) -> int:
    """Refetch up to ``limit`` of the oldest stale games. Returns count refreshed."""
    days = current_app.config.get("IGDB_CACHE_DAYS", 7)
    cutoff = utcnow() - timedelta(days=days)
    stale = (Game.query
             .filter(Game.cached_at < cutoff, Game.igdb_id.isnot(None))
             .order_by(Game.cached_at)
             .limit(limit)
             .all())
    if not stale:
        return 0
    try:
        raw = get_client().by_ids([g.igdb_id for g in stale])
    except IGDBError as exc:
        log.error("Stale game refresh failed: %s", exc)
        return 0
    for item in raw:
        upsert_game(normalize_game(item))
    db.session.commit()
    log.info("Refreshed %d of %d stale games", len(raw), len(stale))
    return len(raw)


def cleanup_orphaned_games(max_age_days: int = 14, dry_run: bool = False) -> dict:
    """Delete cached games nothing references, cached more than max_age_days ago."""
    cutoff = utcnow() - timedelta(days=max_age_days)
    referenced = set()
    for model in (Review, QuestLog, CollectionEntry, ArticleGame):
        referenced.update(gid for (gid,) in db.session.query(model.game_id).distinct())

    total = Game.query.count()
    candidates = Game.query.filter(Game.cached_at <= cutoff).all()
    orphans = [g for g in candidates if g.id not in referenced]

    if not dry_run:
        for g in orphans:
            db.session.delete(g)
        db.session.commit()

    log.info("Orphaned games: %d found, %d deleted%s",
             len(orphans), 0 if dry_run else len(orphans), " (dry run)" if dry_run else "")
    return {
        "total_games":    total,
        "orphaned_count": len(orphans),
        "deleted":        0 if dry_run else len(orphans),
        "dry_run":        dry_run,
        "orphaned_games": [{"name": g.name, "cached_at": g.cached_at.isoformat()} for g in orphans],
    }
