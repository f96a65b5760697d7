"""
Owned-games collection.

Separate from the quest log: the collection says what a user owns and how
(physical or digital), the quest log records play sessions. Only main games
can be collected; DLC, expansions and other add-ons are rejected.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError

from questboard.extensions import db
from questboard.models import CollectionEntry, Game, QuestLog, Review, User
from questboard.models.collection import CollectionStatus, OwnershipType
from questboard.utils.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError

log = logging.getLogger(__name__)

DLC_CATEGORIES = frozenset({
    "DLC",
    "Expansion",
    "Standalone Expansion",
    "Standalone DLC",
    "Bundle",
    "Pack",
    "Pack / Addon",
    "Mod",
    "Update",
})


def _enum(enum_cls, value, label: str):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Invalid {label}: {value}")


def add_entry(user: User, game_id: str, ownership_type, status=None, platform: str = None,
              difficulty: str = None, acquired_at: datetime = None) -> CollectionEntry:
    game = db.session.get(Game, game_id)
    if game is None:
        raise NotFoundError("Game not found")
    if game.category_label in DLC_CATEGORIES:
        raise ValidationError(
            f"Cannot add {game.category_label} to collection. Only main games can be tracked."
        )
    if CollectionEntry.query.filter_by(user_id=user.id, game_id=game_id).first() is not None:
        raise ConflictError("Game is already in your collection")

    entry = CollectionEntry(
        user_id=user.id,
        game_id=game_id,
        ownership_type=_enum(OwnershipType, ownership_type, "ownership type") or OwnershipType.DIGITAL,
        status=_enum(CollectionStatus, status, "collection status"),
        platform=platform,
        difficulty=difficulty,
        acquired_at=acquired_at,
    )
    db.session.add(entry)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Game is already in your collection")
    return entry


def _owned(entry_id: str, user: User) -> CollectionEntry:
    entry = db.session.get(CollectionEntry, entry_id)
    if entry is None:
        raise NotFoundError("Collection entry not found")
    if entry.user_id != user.id:
        raise UnauthorizedError("Not authorized")
    return entry


def update_entry(entry_id: str, user: User, **fields) -> dict:
    entry = _owned(entry_id, user)
    if fields.get("ownership_type") is not None:
        entry.ownership_type = _enum(OwnershipType, fields["ownership_type"], "ownership type")
    if fields.get("status") is not None:
        entry.status = _enum(CollectionStatus, fields["status"], "collection status")
    for name in ("platform", "difficulty", "hours_played", "acquired_at"):
        if fields.get(name) is not None:
            setattr(entry, name, fields[name])
    db.session.commit()

    data = entry.to_dict()
    game = db.session.get(Game, entry.game_id)
    data["game"] = game.to_summary() if game else None
    return data


def remove_entry(entry_id: str, user: User) -> dict:
    entry = _owned(entry_id, user)
    db.session.delete(entry)
    db.session.commit()
    return {"success": True}


def get_entry(user_id: str, game_id: str) -> Optional[dict]:
    entry = CollectionEntry.query.filter_by(user_id=user_id, game_id=game_id).first()
    if entry is None:
        return None
    data = entry.to_dict()
    game = db.session.get(Game, game_id)
    data["game"] = game.to_summary() if game else None
    return data


# ── Profile views ─────────────────────────────────────────────────────────────

def _empty_stats() -> dict:
    stats = {"total_owned": 0, "physical": 0, "digital": 0}
    stats.update({s.stats_key: 0 for s in CollectionStatus})
    return stats


def _tally(entries: list) -> dict:
    stats = _empty_stats()
    stats["total_owned"] = len(entries)
    for entry in entries:
        if entry.ownership_type is OwnershipType.PHYSICAL:
            stats["physical"] += 1
        else:
            stats["digital"] += 1
        status = entry.status or CollectionStatus.UNPLAYED
        stats[status.stats_key] += 1
    return stats


def collection_stats(username: str) -> dict:
    user = User.query.filter_by(username=username).first()
    if user is None:
        return _empty_stats()
    return _tally(CollectionEntry.query.filter_by(user_id=user.id).all())


def user_collection(username: str) -> dict:
    """Owned games, most recently updated first, each with the owner's quest
    log playthroughs and their review of the game."""
    user = User.query.filter_by(username=username).first()
    if user is None:
        return {"games": [], "stats": _empty_stats()}

    entries = CollectionEntry.query.filter_by(user_id=user.id).all()
    game_ids = [e.game_id for e in entries]
    games = {g.id: g for g in Game.query.filter(Game.id.in_(game_ids)).all()} if game_ids else {}

    playthroughs = {}
    for q in (QuestLog.query
              .filter_by(user_id=user.id)
              .order_by(QuestLog.updated_at.desc())
              .all()):
        playthroughs.setdefault(q.game_id, []).append(q)

    reviews = {}
    if game_ids:
        for r in Review.query.filter(Review.author_id == user.id, Review.game_id.in_(game_ids)).all():
            reviews.setdefault(r.game_id, r)

    out = []
    for entry in sorted(entries, key=lambda e: e.updated_at, reverse=True):
        game = games.get(entry.game_id)
        if game is None:
            continue
        runs = playthroughs.get(entry.game_id, [])
        review = reviews.get(entry.game_id)
        out.append({
            "collection":    entry.to_dict(),
            "game":          game.to_dict(),
            "playthroughs":  [p.to_dict() for p in runs],
            "latest_rating": runs[0].quick_rating if runs else None,
            "review": {
                "id":        review.id,
                "title":     review.title,
                "rating":    review.rating,
                "published": review.published,
            } if review else None,
        })
    return {"games": out, "stats": _tally(entries)}
