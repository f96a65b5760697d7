"""
Quest log: what a user is playing, finished, dropped or plans to play.

One entry per (user, game). Up to five entries shown on the profile carry a
display order 0–4; ``now_playing`` reads the "Playing" ones in that order.
A status change may be shared as an auto-generated post.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError

from questboard.extensions import db
from questboard.models import Game, QuestLog, User
from questboard.models._base import utcnow
from questboard.models.post import MAX_POST_LENGTH
from questboard.models.questlog import MAX_DISPLAYED, QuestStatus
from questboard.models.review import MAX_RATING, MIN_RATING
from questboard.utils.errors import NotFoundError, UnauthorizedError, ValidationError

log = logging.getLogger(__name__)

STAR = "⭐"


def parse_status(value) -> QuestStatus:
    if isinstance(value, QuestStatus):
        return value
    try:
        return QuestStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid quest log status: {value}")


def _check_quick_rating(rating) -> Optional[int]:
    if rating is None:
        return None
    try:
        rating = int(rating)
    except (TypeError, ValueError):
        raise ValidationError("Quick rating must be between 1 and 5")
    if rating < MIN_RATING or rating > MAX_RATING:
        raise ValidationError("Quick rating must be between 1 and 5")
    return rating


def share_text(status: QuestStatus, game_name: str, rating: int) -> str:
    """Text of the post generated when a status change is shared."""
    return f"I just {status.share_text} {game_name}! {STAR * rating}"[:MAX_POST_LENGTH]


def _with_game(entry: QuestLog, games: dict = None) -> dict:
    data = entry.to_dict()
    game = games.get(entry.game_id) if games is not None else db.session.get(Game, entry.game_id)
    data["game"] = game.to_summary() if game else None
    return data


def _games_for(entries: list) -> dict:
    ids = list({e.game_id for e in entries})
    return {g.id: g for g in Game.query.filter(Game.id.in_(ids)).all()} if ids else {}


# ── Mutations ─────────────────────────────────────────────────────────────────

def add_entry(user: User, game_id: str, status=None, started_at: datetime = None,
              completed_at: datetime = None, notes: str = None, platform: str = None) -> QuestLog:
    if db.session.get(Game, game_id) is None:
        raise NotFoundError("Game not found")
    if QuestLog.query.filter_by(user_id=user.id, game_id=game_id).first() is not None:
        raise ValidationError("Game is already in your quest log")

    displayed = QuestLog.query.filter_by(user_id=user.id, display_on_profile=True).count()
    entry = QuestLog(
        user_id=user.id,
        game_id=game_id,
        status=parse_status(status) if status else QuestStatus.PLAYING,
        started_at=started_at or utcnow(),
        completed_at=completed_at,
        notes=notes,
        platform=platform,
        display_on_profile=True,
        display_order=min(displayed, MAX_DISPLAYED - 1),
    )
    db.session.add(entry)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError("Game is already in your quest log")
    return entry


def _owned(entry_id: str, user: User) -> QuestLog:
    entry = db.session.get(QuestLog, entry_id)
    if entry is None:
        raise NotFoundError("Quest log entry not found")
    if entry.user_id != user.id:
        raise UnauthorizedError("Not authorized")
    return entry


def update_entry(entry_id: str, user: User, **fields) -> dict:
    entry = _owned(entry_id, user)

    status = fields.get("status")
    if status is not None:
        entry.status = parse_status(status)
        if entry.status.finishes_run and fields.get("completed_at") is None:
            entry.completed_at = utcnow()
    for name in ("notes", "platform", "difficulty", "hours_played",
                 "started_at", "completed_at", "display_on_profile", "display_order"):
        if fields.get(name) is not None:
            setattr(entry, name, fields[name])
    if "quick_rating" in fields:
        entry.quick_rating = _check_quick_rating(fields["quick_rating"])

    db.session.commit()
    return _with_game(entry)


def update_status(user: User, game_id: str, new_status, quick_rating=None,
                  share_as_post: bool = False) -> dict:
    from questboard.models import Post

    status = parse_status(new_status)
    rating = _check_quick_rating(quick_rating)
    entry = QuestLog.query.filter_by(user_id=user.id, game_id=game_id).first()
    if entry is None:
        raise NotFoundError("Quest log entry not found")
    game = db.session.get(Game, game_id)

    entry.status = status
    entry.quick_rating = rating
    if status.finishes_run:
        entry.completed_at = utcnow()
    entry.updated_at = utcnow()

    if share_as_post and rating and game is not None:
        db.session.add(Post(author_id=user.id, content=share_text(status, game.name, rating)))
        log.info("Shared quest log status of %s for %s", user.username, game.name)

    db.session.commit()
    return _with_game(entry)


def remove_entry(entry_id: str, user: User) -> dict:
    entry = _owned(entry_id, user)
    db.session.delete(entry)
    db.session.commit()
    return {"success": True}


def update_display_order(user: User, ordered_ids: list) -> dict:
    for position, entry_id in enumerate((ordered_ids or [])[:MAX_DISPLAYED]):
        entry = db.session.get(QuestLog, entry_id)
        if entry is not None and entry.user_id == user.id:
            entry.display_order = position
    db.session.commit()
    return {"success": True}


# ── Reads ─────────────────────────────────────────────────────────────────────

def get_entry(user_id: str, game_id: str) -> Optional[dict]:
    entry = QuestLog.query.filter_by(user_id=user_id, game_id=game_id).first()
    return _with_game(entry) if entry else None


def now_playing(username: str) -> list:
    user = User.query.filter_by(username=username).first()
    if user is None:
        return []
    entries = (QuestLog.query
               .filter_by(user_id=user.id, display_on_profile=True, status=QuestStatus.PLAYING)
               .order_by(QuestLog.display_order)
               .limit(MAX_DISPLAYED)
               .all())
    games = _games_for(entries)
    return [_with_game(e, games) for e in entries]


def user_quest_log(username: str, status=None, cursor: Optional[str] = None, limit: int = 20) -> dict:
    from questboard.utils.feed_service import paginate

    user = User.query.filter_by(username=username).first()
    if user is None:
        return {"entries": [], "next_cursor": None}
    q = QuestLog.query.filter_by(user_id=user.id)
    if status:
        q = q.filter(QuestLog.status == parse_status(status))
    entries = q.order_by(QuestLog.updated_at.desc(), QuestLog.id.desc()).all()

    page, next_cursor = paginate(entries, cursor, limit, key=lambda e: e.id)
    games = _games_for(page)
    return {"entries": [_with_game(e, games) for e in page], "next_cursor": next_cursor}
