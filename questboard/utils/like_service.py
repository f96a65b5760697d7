"""Likes on posts, articles, reviews and comments."""
import logging

from sqlalchemy.exc import IntegrityError

from questboard.extensions import db
from questboard.models import Like, User
from questboard.utils.helpers import create_notification
from questboard.utils.targets import Target, resolve_target

log = logging.getLogger(__name__)


def toggle_like(user: User, target: Target) -> dict:
    """Like the target, or remove the like if it exists.

    The (user, kind, id) unique constraint guarantees at most one row even
    when two toggles race; the loser of an insert race ends up "liked" just
    like the winner.
    """
    row = resolve_target(target)
    existing = Like.query.filter_by(
        user_id=user.id, target_type=target.kind.value, target_id=target.id
    ).first()

    if existing:
        db.session.delete(existing)
        db.session.commit()
        liked = False
    else:
        db.session.add(Like(user_id=user.id, target_type=target.kind.value, target_id=target.id))
        create_notification(row.author_id, user.id, f"like_{target.kind.value}", target.id)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            log.info("Concurrent like on %s by %s", target.key, user.id)
        liked = True

    return {"liked": liked, "like_count": like_count(target)}


def like_count(target: Target) -> int:
    return Like.query.filter_by(target_type=target.kind.value, target_id=target.id).count()


def has_liked(user_id, target: Target) -> bool:
    if not user_id:
        return False
    return Like.query.filter_by(
        user_id=user_id, target_type=target.kind.value, target_id=target.id
    ).first() is not None


def likers(target: Target, limit: int = 50) -> list:
    rows = (Like.query
            .filter_by(target_type=target.kind.value, target_id=target.id)
            .order_by(Like.created_at.desc())
            .limit(limit)
            .all())
    ids = [r.user_id for r in rows]
    users = {u.id: u for u in User.query.filter(User.id.in_(ids)).all()} if ids else {}
    return [users[i].to_summary() for i in ids if i in users]
