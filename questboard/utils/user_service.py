"""
User profiles and the follow graph.

Accounts are owned by the external identity provider; ``sync_user`` is called
after every sign-in to mirror the provider's record locally.
"""
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from questboard.extensions import db
from questboard.models import Article, Follow, Post, Review, User
from questboard.utils.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError

log = logging.getLogger(__name__)

# Avatars served by the identity provider get replaced on sync; anything the
# user uploaded themselves is kept.
PROVIDER_AVATAR_HOSTS = ("clerk.com", "clerk.dev")


def _is_provider_avatar(url: Optional[str]) -> bool:
    return not url or any(host in url for host in PROVIDER_AVATAR_HOSTS)


def sync_user(external_id: str, email: str, username: str,
              display_name: str = None, avatar_url: str = None) -> User:
    if not external_id:
        raise ValidationError("external_id is required")

    user = User.query.filter_by(external_id=external_id).first()
    if user is None and email:
        # account created before the provider id was known (legacy import)
        user = User.query.filter_by(email=email).first()
        if user is not None:
            user.external_id = external_id

    if user is not None:
        if email:
            user.email = email
        if avatar_url and _is_provider_avatar(user.avatar_url):
            user.avatar_url = avatar_url
        db.session.commit()
        return user

    username = (username or "").strip()
    if not username:
        raise ValidationError("Username is required")
    user = User(
        external_id=external_id,
        email=email,
        username=username,
        display_name=display_name or username,
        avatar_url=avatar_url,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Username already taken")
    log.info("New user %s synced from identity provider", username)
    return user


def get_by_username(username: str) -> User:
    user = User.query.filter_by(username=username).first()
    if user is None:
        raise NotFoundError("User not found")
    return user


def profile(username: str) -> dict:
    """Public profile with content and follow counts."""
    user = get_by_username(username)
    data = user.to_dict()
    data["counts"] = {
        "posts":    Post.query.filter_by(author_id=user.id).count(),
        "articles": Article.query.filter_by(author_id=user.id, published=True).count(),
        "reviews":  Review.query.filter_by(author_id=user.id, published=True).count(),
    }
    data["counts"].update(follow_counts(user.id))
    return data


def username_available(username: str) -> bool:
    return User.query.filter_by(username=username).first() is None


def update_profile(user: User, display_name=None, bio=None, avatar_url=None, banner_url=None) -> User:
    if display_name is not None:
        user.display_name = display_name.strip()[:120] or user.username
    if bio is not None:
        user.bio = bio.strip()[:500]
    if avatar_url is not None:
        user.avatar_url = avatar_url or None
    if banner_url is not None:
        user.banner_url = banner_url or None
    db.session.commit()
    return user


def admin_update_profile(admin: User, user_id: str, display_name=None, bio=None) -> User:
    if not admin.is_admin:
        raise UnauthorizedError("Admin access required")
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if display_name is not None:
        user.display_name = display_name.strip()[:120] or user.username
    if bio is not None:
        user.bio = bio.strip()[:500]
    db.session.commit()
    log.info("Admin %s edited profile of %s", admin.username, user.username)
    return user


def search_users(query: str, limit: int = 10) -> list:
    """Username/display-name substring search; exact then prefix matches first."""
    q = (query or "").strip().lower()
    if not q:
        return []
    pattern = f"%{q}%"
    rows = (User.query
            .filter(db.or_(func.lower(User.username).like(pattern),
                           func.lower(User.display_name).like(pattern)))
            .limit(200)
            .all())

    def rank(u):
        name = u.username.lower()
        return (name != q, not name.startswith(q), name)

    return [u.to_summary() for u in sorted(rows, key=rank)[:limit]]


# ── Follows ───────────────────────────────────────────────────────────────────

def follow(user: User, target_id: str) -> dict:
    if user.id == target_id:
        raise ConflictError("Cannot follow yourself")
    if db.session.get(User, target_id) is None:
        raise NotFoundError("User not found")
    if is_following(user.id, target_id):
        return {"success": True}

    db.session.add(Follow(follower_id=user.id, following_id=target_id))
    try:
        db.session.commit()
    except IntegrityError:
        # a concurrent request created the same pair
        db.session.rollback()
    return {"success": True}


def unfollow(user: User, target_id: str) -> dict:
    Follow.query.filter_by(follower_id=user.id, following_id=target_id).delete(
        synchronize_session=False
    )
    db.session.commit()
    return {"success": True}


def is_following(follower_id: Optional[str], following_id: str) -> bool:
    if not follower_id:
        return False
    return Follow.query.filter_by(
        follower_id=follower_id, following_id=following_id
    ).first() is not None


def follow_counts(user_id: str) -> dict:
    return {
        "followers": Follow.query.filter_by(following_id=user_id).count(),
        "following": Follow.query.filter_by(follower_id=user_id).count(),
    }


def _summaries(ids: list) -> list:
    if not ids:
        return []
    users = {u.id: u for u in User.query.filter(User.id.in_(ids)).all()}
    return [users[i].to_summary() for i in ids if i in users]


def followers(user_id: str) -> list:
    rows = Follow.query.filter_by(following_id=user_id).order_by(Follow.created_at.desc()).all()
    return _summaries([f.follower_id for f in rows])


def following(user_id: str) -> list:
    rows = Follow.query.filter_by(follower_id=user_id).order_by(Follow.created_at.desc()).all()
    return _summaries([f.following_id for f in rows])
