"""
Game reviews.

A review belongs to one game and carries a 1–5 star rating. Only the author
may edit or delete it; every edit snapshots the previous state.
"""
import logging
from typing import Optional

from questboard.extensions import db
from questboard.models import Game, Review, ReviewVersion, User
from questboard.models.review import MAX_RATING, MIN_RATING
from questboard.utils.comment_service import purge_target_engagement
from questboard.utils.errors import NotFoundError, UnauthorizedError, ValidationError
from questboard.utils.feed_service import enrich, paginate, serialize_items
from questboard.utils.helpers import string_list
from questboard.utils.targets import Target, TargetType, require_owner
from questboard.utils.uploads import delete_files

log = logging.getLogger(__name__)

_EDITABLE = ("title", "content", "content_json", "cover_image_url",
             "cover_file_key", "contains_spoilers", "published")


def _check_rating(rating) -> int:
    try:
        rating = int(rating)
    except (TypeError, ValueError):
        raise ValidationError("Rating must be between 1 and 5")
    if rating < MIN_RATING or rating > MAX_RATING:
        raise ValidationError("Rating must be between 1 and 5")
    return rating


def create_review(author: User, game_id: str, title: str, content: str, rating,
                  tags=None, genres=None, published: bool = False, **fields) -> Review:
    rating = _check_rating(rating)
    if db.session.get(Game, game_id) is None:
        raise NotFoundError("Game not found")
    title = (title or "").strip()[:200]
    if not title:
        raise ValidationError("Title is required")
    if not (content or "").strip():
        raise ValidationError("Content is required")

    review = Review(
        author_id=author.id,
        game_id=game_id,
        title=title,
        content=content,
        content_json=fields.get("content_json"),
        rating=rating,
        cover_image_url=fields.get("cover_image_url"),
        cover_file_key=fields.get("cover_file_key"),
        contains_spoilers=bool(fields.get("contains_spoilers")),
        published=bool(published),
        tags=string_list(tags, max_items=10),
        genres=string_list(genres),
    )
    db.session.add(review)
    db.session.commit()
    log.info("Review %s of game %s created by %s", review.id, game_id, author.username)
    return review


def _get(review_id: str) -> Review:
    review = db.session.get(Review, review_id)
    if review is None:
        raise NotFoundError("Review not found")
    return review


def update_review(review_id: str, user: User, rating=None, tags=None, genres=None, **fields) -> Review:
    review = _get(review_id)
    require_owner(review, user)
    new_rating = _check_rating(rating) if rating is not None else None

    db.session.add(ReviewVersion(
        review_id=review.id,
        title=review.title,
        content=review.content,
        content_json=review.content_json,
        rating=review.rating,
        cover_image_url=review.cover_image_url,
        contains_spoilers=review.contains_spoilers,
    ))
    review.edit_count = (review.edit_count or 0) + 1

    if new_rating is not None:
        review.rating = new_rating
    for name in _EDITABLE:
        if fields.get(name) is None:
            continue
        value = fields[name]
        if name in ("contains_spoilers", "published"):
            value = bool(value)
        elif name == "title":
            value = value.strip()[:200]
            if not value:
                raise ValidationError("Title is required")
        setattr(review, name, value)
    if tags is not None:
        review.tags = string_list(tags, max_items=10)
    if genres is not None:
        review.genres = string_list(genres)

    db.session.commit()
    return review


def delete_review(review_id: str, user: User) -> dict:
    review = _get(review_id)
    require_owner(review, user)
    cover = review.cover_image_url

    ReviewVersion.query.filter_by(review_id=review.id).delete(synchronize_session=False)
    purge_target_engagement(Target(TargetType.REVIEW, review.id))
    db.session.delete(review)
    db.session.commit()

    if cover:
        delete_files([cover])
    return {"success": True}


# ── Reads ─────────────────────────────────────────────────────────────────────

def get_review(review_id: str, viewer_id: Optional[str] = None) -> dict:
    review = _get(review_id)
    if not review.published and review.author_id != viewer_id:
        raise NotFoundError("Review not found")
    items = serialize_items(enrich([], [], [review], viewer_id))
    if not items:
        raise NotFoundError("Review not found")
    item = items[0]
    item.update({
        "content_json": review.content_json,
        "published":    review.published,
        "edit_count":   review.edit_count,
        "updated_at":   review.updated_at.isoformat(),
    })
    return item


def reviews_by_game(game_id: str, viewer_id: Optional[str] = None,
                    cursor: Optional[str] = None, limit: int = 10) -> dict:
    reviews = (Review.query
               .filter_by(game_id=game_id, published=True)
               .order_by(Review.created_at.desc(), Review.id.desc())
               .all())
    page, next_cursor = paginate(reviews, cursor, limit, key=lambda r: r.id)
    return {"reviews": serialize_items(enrich([], [], page, viewer_id)), "next_cursor": next_cursor}


def reviews_by_user(username: str, viewer_id: Optional[str] = None,
                    cursor: Optional[str] = None, limit: int = 10) -> dict:
    user = User.query.filter_by(username=username).first()
    if user is None:
        raise NotFoundError("User not found")
    q = Review.query.filter_by(author_id=user.id)
    if viewer_id != user.id:
        q = q.filter(Review.published.is_(True))
    reviews = q.order_by(Review.created_at.desc(), Review.id.desc()).all()
    page, next_cursor = paginate(reviews, cursor, limit, key=lambda r: r.id)
    return {"reviews": serialize_items(enrich([], [], page, viewer_id)), "next_cursor": next_cursor}


def review_history(review_id: str, viewer_id: Optional[str] = None) -> dict:
    review = _get(review_id)
    if not review.published and review.author_id != viewer_id:
        raise UnauthorizedError("Not authorized")
    versions = (ReviewVersion.query
                .filter_by(review_id=review.id)
                .order_by(ReviewVersion.edited_at.desc())
                .all())
    return {
        "current": {
            "title":             review.title,
            "content":           review.content,
            "rating":            review.rating,
            "cover_image_url":   review.cover_image_url,
            "contains_spoilers": review.contains_spoilers,
            "edited_at":         review.updated_at.isoformat(),
        },
        "versions": [v.to_dict() for v in versions],
    }
