"""
Engagement aggregation for feed items and single content views.

For a batch of targets this computes like counts, the viewer's own likes,
comment counts and the single "top comment" of each target with a fixed
number of grouped queries (one per concern per chunk of ids), never one
query per item.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Optional

from sqlalchemy import func

from questboard.extensions import db
from questboard.utils.targets import Target, TargetType, make_key

log = logging.getLogger(__name__)

_CHUNK = 500


@dataclass
class Engagement:
    like_count: int = 0
    has_liked: bool = False
    comment_count: int = 0
    top_comment: Optional[dict] = field(default=None)

    def to_dict(self) -> dict:
        return {
            "like_count":    self.like_count,
            "has_liked":     self.has_liked,
            "comment_count": self.comment_count,
            "top_comment":   self.top_comment,
        }


def _chunks(items: list, size: int = _CHUNK):
    for i in range(0, len(items), size):
        yield items[i:i + size]


def _group_ids(targets: Iterable[Target]) -> dict:
    by_kind = defaultdict(list)
    for t in targets:
        by_kind[t.kind.value].append(t.id)
    return by_kind


def like_counts(by_kind: dict) -> dict:
    """``{key: count}`` for every target that has at least one like."""
    from questboard.models import Like

    counts = {}
    for kind, ids in by_kind.items():
        for chunk in _chunks(ids):
            rows = (
                db.session.query(Like.target_id, func.count(Like.id))
                .filter(Like.target_type == kind, Like.target_id.in_(chunk))
                .group_by(Like.target_id)
                .all()
            )
            for target_id, n in rows:
                counts[make_key(kind, target_id)] = n
    return counts


def liked_keys(by_kind: dict, viewer_id: Optional[str]) -> set:
    """Keys of the targets the viewer has liked. Empty for anonymous viewers."""
    from questboard.models import Like

    if not viewer_id:
        return set()
    keys = set()
    for kind, ids in by_kind.items():
        for chunk in _chunks(ids):
            rows = (
                db.session.query(Like.target_id)
                .filter(
                    Like.user_id == viewer_id,
                    Like.target_type == kind,
                    Like.target_id.in_(chunk),
                )
                .all()
            )
            keys.update(make_key(kind, r.target_id) for r in rows)
    return keys


def pick_top_comment(comments: list, like_map: dict):
    """Most-liked comment; ties go to the most recently created one.

    ``comments`` must already be limited to top-level comments.
    """
    best = None
    best_rank = None
    for c in comments:
        rank = (like_map.get(c.id, 0), c.created_at)
        if best is None or rank > best_rank:
            best, best_rank = c, rank
    return best


def load_engagement(targets: Iterable[Target], viewer_id: Optional[str] = None) -> dict:
    """Return ``{key: Engagement}`` for every target given.

    Comment targets get like counts and ``has_liked`` but no comment data.
    """
    from questboard.models import Comment, User

    targets = list(targets)
    result = {t.key: Engagement() for t in targets}
    if not targets:
        return result

    by_kind = _group_ids(targets)
    for key, n in like_counts(by_kind).items():
        result[key].like_count = n
    for key in liked_keys(by_kind, viewer_id):
        result[key].has_liked = True

    commentable = {k: v for k, v in by_kind.items() if k != TargetType.COMMENT.value}
    top_level = defaultdict(list)
    for kind, ids in commentable.items():
        for chunk in _chunks(ids):
            count_rows = (
                db.session.query(Comment.target_id, func.count(Comment.id))
                .filter(
                    Comment.target_type == kind,
                    Comment.target_id.in_(chunk),
                    Comment.deleted.is_(False),
                )
                .group_by(Comment.target_id)
                .all()
            )
            for target_id, n in count_rows:
                result[make_key(kind, target_id)].comment_count = n

            roots = (
                Comment.query
                .filter(
                    Comment.target_type == kind,
                    Comment.target_id.in_(chunk),
                    Comment.parent_id.is_(None),
                    Comment.deleted.is_(False),
                )
                .all()
            )
            for c in roots:
                top_level[make_key(kind, c.target_id)].append(c)

    if not top_level:
        return result

    comment_ids = {TargetType.COMMENT.value: [c.id for cs in top_level.values() for c in cs]}
    comment_likes = {
        key.split("-", 1)[1]: n for key, n in like_counts(comment_ids).items()
    }
    comment_liked = {
        key.split("-", 1)[1] for key in liked_keys(comment_ids, viewer_id)
    }

    winners = {key: pick_top_comment(cs, comment_likes) for key, cs in top_level.items()}
    author_ids = {c.author_id for c in winners.values()}
    authors = {
        u.id: u for u in User.query.filter(User.id.in_(list(author_ids))).all()
    } if author_ids else {}

    for key, c in winners.items():
        author = authors.get(c.author_id)
        result[key].top_comment = {
            "id":         c.id,
            "content":    c.content,
            "created_at": c.created_at.isoformat(),
            "like_count": comment_likes.get(c.id, 0),
            "has_liked":  c.id in comment_liked,
            "author":     author.to_summary() if author else {"id": c.author_id, "username": "unknown"},
        }
    return result
