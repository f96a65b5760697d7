"""
Comment threads on posts, articles and reviews.

Top-level comments are listed most-liked first (newest first on ties) and
paginated by comment id; each carries its replies, oldest first.
"""
import logging
from collections import defaultdict
from typing import Optional

from questboard.extensions import db
from questboard.models import Comment, Like, User
from questboard.models.comment import MAX_COMMENT_LENGTH
from questboard.utils.engagement import like_counts, liked_keys
from questboard.utils.errors import NotFoundError, ValidationError
from questboard.utils.helpers import create_notification
from questboard.utils.targets import COMMENTABLE, Target, TargetType, require_owner, resolve_target

log = logging.getLogger(__name__)

_NOTIFY_TYPE = {
    TargetType.POST:    "comment_post",
    TargetType.ARTICLE: "comment_article",
    TargetType.REVIEW:  "comment_review",
}


def create_comment(author: User, target: Target, content: str,
                   parent_id: Optional[str] = None) -> Comment:
    if target.kind not in COMMENTABLE:
        raise ValidationError("Comments are only allowed on posts, articles and reviews")
    content = (content or "").strip()[:MAX_COMMENT_LENGTH]
    if not content:
        raise ValidationError("Comment cannot be empty")

    row = resolve_target(target)

    parent = None
    if parent_id:
        parent = db.session.get(Comment, parent_id)
        if parent is None or parent.target_type != target.kind.value or parent.target_id != target.id:
            raise NotFoundError("Parent comment not found")
        if parent.parent_id:
            # replies stay one level deep
            parent = db.session.get(Comment, parent.parent_id) or parent

    comment = Comment(
        author_id=author.id,
        target_type=target.kind.value,
        target_id=target.id,
        parent_id=parent.id if parent else None,
        content=content,
    )
    db.session.add(comment)
    db.session.flush()

    create_notification(row.author_id, author.id, _NOTIFY_TYPE[target.kind], target.id)
    if parent is not None:
        create_notification(parent.author_id, author.id, "reply_comment", parent.id)
    db.session.commit()
    return comment


# ── Reads ─────────────────────────────────────────────────────────────────────

def _serialize(c: Comment, authors: dict, likes: dict, liked: set, children: dict) -> dict:
    replies = [
        _serialize(r, authors, likes, liked, children)
        for r in sorted(children.get(c.id, []), key=lambda r: r.created_at)
    ]
    if c.deleted:
        return {
            "id":          c.id,
            "parent_id":   c.parent_id,
            "content":     "",
            "deleted":     True,
            "author":      None,
            "created_at":  c.created_at.isoformat(),
            "like_count":  0,
            "has_liked":   False,
            "reply_count": len(replies),
            "replies":     replies,
        }
    author = authors.get(c.author_id)
    return {
        "id":          c.id,
        "parent_id":   c.parent_id,
        "content":     c.content,
        "deleted":     False,
        "author":      author.to_summary() if author else None,
        "created_at":  c.created_at.isoformat(),
        "like_count":  likes.get(c.id, 0),
        "has_liked":   c.id in liked,
        "reply_count": len(replies),
        "replies":     replies,
    }


def comments_for_target(target: Target, viewer_id: Optional[str] = None,
                        cursor: Optional[str] = None, limit: int = 20) -> dict:
    from questboard.utils.feed_service import paginate

    rows = Comment.query.filter_by(target_type=target.kind.value, target_id=target.id).all()
    if not rows:
        return {"comments": [], "next_cursor": None}

    ids = {TargetType.COMMENT.value: [c.id for c in rows]}
    likes = {k.split("-", 1)[1]: n for k, n in like_counts(ids).items()}
    liked = {k.split("-", 1)[1] for k in liked_keys(ids, viewer_id)}

    children = defaultdict(list)
    roots = []
    for c in rows:
        if c.parent_id:
            children[c.parent_id].append(c)
        else:
            roots.append(c)
    roots.sort(key=lambda c: (likes.get(c.id, 0), c.created_at), reverse=True)

    page, next_cursor = paginate(roots, cursor, limit, key=lambda c: c.id)

    author_ids = {c.author_id for c in rows}
    authors = {u.id: u for u in User.query.filter(User.id.in_(list(author_ids))).all()}
    return {
        "comments":    [_serialize(c, authors, likes, liked, children) for c in page],
        "next_cursor": next_cursor,
    }


# ── Deletion ──────────────────────────────────────────────────────────────────

def _delete_tree(comment_ids: list) -> int:
    """Hard-delete comments, all their descendants and every like on them.
    Returns the number of comments removed. Caller commits."""
    to_delete = list(comment_ids)
    frontier = list(comment_ids)
    while frontier:
        kids = [c.id for c in Comment.query.filter(Comment.parent_id.in_(frontier)).all()]
        to_delete.extend(kids)
        frontier = kids
    if not to_delete:
        return 0
    Like.query.filter(
        Like.target_type == TargetType.COMMENT.value, Like.target_id.in_(to_delete)
    ).delete(synchronize_session=False)
    return Comment.query.filter(Comment.id.in_(to_delete)).delete(synchronize_session=False)


def purge_target_engagement(target: Target) -> None:
    """Remove every like and comment (with their likes) attached to a target.
    Caller commits, so it runs inside the owner's delete transaction."""
    Like.query.filter_by(target_type=target.kind.value, target_id=target.id).delete(
        synchronize_session=False
    )
    comment_ids = [
        c.id for c in Comment.query.filter_by(target_type=target.kind.value, target_id=target.id).all()
    ]
    _delete_tree(comment_ids)


def delete_comment(comment_id: str, user: User) -> dict:
    """Author or admin. A comment with replies is blanked instead of removed."""
    comment = db.session.get(Comment, comment_id)
    if comment is None:
        raise NotFoundError("Comment not found")
    require_owner(comment, user, admin_override=True)

    has_children = Comment.query.filter_by(parent_id=comment.id).first() is not None
    if has_children:
        comment.deleted = True
        comment.content = ""
        Like.query.filter_by(target_type=TargetType.COMMENT.value, target_id=comment.id).delete(
            synchronize_session=False
        )
        db.session.commit()
        return {"success": True, "soft_deleted": True}

    _delete_tree([comment.id])
    db.session.commit()
    return {"success": True, "soft_deleted": False}
