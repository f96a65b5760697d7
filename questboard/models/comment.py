"""
Comments on posts, articles and reviews.

parent_id = NULL  →  top-level comment
parent_id = <id>  →  reply to a top-level comment (one level of nesting)

Deleting a comment that still has replies only blanks it (deleted = True)
so the thread below it survives.
"""
from questboard.extensions import db
from questboard.models._base import new_id, utcnow

MAX_COMMENT_LENGTH = 1000


class Comment(db.Model):
    __tablename__ = "comments"
    __table_args__ = (db.Index("ix_comments_target", "target_type", "target_id"),)

    id          = db.Column(db.String(32), primary_key=True, default=new_id)
    author_id   = db.Column(db.String(64), nullable=False, index=True)
    target_type = db.Column(db.String(16), nullable=False)   # post | article | review
    target_id   = db.Column(db.String(64), nullable=False)
    parent_id   = db.Column(db.String(64), nullable=True, index=True)
    content     = db.Column(db.String(MAX_COMMENT_LENGTH), nullable=False)
    deleted     = db.Column(db.Boolean, default=False, nullable=False)
    legacy_id   = db.Column(db.String(64), nullable=True, index=True)
    created_at  = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at  = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)
