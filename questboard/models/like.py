from questboard.extensions import db
from questboard.models._base import new_id, utcnow


class Like(db.Model):
    """One user's like on a post, article, review or comment."""
    __tablename__ = "likes"
    __table_args__ = (
        db.UniqueConstraint("user_id", "target_type", "target_id", name="uq_like_user_target"),
        db.Index("ix_likes_target", "target_type", "target_id"),
    )

    id          = db.Column(db.String(32), primary_key=True, default=new_id)
    user_id     = db.Column(db.String(64), nullable=False, index=True)
    target_type = db.Column(db.String(16), nullable=False)   # post | article | review | comment
    target_id   = db.Column(db.String(64), nullable=False)
    created_at  = db.Column(db.DateTime, default=utcnow, nullable=False)
