from questboard.extensions import db
from questboard.models._base import new_id, utcnow


class Follow(db.Model):
    """Directed follow edge. At most one row per (follower, following) pair."""
    __tablename__ = "follows"
    __table_args__ = (
        db.UniqueConstraint("follower_id", "following_id", name="uq_follow_pair"),
        db.CheckConstraint("follower_id <> following_id", name="ck_follow_not_self"),
    )

    id           = db.Column(db.String(32), primary_key=True, default=new_id)
    follower_id  = db.Column(db.String(64), nullable=False, index=True)
    following_id = db.Column(db.String(64), nullable=False, index=True)
    created_at   = db.Column(db.DateTime, default=utcnow, nullable=False)
