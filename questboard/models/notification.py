"""
Notification model.

One row per social event aimed at a user (someone liked, commented on or
replied to their content). viewed_at is stamped when the user opens the
panel; old rows are pruned by the cleanup job.
"""
from questboard.extensions import db
from questboard.models._base import new_id, utcnow

NOTIFICATION_TYPES = (
    "like_post", "like_article", "like_review", "like_comment",
    "comment_post", "comment_article", "comment_review",
    "reply_comment",
    "mention_post", "mention_article", "mention_review", "mention_comment",
)


class Notification(db.Model):
    __tablename__ = "notifications"

    id         = db.Column(db.String(32), primary_key=True, default=new_id)
    user_id    = db.Column(db.String(64), nullable=False, index=True)   # recipient
    actor_id   = db.Column(db.String(64), nullable=False)               # who acted
    type       = db.Column(db.String(30), nullable=False)
    target_id  = db.Column(db.String(64), nullable=False)
    viewed_at  = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id":         self.id,
            "type":       self.type,
            "actor_id":   self.actor_id,
            "target_id":  self.target_id,
            "viewed":     self.viewed_at is not None,
            "created_at": self.created_at.isoformat(),
        }
