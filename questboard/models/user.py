from flask_login import UserMixin
from questboard.extensions import db
from questboard.models._base import new_id, utcnow


class User(db.Model, UserMixin):
    """A platform member. Authentication lives with the external identity
    provider; ``external_id`` is the provider's stable subject id."""
    __tablename__ = "users"

    id            = db.Column(db.String(32),  primary_key=True, default=new_id)
    external_id   = db.Column(db.String(128), unique=True, nullable=True, index=True)
    email         = db.Column(db.String(255), nullable=True, index=True)
    username      = db.Column(db.String(64),  unique=True, nullable=False, index=True)
    display_name  = db.Column(db.String(120), nullable=True)
    avatar_url    = db.Column(db.String(500), nullable=True)
    banner_url    = db.Column(db.String(500), nullable=True)
    bio           = db.Column(db.String(500), nullable=True)
    is_admin      = db.Column(db.Boolean, default=False, nullable=False)
    legacy_id     = db.Column(db.String(64),  nullable=True, index=True)
    created_at    = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at    = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def to_summary(self) -> dict:
        return {
            "id":           self.id,
            "username":     self.username,
            "display_name": self.display_name,
            "avatar_url":   self.avatar_url,
        }

    def to_dict(self) -> dict:
        data = self.to_summary()
        data.update({
            "bio":        self.bio,
            "banner_url": self.banner_url,
            "is_admin":   self.is_admin,
            "created_at": self.created_at.isoformat(),
        })
        return data

    def __repr__(self) -> str:
        return f"<User {self.username}>"
