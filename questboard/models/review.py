"""Game reviews (1–5 stars) and their edit history."""
from questboard.extensions import db
from questboard.models._base import new_id, utcnow

MIN_RATING = 1
MAX_RATING = 5


class Review(db.Model):
    __tablename__ = "reviews"

    id                = db.Column(db.String(32),  primary_key=True, default=new_id)
    author_id         = db.Column(db.String(64),  nullable=False, index=True)
    game_id           = db.Column(db.String(64),  nullable=False, index=True)
    title             = db.Column(db.String(200), nullable=False)
    content           = db.Column(db.Text,        nullable=False)
    content_json      = db.Column(db.Text,        nullable=True)
    rating            = db.Column(db.Integer,     nullable=False)
    cover_image_url   = db.Column(db.String(500), nullable=True)
    cover_file_key    = db.Column(db.String(200), nullable=True)
    contains_spoilers = db.Column(db.Boolean, default=False, nullable=False)
    published         = db.Column(db.Boolean, default=False, nullable=False, index=True)
    tags              = db.Column(db.JSON, default=list, nullable=False)
    genres            = db.Column(db.JSON, default=list, nullable=False)
    edit_count        = db.Column(db.Integer, default=0, nullable=False)
    legacy_id         = db.Column(db.String(64), nullable=True, index=True)
    created_at        = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at        = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class ReviewVersion(db.Model):
    __tablename__ = "review_versions"

    id                = db.Column(db.String(32),  primary_key=True, default=new_id)
    review_id         = db.Column(db.String(64),  nullable=False, index=True)
    title             = db.Column(db.String(200), nullable=False)
    content           = db.Column(db.Text,        nullable=False)
    content_json      = db.Column(db.Text,        nullable=True)
    rating            = db.Column(db.Integer,     nullable=False)
    cover_image_url   = db.Column(db.String(500), nullable=True)
    contains_spoilers = db.Column(db.Boolean, default=False, nullable=False)
    edited_at         = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "title":             self.title,
            "content":           self.content,
            "rating":            self.rating,
            "cover_image_url":   self.cover_image_url,
            "contains_spoilers": self.contains_spoilers,
            "edited_at":         self.edited_at.isoformat(),
        }
