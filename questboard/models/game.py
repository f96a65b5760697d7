from datetime import timedelta

from flask import current_app

from questboard.extensions import db
from questboard.models._base import new_id, utcnow


class Game(db.Model):
    """Locally cached IGDB game record. Refreshed when older than
    IGDB_CACHE_DAYS (see ``is_stale``)."""
    __tablename__ = "games"

    id             = db.Column(db.String(32),  primary_key=True, default=new_id)
    igdb_id        = db.Column(db.Integer,     unique=True, nullable=True, index=True)
    name           = db.Column(db.String(255), nullable=False, index=True)
    slug           = db.Column(db.String(255), unique=True, nullable=True, index=True)
    summary        = db.Column(db.Text,        nullable=True)
    cover_url      = db.Column(db.String(500), nullable=True)
    release_date   = db.Column(db.DateTime,    nullable=True)
    genres         = db.Column(db.JSON, default=list, nullable=False)
    platforms      = db.Column(db.JSON, default=list, nullable=False)
    rating         = db.Column(db.Float,       nullable=True)
    category_label = db.Column(db.String(40),  nullable=True)
    cached_at      = db.Column(db.DateTime, default=utcnow, nullable=False)
    legacy_id      = db.Column(db.String(64),  nullable=True, index=True)
    created_at     = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at     = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def is_stale(self) -> bool:
        days = current_app.config.get("IGDB_CACHE_DAYS", 7)
        return self.cached_at is None or utcnow() - self.cached_at > timedelta(days=days)

    def to_summary(self) -> dict:
        return {
            "id":        self.id,
            "name":      self.name,
            "slug":      self.slug,
            "cover_url": self.cover_url,
        }

    def to_dict(self) -> dict:
        data = self.to_summary()
        data.update({
            "igdb_id":        self.igdb_id,
            "summary":        self.summary,
            "release_date":   self.release_date.isoformat() if self.release_date else None,
            "genres":         list(self.genres or []),
            "platforms":      list(self.platforms or []),
            "rating":         self.rating,
            "category_label": self.category_label,
        })
        return data

    def __repr__(self) -> str:
        return f"<Game {self.name}>"
