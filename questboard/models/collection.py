import enum

from questboard.extensions import db
from questboard.models._base import new_id, utcnow


class OwnershipType(enum.Enum):
    PHYSICAL = "Physical"
    DIGITAL  = "Digital"


class CollectionStatus(enum.Enum):
    UNPLAYED  = "Unplayed"
    PLAYING   = "Playing"
    BEATEN    = "Beaten"
    COMPLETED = "Completed"
    ON_HOLD   = "OnHold"
    DROPPED   = "Dropped"
    BACKLOG   = "Backlog"

    @property
    def stats_key(self) -> str:
        keys = {
            "Unplayed":  "unplayed",
            "Playing":   "playing",
            "Beaten":    "beaten",
            "Completed": "completed",
            "OnHold":    "on_hold",
            "Dropped":   "dropped",
            "Backlog":   "backlog",
        }
        return keys[self.value]


class CollectionEntry(db.Model):
    """A game the user owns. At most one row per (user, game)."""
    __tablename__ = "collection_entries"
    __table_args__ = (db.UniqueConstraint("user_id", "game_id", name="uq_collection_user_game"),)

    id             = db.Column(db.String(32), primary_key=True, default=new_id)
    user_id        = db.Column(db.String(64), nullable=False, index=True)
    game_id        = db.Column(db.String(64), nullable=False, index=True)
    ownership_type = db.Column(db.Enum(OwnershipType), default=OwnershipType.DIGITAL, nullable=False)
    status         = db.Column(db.Enum(CollectionStatus), nullable=True)
    platform       = db.Column(db.String(80), nullable=True)
    difficulty     = db.Column(db.String(80), nullable=True)
    hours_played   = db.Column(db.Float,      nullable=True)
    acquired_at    = db.Column(db.DateTime,   nullable=True)
    created_at     = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at     = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id":             self.id,
            "game_id":        self.game_id,
            "ownership_type": self.ownership_type.value,
            "status":         self.status.value if self.status else None,
            "platform":       self.platform,
            "difficulty":     self.difficulty,
            "hours_played":   self.hours_played,
            "acquired_at":    self.acquired_at.isoformat() if self.acquired_at else None,
            "created_at":     self.created_at.isoformat(),
        }
