import enum

from questboard.extensions import db
from questboard.models._base import new_id, utcnow

MAX_DISPLAYED = 5


class QuestStatus(enum.Enum):
    PLAYING   = "Playing"
    COMPLETED = "Completed"
    ON_HOLD   = "OnHold"
    DROPPED   = "Dropped"
    BACKLOG   = "Backlog"

    @property
    def share_text(self) -> str:
        """Verb phrase used in the auto-generated status post."""
        phrases = {
            "Playing":   "started playing",
            "Completed": "completed",
            "OnHold":    "put on hold",
            "Dropped":   "dropped",
            "Backlog":   "added to backlog",
        }
        return phrases.get(self.value, "updated")

    @property
    def finishes_run(self) -> bool:
        return self in (QuestStatus.COMPLETED, QuestStatus.DROPPED)


class QuestLog(db.Model):
    """A user's play record for one game. At most one row per (user, game)."""
    __tablename__ = "quest_logs"
    __table_args__ = (db.UniqueConstraint("user_id", "game_id", name="uq_questlog_user_game"),)

    id                 = db.Column(db.String(32), primary_key=True, default=new_id)
    user_id            = db.Column(db.String(64), nullable=False, index=True)
    game_id            = db.Column(db.String(64), nullable=False, index=True)
    status             = db.Column(db.Enum(QuestStatus), default=QuestStatus.PLAYING, nullable=False)
    platform           = db.Column(db.String(80),  nullable=True)
    difficulty         = db.Column(db.String(80),  nullable=True)
    started_at         = db.Column(db.DateTime,    nullable=True)
    completed_at       = db.Column(db.DateTime,    nullable=True)
    hours_played       = db.Column(db.Float,       nullable=True)
    notes              = db.Column(db.String(2000), nullable=True)
    quick_rating       = db.Column(db.Integer,     nullable=True)   # 1–5
    display_on_profile = db.Column(db.Boolean, default=True, nullable=False)
    display_order      = db.Column(db.Integer, default=0, nullable=False)
    created_at         = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at         = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id":                 self.id,
            "game_id":            self.game_id,
            "status":             self.status.value,
            "platform":           self.platform,
            "difficulty":         self.difficulty,
            "started_at":         self.started_at.isoformat() if self.started_at else None,
            "completed_at":       self.completed_at.isoformat() if self.completed_at else None,
            "hours_played":       self.hours_played,
            "notes":              self.notes,
            "quick_rating":       self.quick_rating,
            "display_on_profile": self.display_on_profile,
            "display_order":      self.display_order,
            "updated_at":         self.updated_at.isoformat(),
        }
