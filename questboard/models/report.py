"""
Moderation reports.

Open reports live in ``reports``; once an admin addresses one it is copied to
``completed_reports`` and removed from the open table.
"""
from questboard.extensions import db
from questboard.models._base import new_id, utcnow


class Report(db.Model):
    __tablename__ = "reports"
    __table_args__ = (
        db.UniqueConstraint("reporter_id", "target_type", "target_id", name="uq_report_reporter_target"),
    )

    id          = db.Column(db.String(32), primary_key=True, default=new_id)
    reporter_id = db.Column(db.String(64), nullable=False, index=True)
    target_type = db.Column(db.String(16), nullable=False)   # post | article | review
    target_id   = db.Column(db.String(64), nullable=False, index=True)
    message     = db.Column(db.String(1000), nullable=False)
    created_at  = db.Column(db.DateTime, default=utcnow, nullable=False)


class CompletedReport(db.Model):
    __tablename__ = "completed_reports"

    id              = db.Column(db.String(32), primary_key=True, default=new_id)
    reporter_id     = db.Column(db.String(64), nullable=False)
    target_type     = db.Column(db.String(16), nullable=False)
    target_id       = db.Column(db.String(64), nullable=False)
    message         = db.Column(db.String(1000), nullable=False)
    reported_at     = db.Column(db.DateTime, nullable=False)
    addressed_by_id = db.Column(db.String(64), nullable=False)
    addressed_at    = db.Column(db.DateTime, default=utcnow, nullable=False)
