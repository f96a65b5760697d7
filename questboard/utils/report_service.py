"""
Content reports and the moderation queue.

Resolving a report copies it into completed_reports and then deletes the
open row, in one transaction: a failure in between leaves the report
pending, never lost and never completed twice.
"""
import logging

from sqlalchemy.exc import IntegrityError

from questboard.extensions import db
from questboard.models import CompletedReport, Report, User
from questboard.utils.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from questboard.utils.targets import REPORTABLE, Target, TargetType, resolve_target, target_preview

log = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 1000


def create_report(reporter: User, target: Target, message: str) -> Report:
    if target.kind not in REPORTABLE:
        raise ValidationError("Only posts, articles and reviews can be reported")
    message = (message or "").strip()[:MAX_MESSAGE_LENGTH]
    if not message:
        raise ValidationError("Please describe the problem")
    resolve_target(target)

    duplicate = Report.query.filter_by(
        reporter_id=reporter.id, target_type=target.kind.value, target_id=target.id
    ).first()
    if duplicate is not None:
        raise ConflictError("You have already reported this content")

    report = Report(
        reporter_id=reporter.id,
        target_type=target.kind.value,
        target_id=target.id,
        message=message,
    )
    db.session.add(report)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("You have already reported this content")
    log.info("Report %s filed on %s by %s", report.id, target.key, reporter.username)
    return report


def _require_admin(user: User) -> None:
    if user is None or not user.is_admin:
        raise UnauthorizedError("Admin access required")


def _users(ids) -> dict:
    ids = [i for i in set(ids) if i]
    return {u.id: u for u in User.query.filter(User.id.in_(ids)).all()} if ids else {}


def _preview(target_type: str, target_id: str) -> dict:
    return target_preview(Target(TargetType(target_type), target_id))


def has_pending(admin: User) -> bool:
    _require_admin(admin)
    return Report.query.first() is not None


def pending_reports(admin: User) -> list:
    _require_admin(admin)
    reports = Report.query.order_by(Report.created_at.desc()).all()
    users = _users(r.reporter_id for r in reports)
    out = []
    for r in reports:
        reporter = users.get(r.reporter_id)
        out.append({
            "id":             r.id,
            "target_type":    r.target_type,
            "target_id":      r.target_id,
            "message":        r.message,
            "created_at":     r.created_at.isoformat(),
            "reporter":       reporter.to_summary() if reporter else None,
            "target_preview": _preview(r.target_type, r.target_id),
        })
    return out


def resolve_report(report_id: str, admin: User) -> dict:
    _require_admin(admin)
    report = db.session.get(Report, report_id)
    if report is None:
        raise NotFoundError("Report not found")

    db.session.add(CompletedReport(
        reporter_id=report.reporter_id,
        target_type=report.target_type,
        target_id=report.target_id,
        message=report.message,
        reported_at=report.created_at,
        addressed_by_id=admin.id,
    ))
    db.session.flush()
    db.session.delete(report)
    db.session.commit()
    log.info("Report %s resolved by %s", report_id, admin.username)
    return {"success": True}


def completed_reports(admin: User) -> list:
    _require_admin(admin)
    rows = CompletedReport.query.order_by(CompletedReport.addressed_at.desc()).all()
    users = _users([r.reporter_id for r in rows] + [r.addressed_by_id for r in rows])
    out = []
    for r in rows:
        reporter = users.get(r.reporter_id)
        addressed_by = users.get(r.addressed_by_id)
        out.append({
            "id":             r.id,
            "target_type":    r.target_type,
            "target_id":      r.target_id,
            "message":        r.message,
            "reported_at":    r.reported_at.isoformat(),
            "addressed_at":   r.addressed_at.isoformat(),
            "reporter":       reporter.to_summary() if reporter else None,
            "addressed_by":   addressed_by.to_summary() if addressed_by else None,
            "target_preview": _preview(r.target_type, r.target_id),
        })
    return out
