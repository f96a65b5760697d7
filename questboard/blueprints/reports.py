"""
Reports blueprint.

POST /api/reports                          – report a post, article or review
GET  /api/admin/reports                    – open reports with a preview of the content (admin)
GET  /api/admin/reports/pending            – {"pending": bool} for the admin badge
POST /api/admin/reports/<id>/resolve       – mark a report as addressed (admin)
GET  /api/admin/reports/completed          – addressed reports (admin)
"""
from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from questboard.extensions import limiter
from questboard.forms.content import ReportForm
from questboard.utils.decorators import admin_required
from questboard.utils.helpers import validated
from questboard.utils.targets import REPORTABLE, Target

reports_bp = Blueprint("reports", __name__)


@reports_bp.route("/api/reports", methods=["POST"])
@login_required
@limiter.limit("5 per minute")
def create():
    from questboard.utils.report_service import create_report

    form = ReportForm()
    validated(form)
    target = Target.parse(form.target_type.data, form.target_id.data, allowed=REPORTABLE)
    report = create_report(current_user, target, form.message.data)
    return jsonify(success=True, id=report.id), 201


@reports_bp.route("/api/admin/reports")
@login_required
@admin_required
def pending():
    from questboard.utils.report_service import pending_reports

    return jsonify(reports=pending_reports(current_user))


@reports_bp.route("/api/admin/reports/pending")
@login_required
@admin_required
def has_pending():
    from questboard.utils.report_service import has_pending as _has_pending

    return jsonify(pending=_has_pending(current_user))


@reports_bp.route("/api/admin/reports/<report_id>/resolve", methods=["POST"])
@login_required
@admin_required
def resolve(report_id):
    from questboard.utils.report_service import resolve_report

    return jsonify(resolve_report(report_id, current_user))


@reports_bp.route("/api/admin/reports/completed")
@login_required
@admin_required
def completed():
    from questboard.utils.report_service import completed_reports

    return jsonify(reports=completed_reports(current_user))
