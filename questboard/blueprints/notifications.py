"""
Notifications blueprint.

GET  /api/notifications               – latest 30 notifications with actor details
GET  /api/notifications/unread-count  – number of unviewed notifications
POST /api/notifications/mark-viewed   – mark all as viewed (rows kept until cleanup)
"""
from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from questboard.extensions import db
from questboard.models import Notification, User
from questboard.models._base import utcnow

notif_bp = Blueprint("notifications", __name__)

LIST_LIMIT = 30


@notif_bp.route("/api/notifications")
@login_required
def get_notifications():
    notifs = (
        Notification.query
        .filter_by(user_id=current_user.id)
        .order_by(Notification.created_at.desc())
        .limit(LIST_LIMIT)
        .all()
    )
    actor_ids = list({n.actor_id for n in notifs})
    actors = {u.id: u for u in User.query.filter(User.id.in_(actor_ids)).all()} if actor_ids else {}

    items = []
    for n in notifs:
        data = n.to_dict()
        actor = actors.get(n.actor_id)
        data["actor"] = actor.to_summary() if actor else None
        items.append(data)
    return jsonify({
        "unread":        sum(1 for n in notifs if n.viewed_at is None),
        "notifications": items,
    })


@notif_bp.route("/api/notifications/unread-count")
@login_required
def unread_count():
    count = Notification.query.filter_by(user_id=current_user.id, viewed_at=None).count()
    return jsonify(count=count)


@notif_bp.route("/api/notifications/mark-viewed", methods=["POST"])
@login_required
def mark_viewed():
    Notification.query.filter_by(
        user_id=current_user.id,
        viewed_at=None,
    ).update({"viewed_at": utcnow()}, synchronize_session=False)
    db.session.commit()
    return jsonify(success=True)
