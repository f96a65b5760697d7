"""
Miscellaneous helpers used across services and blueprints.
"""
import logging
from datetime import timedelta
from typing import Optional

from flask_login import current_user
from sqlalchemy import and_, or_

from questboard.extensions import db
from questboard.models._base import utcnow

log = logging.getLogger(__name__)

VIEWED_TTL   = timedelta(hours=24)
UNVIEWED_TTL = timedelta(days=30)


def create_notification(user_id: str, actor_id: str, notif_type: str, target_id: str) -> None:
    """
    Queue a notification for user_id.  Caller is responsible for db.session.commit().
    Safe to call even if user_id == actor_id (self-notifications are silently dropped).
    """
    if not user_id or user_id == actor_id:
        return
    from questboard.models import Notification
    db.session.add(Notification(
        user_id=user_id,
        actor_id=actor_id,
        type=notif_type,
        target_id=target_id,
    ))


def cleanup_notifications() -> int:
    """Delete viewed notifications older than a day and unviewed ones older than 30 days."""
    from questboard.models import Notification

    now = utcnow()
    deleted = (
        Notification.query
        .filter(or_(
            and_(Notification.viewed_at.isnot(None), Notification.viewed_at < now - VIEWED_TTL),
            and_(Notification.viewed_at.is_(None), Notification.created_at < now - UNVIEWED_TTL),
        ))
        .delete(synchronize_session=False)
    )
    db.session.commit()
    if deleted:
        log.info("Cleaned up %d expired notifications", deleted)
    return deleted


def viewer_id() -> Optional[str]:
    """id of the authenticated user, or None for anonymous requests."""
    if current_user and current_user.is_authenticated:
        return current_user.id
    return None


def string_list(value, max_items: int = None) -> list:
    """Normalise a JSON list of strings, dropping blanks and duplicates."""
    if not isinstance(value, (list, tuple)):
        return []
    out = []
    for item in value:
        if isinstance(item, str) and item.strip() and item.strip() not in out:
            out.append(item.strip())
    return out[:max_items] if max_items else out


# ── Request payload helpers ───────────────────────────────────────────────────

def json_body() -> dict:
    from flask import request
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def validated(form) -> None:
    """Raise ValidationError with the first field error unless the form validates."""
    from questboard.utils.errors import ValidationError

    if form.validate_on_submit():
        return
    for field_errors in form.errors.values():
        if field_errors:
            raise ValidationError(field_errors[0])
    raise ValidationError("Invalid request")


def submitted(form, payload: dict, exclude=()) -> dict:
    """Field values for the keys actually present in the JSON payload.

    Lets PATCH handlers tell "not sent" apart from False/empty.
    """
    return {
        name: field.data
        for name, field in form._fields.items()
        if name in payload and name not in exclude
    }
