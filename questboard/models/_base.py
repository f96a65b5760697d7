"""Shared column helpers for every model."""
import uuid
from datetime import datetime, timezone


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    """Naive UTC now; all timestamp columns store naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
