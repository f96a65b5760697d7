"""
Polymorphic target references.

Likes, comments, reports and notifications point at content through a
``(kind, id)`` pair instead of a typed foreign key. Everything that needs to
turn such a pair into a row goes through ``resolve_target`` so the dispatch
lives in one place.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING

from questboard.extensions import db
from questboard.utils.errors import NotFoundError, UnauthorizedError, ValidationError

if TYPE_CHECKING:
    from questboard.models.user import User


class TargetType(enum.Enum):
    POST    = "post"
    ARTICLE = "article"
    REVIEW  = "review"
    COMMENT = "comment"


LIKEABLE    = frozenset(TargetType)
COMMENTABLE = frozenset({TargetType.POST, TargetType.ARTICLE, TargetType.REVIEW})
REPORTABLE  = COMMENTABLE


@dataclass(frozen=True)
class Target:
    kind: TargetType
    id: str

    @classmethod
    def parse(cls, kind: str, target_id: str, allowed=LIKEABLE) -> "Target":
        """Build a Target from raw request values, rejecting unknown kinds."""
        try:
            parsed = TargetType(kind)
        except ValueError:
            raise ValidationError(f"Unknown target type: {kind}")
        if parsed not in allowed:
            raise ValidationError(f"Cannot target a {kind} here")
        if not target_id:
            raise ValidationError("Target id is required")
        return cls(parsed, str(target_id))

    @property
    def key(self) -> str:
        return make_key(self.kind.value, self.id)


def make_key(kind: str, target_id: str) -> str:
    """Feed/engagement key: ``"{kind}-{id}"``."""
    return f"{kind}-{target_id}"


def _model_for(kind: TargetType):
    from questboard.models import Article, Comment, Post, Review

    models = {
        TargetType.POST:    Post,
        TargetType.ARTICLE: Article,
        TargetType.REVIEW:  Review,
        TargetType.COMMENT: Comment,
    }
    return models[kind]


def find_target(target: Target):
    """Return the row a target points at, or None."""
    return db.session.get(_model_for(target.kind), target.id)


def resolve_target(target: Target):
    """Return the row a target points at; NotFoundError when it is gone."""
    row = find_target(target)
    if row is None:
        raise NotFoundError(f"{target.kind.value.capitalize()} not found")
    return row


def target_author_id(target: Target) -> str:
    return resolve_target(target).author_id


def require_owner(row, user: "User", admin_override: bool = False) -> None:
    """Raise UnauthorizedError unless ``user`` authored ``row``.

    With ``admin_override`` an admin passes regardless of authorship.
    """
    if user is None or not getattr(user, "is_authenticated", False):
        raise UnauthorizedError("Not authenticated")
    if row.author_id == user.id:
        return
    if admin_override and user.is_admin:
        return
    raise UnauthorizedError("Not authorized")


def target_preview(target: Target) -> dict:
    """Short description of reported content for the moderation queue."""
    from questboard.models import User

    row = find_target(target)
    if row is None:
        return {}
    author = db.session.get(User, row.author_id)
    preview = {"author_username": author.username if author else None}
    if target.kind is TargetType.POST:
        preview["content"] = row.content[:100]
    elif target.kind is TargetType.COMMENT:
        preview["content"] = row.content[:100]
    else:
        preview["title"] = row.title
    return preview
