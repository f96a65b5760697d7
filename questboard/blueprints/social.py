"""
Comments and likes blueprint.

GET    /api/<kind>/<id>/comments        – top-level comments with replies (kind: posts|articles|reviews)
POST   /api/<kind>/<id>/comments        – add a comment or reply (JSON: content, parent_id)
DELETE /api/comments/<id>               – delete own comment (admins: any)
POST   /api/likes/<kind>/<id>           – toggle like (kind: post|article|review|comment)
GET    /api/likes/<kind>/<id>           – like count, viewer's like and recent likers
"""
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from questboard.extensions import limiter
from questboard.forms.content import CommentForm
from questboard.utils.errors import NotFoundError
from questboard.utils.feed_service import clamp_limit
from questboard.utils.helpers import validated, viewer_id
from questboard.utils.targets import COMMENTABLE, LIKEABLE, Target

social_bp = Blueprint("social", __name__)

# URL segment → target kind
_COLLECTIONS = {"posts": "post", "articles": "article", "reviews": "review"}


def _commentable(collection: str, target_id: str) -> Target:
    kind = _COLLECTIONS.get(collection)
    if kind is None:
        raise NotFoundError("Not found")
    return Target.parse(kind, target_id, allowed=COMMENTABLE)


# ── Comments ──────────────────────────────────────────────────────────────────

@social_bp.route("/api/<collection>/<target_id>/comments")
def list_comments(collection, target_id):
    from questboard.utils.comment_service import comments_for_target
    from questboard.utils.targets import resolve_target

    target = _commentable(collection, target_id)
    resolve_target(target)
    return jsonify(comments_for_target(
        target, viewer_id(),
        cursor=request.args.get("cursor"),
        limit=clamp_limit(request.args.get("limit")),
    ))


@social_bp.route("/api/<collection>/<target_id>/comments", methods=["POST"])
@login_required
@limiter.limit("20 per minute")
def add_comment(collection, target_id):
    from questboard.utils.comment_service import create_comment

    target = _commentable(collection, target_id)
    form = CommentForm()
    validated(form)
    comment = create_comment(current_user, target, form.content.data, parent_id=form.parent_id.data or None)
    return jsonify(success=True, comment={
        "id":         comment.id,
        "parent_id":  comment.parent_id,
        "content":    comment.content,
        "created_at": comment.created_at.isoformat(),
        "author":     current_user.to_summary(),
    }), 201


@social_bp.route("/api/comments/<comment_id>", methods=["DELETE"])
@login_required
def delete_comment(comment_id):
    from questboard.utils.comment_service import delete_comment as _delete

    return jsonify(_delete(comment_id, current_user))


# ── Likes ─────────────────────────────────────────────────────────────────────

@social_bp.route("/api/likes/<kind>/<target_id>", methods=["POST"])
@login_required
def toggle_like(kind, target_id):
    from questboard.utils.like_service import toggle_like as _toggle

    return jsonify(_toggle(current_user, Target.parse(kind, target_id, allowed=LIKEABLE)))


@social_bp.route("/api/likes/<kind>/<target_id>")
def like_status(kind, target_id):
    from questboard.utils.like_service import has_liked, like_count, likers

    target = Target.parse(kind, target_id, allowed=LIKEABLE)
    return jsonify({
        "like_count": like_count(target),
        "has_liked":  has_liked(viewer_id(), target),
        "likers":     likers(target, limit=clamp_limit(request.args.get("limit"), default=50)),
    })
