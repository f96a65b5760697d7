"""
Posts blueprint.

POST   /api/posts                      – create a post (JSON: content, images[])
GET    /api/posts/<id>                 – single post with engagement
PATCH  /api/posts/<id>                 – edit content (author or admin)
DELETE /api/posts/<id>                 – delete with comments, likes and images
GET    /api/posts/<id>/history         – previous versions, newest first
GET    /api/users/<username>/posts     – a user's posts, cursor paginated
"""
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from questboard.extensions import limiter
from questboard.forms.content import PostForm
from questboard.utils.feed_service import clamp_limit
from questboard.utils.helpers import json_body, validated, viewer_id

posts_bp = Blueprint("posts", __name__)


@posts_bp.route("/api/posts", methods=["POST"])
@login_required
@limiter.limit("10 per minute")
def create_post():
    from questboard.utils.post_service import create_post as _create, get_post

    form = PostForm()
    validated(form)
    images = json_body().get("images") or []
    post = _create(current_user, form.content.data, images if isinstance(images, list) else [])
    return jsonify(get_post(post.id, current_user.id)), 201


@posts_bp.route("/api/posts/<post_id>")
def get_post(post_id):
    from questboard.utils.post_service import get_post as _get

    return jsonify(_get(post_id, viewer_id()))


@posts_bp.route("/api/posts/<post_id>", methods=["PATCH"])
@login_required
def update_post(post_id):
    from questboard.utils.post_service import get_post as _get, update_post as _update

    form = PostForm()
    validated(form)
    _update(post_id, current_user, form.content.data)
    return jsonify(_get(post_id, current_user.id))


@posts_bp.route("/api/posts/<post_id>", methods=["DELETE"])
@login_required
def delete_post(post_id):
    from questboard.utils.post_service import delete_post as _delete

    return jsonify(_delete(post_id, current_user))


@posts_bp.route("/api/posts/<post_id>/history")
def post_history(post_id):
    from questboard.utils.post_service import post_history as _history

    return jsonify(_history(post_id))


@posts_bp.route("/api/users/<username>/posts")
def user_posts(username):
    from questboard.utils.post_service import posts_by_user

    return jsonify(posts_by_user(
        username,
        viewer_id(),
        cursor=request.args.get("cursor"),
        limit=clamp_limit(request.args.get("limit")),
    ))
