"""
Users blueprint.

POST   /api/users/sync                       – mirror the identity provider's user record
GET    /api/users/me                         – the signed-in user
PATCH  /api/users/me                         – edit own profile
GET    /api/users/search?q=…                 – find users by name
GET    /api/users/available?username=…      – is a username free
GET    /api/users/<username>                 – public profile with counts
PATCH  /api/admin/users/<user_id>            – admin edits someone's profile
POST   /api/users/<user_id>/follow           – follow
DELETE /api/users/<user_id>/follow           – unfollow
GET    /api/users/<user_id>/followers        – follower list
GET    /api/users/<user_id>/following        – followed-user list
"""
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from questboard.extensions import limiter
from questboard.forms.users import AdminProfileForm, ProfileForm, SyncUserForm
from questboard.utils.decorators import admin_required
from questboard.utils.helpers import json_body, submitted, validated, viewer_id

users_bp = Blueprint("users", __name__)


@users_bp.route("/api/users/sync", methods=["POST"])
@limiter.limit("30 per minute")
def sync():
    from questboard.utils.user_service import sync_user

    form = SyncUserForm()
    validated(form)
    user = sync_user(
        form.external_id.data,
        form.email.data or None,
        form.username.data,
        display_name=form.display_name.data or None,
        avatar_url=form.avatar_url.data or None,
    )
    return jsonify(user.to_dict())


@users_bp.route("/api/users/me")
@login_required
def me():
    return jsonify(current_user.to_dict())


@users_bp.route("/api/users/me", methods=["PATCH"])
@login_required
def update_me():
    from questboard.utils.user_service import update_profile

    form = ProfileForm()
    validated(form)
    user = update_profile(current_user, **submitted(form, json_body()))
    return jsonify(user.to_dict())


@users_bp.route("/api/users/search")
def search():
    from questboard.utils.user_service import search_users

    return jsonify(users=search_users(request.args.get("q", ""), limit=10))


@users_bp.route("/api/users/available")
def available():
    from questboard.utils.user_service import username_available

    username = (request.args.get("username") or "").strip()
    return jsonify(available=bool(username) and username_available(username))


@users_bp.route("/api/users/<username>")
def profile(username):
    from questboard.utils.user_service import get_by_username, is_following, profile as _profile

    data = _profile(username)
    data["is_following"] = is_following(viewer_id(), get_by_username(username).id)
    return jsonify(data)


@users_bp.route("/api/admin/users/<user_id>", methods=["PATCH"])
@login_required
@admin_required
def admin_update(user_id):
    from questboard.utils.user_service import admin_update_profile

    form = AdminProfileForm()
    validated(form)
    user = admin_update_profile(current_user, user_id, **submitted(form, json_body()))
    return jsonify(user.to_dict())


# ── Follows ───────────────────────────────────────────────────────────────────

@users_bp.route("/api/users/<user_id>/follow", methods=["POST"])
@login_required
def follow(user_id):
    from questboard.utils.user_service import follow as _follow, follow_counts

    _follow(current_user, user_id)
    return jsonify(success=True, is_following=True, counts=follow_counts(user_id))


@users_bp.route("/api/users/<user_id>/follow", methods=["DELETE"])
@login_required
def unfollow(user_id):
    from questboard.utils.user_service import follow_counts, unfollow as _unfollow

    _unfollow(current_user, user_id)
    return jsonify(success=True, is_following=False, counts=follow_counts(user_id))


@users_bp.route("/api/users/<user_id>/followers")
def followers(user_id):
    from questboard.utils.user_service import followers as _followers

    return jsonify(users=_followers(user_id))


@users_bp.route("/api/users/<user_id>/following")
def following(user_id):
    from questboard.utils.user_service import following as _following

    return jsonify(users=_following(user_id))
