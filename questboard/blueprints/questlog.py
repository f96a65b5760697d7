"""
Quest log blueprint.

POST   /api/questlog                          – add a game (JSON: game_id, status, …)
PATCH  /api/questlog/<entry_id>               – edit an entry
DELETE /api/questlog/<entry_id>               – remove an entry
POST   /api/questlog/status/<game_id>         – change status, optionally rate and share as a post
PUT    /api/questlog/order                    – reorder profile slots (JSON: ordered_ids[])
GET    /api/questlog/entry/<game_id>          – the signed-in user's entry for a game
GET    /api/users/<username>/questlog         – a user's log (?status=, ?cursor=, ?limit=)
GET    /api/users/<username>/now-playing      – up to five "Playing" entries shown on the profile
"""
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from questboard.forms.games import QuestLogForm, QuestLogUpdateForm, QuestStatusForm
from questboard.utils.feed_service import clamp_limit
from questboard.utils.helpers import json_body, submitted, validated

questlog_bp = Blueprint("questlog", __name__)


@questlog_bp.route("/api/questlog", methods=["POST"])
@login_required
def add():
    from questboard.utils.questlog_service import add_entry, get_entry

    form = QuestLogForm()
    validated(form)
    entry = add_entry(
        current_user,
        form.game_id.data,
        status=form.status.data,
        started_at=form.started_at.data,
        completed_at=form.completed_at.data,
        notes=form.notes.data or None,
        platform=form.platform.data or None,
    )
    return jsonify(get_entry(current_user.id, entry.game_id)), 201


@questlog_bp.route("/api/questlog/<entry_id>", methods=["PATCH"])
@login_required
def update(entry_id):
    from questboard.utils.questlog_service import update_entry

    form = QuestLogUpdateForm()
    validated(form)
    return jsonify(update_entry(entry_id, current_user, **submitted(form, json_body())))


@questlog_bp.route("/api/questlog/<entry_id>", methods=["DELETE"])
@login_required
def remove(entry_id):
    from questboard.utils.questlog_service import remove_entry

    return jsonify(remove_entry(entry_id, current_user))


@questlog_bp.route("/api/questlog/status/<game_id>", methods=["POST"])
@login_required
def change_status(game_id):
    from questboard.utils.questlog_service import update_status

    form = QuestStatusForm()
    validated(form)
    return jsonify(update_status(
        current_user,
        game_id,
        form.status.data,
        quick_rating=form.quick_rating.data,
        share_as_post=form.share_as_post.data,
    ))


@questlog_bp.route("/api/questlog/order", methods=["PUT"])
@login_required
def reorder():
    from questboard.utils.questlog_service import update_display_order

    ids = json_body().get("ordered_ids") or []
    return jsonify(update_display_order(current_user, [str(i) for i in ids if i]))


@questlog_bp.route("/api/questlog/entry/<game_id>")
@login_required
def my_entry(game_id):
    from questboard.utils.questlog_service import get_entry

    return jsonify(entry=get_entry(current_user.id, game_id))


@questlog_bp.route("/api/users/<username>/questlog")
def user_log(username):
    from questboard.utils.questlog_service import user_quest_log

    return jsonify(user_quest_log(
        username,
        status=request.args.get("status") or None,
        cursor=request.args.get("cursor"),
        limit=clamp_limit(request.args.get("limit")),
    ))


@questlog_bp.route("/api/users/<username>/now-playing")
def now_playing(username):
    from questboard.utils.questlog_service import now_playing as _now_playing

    return jsonify(entries=_now_playing(username))
