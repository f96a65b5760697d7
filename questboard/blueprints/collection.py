"""
Collection blueprint.

POST   /api/collection                        – add an owned game (JSON: game_id, ownership_type, …)
PATCH  /api/collection/<entry_id>             – edit an entry
DELETE /api/collection/<entry_id>             – remove an entry
GET    /api/collection/entry/<game_id>        – the signed-in user's entry for a game
GET    /api/users/<username>/collection       – owned games with playthroughs, review and stats
GET    /api/users/<username>/collection/stats – ownership and status counts
"""
from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from questboard.forms.games import CollectionForm, CollectionUpdateForm
from questboard.utils.helpers import json_body, submitted, validated

collection_bp = Blueprint("collection", __name__)


@collection_bp.route("/api/collection", methods=["POST"])
@login_required
def add():
    from questboard.utils.collection_service import add_entry, get_entry

    form = CollectionForm()
    validated(form)
    entry = add_entry(
        current_user,
        form.game_id.data,
        form.ownership_type.data,
        status=form.status.data or None,
        platform=form.platform.data or None,
        difficulty=form.difficulty.data or None,
        acquired_at=form.acquired_at.data,
    )
    return jsonify(get_entry(current_user.id, entry.game_id)), 201


@collection_bp.route("/api/collection/<entry_id>", methods=["PATCH"])
@login_required
def update(entry_id):
    from questboard.utils.collection_service import update_entry

    form = CollectionUpdateForm()
    validated(form)
    fields = {k: v for k, v in submitted(form, json_body()).items() if v != ""}
    return jsonify(update_entry(entry_id, current_user, **fields))


@collection_bp.route("/api/collection/<entry_id>", methods=["DELETE"])
@login_required
def remove(entry_id):
    from questboard.utils.collection_service import remove_entry

    return jsonify(remove_entry(entry_id, current_user))


@collection_bp.route("/api/collection/entry/<game_id>")
@login_required
def my_entry(game_id):
    from questboard.utils.collection_service import get_entry

    return jsonify(entry=get_entry(current_user.id, game_id))


@collection_bp.route("/api/users/<username>/collection")
def user_collection(username):
    from questboard.utils.collection_service import user_collection as _collection

    return jsonify(_collection(username))


@collection_bp.route("/api/users/<username>/collection/stats")
def stats(username):
    from questboard.utils.collection_service import collection_stats

    return jsonify(collection_stats(username))
