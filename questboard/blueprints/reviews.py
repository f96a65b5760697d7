"""
Reviews blueprint.

POST   /api/reviews                     – create (JSON: game_id, title, content, rating, …)
GET    /api/reviews/<id>                – single review
PATCH  /api/reviews/<id>                – edit (author only)
DELETE /api/reviews/<id>                – delete with comments and likes (author only)
GET    /api/reviews/<id>/history        – previous versions
GET    /api/games/<game_id>/reviews     – published reviews of a game
GET    /api/users/<username>/reviews    – a user's reviews
"""
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from questboard.extensions import limiter
from questboard.forms.content import ReviewForm, ReviewUpdateForm
from questboard.utils.feed_service import clamp_limit
from questboard.utils.helpers import json_body, submitted, validated, viewer_id

reviews_bp = Blueprint("reviews", __name__)


@reviews_bp.route("/api/reviews", methods=["POST"])
@login_required
@limiter.limit("5 per minute")
def create_review():
    from questboard.utils.review_service import create_review as _create, get_review

    form = ReviewForm()
    validated(form)
    payload = json_body()
    fields = submitted(form, payload, exclude=("game_id", "title", "content", "rating"))
    review = _create(
        current_user,
        form.game_id.data,
        form.title.data,
        form.content.data,
        form.rating.data,
        tags=payload.get("tags"),
        genres=payload.get("genres"),
        **fields,
    )
    return jsonify(get_review(review.id, current_user.id)), 201


@reviews_bp.route("/api/reviews/<review_id>")
def get_review(review_id):
    from questboard.utils.review_service import get_review as _get

    return jsonify(_get(review_id, viewer_id()))


@reviews_bp.route("/api/reviews/<review_id>", methods=["PATCH"])
@login_required
def update_review(review_id):
    from questboard.utils.review_service import get_review as _get, update_review as _update

    form = ReviewUpdateForm()
    validated(form)
    payload = json_body()
    fields = submitted(form, payload, exclude=("game_id",))
    _update(review_id, current_user, tags=payload.get("tags"), genres=payload.get("genres"), **fields)
    return jsonify(_get(review_id, current_user.id))


@reviews_bp.route("/api/reviews/<review_id>", methods=["DELETE"])
@login_required
def delete_review(review_id):
    from questboard.utils.review_service import delete_review as _delete

    return jsonify(_delete(review_id, current_user))


@reviews_bp.route("/api/reviews/<review_id>/history")
def review_history(review_id):
    from questboard.utils.review_service import review_history as _history

    return jsonify(_history(review_id, viewer_id()))


@reviews_bp.route("/api/games/<game_id>/reviews")
def game_reviews(game_id):
    from questboard.utils.review_service import reviews_by_game

    return jsonify(reviews_by_game(
        game_id, viewer_id(),
        cursor=request.args.get("cursor"),
        limit=clamp_limit(request.args.get("limit"), default=10),
    ))


@reviews_bp.route("/api/users/<username>/reviews")
def user_reviews(username):
    from questboard.utils.review_service import reviews_by_user

    return jsonify(reviews_by_user(
        username, viewer_id(),
        cursor=request.args.get("cursor"),
        limit=clamp_limit(request.args.get("limit"), default=10),
    ))
