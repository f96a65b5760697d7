"""
Games blueprint.

GET  /api/games/search?q=…&cached=1    – IGDB search (cached=1: local cache only)
GET  /api/games/rated?order=recent|top – games with at least one rating
GET  /api/games/<slug>                 – game detail, fetched from IGDB when missing or stale
GET  /api/games/<game_id>/rating       – combined review + quick rating
"""
from flask import Blueprint, jsonify, request

from questboard.utils.errors import NotFoundError
from questboard.utils.feed_service import clamp_limit

games_bp = Blueprint("games", __name__)


@games_bp.route("/api/games/search")
def search():
    from questboard.utils.game_service import search_cached, search_games

    term = request.args.get("q", "")
    limit = clamp_limit(request.args.get("limit"), default=10)
    if request.args.get("cached") == "1":
        games = search_cached(term, limit=limit)
    else:
        games = search_games(term, limit=limit)
    return jsonify(games=[g.to_dict() for g in games])


@games_bp.route("/api/games/rated")
def rated():
    from questboard.utils.ratings import games_with_ratings

    order = request.args.get("order", "recent")
    if order not in ("recent", "top"):
        order = "recent"
    return jsonify(games_with_ratings(
        cursor=request.args.get("cursor"),
        limit=clamp_limit(request.args.get("limit")),
        order=order,
    ))


@games_bp.route("/api/games/<slug>")
def detail(slug):
    from questboard.utils.game_service import get_or_create_game
    from questboard.utils.ratings import combined_rating

    game = get_or_create_game(slug=slug)
    if game is None:
        raise NotFoundError("Game not found")
    data = game.to_dict()
    data["combined_rating"] = combined_rating(game.id)
    return jsonify(data)


@games_bp.route("/api/games/<game_id>/rating")
def rating(game_id):
    from questboard.utils.game_service import get_game
    from questboard.utils.ratings import combined_rating

    if get_game(game_id) is None:
        raise NotFoundError("Game not found")
    return jsonify(combined_rating(game_id))
