"""
Articles blueprint.

POST   /api/articles                     – create (JSON also takes game_ids, tags, genres, mentions)
GET    /api/articles/<id>                – single article (drafts visible to their author only)
PATCH  /api/articles/<id>                – edit; "save_history": false for autosaves
DELETE /api/articles/<id>                – delete with comments, likes and cover image
GET    /api/articles/<id>/history        – previous versions
GET    /api/users/<username>/articles    – a user's articles
GET    /api/games/<game_id>/articles     – published articles linked to a game
"""
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from questboard.extensions import limiter
from questboard.forms.content import ArticleForm, ArticleUpdateForm
from questboard.utils.feed_service import clamp_limit
from questboard.utils.helpers import json_body, submitted, validated, viewer_id

articles_bp = Blueprint("articles", __name__)

_LIST_FIELDS = ("game_ids", "tags", "genres", "mentions")


def _lists(payload: dict) -> dict:
    return {name: payload[name] for name in _LIST_FIELDS if name in payload}


@articles_bp.route("/api/articles", methods=["POST"])
@login_required
@limiter.limit("5 per minute")
def create_article():
    from questboard.utils.article_service import create_article as _create, get_article

    form = ArticleForm()
    validated(form)
    payload = json_body()
    fields = submitted(form, payload, exclude=("title", "content"))
    article = _create(current_user, form.title.data, form.content.data, **fields, **_lists(payload))
    return jsonify(get_article(article.id, current_user.id)), 201


@articles_bp.route("/api/articles/<article_id>")
def get_article(article_id):
    from questboard.utils.article_service import get_article as _get

    return jsonify(_get(article_id, viewer_id()))


@articles_bp.route("/api/articles/<article_id>", methods=["PATCH"])
@login_required
def update_article(article_id):
    from questboard.utils.article_service import get_article as _get, update_article as _update

    form = ArticleUpdateForm()
    validated(form)
    payload = json_body()
    fields = submitted(form, payload)
    _update(article_id, current_user, **fields, **_lists(payload))
    return jsonify(_get(article_id, current_user.id))


@articles_bp.route("/api/articles/<article_id>", methods=["DELETE"])
@login_required
def delete_article(article_id):
    from questboard.utils.article_service import delete_article as _delete

    return jsonify(_delete(article_id, current_user))


@articles_bp.route("/api/articles/<article_id>/history")
def article_history(article_id):
    from questboard.utils.article_service import article_history as _history

    return jsonify(_history(article_id, viewer_id()))


@articles_bp.route("/api/users/<username>/articles")
def user_articles(username):
    from questboard.utils.article_service import articles_by_user

    return jsonify(articles_by_user(
        username, viewer_id(),
        cursor=request.args.get("cursor"),
        limit=clamp_limit(request.args.get("limit")),
    ))


@articles_bp.route("/api/games/<game_id>/articles")
def game_articles(game_id):
    from questboard.utils.article_service import articles_by_game

    return jsonify(articles_by_game(
        game_id, viewer_id(),
        cursor=request.args.get("cursor"),
        limit=clamp_limit(request.args.get("limit")),
    ))
