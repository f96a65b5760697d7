"""
Feed blueprint.

GET /api/feed/following     – newest items from followed users
GET /api/feed/popular       – most liked items of the last 24 hours
GET /api/feed/discover      – newest items from everyone
GET /api/feed/reviews       – newest reviews, or ?sort=popular for the week's most liked

All take ?cursor= and ?limit=; responses are {"items": [...], "next_cursor": ...}.
"""
from flask import Blueprint, jsonify, request

from questboard.utils.errors import NotFoundError
from questboard.utils.feed_service import FEEDS, clamp_limit, reviews_feed
from questboard.utils.helpers import viewer_id

feed_bp = Blueprint("feed", __name__)


@feed_bp.route("/api/feed/reviews")
def get_reviews_feed():
    page = reviews_feed(
        viewer_id(),
        cursor=request.args.get("cursor"),
        limit=clamp_limit(request.args.get("limit"), default=10),
        popular=request.args.get("sort") == "popular",
    )
    return jsonify(page.to_dict())


@feed_bp.route("/api/feed/<name>")
def get_feed(name):
    feed = FEEDS.get(name)
    if feed is None:
        raise NotFoundError(f"Unknown feed: {name}")
    page = feed(
        viewer_id(),
        cursor=request.args.get("cursor"),
        limit=clamp_limit(request.args.get("limit")),
    )
    return jsonify(page.to_dict())
