"""
Feed composer: merges posts, articles and reviews into one ordered,
cursor-paginated stream.

Feeds
-----
following   newest first, authors the viewer follows only
popular     last 24 h, most liked first (newest first on ties)
discover    newest first, everyone
reviews     newest first, or most liked of the last 7 days

Each kind is fetched on its own, over-fetching past the page size so the
merged list still fills a page after per-kind filtering, then enriched,
sorted and sliced. The cursor is the ``"{type}-{id}"`` key of the last item
on the page; the next page is everything strictly after that key in the
freshly rebuilt list. Popular pages are not stable while likes keep
arriving: an item that climbs above the cursor after page 1 was served will
not show up on page 2.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable, Optional

from flask import current_app

from questboard.extensions import db
from questboard.models._base import utcnow
from questboard.utils.engagement import load_engagement
from questboard.utils.targets import Target, TargetType, make_key

log = logging.getLogger(__name__)

POPULAR_WINDOW         = timedelta(hours=24)
POPULAR_REVIEWS_WINDOW = timedelta(days=7)

FOLLOWING_FACTOR = 3
DISCOVER_FACTOR  = 2
REVIEWS_FACTOR   = 2


@dataclass
class FeedPage:
    items: list = field(default_factory=list)
    next_cursor: Optional[str] = None

    def to_dict(self) -> dict:
        return {"items": self.items, "next_cursor": self.next_cursor}


# ── Pagination ────────────────────────────────────────────────────────────────

def paginate(items: list, cursor: Optional[str], limit: int,
             key: Callable = lambda item: item["key"]):
    """Slice ``items`` strictly after ``cursor``.

    Returns ``(page, next_cursor)``. An unknown cursor restarts from the top.
    ``next_cursor`` is the key of the page's last item when more items follow,
    otherwise None.
    """
    start = 0
    if cursor:
        for idx, item in enumerate(items):
            if key(item) == cursor:
                start = idx + 1
                break
    window = items[start:start + limit + 1]
    page = window[:limit]
    next_cursor = key(page[-1]) if len(window) > limit and page else None
    return page, next_cursor


def clamp_limit(limit, default: int = None) -> int:
    if default is None:
        default = current_app.config.get("FEED_DEFAULT_LIMIT", 20)
    try:
        limit = int(limit) if limit is not None else default
    except (TypeError, ValueError):
        limit = default
    return max(1, min(limit, current_app.config.get("FEED_MAX_LIMIT", 100)))


def _parse_cursor(cursor: Optional[str]):
    if not cursor or "-" not in cursor:
        return None
    kind, target_id = cursor.split("-", 1)
    try:
        return Target(TargetType(kind), target_id)
    except ValueError:
        return None


def _anchor_time(cursor: Optional[str]):
    """creation time of the cursor item, or None when it can't be found."""
    from questboard.utils.targets import find_target

    target = _parse_cursor(cursor)
    if target is None or target.kind is TargetType.COMMENT:
        return None
    row = find_target(target)
    return row.created_at if row is not None else None


# ── Candidate fetching ────────────────────────────────────────────────────────

def _kind_query(kind: TargetType, author_ids=None, since=None):
    from questboard.models import Article, Post, Review

    model = {TargetType.POST: Post, TargetType.ARTICLE: Article, TargetType.REVIEW: Review}[kind]
    q = model.query
    if kind is not TargetType.POST:
        q = q.filter(model.published.is_(True))
    if author_ids is not None:
        q = q.filter(model.author_id.in_(list(author_ids)))
    if since is not None:
        q = q.filter(model.created_at >= since)
    return model, q


def _fetch_recent(kind: TargetType, n: int, anchor=None, author_ids=None) -> list:
    """Newest ``n`` rows of a kind.

    With an ``anchor`` time the window starts at the cursor item instead of
    the top: rows sharing the anchor timestamp plus ``n`` older rows. That is
    enough for the slice after the cursor however deep the page is.
    """
    model, q = _kind_query(kind, author_ids=author_ids)
    order = (model.created_at.desc(), model.id.desc())
    if anchor is None:
        return q.order_by(*order).limit(n).all()
    ties = q.filter(model.created_at == anchor).all()
    older = q.filter(model.created_at < anchor).order_by(*order).limit(n).all()
    return ties + older


def _fetch_window(kind: TargetType, since) -> list:
    _, q = _kind_query(kind, since=since)
    return q.all()


# ── Enrichment ────────────────────────────────────────────────────────────────

def _merge_genres(explicit, games: list) -> list:
    if explicit:
        return list(explicit)
    seen = []
    for g in games:
        for genre in g.genres or []:
            if genre not in seen:
                seen.append(genre)
    return seen


def enrich(posts: list, articles: list, reviews: list, viewer_id: Optional[str]) -> list:
    """Turn raw rows into feed item dicts. Items whose author is gone are dropped."""
    from questboard.models import ArticleGame, Game, PostImage, User

    author_ids = {r.author_id for r in posts + articles + reviews}
    authors = {u.id: u for u in User.query.filter(User.id.in_(list(author_ids))).all()} if author_ids else {}

    links = []
    if articles:
        links = ArticleGame.query.filter(ArticleGame.article_id.in_([a.id for a in articles])).all()
    game_ids = {link.game_id for link in links} | {r.game_id for r in reviews}
    games = {g.id: g for g in Game.query.filter(Game.id.in_(list(game_ids))).all()} if game_ids else {}
    article_games = {}
    for link in links:
        if link.game_id in games:
            article_games.setdefault(link.article_id, []).append(games[link.game_id])

    images = {}
    if posts:
        for img in (PostImage.query
                    .filter(PostImage.post_id.in_([p.id for p in posts]))
                    .order_by(PostImage.position)
                    .all()):
            images.setdefault(img.post_id, []).append(img.to_dict())

    targets = (
        [Target(TargetType.POST, p.id) for p in posts]
        + [Target(TargetType.ARTICLE, a.id) for a in articles]
        + [Target(TargetType.REVIEW, r.id) for r in reviews]
    )
    engagement = load_engagement(targets, viewer_id)

    items = []

    def _base(kind: str, row) -> Optional[dict]:
        author = authors.get(row.author_id)
        if author is None:
            return None
        key = make_key(kind, row.id)
        item = {
            "type":       kind,
            "id":         row.id,
            "key":        key,
            "created_at": row.created_at,
            "author":     author.to_summary(),
            "content":    row.content,
        }
        item.update(engagement[key].to_dict())
        return item

    for p in posts:
        item = _base("post", p)
        if item is None:
            continue
        item["images"] = images.get(p.id, [])
        item["edit_count"] = p.edit_count
        items.append(item)

    for a in articles:
        item = _base("article", a)
        if item is None:
            continue
        linked = article_games.get(a.id, [])
        item.update({
            "title":             a.title,
            "excerpt":           a.excerpt,
            "cover_image_url":   a.cover_image_url,
            "contains_spoilers": a.contains_spoilers,
            "tags":              list(a.tags or []),
            "genres":            _merge_genres(a.genres, linked),
            "games":             [g.to_summary() for g in linked],
        })
        items.append(item)

    for r in reviews:
        item = _base("review", r)
        if item is None:
            continue
        game = games.get(r.game_id)
        item.update({
            "title":             r.title,
            "rating":            r.rating,
            "cover_image_url":   r.cover_image_url,
            "contains_spoilers": r.contains_spoilers,
            "tags":              list(r.tags or []),
            "genres":            _merge_genres(r.genres, [game] if game else []),
            "game":              game.to_summary() if game else None,
        })
        items.append(item)

    return items


# ── Ordering ──────────────────────────────────────────────────────────────────

def _chronological(items: list) -> list:
    return sorted(items, key=lambda i: (i["created_at"], i["key"]), reverse=True)


def _by_popularity(items: list) -> list:
    return sorted(items, key=lambda i: (i["like_count"], i["created_at"], i["key"]), reverse=True)


def serialize_items(page: list) -> list:
    out = []
    for item in page:
        item = dict(item)
        item.pop("key")
        item["created_at"] = item["created_at"].isoformat()
        out.append(item)
    return out


def _chronological_feed(kinds, factor: int, viewer_id, cursor, limit, author_ids=None) -> FeedPage:
    anchor = _anchor_time(cursor)

    def build(anchor_at):
        rows = {k: _fetch_recent(k, limit * factor, anchor_at, author_ids) for k in kinds}
        return _chronological(enrich(
            rows.get(TargetType.POST, []),
            rows.get(TargetType.ARTICLE, []),
            rows.get(TargetType.REVIEW, []),
            viewer_id,
        ))

    items = build(anchor)
    if anchor is not None and not any(i["key"] == cursor for i in items):
        # cursor item vanished from this feed; restart from the top
        items = build(None)
    page, next_cursor = paginate(items, cursor, limit)
    return FeedPage(serialize_items(page), next_cursor)


def _popular_feed(kinds, window: timedelta, viewer_id, cursor, limit) -> FeedPage:
    since = utcnow() - window
    rows = {k: _fetch_window(k, since) for k in kinds}
    items = _by_popularity(enrich(
        rows.get(TargetType.POST, []),
        rows.get(TargetType.ARTICLE, []),
        rows.get(TargetType.REVIEW, []),
        viewer_id,
    ))
    page, next_cursor = paginate(items, cursor, limit)
    return FeedPage(serialize_items(page), next_cursor)


# ── Public feeds ──────────────────────────────────────────────────────────────

ALL_KINDS = (TargetType.POST, TargetType.ARTICLE, TargetType.REVIEW)


def following_feed(viewer_id: Optional[str], cursor: Optional[str] = None, limit: int = 20) -> FeedPage:
    from questboard.models import Follow

    if not viewer_id:
        return FeedPage()
    followee_ids = {
        f.following_id
        for f in db.session.query(Follow.following_id).filter(Follow.follower_id == viewer_id).all()
    }
    if not followee_ids:
        return FeedPage()
    return _chronological_feed(ALL_KINDS, FOLLOWING_FACTOR, viewer_id, cursor, limit,
                               author_ids=followee_ids)


def popular_feed(viewer_id: Optional[str], cursor: Optional[str] = None, limit: int = 20) -> FeedPage:
    return _popular_feed(ALL_KINDS, POPULAR_WINDOW, viewer_id, cursor, limit)


def discover_feed(viewer_id: Optional[str], cursor: Optional[str] = None, limit: int = 20) -> FeedPage:
    return _chronological_feed(ALL_KINDS, DISCOVER_FACTOR, viewer_id, cursor, limit)


def reviews_feed(viewer_id: Optional[str], cursor: Optional[str] = None, limit: int = 10,
                 popular: bool = False) -> FeedPage:
    kinds = (TargetType.REVIEW,)
    if popular:
        return _popular_feed(kinds, POPULAR_REVIEWS_WINDOW, viewer_id, cursor, limit)
    return _chronological_feed(kinds, REVIEWS_FACTOR, viewer_id, cursor, limit)


FEEDS = {
    "following": following_feed,
    "popular":   popular_feed,
    "discover":  discover_feed,
}
