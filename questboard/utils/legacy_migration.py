"""
Legacy data import and reference resolution.

The old relational database is exported as one ``<table>.jsonl`` file per
table (camelCase keys, a ``legacyId`` per row, millisecond timestamps).
Importing happens in two phases:

1. ``import_export_dir`` inserts every row under a fresh native id while
   reference fields (``authorId``, ``targetId``, ...) still hold the old
   legacy ids verbatim.
2. ``resolve_all_references`` builds legacy → native maps and rewrites the
   reference fields table by table, in dependency order.

Resolution is best effort. A field whose legacy id has no match is left as
is, and a row whose rewrite collides with an existing row is skipped and
logged. A table that fails to commit is rolled back and logged, and the run
continues with the next table. Every table commits on its own, so an
interrupted run can simply be started again: already-resolved ids never
match a legacy id and are skipped.
"""
import json
import logging
import os
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from questboard.extensions import db

log = logging.getLogger(__name__)


# ── Import ────────────────────────────────────────────────────────────────────

def _ms(value) -> Optional[datetime]:
    """Unix milliseconds → naive UTC datetime."""
    if value in (None, ""):
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).replace(tzinfo=None)


def _timestamps(row: dict) -> dict:
    out = {}
    created = _ms(row.get("createdAt"))
    updated = _ms(row.get("updatedAt"))
    if created:
        out["created_at"] = created
    if updated:
        out["updated_at"] = updated
    return out


def _user(row):
    from questboard.models import User
    return User(
        legacy_id=row["legacyId"],
        external_id=row.get("clerkId"),
        email=row.get("email"),
        username=row["username"],
        display_name=row.get("displayName"),
        avatar_url=row.get("avatarUrl"),
        banner_url=row.get("bannerUrl"),
        bio=row.get("bio"),
        is_admin=bool(row.get("isAdmin", False)),
        **_timestamps(row),
    )


def _game(row):
    from questboard.models import Game
    return Game(
        legacy_id=row["legacyId"],
        igdb_id=row.get("igdbId"),
        name=row["name"],
        slug=row.get("slug"),
        summary=row.get("summary"),
        cover_url=row.get("coverUrl"),
        release_date=_ms(row.get("releaseDate")),
        genres=row.get("genres") or [],
        platforms=row.get("platforms") or [],
        rating=row.get("rating"),
        **_timestamps(row),
    )


def _follow(row):
    from questboard.models import Follow
    if row["followerId"] == row["followingId"]:
        raise ValueError("self-follow")
    return Follow(follower_id=row["followerId"], following_id=row["followingId"], **_timestamps(row))


def _post(row):
    from questboard.models import Post
    return Post(legacy_id=row["legacyId"], author_id=row["authorId"],
                content=row["content"], **_timestamps(row))


def _post_image(row):
    from questboard.models import PostImage
    return PostImage(post_id=row["postId"], url=row["url"], file_key=row.get("fileKey"),
                     caption=row.get("caption"), position=row.get("order", 0))


def _article(row):
    from questboard.models import Article
    return Article(
        legacy_id=row["legacyId"],
        author_id=row["authorId"],
        title=row["title"],
        content=row["content"],
        content_json=row.get("contentJson"),
        excerpt=row.get("excerpt"),
        cover_image_url=row.get("coverImageUrl"),
        cover_file_key=row.get("coverFileKey"),
        contains_spoilers=bool(row.get("containsSpoilers", False)),
        published=bool(row.get("published", True)),
        tags=row.get("tags") or [],
        genres=row.get("genres") or [],
        **_timestamps(row),
    )


def _article_game(row):
    from questboard.models import ArticleGame
    return ArticleGame(article_id=row["articleId"], game_id=row["gameId"])


def _review(row):
    from questboard.models import Review
    return Review(
        legacy_id=row["legacyId"],
        author_id=row["authorId"],
        game_id=row["gameId"],
        title=row["title"],
        content=row["content"],
        content_json=row.get("contentJson"),
        rating=int(row["rating"]),
        cover_image_url=row.get("coverImageUrl"),
        cover_file_key=row.get("coverFileKey"),
        contains_spoilers=bool(row.get("containsSpoilers", False)),
        published=bool(row.get("published", False)),
        tags=row.get("tags") or [],
        genres=row.get("genres") or [],
        **_timestamps(row),
    )


def _comment(row):
    from questboard.models import Comment
    return Comment(
        legacy_id=row["legacyId"],
        author_id=row["authorId"],
        target_type=row["targetType"],
        target_id=row["targetId"],
        parent_id=row.get("parentId"),
        content=row["content"][:1000],
        **_timestamps(row),
    )


def _like(row):
    from questboard.models import Like
    return Like(user_id=row["userId"], target_type=row["targetType"],
                target_id=row["targetId"], **_timestamps(row))


def _quest_log(row):
    from questboard.models import QuestLog, QuestStatus
    return QuestLog(
        user_id=row["userId"],
        game_id=row["gameId"],
        status=QuestStatus(row.get("status", "Playing")),
        platform=row.get("platform"),
        difficulty=row.get("difficulty"),
        started_at=_ms(row.get("startedAt")),
        completed_at=_ms(row.get("completedAt")),
        hours_played=row.get("hoursPlayed"),
        notes=row.get("notes"),
        quick_rating=row.get("quickRating"),
        display_on_profile=bool(row.get("displayOnProfile", True)),
        display_order=row.get("displayOrder", 0),
        **_timestamps(row),
    )


# Import order mirrors the dependency order of the export
IMPORTERS = (
    ("users",        _user),
    ("games",        _game),
    ("follows",      _follow),
    ("posts",        _post),
    ("postImages",   _post_image),
    ("articles",     _article),
    ("articleGames", _article_game),
    ("reviews",      _review),
    ("comments",     _comment),
    ("likes",        _like),
    ("questLogs",    _quest_log),
)


def import_export_dir(path: str) -> dict:
    """Insert every known ``<table>.jsonl`` under ``path``. Returns row counts."""
    counts = {}
    for table, build in IMPORTERS:
        file_path = os.path.join(path, f"{table}.jsonl")
        if not os.path.exists(file_path):
            continue
        imported = 0
        with open(file_path, encoding="utf-8") as fh:
            for lineno, line in enumerate(fh, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    obj = build(json.loads(line))
                except (ValueError, KeyError, TypeError) as exc:
                    log.warning("Skipping %s line %d: %s", table, lineno, exc)
                    continue
                try:
                    with db.session.begin_nested():
                        db.session.add(obj)
                except SQLAlchemyError as exc:
                    log.warning("Skipping %s line %d: %s", table, lineno, exc)
                    continue
                imported += 1
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            log.exception("Import of %s failed; table skipped", table)
            imported = 0
        counts[table] = imported
        log.info("Imported %d %s", imported, table)
    return counts


# ── Reference resolution ──────────────────────────────────────────────────────

def _legacy_map(model) -> dict:
    return {
        legacy_id: native_id
        for native_id, legacy_id in db.session.query(model.id, model.legacy_id)
        .filter(model.legacy_id.isnot(None))
        .all()
    }


def _patch(row, field: str, mapping: dict) -> bool:
    """Replace ``row.field`` with its native id when the legacy id is known."""
    current = getattr(row, field)
    if current is None:
        return False
    native = mapping.get(current)
    if native is None or native == current:
        return False
    setattr(row, field, native)
    return True


def _run_table(name: str, rows, resolve_row) -> int:
    resolved = 0
    for row in rows:
        row_id = row.id
        try:
            with db.session.begin_nested():
                patched = resolve_row(row)
        except IntegrityError as exc:
            log.warning("Skipping %s row %s: %s", name, row_id, exc.orig)
            continue
        if patched:
            resolved += 1
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        log.exception("Resolving %s failed; rows left unresolved", name)
        return 0
    log.info("Resolved %d %s", resolved, name)
    return resolved


def resolve_all_references() -> dict:
    """Rewrite legacy reference ids to native ids across every table.

    Returns ``{table: rows_patched}``.
    """
    from questboard.models import (
        Article, ArticleGame, CollectionEntry, Comment, Follow, Game, Like,
        Post, PostImage, QuestLog, Report, Review, User,
    )

    users = _legacy_map(User)
    games = _legacy_map(Game)
    posts = _legacy_map(Post)
    articles = _legacy_map(Article)
    reviews = _legacy_map(Review)
    comments = _legacy_map(Comment)
    log.info(
        "Maps built: %d users, %d games, %d posts, %d articles, %d reviews, %d comments",
        len(users), len(games), len(posts), len(articles), len(reviews), len(comments),
    )
    by_kind = {"post": posts, "article": articles, "review": reviews, "comment": comments}

    def follow(f):
        # both ends or nothing, a half-resolved edge is worse than none
        if f.follower_id in users and f.following_id in users:
            f.follower_id = users[f.follower_id]
            f.following_id = users[f.following_id]
            return True
        return False

    def article_game(ag):
        if ag.article_id in articles and ag.game_id in games:
            ag.article_id = articles[ag.article_id]
            ag.game_id = games[ag.game_id]
            return True
        return False

    def authored(row):
        return _patch(row, "author_id", users)

    def review(r):
        a = _patch(r, "author_id", users)
        g = _patch(r, "game_id", games)
        return a or g

    def comment(c):
        a = _patch(c, "author_id", users)
        t = _patch(c, "target_id", by_kind.get(c.target_type, {}))
        p = _patch(c, "parent_id", comments)
        return a or t or p

    def like(lk):
        u = _patch(lk, "user_id", users)
        t = _patch(lk, "target_id", by_kind.get(lk.target_type, {}))
        return u or t

    def user_game(row):
        u = _patch(row, "user_id", users)
        g = _patch(row, "game_id", games)
        return u or g

    def report(r):
        u = _patch(r, "reporter_id", users)
        t = _patch(r, "target_id", by_kind.get(r.target_type, {}))
        return u or t

    plan = (
        ("follows",            Follow,          follow),
        ("posts",              Post,            authored),
        ("post_images",        PostImage,       lambda img: _patch(img, "post_id", posts)),
        ("articles",           Article,         authored),
        ("article_games",      ArticleGame,     article_game),
        ("reviews",            Review,          review),
        ("comments",           Comment,         comment),
        ("likes",              Like,            like),
        ("quest_logs",         QuestLog,        user_game),
        ("collection_entries", CollectionEntry, user_game),
        ("reports",            Report,          report),
    )

    counts = {}
    for name, model, resolve_row in plan:
        counts[name] = _run_table(name, model.query.all(), resolve_row)
    log.info("Reference resolution complete")
    return counts
