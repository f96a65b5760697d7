"""
Long-form articles.

Articles start unpublished unless the author says otherwise. Updates snapshot
the previous state into article_versions unless the caller is an autosave
(``save_history=False``). Mentioned users are notified once the article is
published, and only for mentions they have not been notified about yet.
"""
import logging
from typing import Optional

from questboard.extensions import db
from questboard.models import Article, ArticleGame, ArticleVersion, Game, User
from questboard.utils.comment_service import purge_target_engagement
from questboard.utils.errors import NotFoundError, UnauthorizedError, ValidationError
from questboard.utils.feed_service import enrich, paginate, serialize_items
from questboard.utils.helpers import create_notification, string_list
from questboard.utils.targets import Target, TargetType, require_owner
from questboard.utils.uploads import delete_files

log = logging.getLogger(__name__)

MAX_TAGS   = 10
MAX_GAMES  = 10

# Fields a caller may change on update, besides the list-valued ones.
_EDITABLE = ("title", "content", "content_json", "excerpt",
             "cover_image_url", "cover_file_key", "contains_spoilers", "published")


def _clean_title(title: str) -> str:
    title = (title or "").strip()[:200]
    if not title:
        raise ValidationError("Title is required")
    return title


def _existing_game_ids(game_ids) -> list:
    ids = string_list(game_ids, max_items=MAX_GAMES)
    if not ids:
        return []
    found = {g.id for g in Game.query.filter(Game.id.in_(ids)).all()}
    missing = [i for i in ids if i not in found]
    if missing:
        raise NotFoundError(f"Game not found: {missing[0]}")
    return ids


def _replace_links(article: Article, game_ids: list) -> None:
    ArticleGame.query.filter_by(article_id=article.id).delete(synchronize_session=False)
    for game_id in game_ids:
        db.session.add(ArticleGame(article_id=article.id, game_id=game_id))


def _notify_mentions(article: Article, actor: User, user_ids) -> None:
    for user_id in user_ids:
        create_notification(user_id, actor.id, "mention_article", article.id)


def create_article(author: User, title: str, content: str, game_ids=None, tags=None,
                   genres=None, mentions=None, published: bool = False, **fields) -> Article:
    if not (content or "").strip():
        raise ValidationError("Content is required")
    game_ids = _existing_game_ids(game_ids)

    article = Article(
        author_id=author.id,
        title=_clean_title(title),
        content=content,
        content_json=fields.get("content_json"),
        excerpt=(fields.get("excerpt") or None),
        cover_image_url=fields.get("cover_image_url"),
        cover_file_key=fields.get("cover_file_key"),
        contains_spoilers=bool(fields.get("contains_spoilers")),
        published=bool(published),
        tags=string_list(tags, max_items=MAX_TAGS),
        genres=string_list(genres),
        mentions=string_list(mentions),
    )
    db.session.add(article)
    db.session.flush()
    _replace_links(article, game_ids)

    if article.published:
        _notify_mentions(article, author, article.mentions)
    db.session.commit()
    log.info("Article %s created by %s (published=%s)", article.id, author.username, article.published)
    return article


def _get(article_id: str) -> Article:
    article = db.session.get(Article, article_id)
    if article is None:
        raise NotFoundError("Article not found")
    return article


def update_article(article_id: str, user: User, save_history: bool = True,
                   game_ids=None, tags=None, genres=None, mentions=None, **fields) -> Article:
    article = _get(article_id)
    require_owner(article, user, admin_override=True)
    was_published = article.published
    previous = set(article.mentions or [])

    if save_history:
        db.session.add(ArticleVersion(
            article_id=article.id,
            title=article.title,
            content=article.content,
            content_json=article.content_json,
            excerpt=article.excerpt,
            cover_image_url=article.cover_image_url,
            contains_spoilers=article.contains_spoilers,
        ))
        article.edit_count = (article.edit_count or 0) + 1

    for name in _EDITABLE:
        if fields.get(name) is None:
            continue
        value = fields[name]
        if name == "title":
            value = _clean_title(value)
        elif name in ("contains_spoilers", "published"):
            value = bool(value)
        setattr(article, name, value)

    if tags is not None:
        article.tags = string_list(tags, max_items=MAX_TAGS)
    if genres is not None:
        article.genres = string_list(genres)
    if game_ids is not None:
        _replace_links(article, _existing_game_ids(game_ids))

    if mentions is not None:
        article.mentions = string_list(mentions)
    if article.published:
        already = previous if was_published else set()
        _notify_mentions(article, user, [m for m in article.mentions or [] if m not in already])

    db.session.commit()
    return article


def delete_article(article_id: str, user: User) -> dict:
    article = _get(article_id)
    require_owner(article, user, admin_override=True)
    cover = article.cover_image_url

    ArticleVersion.query.filter_by(article_id=article.id).delete(synchronize_session=False)
    ArticleGame.query.filter_by(article_id=article.id).delete(synchronize_session=False)
    purge_target_engagement(Target(TargetType.ARTICLE, article.id))
    db.session.delete(article)
    db.session.commit()

    if cover:
        delete_files([cover])
    return {"success": True}


# ── Reads ─────────────────────────────────────────────────────────────────────

def _can_view(article: Article, viewer_id: Optional[str]) -> bool:
    return article.published or (viewer_id is not None and article.author_id == viewer_id)


def get_article(article_id: str, viewer_id: Optional[str] = None) -> dict:
    article = _get(article_id)
    if not _can_view(article, viewer_id):
        raise NotFoundError("Article not found")
    items = serialize_items(enrich([], [article], [], viewer_id))
    if not items:
        raise NotFoundError("Article not found")
    item = items[0]
    item.update({
        "content_json": article.content_json,
        "published":    article.published,
        "edit_count":   article.edit_count,
        "updated_at":   article.updated_at.isoformat(),
    })
    return item


def articles_by_user(username: str, viewer_id: Optional[str] = None,
                     cursor: Optional[str] = None, limit: int = 20) -> dict:
    user = User.query.filter_by(username=username).first()
    if user is None:
        raise NotFoundError("User not found")
    q = Article.query.filter_by(author_id=user.id)
    if viewer_id != user.id:
        q = q.filter(Article.published.is_(True))
    articles = q.order_by(Article.created_at.desc(), Article.id.desc()).all()
    page, next_cursor = paginate(articles, cursor, limit, key=lambda a: a.id)
    return {"articles": serialize_items(enrich([], page, [], viewer_id)), "next_cursor": next_cursor}


def articles_by_game(game_id: str, viewer_id: Optional[str] = None,
                     cursor: Optional[str] = None, limit: int = 20) -> dict:
    article_ids = [link.article_id for link in ArticleGame.query.filter_by(game_id=game_id).all()]
    if not article_ids:
        return {"articles": [], "next_cursor": None}
    articles = (Article.query
                .filter(Article.id.in_(article_ids), Article.published.is_(True))
                .order_by(Article.created_at.desc(), Article.id.desc())
                .all())
    page, next_cursor = paginate(articles, cursor, limit, key=lambda a: a.id)
    return {"articles": serialize_items(enrich([], page, [], viewer_id)), "next_cursor": next_cursor}


def article_history(article_id: str, viewer_id: Optional[str] = None) -> dict:
    article = _get(article_id)
    if not _can_view(article, viewer_id):
        raise UnauthorizedError("Not authorized")
    versions = (ArticleVersion.query
                .filter_by(article_id=article.id)
                .order_by(ArticleVersion.edited_at.desc())
                .all())
    return {
        "current": {
            "title":             article.title,
            "content":           article.content,
            "excerpt":           article.excerpt,
            "cover_image_url":   article.cover_image_url,
            "contains_spoilers": article.contains_spoilers,
            "edited_at":         article.updated_at.isoformat(),
        },
        "versions": [v.to_dict() for v in versions],
    }
