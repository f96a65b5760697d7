"""
Short-form posts.

Content is capped at 280 characters and up to four images may be attached.
Every edit snapshots the previous text into post_versions first. Deleting a
post removes its history, images, likes and whole comment thread in one
transaction, then asks file storage to drop the images.
"""
import logging
from typing import Optional

from questboard.extensions import db
from questboard.models import Post, PostImage, PostVersion, User
from questboard.models.post import MAX_POST_IMAGES, MAX_POST_LENGTH
from questboard.utils.comment_service import purge_target_engagement
from questboard.utils.errors import NotFoundError, ValidationError
from questboard.utils.feed_service import enrich, paginate, serialize_items
from questboard.utils.targets import Target, TargetType, require_owner
from questboard.utils.uploads import delete_files

log = logging.getLogger(__name__)


def _clean_content(content: str) -> str:
    content = (content or "").strip()[:MAX_POST_LENGTH]
    if not content:
        raise ValidationError("Post cannot be empty")
    return content


def create_post(author: User, content: str, images: list = None) -> Post:
    post = Post(author_id=author.id, content=_clean_content(content))
    db.session.add(post)
    db.session.flush()

    for position, img in enumerate((images or [])[:MAX_POST_IMAGES]):
        if not isinstance(img, dict) or not img.get("url"):
            continue
        db.session.add(PostImage(
            post_id=post.id,
            url=img["url"],
            file_key=img.get("file_key") or img.get("fileKey"),
            caption=(img.get("caption") or None),
            position=position,
        ))
    db.session.commit()
    log.info("Post %s created by %s", post.id, author.username)
    return post


def _get(post_id: str) -> Post:
    post = db.session.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return post


def update_post(post_id: str, user: User, content: str) -> Post:
    post = _get(post_id)
    require_owner(post, user, admin_override=True)
    new_content = _clean_content(content)

    db.session.add(PostVersion(post_id=post.id, content=post.content))
    post.content = new_content
    post.edit_count = (post.edit_count or 0) + 1
    db.session.commit()
    return post


def delete_post(post_id: str, user: User) -> dict:
    post = _get(post_id)
    require_owner(post, user, admin_override=True)
    image_urls = [img.url for img in post.images]

    PostVersion.query.filter_by(post_id=post.id).delete(synchronize_session=False)
    PostImage.query.filter_by(post_id=post.id).delete(synchronize_session=False)
    purge_target_engagement(Target(TargetType.POST, post.id))
    db.session.delete(post)
    db.session.commit()

    if image_urls:
        delete_files(image_urls)
    return {"success": True}


def get_post(post_id: str, viewer_id: Optional[str] = None) -> dict:
    items = serialize_items(enrich([_get(post_id)], [], [], viewer_id))
    if not items:
        raise NotFoundError("Post not found")
    return items[0]


def posts_by_user(username: str, viewer_id: Optional[str] = None,
                  cursor: Optional[str] = None, limit: int = 20) -> dict:
    user = User.query.filter_by(username=username).first()
    if user is None:
        raise NotFoundError("User not found")
    posts = (Post.query
             .filter_by(author_id=user.id)
             .order_by(Post.created_at.desc(), Post.id.desc())
             .all())
    page, next_cursor = paginate(posts, cursor, limit, key=lambda p: p.id)
    items = serialize_items(enrich(page, [], [], viewer_id))
    return {"posts": items, "next_cursor": next_cursor}


def post_history(post_id: str) -> dict:
    post = _get(post_id)
    return {
        "current":  {"content": post.content, "edited_at": post.updated_at.isoformat()},
        "versions": [v.to_dict() for v in post.versions],
    }
