"""Short-form posts with attached images and an append-only edit history."""
from questboard.extensions import db
from questboard.models._base import new_id, utcnow

MAX_POST_LENGTH = 280
MAX_POST_IMAGES = 4


class Post(db.Model):
    __tablename__ = "posts"

    id         = db.Column(db.String(32), primary_key=True, default=new_id)
    author_id  = db.Column(db.String(64), nullable=False, index=True)
    content    = db.Column(db.String(MAX_POST_LENGTH), nullable=False)
    edit_count = db.Column(db.Integer, default=0, nullable=False)
    legacy_id  = db.Column(db.String(64), nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    images   = db.relationship(
        "PostImage",
        primaryjoin="foreign(PostImage.post_id) == Post.id",
        order_by="PostImage.position",
        viewonly=True,
    )
    versions = db.relationship(
        "PostVersion",
        primaryjoin="foreign(PostVersion.post_id) == Post.id",
        order_by="PostVersion.edited_at.desc()",
        viewonly=True,
    )


class PostImage(db.Model):
    __tablename__ = "post_images"

    id       = db.Column(db.String(32),  primary_key=True, default=new_id)
    post_id  = db.Column(db.String(64),  nullable=False, index=True)
    url      = db.Column(db.String(500), nullable=False)
    file_key = db.Column(db.String(200), nullable=True)
    caption  = db.Column(db.String(280), nullable=True)
    position = db.Column(db.Integer, default=0, nullable=False)

    def to_dict(self) -> dict:
        return {"url": self.url, "caption": self.caption}


class PostVersion(db.Model):
    """Immutable snapshot of a post's content taken right before an edit."""
    __tablename__ = "post_versions"

    id        = db.Column(db.String(32), primary_key=True, default=new_id)
    post_id   = db.Column(db.String(64), nullable=False, index=True)
    content   = db.Column(db.String(MAX_POST_LENGTH), nullable=False)
    edited_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {"content": self.content, "edited_at": self.edited_at.isoformat()}
