"""Long-form articles, their game links and edit history."""
from questboard.extensions import db
from questboard.models._base import new_id, utcnow


class Article(db.Model):
    __tablename__ = "articles"

    id                = db.Column(db.String(32),  primary_key=True, default=new_id)
    author_id         = db.Column(db.String(64),  nullable=False, index=True)
    title             = db.Column(db.String(200), nullable=False)
    content           = db.Column(db.Text,        nullable=False)
    content_json      = db.Column(db.Text,        nullable=True)   # editor document
    excerpt           = db.Column(db.String(500), nullable=True)
    cover_image_url   = db.Column(db.String(500), nullable=True)
    cover_file_key    = db.Column(db.String(200), nullable=True)
    contains_spoilers = db.Column(db.Boolean, default=False, nullable=False)
    published         = db.Column(db.Boolean, default=False, nullable=False, index=True)
    tags              = db.Column(db.JSON, default=list, nullable=False)
    genres            = db.Column(db.JSON, default=list, nullable=False)
    mentions          = db.Column(db.JSON, default=list, nullable=False)   # mentioned user ids
    edit_count        = db.Column(db.Integer, default=0, nullable=False)
    legacy_id         = db.Column(db.String(64), nullable=True, index=True)
    created_at        = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at        = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    game_links = db.relationship(
        "ArticleGame",
        primaryjoin="foreign(ArticleGame.article_id) == Article.id",
        viewonly=True,
    )

    @property
    def game_ids(self) -> list:
        return [link.game_id for link in self.game_links]


class ArticleGame(db.Model):
    """Article ↔ Game junction."""
    __tablename__ = "article_games"
    __table_args__ = (db.UniqueConstraint("article_id", "game_id", name="uq_article_game"),)

    id         = db.Column(db.String(32), primary_key=True, default=new_id)
    article_id = db.Column(db.String(64), nullable=False, index=True)
    game_id    = db.Column(db.String(64), nullable=False, index=True)


class ArticleVersion(db.Model):
    __tablename__ = "article_versions"

    id                = db.Column(db.String(32),  primary_key=True, default=new_id)
    article_id        = db.Column(db.String(64),  nullable=False, index=True)
    title             = db.Column(db.String(200), nullable=False)
    content           = db.Column(db.Text,        nullable=False)
    content_json      = db.Column(db.Text,        nullable=True)
    excerpt           = db.Column(db.String(500), nullable=True)
    cover_image_url   = db.Column(db.String(500), nullable=True)
    contains_spoilers = db.Column(db.Boolean, default=False, nullable=False)
    edited_at         = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "title":             self.title,
            "content":           self.content,
            "excerpt":           self.excerpt,
            "cover_image_url":   self.cover_image_url,
            "contains_spoilers": self.contains_spoilers,
            "edited_at":         self.edited_at.isoformat(),
        }
