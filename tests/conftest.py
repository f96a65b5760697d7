"""
Pytest configuration and fixtures for Questboard tests.

Every test gets a fresh in-memory SQLite database inside an app context.
Requests authenticate the same way production does: the identity header
carries the user's external id.
"""
from itertools import count

import pytest
from flask import g
from flask.testing import FlaskClient

from questboard import create_app
from questboard.extensions import db
from questboard.models import Article, ArticleGame, Comment, Game, Like, Post, Review, User
from questboard.models._base import utcnow


class ApiClient(FlaskClient):
    """Test client that forgets the previous request's user.

    Requests share the fixture's app context, so flask_login's cached
    ``g._login_user`` would otherwise leak from one request into the next.
    """

    def open(self, *args, **kwargs):
        g.pop("_login_user", None)
        return super().open(*args, **kwargs)


@pytest.fixture
def app():
    flask_app = create_app("testing")
    flask_app.test_client_class = ApiClient

    with flask_app.app_context():
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


# ── Factories ────────────────────────────────────────────────────────────────

_seq = count(1)


@pytest.fixture
def make_user(app):
    def _make(username=None, is_admin=False, **kwargs):
        n = next(_seq)
        user = User(
            username=username or f"player{n}",
            external_id=kwargs.pop("external_id", f"ext-{n}"),
            email=kwargs.pop("email", f"player{n}@example.com"),
            is_admin=is_admin,
            **kwargs,
        )
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        return {app.config["IDENTITY_HEADER"]: user.external_id}
    return _headers


@pytest.fixture
def make_game(app):
    def _make(name=None, **kwargs):
        n = next(_seq)
        game = Game(
            name=name or f"Game {n}",
            slug=kwargs.pop("slug", f"game-{n}"),
            igdb_id=kwargs.pop("igdb_id", 1000 + n),
            genres=kwargs.pop("genres", ["RPG"]),
            platforms=kwargs.pop("platforms", ["PC"]),
            **kwargs,
        )
        db.session.add(game)
        db.session.commit()
        return game
    return _make


@pytest.fixture
def make_post(app):
    def _make(author, content="gg", created_at=None):
        post = Post(author_id=author.id, content=content, created_at=created_at or utcnow())
        db.session.add(post)
        db.session.commit()
        return post
    return _make


@pytest.fixture
def make_article(app):
    def _make(author, title="Guide", content="Body", published=True, created_at=None, games=()):
        article = Article(
            author_id=author.id, title=title, content=content,
            published=published, created_at=created_at or utcnow(),
        )
        db.session.add(article)
        db.session.flush()
        for game in games:
            db.session.add(ArticleGame(article_id=article.id, game_id=game.id))
        db.session.commit()
        return article
    return _make


@pytest.fixture
def make_review(app):
    def _make(author, game, rating=4, published=True, created_at=None, title="Review"):
        review = Review(
            author_id=author.id, game_id=game.id, title=title, content="Thoughts",
            rating=rating, published=published, created_at=created_at or utcnow(),
        )
        db.session.add(review)
        db.session.commit()
        return review
    return _make


@pytest.fixture
def make_comment(app):
    def _make(author, kind, target_id, content="nice", parent=None, created_at=None):
        comment = Comment(
            author_id=author.id, target_type=kind, target_id=target_id,
            parent_id=parent.id if parent else None, content=content,
            created_at=created_at or utcnow(),
        )
        db.session.add(comment)
        db.session.commit()
        return comment
    return _make


@pytest.fixture
def add_likes(app, make_user):
    """Give a target ``n`` likes from fresh users."""
    def _add(kind, target_id, n):
        for _ in range(n):
            liker = make_user()
            db.session.add(Like(user_id=liker.id, target_type=kind, target_id=target_id))
        db.session.commit()
    return _add
