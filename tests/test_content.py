"""
Tests for posts, articles and reviews: validation, edit history, ownership
and cascading deletes.
"""
from unittest.mock import patch

import pytest

from questboard.extensions import db
from questboard.models import (
    ArticleGame, ArticleVersion, Comment, Like, Notification, Post, PostImage,
    PostVersion, Review, ReviewVersion,
)
from questboard.utils import article_service, post_service, review_service
from questboard.utils.errors import NotFoundError, UnauthorizedError, ValidationError


# ── Posts ─────────────────────────────────────────────────────────────────────

class TestPosts:

    def test_create_with_images(self, make_user):
        author = make_user()
        images = [{"url": f"https://cdn.example/f/k{i}"} for i in range(6)]
        post = post_service.create_post(author, "  first run!  ", images=images)
        assert post.content == "first run!"
        assert PostImage.query.filter_by(post_id=post.id).count() == 4

    def test_content_truncated_to_280(self, make_user):
        post = post_service.create_post(make_user(), "a" * 400)
        assert len(post.content) == 280

    def test_empty_rejected(self, make_user):
        with pytest.raises(ValidationError):
            post_service.create_post(make_user(), "   ")

    def test_update_snapshots_previous_text(self, make_user):
        author = make_user()
        post = post_service.create_post(author, "v1")
        post_service.update_post(post.id, author, "v2")
        post_service.update_post(post.id, author, "v3")

        assert post.content == "v3"
        assert post.edit_count == 2
        versions = PostVersion.query.filter_by(post_id=post.id).all()
        assert sorted(v.content for v in versions) == ["v1", "v2"]

    def test_stranger_cannot_edit(self, make_user):
        post = post_service.create_post(make_user(), "mine")
        with pytest.raises(UnauthorizedError):
            post_service.update_post(post.id, make_user(), "hijacked")

    def test_admin_can_edit_and_delete(self, make_user):
        post = post_service.create_post(make_user(), "oops")
        admin = make_user(is_admin=True)
        post_service.update_post(post.id, admin, "moderated")
        assert post_service.delete_post(post.id, admin) == {"success": True}

    def test_delete_leaves_no_orphans(self, make_user, make_comment, add_likes):
        author = make_user()
        post = post_service.create_post(author, "bye", images=[{"url": "https://cdn.example/f/abc"}])
        post_service.update_post(post.id, author, "bye!")
        root = make_comment(make_user(), "post", post.id)
        reply = make_comment(make_user(), "post", post.id, parent=root)
        add_likes("post", post.id, 2)
        add_likes("comment", root.id, 1)
        add_likes("comment", reply.id, 1)
        post_id = post.id

        with patch("questboard.utils.post_service.delete_files") as delete_files:
            post_service.delete_post(post_id, author)
        delete_files.assert_called_once_with(["https://cdn.example/f/abc"])

        assert db.session.get(Post, post_id) is None
        assert PostVersion.query.filter_by(post_id=post_id).count() == 0
        assert PostImage.query.filter_by(post_id=post_id).count() == 0
        assert Comment.query.count() == 0
        assert Like.query.count() == 0

    def test_get_missing(self, app):
        with pytest.raises(NotFoundError):
            post_service.get_post("missing")

    def test_posts_by_user(self, make_user):
        author = make_user(username="poster")
        for i in range(3):
            post_service.create_post(author, f"post {i}")
        result = post_service.posts_by_user("poster", limit=2)
        assert len(result["posts"]) == 2
        assert result["next_cursor"] is not None


# ── Articles ──────────────────────────────────────────────────────────────────

class TestArticles:

    def test_create_links_games(self, make_user, make_game):
        game = make_game()
        article = article_service.create_article(
            make_user(), "Guide", "Body", game_ids=[game.id], tags=["tips", "tips", " "],
        )
        assert article.published is False
        assert article.tags == ["tips"]
        assert ArticleGame.query.filter_by(article_id=article.id).count() == 1

    def test_unknown_game_rejected(self, make_user):
        with pytest.raises(NotFoundError, match="Game not found"):
            article_service.create_article(make_user(), "Guide", "Body", game_ids=["nope"])

    def test_title_required(self, make_user):
        with pytest.raises(ValidationError):
            article_service.create_article(make_user(), "  ", "Body")

    def test_update_snapshots(self, make_user):
        author = make_user()
        article = article_service.create_article(author, "Draft", "v1")
        article_service.update_article(article.id, author, title="Final", content="v2")

        assert article.title == "Final"
        assert article.edit_count == 1
        version = ArticleVersion.query.filter_by(article_id=article.id).one()
        assert (version.title, version.content) == ("Draft", "v1")

    def test_autosave_skips_history(self, make_user):
        author = make_user()
        article = article_service.create_article(author, "Draft", "v1")
        article_service.update_article(article.id, author, save_history=False, content="v1.1")
        assert article.content == "v1.1"
        assert article.edit_count == 0
        assert ArticleVersion.query.filter_by(article_id=article.id).count() == 0

    def test_mentions_notified_once_published(self, make_user):
        author, friend, other = make_user(), make_user(), make_user()
        article = article_service.create_article(author, "T", "C", mentions=[friend.id])
        assert Notification.query.count() == 0

        article_service.update_article(article.id, author, published=True)
        article_service.update_article(article.id, author, mentions=[friend.id, other.id])
        notified = sorted(n.user_id for n in Notification.query.filter_by(type="mention_article"))
        assert notified == sorted([friend.id, other.id])

        article_service.update_article(article.id, author, content="typo fix")
        assert Notification.query.filter_by(type="mention_article").count() == 2

    def test_unpublished_hidden_from_others(self, make_user):
        author = make_user()
        article = article_service.create_article(author, "Secret", "C")
        with pytest.raises(NotFoundError):
            article_service.get_article(article.id, make_user().id)
        assert article_service.get_article(article.id, author.id)["title"] == "Secret"

    def test_delete_cascades(self, make_user, make_game, make_comment, add_likes):
        author = make_user()
        article = article_service.create_article(author, "T", "C", game_ids=[make_game().id])
        article_service.update_article(article.id, author, content="C2")
        make_comment(make_user(), "article", article.id)
        add_likes("article", article.id, 1)
        article_id = article.id

        article_service.delete_article(article_id, author)
        assert ArticleVersion.query.count() == 0
        assert ArticleGame.query.count() == 0
        assert Comment.query.filter_by(target_id=article_id).count() == 0
        assert Like.query.filter_by(target_id=article_id).count() == 0

    def test_history_newest_first(self, make_user):
        author = make_user()
        article = article_service.create_article(author, "T", "one", published=True)
        article_service.update_article(article.id, author, content="two")
        article_service.update_article(article.id, author, content="three")
        history = article_service.article_history(article.id)
        assert history["current"]["content"] == "three"
        assert [v["content"] for v in history["versions"]] == ["two", "one"]


# ── Reviews ───────────────────────────────────────────────────────────────────

class TestReviews:

    @pytest.mark.parametrize("rating", [0, 6, "x", None])
    def test_rating_bounds(self, make_user, make_game, rating):
        with pytest.raises(ValidationError, match="between 1 and 5"):
            review_service.create_review(make_user(), make_game().id, "T", "C", rating)

    def test_game_must_exist(self, make_user):
        with pytest.raises(NotFoundError):
            review_service.create_review(make_user(), "nope", "T", "C", 4)

    def test_every_edit_snapshots(self, make_user, make_game):
        author = make_user()
        review = review_service.create_review(author, make_game().id, "T", "C", 3)
        review_service.update_review(review.id, author, rating=5)
        review_service.update_review(review.id, author, title="T2")

        assert review.rating == 5
        assert review.edit_count == 2
        ratings = sorted(v.rating for v in ReviewVersion.query.filter_by(review_id=review.id))
        assert ratings == [3, 5]

    def test_owner_only_even_for_admins(self, make_user, make_game):
        review = review_service.create_review(make_user(), make_game().id, "T", "C", 3)
        admin = make_user(is_admin=True)
        with pytest.raises(UnauthorizedError):
            review_service.update_review(review.id, admin, rating=1)
        with pytest.raises(UnauthorizedError):
            review_service.delete_review(review.id, admin)

    def test_delete_cascades(self, make_user, make_game, make_comment, add_likes):
        author = make_user()
        review = review_service.create_review(author, make_game().id, "T", "C", 4, published=True)
        review_service.update_review(review.id, author, content="C2")
        make_comment(make_user(), "review", review.id)
        add_likes("review", review.id, 2)
        review_id = review.id

        review_service.delete_review(review_id, author)
        assert db.session.get(Review, review_id) is None
        assert ReviewVersion.query.count() == 0
        assert Comment.query.count() == 0
        assert Like.query.filter_by(target_type="review").count() == 0

    def test_reviews_by_game_only_published(self, make_user, make_game):
        game = make_game()
        shown = review_service.create_review(make_user(), game.id, "A", "C", 4, published=True)
        review_service.create_review(make_user(), game.id, "B", "C", 2)
        result = review_service.reviews_by_game(game.id)
        assert [r["id"] for r in result["reviews"]] == [shown.id]
