"""
Tests for batch engagement loading: like counts, has_liked, comment counts
and top-comment selection.
"""
from datetime import timedelta

from questboard.extensions import db
from questboard.models import Like
from questboard.models._base import utcnow
from questboard.utils.engagement import load_engagement, pick_top_comment
from questboard.utils.targets import Target, TargetType


def _post_target(post):
    return Target(TargetType.POST, post.id)


class TestCounts:

    def test_empty_batch(self, app):
        assert load_engagement([]) == {}

    def test_target_without_activity(self, make_user, make_post):
        post = make_post(make_user())
        eng = load_engagement([_post_target(post)])[f"post-{post.id}"]
        assert eng.like_count == 0
        assert eng.comment_count == 0
        assert eng.has_liked is False
        assert eng.top_comment is None

    def test_like_counts_and_has_liked(self, make_user, make_post, add_likes):
        viewer = make_user()
        a = make_post(make_user())
        b = make_post(make_user())
        add_likes("post", a.id, 3)
        db.session.add(Like(user_id=viewer.id, target_type="post", target_id=b.id))
        db.session.commit()

        result = load_engagement([_post_target(a), _post_target(b)], viewer.id)
        assert result[f"post-{a.id}"].like_count == 3
        assert result[f"post-{a.id}"].has_liked is False
        assert result[f"post-{b.id}"].like_count == 1
        assert result[f"post-{b.id}"].has_liked is True

    def test_anonymous_viewer_never_has_liked(self, make_user, make_post, add_likes):
        post = make_post(make_user())
        add_likes("post", post.id, 2)
        assert load_engagement([_post_target(post)], None)[f"post-{post.id}"].has_liked is False

    def test_same_id_different_kind_not_mixed(self, make_user, make_post, add_likes):
        post = make_post(make_user())
        add_likes("article", post.id, 2)
        assert load_engagement([_post_target(post)])[f"post-{post.id}"].like_count == 0

    def test_comment_count_includes_replies(self, make_user, make_post, make_comment):
        post = make_post(make_user())
        root = make_comment(make_user(), "post", post.id)
        make_comment(make_user(), "post", post.id, parent=root)
        assert load_engagement([_post_target(post)])[f"post-{post.id}"].comment_count == 2

    def test_comment_count_skips_soft_deleted(self, make_user, make_post, make_comment):
        post = make_post(make_user())
        root = make_comment(make_user(), "post", post.id)
        make_comment(make_user(), "post", post.id, parent=root)
        root.deleted = True
        root.content = ""
        db.session.commit()
        assert load_engagement([_post_target(post)])[f"post-{post.id}"].comment_count == 1


class TestTopComment:

    def test_most_liked_wins(self, make_user, make_post, make_comment, add_likes):
        post = make_post(make_user())
        popular = make_comment(make_user(), "post", post.id, content="popular",
                               created_at=utcnow() - timedelta(hours=2))
        make_comment(make_user(), "post", post.id, content="recent")
        add_likes("comment", popular.id, 2)

        top = load_engagement([_post_target(post)])[f"post-{post.id}"].top_comment
        assert top["id"] == popular.id
        assert top["like_count"] == 2
        assert top["author"]["username"]

    def test_tie_goes_to_newest(self, make_user, make_post, make_comment):
        post = make_post(make_user())
        make_comment(make_user(), "post", post.id, content="old",
                     created_at=utcnow() - timedelta(hours=1))
        newer = make_comment(make_user(), "post", post.id, content="new")

        top = load_engagement([_post_target(post)])[f"post-{post.id}"].top_comment
        assert top["id"] == newer.id

    def test_replies_never_chosen(self, make_user, make_post, make_comment, add_likes):
        post = make_post(make_user())
        root = make_comment(make_user(), "post", post.id, created_at=utcnow() - timedelta(hours=1))
        reply = make_comment(make_user(), "post", post.id, parent=root)
        add_likes("comment", reply.id, 5)

        top = load_engagement([_post_target(post)])[f"post-{post.id}"].top_comment
        assert top["id"] == root.id

    def test_soft_deleted_comment_skipped(self, make_user, make_post, make_comment, add_likes):
        post = make_post(make_user())
        blanked = make_comment(make_user(), "post", post.id)
        blanked.deleted = True
        db.session.commit()
        add_likes("comment", blanked.id, 4)
        survivor = make_comment(make_user(), "post", post.id, created_at=utcnow() - timedelta(days=1))

        top = load_engagement([_post_target(post)])[f"post-{post.id}"].top_comment
        assert top["id"] == survivor.id

    def test_viewer_liked_top_comment(self, make_user, make_post, make_comment):
        viewer = make_user()
        post = make_post(make_user())
        c = make_comment(make_user(), "post", post.id)
        db.session.add(Like(user_id=viewer.id, target_type="comment", target_id=c.id))
        db.session.commit()

        top = load_engagement([_post_target(post)], viewer.id)[f"post-{post.id}"].top_comment
        assert top["has_liked"] is True

    def test_pick_top_comment_empty(self):
        assert pick_top_comment([], {}) is None
