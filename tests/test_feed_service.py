"""
Tests for the feed composer: merging, ordering, cursor pagination and the
per-feed filters.
"""
from datetime import timedelta

from questboard.extensions import db
from questboard.models import Follow
from questboard.models._base import utcnow
from questboard.utils.feed_service import (
    FEEDS, discover_feed, following_feed, paginate, popular_feed, reviews_feed,
)


def _ago(minutes):
    return utcnow() - timedelta(minutes=minutes)


def _ids(page):
    return [item["id"] for item in page.items]


# ── paginate ──────────────────────────────────────────────────────────────────

class TestPaginate:

    items = [{"key": k} for k in "abcde"]

    def test_first_page(self):
        page, cursor = paginate(self.items, None, 2)
        assert [i["key"] for i in page] == ["a", "b"]
        assert cursor == "b"

    def test_after_cursor(self):
        page, cursor = paginate(self.items, "b", 2)
        assert [i["key"] for i in page] == ["c", "d"]
        assert cursor == "d"

    def test_last_page_has_no_cursor(self):
        page, cursor = paginate(self.items, "d", 2)
        assert [i["key"] for i in page] == ["e"]
        assert cursor is None

    def test_exact_fit_has_no_cursor(self):
        page, cursor = paginate(self.items[:2], None, 2)
        assert len(page) == 2
        assert cursor is None

    def test_unknown_cursor_restarts(self):
        page, _ = paginate(self.items, "zzz", 2)
        assert [i["key"] for i in page] == ["a", "b"]

    def test_empty(self):
        assert paginate([], None, 5) == ([], None)


# ── Discover ──────────────────────────────────────────────────────────────────

class TestDiscover:

    def test_mixes_kinds_newest_first(self, make_user, make_game, make_post,
                                      make_article, make_review):
        author = make_user()
        post = make_post(author, created_at=_ago(30))
        article = make_article(author, created_at=_ago(10))
        review = make_review(author, make_game(), created_at=_ago(20))

        page = discover_feed(None)
        assert _ids(page) == [article.id, review.id, post.id]
        assert [i["type"] for i in page.items] == ["article", "review", "post"]
        assert page.next_cursor is None

    def test_paginates_without_overlap(self, make_user, make_post):
        author = make_user()
        posts = [make_post(author, content=f"p{i}", created_at=_ago(i)) for i in range(5)]

        seen, sizes, cursor = [], [], None
        while True:
            page = discover_feed(None, cursor=cursor, limit=2)
            sizes.append(len(page.items))
            seen.extend(_ids(page))
            cursor = page.next_cursor
            if cursor is None:
                break

        assert sizes == [2, 2, 1]
        assert seen == [p.id for p in posts]

    def test_cursor_is_last_item_key(self, make_user, make_post):
        author = make_user()
        make_post(author, created_at=_ago(1))
        second = make_post(author, created_at=_ago(2))
        make_post(author, created_at=_ago(3))

        assert discover_feed(None, limit=2).next_cursor == f"post-{second.id}"

    def test_unpublished_excluded(self, make_user, make_game, make_article, make_review):
        author = make_user()
        make_article(author, published=False)
        make_review(author, make_game(), published=False)
        assert discover_feed(None).items == []

    def test_items_carry_engagement(self, make_user, make_post, add_likes):
        post = make_post(make_user())
        add_likes("post", post.id, 2)
        item = discover_feed(None).items[0]
        assert item["like_count"] == 2
        assert item["comment_count"] == 0
        assert item["top_comment"] is None
        assert "key" not in item
        assert isinstance(item["created_at"], str)

    def test_article_genres_fall_back_to_games(self, make_user, make_game, make_article):
        game = make_game(genres=["Roguelike", "Action"])
        make_article(make_user(), games=[game])
        item = discover_feed(None).items[0]
        assert item["genres"] == ["Roguelike", "Action"]
        assert item["games"][0]["id"] == game.id

    def test_orphaned_author_dropped(self, make_user, make_post):
        ghost = make_user()
        make_post(ghost)
        db.session.delete(ghost)
        db.session.commit()
        assert discover_feed(None).items == []


# ── Following ─────────────────────────────────────────────────────────────────

class TestFollowing:

    def test_anonymous_gets_empty_feed(self, make_user, make_post):
        make_post(make_user())
        page = following_feed(None)
        assert page.items == []
        assert page.next_cursor is None

    def test_only_followed_authors(self, make_user, make_post):
        viewer, friend, stranger = make_user(), make_user(), make_user()
        db.session.add(Follow(follower_id=viewer.id, following_id=friend.id))
        db.session.commit()
        mine = make_post(friend)
        make_post(stranger)

        assert _ids(following_feed(viewer.id)) == [mine.id]

    def test_following_nobody(self, make_user, make_post):
        make_post(make_user())
        assert following_feed(make_user().id).items == []


# ── Popular ───────────────────────────────────────────────────────────────────

class TestPopular:

    def test_ranked_by_likes(self, make_user, make_post, add_likes):
        author = make_user()
        low = make_post(author, created_at=_ago(5))
        high = make_post(author, created_at=_ago(10))
        add_likes("post", high.id, 3)
        add_likes("post", low.id, 1)

        assert _ids(popular_feed(None)) == [high.id, low.id]

    def test_tie_goes_to_newest(self, make_user, make_post):
        author = make_user()
        old = make_post(author, created_at=_ago(60))
        new = make_post(author, created_at=_ago(5))
        assert _ids(popular_feed(None)) == [new.id, old.id]

    def test_outside_window_excluded(self, make_user, make_post, add_likes):
        stale = make_post(make_user(), created_at=utcnow() - timedelta(hours=25))
        add_likes("post", stale.id, 10)
        assert popular_feed(None).items == []

    def test_reranking_between_pages_can_skip_items(self, make_user, make_post, add_likes):
        author = make_user()
        a = make_post(author, created_at=_ago(1))
        b = make_post(author, created_at=_ago(2))
        c = make_post(author, created_at=_ago(3))
        add_likes("post", a.id, 3)
        add_likes("post", b.id, 2)
        add_likes("post", c.id, 1)

        first = popular_feed(None, limit=1)
        assert _ids(first) == [a.id]

        add_likes("post", c.id, 5)
        second = popular_feed(None, cursor=first.next_cursor, limit=1)
        assert _ids(second) == [b.id]


# ── Reviews ───────────────────────────────────────────────────────────────────

class TestReviewsFeed:

    def test_reviews_only(self, make_user, make_game, make_post, make_review):
        author = make_user()
        make_post(author)
        review = make_review(author, make_game())
        page = reviews_feed(None)
        assert _ids(page) == [review.id]
        assert page.items[0]["game"]["name"]

    def test_popular_uses_week_window(self, make_user, make_game, make_review, add_likes):
        author, game = make_user(), make_game()
        recent = make_review(author, game, created_at=utcnow() - timedelta(days=3))
        old = make_review(author, game, created_at=utcnow() - timedelta(days=8))
        add_likes("review", old.id, 4)

        assert _ids(reviews_feed(None, popular=True)) == [recent.id]


def test_feed_registry():
    assert set(FEEDS) == {"following", "popular", "discover"}
