"""
Tests for the quest log and the owned-games collection.
"""
import pytest

from questboard.models import Post, QuestLog
from questboard.models.questlog import QuestStatus
from questboard.utils import collection_service, questlog_service
from questboard.utils.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError


# ── Quest log ─────────────────────────────────────────────────────────────────

class TestQuestLog:

    def test_add_defaults(self, make_user, make_game):
        entry = questlog_service.add_entry(make_user(), make_game().id)
        assert entry.status is QuestStatus.PLAYING
        assert entry.started_at is not None
        assert entry.display_order == 0

    def test_duplicate_is_validation_error(self, make_user, make_game):
        user, game = make_user(), make_game()
        questlog_service.add_entry(user, game.id)
        with pytest.raises(ValidationError, match="already in your quest log"):
            questlog_service.add_entry(user, game.id)

    def test_unknown_game(self, make_user):
        with pytest.raises(NotFoundError):
            questlog_service.add_entry(make_user(), "nope")

    def test_invalid_status(self, make_user, make_game):
        with pytest.raises(ValidationError, match="Invalid quest log status"):
            questlog_service.add_entry(make_user(), make_game().id, status="Speedrunning")

    def test_display_order_caps_at_last_slot(self, make_user, make_game):
        user = make_user()
        orders = [questlog_service.add_entry(user, make_game().id).display_order for _ in range(7)]
        assert orders == [0, 1, 2, 3, 4, 4, 4]

    def test_finishing_stamps_completed_at(self, make_user, make_game):
        user, game = make_user(), make_game()
        questlog_service.add_entry(user, game.id)
        data = questlog_service.update_status(user, game.id, "Completed", quick_rating=5)
        assert data["status"] == "Completed"
        assert data["completed_at"] is not None
        assert data["quick_rating"] == 5

    def test_share_as_post(self, make_user, make_game):
        user, game = make_user(), make_game(name="Hades")
        questlog_service.add_entry(user, game.id)
        questlog_service.update_status(user, game.id, "Completed", quick_rating=4, share_as_post=True)
        post = Post.query.filter_by(author_id=user.id).one()
        assert post.content == "I just completed Hades! ⭐⭐⭐⭐"

    def test_share_needs_rating(self, make_user, make_game):
        user, game = make_user(), make_game()
        questlog_service.add_entry(user, game.id)
        questlog_service.update_status(user, game.id, "Dropped", share_as_post=True)
        assert Post.query.count() == 0

    def test_share_text_truncated(self):
        text = questlog_service.share_text(QuestStatus.PLAYING, "x" * 400, 3)
        assert len(text) == 280
        assert text.startswith("I just started playing ")

    def test_quick_rating_bounds(self, make_user, make_game):
        user, game = make_user(), make_game()
        questlog_service.add_entry(user, game.id)
        with pytest.raises(ValidationError):
            questlog_service.update_status(user, game.id, "Completed", quick_rating=9)

    def test_update_entry_owner_only(self, make_user, make_game):
        entry = questlog_service.add_entry(make_user(), make_game().id)
        with pytest.raises(UnauthorizedError):
            questlog_service.update_entry(entry.id, make_user(), notes="mine now")

    def test_update_entry(self, make_user, make_game):
        user = make_user()
        entry = questlog_service.add_entry(user, make_game().id)
        data = questlog_service.update_entry(entry.id, user, status="OnHold", notes="later")
        assert data["status"] == "OnHold"
        assert data["notes"] == "later"
        assert data["completed_at"] is None

    def test_reorder_and_now_playing(self, make_user, make_game):
        user = make_user(username="gamer")
        a = questlog_service.add_entry(user, make_game().id)
        b = questlog_service.add_entry(user, make_game().id)
        c = questlog_service.add_entry(user, make_game().id, status="Backlog")
        questlog_service.update_display_order(user, [b.id, c.id, a.id])

        playing = questlog_service.now_playing("gamer")
        assert [e["id"] for e in playing] == [b.id, a.id]
        assert playing[0]["game"]["name"]

    def test_reorder_ignores_other_users(self, make_user, make_game):
        owner = make_user()
        entry = questlog_service.add_entry(owner, make_game().id)
        questlog_service.update_display_order(make_user(), ["x", entry.id])
        assert entry.display_order == 0

    def test_remove(self, make_user, make_game):
        user = make_user()
        entry = questlog_service.add_entry(user, make_game().id)
        questlog_service.remove_entry(entry.id, user)
        assert QuestLog.query.count() == 0

    def test_filter_by_status(self, make_user, make_game):
        user = make_user(username="filterer")
        questlog_service.add_entry(user, make_game().id)
        done = questlog_service.add_entry(user, make_game().id, status="Completed")
        result = questlog_service.user_quest_log("filterer", status="Completed")
        assert [e["id"] for e in result["entries"]] == [done.id]


# ── Collection ────────────────────────────────────────────────────────────────

class TestCollection:

    @pytest.mark.parametrize("label", ["DLC", "Expansion", "Bundle", "Pack / Addon"])
    def test_add_ons_rejected(self, make_user, make_game, label):
        game = make_game(category_label=label)
        with pytest.raises(ValidationError, match=f"Cannot add {label} to collection"):
            collection_service.add_entry(make_user(), game.id, "Physical")

    def test_remaster_allowed(self, make_user, make_game):
        game = make_game(category_label="Remaster")
        entry = collection_service.add_entry(make_user(), game.id, "Digital")
        assert entry.game_id == game.id

    def test_duplicate_is_conflict(self, make_user, make_game):
        user, game = make_user(), make_game()
        collection_service.add_entry(user, game.id, "Physical")
        with pytest.raises(ConflictError):
            collection_service.add_entry(user, game.id, "Digital")

    def test_invalid_ownership(self, make_user, make_game):
        with pytest.raises(ValidationError):
            collection_service.add_entry(make_user(), make_game().id, "Borrowed")

    def test_stats(self, make_user, make_game):
        user = make_user(username="collector")
        collection_service.add_entry(user, make_game().id, "Physical", status="Beaten")
        collection_service.add_entry(user, make_game().id, "Digital", status="OnHold")
        collection_service.add_entry(user, make_game().id, "Digital")

        stats = collection_service.collection_stats("collector")
        assert stats["total_owned"] == 3
        assert stats["physical"] == 1
        assert stats["digital"] == 2
        assert stats["beaten"] == 1
        assert stats["on_hold"] == 1
        assert stats["unplayed"] == 1
        assert stats["dropped"] == 0

    def test_stats_unknown_user(self, app):
        assert collection_service.collection_stats("nobody")["total_owned"] == 0

    def test_collection_view_joins_playthroughs_and_review(self, make_user, make_game, make_review):
        user = make_user(username="owner")
        game = make_game()
        collection_service.add_entry(user, game.id, "Physical")
        questlog_service.add_entry(user, game.id)
        questlog_service.update_status(user, game.id, "Completed", quick_rating=3)
        review = make_review(user, game, rating=4)

        item = collection_service.user_collection("owner")["games"][0]
        assert item["latest_rating"] == 3
        assert len(item["playthroughs"]) == 1
        assert item["review"]["id"] == review.id

    def test_update_owner_only(self, make_user, make_game):
        entry = collection_service.add_entry(make_user(), make_game().id, "Digital")
        with pytest.raises(UnauthorizedError):
            collection_service.update_entry(entry.id, make_user(), status="Playing")
