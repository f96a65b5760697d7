"""
Tests for identity sync, profiles and the moderation queue.
"""
import pytest

from questboard.models import CompletedReport, Report, User
from questboard.utils import report_service, user_service
from questboard.utils.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from questboard.utils.targets import Target, TargetType


# ── Identity sync ─────────────────────────────────────────────────────────────

class TestSyncUser:

    def test_creates_user(self, app):
        user = user_service.sync_user("ext-new", "new@example.com", "newbie",
                                      avatar_url="https://img.clerk.com/a.png")
        assert user.display_name == "newbie"
        assert User.query.filter_by(external_id="ext-new").count() == 1

    def test_second_sync_updates_same_row(self, app):
        first = user_service.sync_user("ext-1x", "a@example.com", "alpha")
        again = user_service.sync_user("ext-1x", "b@example.com", "ignored")
        assert again.id == first.id
        assert again.email == "b@example.com"
        assert again.username == "alpha"

    def test_links_legacy_account_by_email(self, make_user):
        legacy = make_user(external_id=None, email="old@example.com")
        synced = user_service.sync_user("ext-late", "old@example.com", "whatever")
        assert synced.id == legacy.id
        assert synced.external_id == "ext-late"

    def test_custom_avatar_kept(self, make_user):
        user = make_user(avatar_url="https://cdn.example/f/me.png")
        user_service.sync_user(user.external_id, user.email, user.username,
                               avatar_url="https://img.clerk.com/new.png")
        assert user.avatar_url == "https://cdn.example/f/me.png"

    def test_provider_avatar_replaced(self, make_user):
        user = make_user(avatar_url="https://img.clerk.com/old.png")
        user_service.sync_user(user.external_id, user.email, user.username,
                               avatar_url="https://img.clerk.com/new.png")
        assert user.avatar_url == "https://img.clerk.com/new.png"

    def test_username_taken(self, make_user):
        make_user(username="taken")
        with pytest.raises(ConflictError):
            user_service.sync_user("ext-other", "other@example.com", "taken")

    def test_external_id_required(self, app):
        with pytest.raises(ValidationError):
            user_service.sync_user("", "x@example.com", "x")


class TestProfiles:

    def test_profile_counts(self, make_user, make_post):
        user = make_user(username="counted")
        make_post(user)
        user_service.follow(make_user(), user.id)
        data = user_service.profile("counted")
        assert data["username"] == "counted"
        assert data["counts"]["posts"] == 1
        assert data["counts"]["followers"] == 1
        assert data["counts"]["following"] == 0

    def test_unknown_profile(self, app):
        with pytest.raises(NotFoundError):
            user_service.profile("nobody")

    def test_search_prefers_exact_then_prefix(self, make_user):
        make_user(username="xlink")
        make_user(username="linkmain")
        make_user(username="link")
        names = [u["username"] for u in user_service.search_users("link")]
        assert names == ["link", "linkmain", "xlink"]

    def test_admin_edit_requires_admin(self, make_user):
        target = make_user()
        with pytest.raises(UnauthorizedError):
            user_service.admin_update_profile(make_user(), target.id, bio="hacked")
        user_service.admin_update_profile(make_user(is_admin=True), target.id, bio="cleaned")
        assert target.bio == "cleaned"


# ── Reports ───────────────────────────────────────────────────────────────────

class TestReports:

    def test_duplicate_report_conflicts(self, make_user, make_post):
        reporter = make_user()
        target = Target(TargetType.POST, make_post(make_user()).id)
        report_service.create_report(reporter, target, "spam")
        with pytest.raises(ConflictError):
            report_service.create_report(reporter, target, "still spam")

    def test_message_required(self, make_user, make_post):
        target = Target(TargetType.POST, make_post(make_user()).id)
        with pytest.raises(ValidationError):
            report_service.create_report(make_user(), target, "  ")

    def test_comments_not_reportable(self, make_user, make_post, make_comment):
        c = make_comment(make_user(), "post", make_post(make_user()).id)
        with pytest.raises(ValidationError):
            report_service.create_report(make_user(), Target(TargetType.COMMENT, c.id), "rude")

    def test_missing_target(self, make_user):
        with pytest.raises(NotFoundError):
            report_service.create_report(make_user(), Target(TargetType.ARTICLE, "gone"), "x")

    def test_queue_is_admin_only(self, make_user):
        with pytest.raises(UnauthorizedError):
            report_service.pending_reports(make_user())

    def test_resolve_moves_report(self, make_user, make_post):
        admin = make_user(is_admin=True)
        reporter = make_user()
        post = make_post(make_user(), content="buy gold")
        report = report_service.create_report(reporter, Target(TargetType.POST, post.id), "spam")

        queue = report_service.pending_reports(admin)
        assert queue[0]["target_preview"]["content"] == "buy gold"
        assert report_service.has_pending(admin) is True

        report_service.resolve_report(report.id, admin)
        assert Report.query.count() == 0
        done = CompletedReport.query.one()
        assert done.addressed_by_id == admin.id
        assert done.message == "spam"
        assert report_service.has_pending(admin) is False
        assert report_service.completed_reports(admin)[0]["addressed_by"]["id"] == admin.id

    def test_resolve_unknown(self, make_user):
        with pytest.raises(NotFoundError):
            report_service.resolve_report("nope", make_user(is_admin=True))
