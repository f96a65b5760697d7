"""
Questboard – Flask application factory.
Social platform for gamers: posts, articles, reviews, quest logs and feeds.
"""
import logging

from flask import Flask, jsonify, request

from questboard.config import config
from questboard.extensions import db, limiter, login_manager, migrate
from questboard.utils.errors import QuestboardError

log = logging.getLogger(__name__)


def create_app(config_name: str = "default") -> Flask:
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # ── Initialise extensions ────────────────────────────────────────────────
    db.init_app(app)
    login_manager.init_app(app)
    limiter.init_app(app)
    migrate.init_app(app, db)

    if app.config.get("TALISMAN_ENABLED"):
        from flask_talisman import Talisman
        Talisman(app, **app.config.get("TALISMAN_CONFIG", {}))

    _init_identity()

    # ── Register blueprints ──────────────────────────────────────────────────
    from questboard.blueprints.feed import feed_bp
    from questboard.blueprints.posts import posts_bp
    from questboard.blueprints.articles import articles_bp
    from questboard.blueprints.reviews import reviews_bp
    from questboard.blueprints.social import social_bp
    from questboard.blueprints.users import users_bp
    from questboard.blueprints.games import games_bp
    from questboard.blueprints.questlog import questlog_bp
    from questboard.blueprints.collection import collection_bp
    from questboard.blueprints.reports import reports_bp
    from questboard.blueprints.notifications import notif_bp

    app.register_blueprint(feed_bp)
    app.register_blueprint(posts_bp)
    app.register_blueprint(articles_bp)
    app.register_blueprint(reviews_bp)
    app.register_blueprint(social_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(games_bp)
    app.register_blueprint(questlog_bp)
    app.register_blueprint(collection_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(notif_bp)

    from questboard.cli import register_cli
    register_cli(app)

    _register_error_handlers(app)

    # ── Database ─────────────────────────────────────────────────────────────
    if app.config.get("AUTO_CREATE_TABLES"):
        with app.app_context():
            import importlib
            importlib.import_module("questboard.models")
            db.create_all()

    return app


# ── Identity ─────────────────────────────────────────────────────────────────
def _init_identity() -> None:
    """Requests carry the identity provider's user id in a header; there are
    no sessions or passwords on this side."""

    @login_manager.request_loader
    def load_user_from_request(req):
        from flask import current_app
        from questboard.models import User

        external_id = req.headers.get(current_app.config["IDENTITY_HEADER"])
        if not external_id:
            return None
        return User.query.filter_by(external_id=external_id).first()

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify(error="Authentication required"), 401


# ── Error handlers ───────────────────────────────────────────────────────────
def _register_error_handlers(app: Flask) -> None:

    @app.errorhandler(QuestboardError)
    def domain_error(e):
        db.session.rollback()
        if e.status_code >= 500:
            log.error("%s %s failed: %s", request.method, request.path, e.message)
        return jsonify(error=e.message), e.status_code

    @app.errorhandler(400)
    def bad_request(e):
        return jsonify(error="Bad request"), 400

    @app.errorhandler(401)
    def unauthorized(e):
        return jsonify(error="Authentication required"), 401

    @app.errorhandler(403)
    def forbidden(e):
        return jsonify(error="Forbidden"), 403

    @app.errorhandler(404)
    def not_found(e):
        return jsonify(error="Not found"), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify(error="Method not allowed"), 405

    @app.errorhandler(429)
    def rate_limited(e):
        return jsonify(error="Too many requests"), 429

    @app.errorhandler(500)
    def internal_error(e):
        db.session.rollback()
        log.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify(error="Internal server error"), 500
