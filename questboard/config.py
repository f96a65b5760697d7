"""
Configuration classes for Questboard.

Values are read from the environment with development-friendly defaults.
"""
import os


class Config:
    """Base configuration shared by every environment."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-production")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///questboard.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    AUTO_CREATE_TABLES = os.environ.get("AUTO_CREATE_TABLES", "true").lower() == "true"

    # Identity provider hands us its stable user id in this header
    IDENTITY_HEADER = os.environ.get("IDENTITY_HEADER", "X-Identity-Id")

    # JSON API only, requests are header-authenticated
    WTF_CSRF_ENABLED = False

    # Feeds
    FEED_DEFAULT_LIMIT = int(os.environ.get("FEED_DEFAULT_LIMIT", "20"))
    FEED_MAX_LIMIT = int(os.environ.get("FEED_MAX_LIMIT", "100"))

    # IGDB (Twitch OAuth app credentials)
    TWITCH_CLIENT_ID = os.environ.get("TWITCH_CLIENT_ID", "")
    TWITCH_CLIENT_SECRET = os.environ.get("TWITCH_CLIENT_SECRET", "")
    IGDB_CACHE_DAYS = int(os.environ.get("IGDB_CACHE_DAYS", "7"))
    IGDB_TIMEOUT = float(os.environ.get("IGDB_TIMEOUT", "10"))

    # File storage
    UPLOADTHING_TOKEN = os.environ.get("UPLOADTHING_TOKEN", "")

    # Rate limiting
    RATELIMIT_ENABLED = os.environ.get("RATELIMIT_ENABLED", "true").lower() == "true"
    RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_DEFAULT = os.environ.get("RATELIMIT_DEFAULT", "300 per minute")

    TALISMAN_ENABLED = False
    TALISMAN_CONFIG = {"force_https": True, "content_security_policy": None}


class DevelopmentConfig(Config):
    DEBUG = True


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    AUTO_CREATE_TABLES = False
    SECRET_KEY = "test-secret-key"
    RATELIMIT_ENABLED = False
    TWITCH_CLIENT_ID = "test-client"
    TWITCH_CLIENT_SECRET = "test-secret"
    UPLOADTHING_TOKEN = ""


class ProductionConfig(Config):
    DEBUG = False
    TALISMAN_ENABLED = os.environ.get("TALISMAN_ENABLED", "true").lower() == "true"


config = {
    "development": DevelopmentConfig,
    "testing":     TestingConfig,
    "production":  ProductionConfig,
    "default":     DevelopmentConfig,
}
