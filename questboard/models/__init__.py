# Import all models so SQLAlchemy can discover them for db.create_all()
from questboard.models.user import User
from questboard.models.follow import Follow
from questboard.models.game import Game
from questboard.models.post import Post, PostImage, PostVersion
from questboard.models.article import Article, ArticleGame, ArticleVersion
from questboard.models.review import Review, ReviewVersion
from questboard.models.comment import Comment
from questboard.models.like import Like
from questboard.models.questlog import QuestLog, QuestStatus
from questboard.models.collection import CollectionEntry, CollectionStatus, OwnershipType
from questboard.models.report import Report, CompletedReport
from questboard.models.notification import Notification

__all__ = [
    "User", "Follow", "Game",
    "Post", "PostImage", "PostVersion",
    "Article", "ArticleGame", "ArticleVersion",
    "Review", "ReviewVersion",
    "Comment", "Like",
    "QuestLog", "QuestStatus",
    "CollectionEntry", "CollectionStatus", "OwnershipType",
    "Report", "CompletedReport",
    "Notification",
]
