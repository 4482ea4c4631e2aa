"""ORM models. Importing this package registers every table with Base.metadata."""

from pinboard.models.user import User
from pinboard.models.pin import Pin, MEDIA_TYPES
from pinboard.models.board import Board, BoardPin
from pinboard.models.comment import Comment, CommentLike
from pinboard.models.social import Follow, Like, SavedPin
from pinboard.models.notification import Notification, NOTIFICATION_TYPES

__all__ = [
    "User",
    "Pin",
    "MEDIA_TYPES",
    "Board",
    "BoardPin",
    "Comment",
    "CommentLike",
    "Follow",
    "Like",
    "SavedPin",
    "Notification",
    "NOTIFICATION_TYPES",
]
