"""
Repository pattern implementation for data access layer.
"""

from .badge_repository import BadgeRepository
from .base import BaseRepository
from .category_repository import CategoryRepository
from .comment_repository import CommentRepository
from .flag_repository import FlagRepository
from .issue_repository import IssueHistoryRepository, IssueRepository
from .media_repository import MediaRepository
from .steward_repository import (
    ApplicationRepository,
    AssignmentRepository,
    StewardNoteRepository,
)
from .user_repository import UserRepository
from .vote_repository import VoteRepository
from .zone_repository import ZoneRepository

__all__ = [
    "ApplicationRepository",
    "AssignmentRepository",
    "BadgeRepository",
    "BaseRepository",
    "CategoryRepository",
    "CommentRepository",
    "FlagRepository",
    "IssueHistoryRepository",
    "IssueRepository",
    "MediaRepository",
    "StewardNoteRepository",
    "UserRepository",
    "VoteRepository",
    "ZoneRepository",
]
