"""
Services layer for business logic.

Services are classes of static methods taking the database session first.
They own transactions, authorization checks and cache invalidation; routers
stay thin.
"""

from .auth_service import AuthService
from .badge_service import BadgeService
from .cache_service import CacheService
from .category_service import CategoryService
from .comment_service import CommentService
from .dashboard_service import DashboardService
from .flag_service import FlagService
from .issue_service import IssueService
from .media_service import MediaService
from .permission_service import PermissionService
from .rate_limit_service import RateLimitService
from .reputation_service import ReputationService
from .session_service import SessionService
from .steward_service import StewardService
from .user_service import UserService
from .vote_service import VoteService
from .zone_service import ZoneService

__all__ = [
    "AuthService",
    "BadgeService",
    "CacheService",
    "CategoryService",
    "CommentService",
    "DashboardService",
    "FlagService",
    "IssueService",
    "MediaService",
    "PermissionService",
    "RateLimitService",
    "ReputationService",
    "SessionService",
    "StewardService",
    "UserService",
    "VoteService",
    "ZoneService",
]
