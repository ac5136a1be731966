"""
Public dashboard figures.
"""

from sqlalchemy import func
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from repositories.issue_repository import IssueRepository
from repositories.zone_repository import ACTIVE_ISSUE_STATUSES
from services.cache_service import STATS_TTL, CacheService, cache_key
from services.category_service import CategoryService


def _count(db: Session, column, *criteria) -> int:  # type: ignore[no-untyped-def]
    return db.query(func.count(column)).filter(*criteria).scalar() or 0


class DashboardService:
    """Aggregates shown on the public dashboard (cached)."""

    @staticmethod
    def get_system_stats(db: Session) -> dict:
        def _load() -> dict:
            Issue = db_models.Issue
            total = _count(db, Issue.id)
            resolved = _count(db, Issue.id, Issue.status == db_models.IssueStatus.RESOLVED)
            return schemas.SystemStats(
                total_users=_count(db, db_models.User.id),
                total_issues=total,
                resolved_issues=resolved,
                open_issues=_count(db, Issue.id, Issue.status.in_(ACTIVE_ISSUE_STATUSES)),
                total_comments=_count(db, db_models.Comment.id),
                total_votes=_count(db, db_models.Vote.id),
                active_zones=_count(
                    db, db_models.Zone.id, db_models.Zone.is_active.is_(True)
                ),
                resolution_rate=round(resolved * 100.0 / total, 1) if total else 0.0,
            ).model_dump(mode="json")

        return CacheService.cached(cache_key("dashboard", "stats"), _load, STATS_TTL)

    @staticmethod
    def get_top_issues(db: Session, limit: int = 10) -> list[dict]:
        def _load() -> list[dict]:
            return [
                schemas.Issue.model_validate(issue).model_dump(mode="json")
                for issue in IssueRepository(db).get_top_voted(limit)
            ]

        return CacheService.cached(
            cache_key("dashboard", "top_issues", limit), _load, STATS_TTL
        )

    @staticmethod
    def get_category_stats(db: Session) -> list[dict]:
        def _load() -> list[dict]:
            return [
                stats.model_dump(mode="json")
                for stats in CategoryService.get_category_stats(db)
            ]

        return CacheService.cached(cache_key("dashboard", "categories"), _load, STATS_TTL)
