"""
Zone repository for database operations.
"""

from typing import Any, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository

# Statuses that still need attention from a steward
ACTIVE_ISSUE_STATUSES = (
    db_models.IssueStatus.OPEN,
    db_models.IssueStatus.ACKNOWLEDGED,
    db_models.IssueStatus.IN_PROGRESS,
)


class ZoneRepository(BaseRepository[db_models.Zone]):
    """Repository for Zone entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db_models.Zone, db)

    def get_by_name(self, name: str) -> Optional[db_models.Zone]:
        return self.db.query(db_models.Zone).filter(db_models.Zone.name == name).first()

    def list_zones(self, include_inactive: bool = False) -> List[db_models.Zone]:
        """
        List zones ordered by name.

        Args:
            include_inactive: Include deactivated zones

        Returns:
            List of zones
        """
        query = self.db.query(db_models.Zone)
        if not include_inactive:
            query = query.filter(db_models.Zone.is_active.is_(True))
        return query.order_by(db_models.Zone.name).all()

    def count_active_issues(self, zone_id: int) -> int:
        """Count issues in the zone that are not resolved, archived or duplicate."""
        return (
            self.db.query(func.count(db_models.Issue.id))
            .filter(
                db_models.Issue.zone_id == zone_id,
                db_models.Issue.status.in_(ACTIVE_ISSUE_STATUSES),
            )
            .scalar()
            or 0
        )

    def get_status_counts(self, zone_id: int) -> dict[str, int]:
        """
        Count zone issues per status.

        Args:
            zone_id: Zone ID

        Returns:
            Mapping of status value to issue count (all statuses present)
        """
        rows = (
            self.db.query(db_models.Issue.status, func.count(db_models.Issue.id))
            .filter(db_models.Issue.zone_id == zone_id)
            .group_by(db_models.Issue.status)
            .all()
        )
        counts = {status.value: 0 for status in db_models.IssueStatus}
        for status, count in rows:
            counts[status.value] = count
        return counts

    def get_stats_aggregates(self, zone_id: int) -> dict[str, Any]:
        """Vote total and steward count for a zone."""
        total_votes = (
            self.db.query(func.count(db_models.Vote.id))
            .join(db_models.Issue, db_models.Issue.id == db_models.Vote.issue_id)
            .filter(db_models.Issue.zone_id == zone_id)
            .scalar()
            or 0
        )
        steward_count = (
            self.db.query(
                func.count(func.distinct(db_models.StewardCategoryAssignment.steward_id))
            )
            .filter(
                db_models.StewardCategoryAssignment.zone_id == zone_id,
                db_models.StewardCategoryAssignment.is_active.is_(True),
            )
            .scalar()
            or 0
        )
        return {"total_votes": total_votes, "steward_count": steward_count}
