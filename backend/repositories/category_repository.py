"""
Issue category repository for database operations.
"""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class CategoryRepository(BaseRepository[db_models.IssueCategory]):
    """Repository for IssueCategory entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db_models.IssueCategory, db)

    def get_by_name(self, name: str) -> Optional[db_models.IssueCategory]:
        return (
            self.db.query(db_models.IssueCategory)
            .filter(db_models.IssueCategory.name == name)
            .first()
        )

    def list_categories(self) -> List[db_models.IssueCategory]:
        return (
            self.db.query(db_models.IssueCategory)
            .order_by(db_models.IssueCategory.name)
            .all()
        )

    def get_issue_counts(self) -> list[tuple[db_models.IssueCategory, int]]:
        """
        Pair every category with the number of issues filed under it.

        Returns:
            List of (category, issue_count), busiest first
        """
        issue_count = func.count(db_models.Issue.id)
        return (
            self.db.query(db_models.IssueCategory, issue_count)
            .outerjoin(
                db_models.Issue,
                db_models.Issue.category_id == db_models.IssueCategory.id,
            )
            .group_by(db_models.IssueCategory.id)
            .order_by(issue_count.desc(), db_models.IssueCategory.name)
            .all()
        )
