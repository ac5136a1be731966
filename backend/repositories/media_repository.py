"""
Issue media repository for database operations.
"""

from typing import List

from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class MediaRepository(BaseRepository[db_models.IssueMedia]):
    """Repository for IssueMedia records."""

    def __init__(self, db: Session):
        super().__init__(db_models.IssueMedia, db)

    def get_for_issue(self, issue_id: int) -> List[db_models.IssueMedia]:
        """Media for an issue, thumbnail first, then upload order."""
        return (
            self.db.query(db_models.IssueMedia)
            .filter(db_models.IssueMedia.issue_id == issue_id)
            .order_by(
                db_models.IssueMedia.is_thumbnail.desc(),
                db_models.IssueMedia.created_at.asc(),
                db_models.IssueMedia.id.asc(),
            )
            .all()
        )

    def clear_thumbnail(self, issue_id: int) -> None:
        self.db.query(db_models.IssueMedia).filter(
            db_models.IssueMedia.issue_id == issue_id,
            db_models.IssueMedia.is_thumbnail.is_(True),
        ).update({db_models.IssueMedia.is_thumbnail: False}, synchronize_session="fetch")
