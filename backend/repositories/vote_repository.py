"""
Vote repository for database operations.
"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class VoteRepository(BaseRepository[db_models.Vote]):
    """Repository for Vote entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db_models.Vote, db)

    def get_by_issue_and_user(
        self, issue_id: int, user_id: int
    ) -> Optional[db_models.Vote]:
        """
        Get a user's vote on an issue.

        Args:
            issue_id: Issue ID
            user_id: User ID

        Returns:
            Vote if found, None otherwise
        """
        return (
            self.db.query(db_models.Vote)
            .filter(
                db_models.Vote.issue_id == issue_id, db_models.Vote.user_id == user_id
            )
            .first()
        )

    def get_counts(self, issue_id: int) -> dict[str, int]:
        """Upvote and downvote counts for an issue."""
        rows = (
            self.db.query(db_models.Vote.vote_type, func.count(db_models.Vote.id))
            .filter(db_models.Vote.issue_id == issue_id)
            .group_by(db_models.Vote.vote_type)
            .all()
        )
        counts = dict(rows)
        return {
            "upvotes": counts.get(db_models.VoteType.UPVOTE.value, 0),
            "downvotes": counts.get(db_models.VoteType.DOWNVOTE.value, 0),
        }
