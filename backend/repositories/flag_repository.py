"""
Comment flag repository for database operations.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class FlagRepository(BaseRepository[db_models.CommentFlag]):
    """Repository for CommentFlag entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db_models.CommentFlag, db)

    def get_by_comment_and_user(
        self, comment_id: int, user_id: int
    ) -> Optional[db_models.CommentFlag]:
        """
        Get a user's flag on a comment.

        Args:
            comment_id: Comment ID
            user_id: Reporting user ID

        Returns:
            Flag if found, None otherwise
        """
        return (
            self.db.query(db_models.CommentFlag)
            .filter(
                db_models.CommentFlag.comment_id == comment_id,
                db_models.CommentFlag.user_id == user_id,
            )
            .first()
        )

    def get_for_comment(
        self, comment_id: int, pending_only: bool = False
    ) -> List[db_models.CommentFlag]:
        query = self.db.query(db_models.CommentFlag).filter(
            db_models.CommentFlag.comment_id == comment_id
        )
        if pending_only:
            query = query.filter(
                db_models.CommentFlag.status == db_models.FlagStatus.PENDING
            )
        return query.order_by(db_models.CommentFlag.created_at.asc()).all()

    def refresh_comment_flag_state(self, comment_id: int, threshold: int) -> int:
        """
        Recount pending flags and escalate the comment at the threshold.

        flag_count is set from the pending-flag count in the same statement
        that raises is_flagged, so both values move together.

        Args:
            comment_id: Comment ID
            threshold: Pending flag count at which the comment is flagged

        Returns:
            The recomputed flag count
        """
        self.db.flush()
        pending = (
            select(func.count(db_models.CommentFlag.id))
            .where(
                db_models.CommentFlag.comment_id == comment_id,
                db_models.CommentFlag.status == db_models.FlagStatus.PENDING,
            )
            .scalar_subquery()
        )
        self.db.query(db_models.Comment).filter(
            db_models.Comment.id == comment_id
        ).update(
            {
                db_models.Comment.flag_count: pending,
                db_models.Comment.is_flagged: case(
                    (pending >= threshold, True), else_=db_models.Comment.is_flagged
                ),
            },
            synchronize_session=False,
        )
        comment = self.db.get(db_models.Comment, comment_id)
        if comment is None:
            return 0
        self.db.refresh(comment, attribute_names=["flag_count", "is_flagged"])
        return comment.flag_count

    def resolve_pending(
        self,
        comment_id: int,
        status: db_models.FlagStatus,
        reviewer_id: int,
        feedback: Optional[str] = None,
    ) -> int:
        """
        Close every pending flag on a comment with the reviewer's decision.

        Args:
            comment_id: Comment ID
            status: APPROVED or REJECTED
            reviewer_id: Reviewing user ID
            feedback: Optional reviewer feedback

        Returns:
            Number of flags updated
        """
        return (
            self.db.query(db_models.CommentFlag)
            .filter(
                db_models.CommentFlag.comment_id == comment_id,
                db_models.CommentFlag.status == db_models.FlagStatus.PENDING,
            )
            .update(
                {
                    db_models.CommentFlag.status: status,
                    db_models.CommentFlag.reviewed_by: reviewer_id,
                    db_models.CommentFlag.reviewed_at: datetime.now(timezone.utc),
                    db_models.CommentFlag.review_feedback: feedback,
                },
                synchronize_session="fetch",
            )
        )
