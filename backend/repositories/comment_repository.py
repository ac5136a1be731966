"""
Comment repository for database operations.
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class CommentRepository(BaseRepository[db_models.Comment]):
    """Repository for Comment entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db_models.Comment, db)

    def get_for_issue(self, issue_id: int) -> List[db_models.Comment]:
        """All comments on an issue in posting order (replies included)."""
        return (
            self.db.query(db_models.Comment)
            .filter(db_models.Comment.issue_id == issue_id)
            .order_by(db_models.Comment.created_at.asc(), db_models.Comment.id.asc())
            .all()
        )

    def get_by_user(
        self, user_id: int, skip: int = 0, limit: int = 20
    ) -> List[db_models.Comment]:
        return (
            self.db.query(db_models.Comment)
            .filter(db_models.Comment.user_id == user_id)
            .order_by(db_models.Comment.created_at.desc(), db_models.Comment.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_flagged(self, skip: int = 0, limit: int = 50) -> List[db_models.Comment]:
        """Comments escalated for review, most flagged first."""
        return (
            self.db.query(db_models.Comment)
            .filter(db_models.Comment.is_flagged.is_(True))
            .order_by(db_models.Comment.flag_count.desc(), db_models.Comment.id.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_descendant_ids(self, comment_id: int) -> list[int]:
        """
        Collect the IDs of every reply below a comment, at any depth.

        Args:
            comment_id: Root comment ID

        Returns:
            Descendant IDs, deepest replies last
        """
        descendants: list[int] = []
        frontier = [comment_id]
        while frontier:
            children = list(
                self.db.scalars(
                    select(db_models.Comment.id).where(
                        db_models.Comment.parent_id.in_(frontier)
                    )
                )
            )
            descendants.extend(children)
            frontier = children
        return descendants

    def delete_tree(self, comment: db_models.Comment) -> int:
        """
        Delete a comment, its replies and all their flags.

        Args:
            comment: Root comment to remove

        Returns:
            Number of comments removed
        """
        descendant_ids = self.get_descendant_ids(comment.id)
        all_ids = [comment.id, *descendant_ids]

        self.db.query(db_models.CommentFlag).filter(
            db_models.CommentFlag.comment_id.in_(all_ids)
        ).delete(synchronize_session="fetch")
        # Deepest replies first keeps parent references valid at every step
        for reply_id in reversed(descendant_ids):
            self.db.query(db_models.Comment).filter(
                db_models.Comment.id == reply_id
            ).delete(synchronize_session="fetch")
        self.db.delete(comment)
        self.db.flush()
        return len(all_ids)
