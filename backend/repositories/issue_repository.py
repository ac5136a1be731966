"""
Issue repository for database operations.
"""

from typing import List, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class IssueRepository(BaseRepository[db_models.Issue]):
    """Repository for Issue entity database operations."""

    def __init__(self, db: Session):
        """
        Initialize issue repository.

        Args:
            db: Database session
        """
        super().__init__(db_models.Issue, db)

    def get_for_update(self, issue_id: int) -> Optional[db_models.Issue]:
        """
        Get an issue and lock its row for the rest of the transaction.

        SQLite ignores FOR UPDATE; PostgreSQL serializes concurrent writers.

        Args:
            issue_id: Issue ID

        Returns:
            Issue if found, None otherwise
        """
        return (
            self.db.query(db_models.Issue)
            .filter(db_models.Issue.id == issue_id)
            .with_for_update()
            .first()
        )

    def list_issues(
        self,
        status: Optional[db_models.IssueStatus] = None,
        category_id: Optional[int] = None,
        zone_id: Optional[int] = None,
        user_id: Optional[int] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[List[db_models.Issue], int]:
        """
        List issues matching the given filters, newest first.

        Args:
            status: Filter by status
            category_id: Filter by category
            zone_id: Filter by zone
            user_id: Filter by reporter
            search: Case-insensitive match on title or description
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (issues page, total matching count)
        """
        query = self.db.query(db_models.Issue)
        if status is not None:
            query = query.filter(db_models.Issue.status == status)
        if category_id is not None:
            query = query.filter(db_models.Issue.category_id == category_id)
        if zone_id is not None:
            query = query.filter(db_models.Issue.zone_id == zone_id)
        if user_id is not None:
            query = query.filter(db_models.Issue.user_id == user_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    db_models.Issue.title.ilike(pattern),
                    db_models.Issue.description.ilike(pattern),
                )
            )

        total = query.count()
        issues = (
            query.order_by(db_models.Issue.created_at.desc(), db_models.Issue.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return issues, total

    def find_similar(
        self,
        category_id: int,
        zone_id: int,
        keywords: list[str],
        statuses: tuple[db_models.IssueStatus, ...],
        limit: int = 5,
    ) -> List[db_models.Issue]:
        """Issues in the same category and zone whose title shares a keyword."""
        if not keywords:
            return []
        return (
            self.db.query(db_models.Issue)
            .filter(
                db_models.Issue.category_id == category_id,
                db_models.Issue.zone_id == zone_id,
                db_models.Issue.status.in_(statuses),
                or_(*[db_models.Issue.title.ilike(f"%{word}%") for word in keywords]),
            )
            .order_by(db_models.Issue.vote_score.desc(), db_models.Issue.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def _scope_query(query, steward_id: int):  # type: ignore[no-untyped-def]
        """Restrict an Issue query to the steward's active (category, zone) pairs."""
        assignment = db_models.StewardCategoryAssignment
        return query.select_from(db_models.Issue).join(
            assignment,
            and_(
                assignment.category_id == db_models.Issue.category_id,
                assignment.zone_id == db_models.Issue.zone_id,
                assignment.steward_id == steward_id,
                assignment.is_active.is_(True),
            ),
        )

    def get_scope_status_counts(self, steward_id: int) -> dict[str, int]:
        """
        Count issues in a steward's scope per status.

        Args:
            steward_id: Steward user ID

        Returns:
            Mapping of status value to issue count (all statuses present)
        """
        rows = (
            self._scope_query(
                self.db.query(db_models.Issue.status, func.count(db_models.Issue.id)),
                steward_id,
            )
            .group_by(db_models.Issue.status)
            .all()
        )
        counts = {status.value: 0 for status in db_models.IssueStatus}
        for status, count in rows:
            counts[status.value] = count
        return counts

    def count_high_urgency_in_scope(
        self,
        steward_id: int,
        min_urgency: int,
        statuses: tuple[db_models.IssueStatus, ...],
    ) -> int:
        return (
            self._scope_query(self.db.query(func.count(db_models.Issue.id)), steward_id)
            .filter(
                db_models.Issue.urgency_score >= min_urgency,
                db_models.Issue.status.in_(statuses),
            )
            .scalar()
            or 0
        )

    def count_assigned_to(
        self, steward_id: int, statuses: tuple[db_models.IssueStatus, ...]
    ) -> int:
        """Issues a steward has picked up that are still in one of the statuses."""
        return (
            self.db.query(func.count(db_models.Issue.id))
            .filter(
                db_models.Issue.assigned_steward_id == steward_id,
                db_models.Issue.status.in_(statuses),
            )
            .scalar()
            or 0
        )

    def get_top_voted(self, limit: int = 10) -> List[db_models.Issue]:
        """Highest voted issues that are still active."""
        return (
            self.db.query(db_models.Issue)
            .filter(
                db_models.Issue.status.not_in(
                    (db_models.IssueStatus.ARCHIVED, db_models.IssueStatus.DUPLICATE)
                )
            )
            .order_by(db_models.Issue.vote_score.desc(), db_models.Issue.id.asc())
            .limit(limit)
            .all()
        )

    def get_in_steward_scope(
        self,
        steward_id: int,
        statuses: Optional[tuple[db_models.IssueStatus, ...]] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[db_models.Issue]:
        """
        Issues whose (category, zone) matches one of the steward's active assignments.

        Args:
            steward_id: Steward user ID
            statuses: Optional status filter
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Issues ordered by urgency, votes, then age
        """
        query = self._scope_query(self.db.query(db_models.Issue), steward_id)
        if statuses:
            query = query.filter(db_models.Issue.status.in_(statuses))
        return (
            query.order_by(
                db_models.Issue.urgency_score.desc(),
                db_models.Issue.vote_score.desc(),
                db_models.Issue.created_at.asc(),
            )
            .offset(skip)
            .limit(limit)
            .all()
        )

    def recompute_vote_score(self, issue_id: int) -> int:
        """
        Set vote_score to the signed sum of the issue's votes.

        Args:
            issue_id: Issue ID

        Returns:
            The recomputed score
        """
        self.db.flush()
        total = (
            select(func.coalesce(func.sum(db_models.Vote.vote_type), 0))
            .where(db_models.Vote.issue_id == issue_id)
            .scalar_subquery()
        )
        self.db.query(db_models.Issue).filter(db_models.Issue.id == issue_id).update(
            {db_models.Issue.vote_score: total}, synchronize_session=False
        )
        issue = self.db.get(db_models.Issue, issue_id)
        if issue is None:
            return 0
        self.db.refresh(issue, attribute_names=["vote_score"])
        return issue.vote_score

    def count_children(self, issue_id: int) -> dict[str, int]:
        """Comment, vote and media counts for an issue."""

        def _count(model) -> int:  # type: ignore[no-untyped-def]
            return (
                self.db.query(func.count(model.id))
                .filter(model.issue_id == issue_id)
                .scalar()
                or 0
            )

        return {
            "comment_count": _count(db_models.Comment),
            "vote_count": _count(db_models.Vote),
            "media_count": _count(db_models.IssueMedia),
        }

    def delete_with_dependents(self, issue: db_models.Issue) -> None:
        """
        Remove an issue and every row that references it.

        Args:
            issue: Issue to remove
        """
        issue_id = issue.id
        comment_ids = select(db_models.Comment.id).where(
            db_models.Comment.issue_id == issue_id
        )

        self.db.query(db_models.CommentFlag).filter(
            db_models.CommentFlag.comment_id.in_(comment_ids)
        ).delete(synchronize_session="fetch")
        # Replies first so parent references never dangle
        self.db.query(db_models.Comment).filter(
            db_models.Comment.issue_id == issue_id,
            db_models.Comment.parent_id.is_not(None),
        ).delete(synchronize_session="fetch")
        self.db.query(db_models.Comment).filter(
            db_models.Comment.issue_id == issue_id
        ).delete(synchronize_session="fetch")
        for model in (
            db_models.Vote,
            db_models.IssueHistory,
            db_models.StewardNote,
            db_models.IssueMedia,
        ):
            self.db.query(model).filter(model.issue_id == issue_id).delete(
                synchronize_session="fetch"
            )
        self.db.query(db_models.Issue).filter(
            db_models.Issue.primary_issue_id == issue_id
        ).update({db_models.Issue.primary_issue_id: None}, synchronize_session="fetch")

        self.db.delete(issue)
        self.db.flush()


class IssueHistoryRepository(BaseRepository[db_models.IssueHistory]):
    """Repository for the append-only status history."""

    def __init__(self, db: Session):
        super().__init__(db_models.IssueHistory, db)

    def record(
        self,
        issue_id: int,
        user_id: int,
        old_status: Optional[db_models.IssueStatus],
        new_status: db_models.IssueStatus,
        reason: Optional[str] = None,
    ) -> db_models.IssueHistory:
        """
        Append a status change entry.

        Args:
            issue_id: Issue ID
            user_id: Acting user ID
            old_status: Status before the change (None on creation)
            new_status: Status after the change
            reason: Optional free-text reason

        Returns:
            Created history entry
        """
        return self.add(
            db_models.IssueHistory(
                issue_id=issue_id,
                user_id=user_id,
                old_status=old_status,
                new_status=new_status,
                reason=reason,
            )
        )

    def count_by_user(self, user_id: int) -> int:
        """Status changes performed by a user (creation entries excluded)."""
        return (
            self.db.query(func.count(db_models.IssueHistory.id))
            .filter(
                db_models.IssueHistory.user_id == user_id,
                db_models.IssueHistory.old_status.is_not(None),
            )
            .scalar()
            or 0
        )

    def get_for_issue(self, issue_id: int) -> List[db_models.IssueHistory]:
        return (
            self.db.query(db_models.IssueHistory)
            .filter(db_models.IssueHistory.issue_id == issue_id)
            .order_by(
                db_models.IssueHistory.created_at.desc(),
                db_models.IssueHistory.id.desc(),
            )
            .all()
        )
