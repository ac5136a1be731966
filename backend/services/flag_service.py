"""
Service for comment flag business logic.
"""

from typing import List

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    CannotFlagOwnContentException,
    CommentNotFoundException,
    DuplicateFlagException,
)
from repositories.comment_repository import CommentRepository
from repositories.database import transaction
from repositories.flag_repository import FlagRepository
from services.permission_service import PermissionService

# Pending flags at which a comment enters the review queue
FLAG_THRESHOLD = 3


class FlagService:
    """Service for comment flag business logic."""

    @staticmethod
    def _get_comment(db: Session, comment_id: int) -> db_models.Comment:
        comment = CommentRepository(db).get_by_id(comment_id)
        if not comment:
            raise CommentNotFoundException(comment_id)
        return comment

    @staticmethod
    def flag_comment(
        db: Session,
        comment_id: int,
        reporter_id: int,
        reason: db_models.FlagReason,
        details: str | None = None,
    ) -> db_models.CommentFlag:
        """
        Flag a comment.

        Args:
            db: Database session
            comment_id: ID of the comment
            reporter_id: ID of the reporting user
            reason: Reason for flag
            details: Optional additional details

        Returns:
            Created flag

        Raises:
            CommentNotFoundException: If comment not found
            CannotFlagOwnContentException: If user tries to flag own comment
            DuplicateFlagException: If user already flagged this comment
        """
        flag_repo = FlagRepository(db)
        comment = FlagService._get_comment(db, comment_id)

        if comment.user_id == reporter_id:
            raise CannotFlagOwnContentException()
        if flag_repo.get_by_comment_and_user(comment_id, reporter_id):
            raise DuplicateFlagException()

        try:
            with transaction(db):
                flag = flag_repo.add(
                    db_models.CommentFlag(
                        comment_id=comment_id,
                        user_id=reporter_id,
                        reason=reason,
                        details=details,
                        status=db_models.FlagStatus.PENDING,
                    )
                )
                flag_count = flag_repo.refresh_comment_flag_state(
                    comment_id, FLAG_THRESHOLD
                )
        except IntegrityError:
            # Concurrent flag by the same user committed first
            raise DuplicateFlagException()

        if flag_count == FLAG_THRESHOLD:
            logger.info(f"Comment {comment_id} reached {FLAG_THRESHOLD} flags")
        return flag

    @staticmethod
    def review_flag(
        db: Session,
        comment_id: int,
        reviewer: db_models.User,
        action: db_models.ModerationAction,
        feedback: str | None = None,
    ) -> schemas.FlagReviewResult:
        """
        Resolve the pending flags on a comment.

        APPROVE keeps the comment, clears its flagged state and rejects the
        pending flags. DELETE upholds the flags and removes the comment with
        all its replies.

        Args:
            db: Database session
            comment_id: ID of the comment
            reviewer: Steward or super admin
            action: Reviewer decision
            feedback: Optional note stored on each resolved flag

        Returns:
            Summary of the review

        Raises:
            InsufficientPermissionsException: If reviewer is a citizen
            CommentNotFoundException: If comment not found
        """
        PermissionService.can_review_comments(reviewer)
        comment = FlagService._get_comment(db, comment_id)
        flag_repo = FlagRepository(db)
        deleted = 0

        with transaction(db):
            if action == db_models.ModerationAction.APPROVE:
                resolved = flag_repo.resolve_pending(
                    comment_id, db_models.FlagStatus.REJECTED, reviewer.id, feedback
                )
                comment.flag_count = 0
                comment.is_flagged = False
                flag_repo.flush()
            else:
                resolved = flag_repo.resolve_pending(
                    comment_id, db_models.FlagStatus.APPROVED, reviewer.id, feedback
                )
                deleted = CommentRepository(db).delete_tree(comment)

        logger.info(
            f"Comment {comment_id} reviewed ({action.value}) by user {reviewer.id}: "
            f"{resolved} flag(s) resolved"
        )
        return schemas.FlagReviewResult(
            comment_id=comment_id,
            action=action,
            flags_resolved=resolved,
            comments_deleted=deleted,
        )

    @staticmethod
    def get_flagged_comments(
        db: Session, reviewer: db_models.User, skip: int = 0, limit: int = 50
    ) -> List[db_models.Comment]:
        """Review queue: flagged comments, most flagged first."""
        PermissionService.can_review_comments(reviewer)
        return CommentRepository(db).get_flagged(skip, limit)

    @staticmethod
    def get_comment_flags(
        db: Session,
        comment_id: int,
        reviewer: db_models.User,
        pending_only: bool = False,
    ) -> List[db_models.CommentFlag]:
        PermissionService.can_review_comments(reviewer)
        FlagService._get_comment(db, comment_id)
        return FlagRepository(db).get_for_comment(comment_id, pending_only)
