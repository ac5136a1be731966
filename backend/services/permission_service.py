"""
Authorization policies for steward and admin actions.

Each guarded operation has exactly one policy method here. Policies take the
acting user plus the resource and either return quietly or raise a
PermissionDeniedException subclass, so callers can use them as guards
inside a transaction.

Steward scope is exact-match: a steward acts on an issue only when an
active assignment exists for the issue's (category, zone). There is no
inheritance between zones or categories. SUPER_ADMIN bypasses scope checks.
"""

from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.exceptions import (
    InsufficientPermissionsException,
    PermissionDeniedException,
    StewardAccessDeniedException,
)
from repositories.steward_repository import AssignmentRepository

UserRole = db_models.UserRole

MODERATOR_ROLES = frozenset({UserRole.STEWARD, UserRole.SUPER_ADMIN})


class PermissionService:
    """Role and scope checks for the issue lifecycle and moderation."""

    @staticmethod
    def has_steward_access(
        db: Session, steward_id: int, category_id: int, zone_id: int
    ) -> bool:
        """
        Check whether a steward may act on issues of a category in a zone.

        Args:
            db: Database session
            steward_id: Steward user ID
            category_id: Issue category ID
            zone_id: Zone ID

        Returns:
            True iff an active assignment exists for that exact triple
        """
        return AssignmentRepository(db).exists_active(steward_id, category_id, zone_id)

    @staticmethod
    def require_steward_access(
        db: Session, steward_id: int, category_id: int, zone_id: int
    ) -> None:
        """
        Guard form of has_steward_access.

        Raises:
            StewardAccessDeniedException: If no active assignment exists
        """
        if not PermissionService.has_steward_access(
            db, steward_id, category_id, zone_id
        ):
            raise StewardAccessDeniedException(category_id, zone_id)

    @staticmethod
    def _require_issue_scope(
        db: Session, actor: db_models.User, issue: db_models.Issue, action: str
    ) -> None:
        if actor.role == UserRole.SUPER_ADMIN:
            return
        if actor.role == UserRole.STEWARD:
            PermissionService.require_steward_access(
                db, actor.id, issue.category_id, issue.zone_id
            )
            return
        raise InsufficientPermissionsException(f"Citizens cannot {action}")

    @staticmethod
    def can_update_status(
        db: Session, actor: db_models.User, issue: db_models.Issue
    ) -> None:
        """Policy for status changes, archiving and bulk updates."""
        PermissionService._require_issue_scope(db, actor, issue, "change issue status")

    @staticmethod
    def can_mark_duplicate(
        db: Session, actor: db_models.User, issue: db_models.Issue
    ) -> None:
        """Policy for linking an issue to its primary issue."""
        PermissionService._require_issue_scope(
            db, actor, issue, "mark issues as duplicate"
        )

    @staticmethod
    def can_manage_notes(
        db: Session, actor: db_models.User, issue: db_models.Issue
    ) -> None:
        """Policy for adding and reading steward notes."""
        PermissionService._require_issue_scope(db, actor, issue, "access steward notes")

    @staticmethod
    def can_hard_delete(actor: db_models.User, issue: db_models.Issue) -> None:
        """
        Policy for irreversible issue deletion.

        Raises:
            PermissionDeniedException: Unless actor is SUPER_ADMIN or the reporter
        """
        if actor.role == UserRole.SUPER_ADMIN or actor.id == issue.user_id:
            return
        raise PermissionDeniedException(
            "Only the reporter or a super admin can delete this issue"
        )

    @staticmethod
    def can_review_comments(actor: db_models.User) -> None:
        """Comment moderation is global for stewards and super admins."""
        if actor.role not in MODERATOR_ROLES:
            raise InsufficientPermissionsException(
                "Only stewards and admins can review flagged comments"
            )

    @staticmethod
    def can_edit_comment(actor: db_models.User, comment: db_models.Comment) -> None:
        """Only the author rewrites a comment, super admins included."""
        if actor.id != comment.user_id:
            raise PermissionDeniedException("You can only edit your own comments")

    @staticmethod
    def can_delete_comment(actor: db_models.User, comment: db_models.Comment) -> None:
        """Authors delete their comments; super admins may delete any."""
        if actor.id == comment.user_id or actor.role == UserRole.SUPER_ADMIN:
            return
        raise PermissionDeniedException("You can only delete your own comments")

    @staticmethod
    def can_manage_media(actor: db_models.User, issue: db_models.Issue) -> None:
        """Media on an issue is managed by its reporter or a super admin."""
        if actor.id == issue.user_id or actor.role == UserRole.SUPER_ADMIN:
            return
        raise PermissionDeniedException("Only the reporter can manage issue media")

    @staticmethod
    def require_super_admin(actor: db_models.User) -> None:
        """Policy for zone, badge, assignment, application and role management."""
        if actor.role != UserRole.SUPER_ADMIN:
            raise InsufficientPermissionsException("Super admin permissions required")
