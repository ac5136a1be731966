"""
Steward Service

Steward applications, (category, zone) assignments, notes and workload.
"""

from datetime import datetime, timezone
from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    ApplicationAlreadyReviewedException,
    ApplicationNotFoundException,
    AssignmentAlreadyExistsException,
    AssignmentNotFoundException,
    BusinessRuleException,
    DuplicateApplicationException,
    InactiveZoneException,
    IssueNotFoundException,
    NotAStewardException,
    UserNotFoundException,
    ValidationException,
)
from repositories.database import transaction
from repositories.issue_repository import IssueHistoryRepository, IssueRepository
from repositories.steward_repository import (
    ApplicationRepository,
    AssignmentRepository,
    StewardNoteRepository,
)
from repositories.user_repository import UserRepository
from repositories.zone_repository import ACTIVE_ISSUE_STATUSES
from services.cache_service import CacheService, cache_key
from services.category_service import CategoryService
from services.permission_service import PermissionService
from services.zone_service import ZoneService

UserRole = db_models.UserRole

# Urgency at or above which an issue counts as high priority
HIGH_URGENCY = 8


class StewardService:
    """Service for steward management."""

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    @staticmethod
    def submit_application(
        db: Session, user: db_models.User, justification: str
    ) -> db_models.StewardApplication:
        """
        Apply for the steward role.

        Raises:
            BusinessRuleException: If the user already holds an elevated role
            DuplicateApplicationException: If a pending or approved
                application exists
        """
        if user.role != UserRole.CITIZEN:
            raise BusinessRuleException("Only citizens can apply to become stewards")
        repo = ApplicationRepository(db)
        if repo.get_open_for_user(user.id):
            raise DuplicateApplicationException()
        try:
            with transaction(db):
                application = repo.add(
                    db_models.StewardApplication(
                        user_id=user.id, justification=justification
                    )
                )
        except IntegrityError:
            raise DuplicateApplicationException()
        logger.info(f"Steward application {application.id} submitted by user {user.id}")
        return application

    @staticmethod
    def get_my_application(
        db: Session, user_id: int
    ) -> db_models.StewardApplication:
        application = ApplicationRepository(db).get_latest_for_user(user_id)
        if not application:
            raise ApplicationNotFoundException("No steward application found")
        return application

    @staticmethod
    def get_pending_applications(db: Session) -> List[db_models.StewardApplication]:
        return ApplicationRepository(db).get_pending()

    @staticmethod
    def review_application(
        db: Session,
        application_id: int,
        reviewer: db_models.User,
        status: db_models.ApplicationStatus,
        feedback: Optional[str] = None,
    ) -> db_models.StewardApplication:
        """
        Approve or reject a pending application.

        Approval promotes a citizen applicant to STEWARD in the same
        transaction. The new steward still needs assignments before they
        can act on any issue.

        Args:
            db: Database session
            application_id: Application ID
            reviewer: Super admin
            status: APPROVED or REJECTED
            feedback: Optional message to the applicant

        Returns:
            Reviewed application

        Raises:
            ValidationException: If status is PENDING
            ApplicationNotFoundException: If application not found
            ApplicationAlreadyReviewedException: If already reviewed
        """
        PermissionService.require_super_admin(reviewer)
        if status == db_models.ApplicationStatus.PENDING:
            raise ValidationException("Review status must be APPROVED or REJECTED")

        repo = ApplicationRepository(db)
        application = repo.get_by_id(application_id)
        if not application:
            raise ApplicationNotFoundException(
                f"Application with ID {application_id} not found"
            )
        if application.status != db_models.ApplicationStatus.PENDING:
            raise ApplicationAlreadyReviewedException(application_id)

        with transaction(db):
            application.status = status
            application.reviewed_by = reviewer.id
            application.reviewed_at = datetime.now(timezone.utc)
            application.feedback = feedback
            if (
                status == db_models.ApplicationStatus.APPROVED
                and application.applicant.role == UserRole.CITIZEN
            ):
                application.applicant.role = UserRole.STEWARD
            repo.flush()

        CacheService.invalidate(
            cache_key("user", application.user_id), cache_key("leaderboard")
        )
        logger.info(
            f"Steward application {application_id} {status.value} by user {reviewer.id}"
        )
        return application

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    @staticmethod
    def _require_steward(db: Session, steward_id: int) -> db_models.User:
        user = UserRepository(db).get_by_id(steward_id)
        if not user:
            raise UserNotFoundException(f"User with ID {steward_id} not found")
        if user.role != UserRole.STEWARD:
            raise NotAStewardException(steward_id)
        return user

    @staticmethod
    def _stage_assignment(
        db: Session, steward_id: int, category_id: int, zone_id: int, actor_id: int
    ) -> Optional[db_models.StewardCategoryAssignment]:
        """Create or reactivate a triple; None when it is already active."""
        repo = AssignmentRepository(db)
        existing = repo.get_triple(steward_id, category_id, zone_id)
        if existing is None:
            return repo.add(
                db_models.StewardCategoryAssignment(
                    steward_id=steward_id,
                    category_id=category_id,
                    zone_id=zone_id,
                    assigned_by=actor_id,
                )
            )
        if existing.is_active:
            return None
        existing.is_active = True
        existing.assigned_by = actor_id
        repo.flush()
        return existing

    @staticmethod
    def assign(
        db: Session,
        steward_id: int,
        category_id: int,
        zone_id: int,
        actor: db_models.User,
    ) -> db_models.StewardCategoryAssignment:
        """
        Give a steward authority over one category in one zone.

        Re-assigning a previously removed triple reactivates the old row.

        Raises:
            UserNotFoundException: If the steward does not exist
            NotAStewardException: If the user is not a steward
            CategoryNotFoundException: If category not found
            ZoneNotFoundException: If zone not found
            InactiveZoneException: If the zone is deactivated
            AssignmentAlreadyExistsException: If the triple is already active
        """
        PermissionService.require_super_admin(actor)
        StewardService._require_steward(db, steward_id)
        CategoryService.get_category(db, category_id)
        zone = ZoneService.get_zone(db, zone_id)
        if not zone.is_active:
            raise InactiveZoneException(zone_id)

        try:
            with transaction(db):
                assignment = StewardService._stage_assignment(
                    db, steward_id, category_id, zone_id, actor.id
                )
                if assignment is None:
                    raise AssignmentAlreadyExistsException()
        except IntegrityError:
            raise AssignmentAlreadyExistsException()

        CacheService.invalidate(cache_key("zone", zone_id, "stats"))
        logger.info(
            f"Steward {steward_id} assigned to category {category_id} "
            f"in zone {zone_id} by user {actor.id}"
        )
        return assignment

    @staticmethod
    def bulk_assign(
        db: Session, data: schemas.BulkAssignmentCreate, actor: db_models.User
    ) -> List[db_models.StewardCategoryAssignment]:
        """
        Assign several categories of one zone at once.

        Triples that are already active are skipped; any missing category
        aborts the whole batch.

        Returns:
            Assignments created or reactivated by this call
        """
        PermissionService.require_super_admin(actor)
        StewardService._require_steward(db, data.steward_id)
        zone = ZoneService.get_zone(db, data.zone_id)
        if not zone.is_active:
            raise InactiveZoneException(data.zone_id)
        category_ids = list(dict.fromkeys(data.category_ids))
        for category_id in category_ids:
            CategoryService.get_category(db, category_id)

        try:
            with transaction(db):
                staged = [
                    StewardService._stage_assignment(
                        db, data.steward_id, category_id, data.zone_id, actor.id
                    )
                    for category_id in category_ids
                ]
        except IntegrityError:
            # Another request assigned one of the triples first
            raise AssignmentAlreadyExistsException()
        created = [assignment for assignment in staged if assignment is not None]

        CacheService.invalidate(cache_key("zone", data.zone_id, "stats"))
        logger.info(
            f"Steward {data.steward_id} bulk assigned {len(created)} categories "
            f"in zone {data.zone_id}"
        )
        return created

    @staticmethod
    def remove_assignment(db: Session, assignment_id: int) -> None:
        """Deactivate an assignment; the row is kept for history."""
        repo = AssignmentRepository(db)
        assignment = repo.get_by_id(assignment_id)
        if not assignment or not assignment.is_active:
            raise AssignmentNotFoundException(
                f"Active assignment with ID {assignment_id} not found"
            )
        with transaction(db):
            assignment.is_active = False
            repo.flush()
        CacheService.invalidate(cache_key("zone", assignment.zone_id, "stats"))
        logger.info(f"Assignment {assignment_id} removed")

    @staticmethod
    def get_assignments(
        db: Session, steward_id: int, active_only: bool = True
    ) -> List[db_models.StewardCategoryAssignment]:
        if not UserRepository(db).get_by_id(steward_id):
            raise UserNotFoundException(f"User with ID {steward_id} not found")
        return AssignmentRepository(db).get_for_steward(steward_id, active_only)

    @staticmethod
    def list_stewards(db: Session) -> List[db_models.User]:
        return UserRepository(db).get_by_role(UserRole.STEWARD)

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    @staticmethod
    def _get_issue(db: Session, issue_id: int) -> db_models.Issue:
        issue = IssueRepository(db).get_by_id(issue_id)
        if not issue:
            raise IssueNotFoundException(issue_id)
        return issue

    @staticmethod
    def add_note(
        db: Session, issue_id: int, actor: db_models.User, note: str
    ) -> db_models.StewardNote:
        """
        Attach an internal note to an issue.

        Raises:
            IssueNotFoundException: If issue not found
            PermissionDeniedException: If actor has no scope over the issue
        """
        issue = StewardService._get_issue(db, issue_id)
        PermissionService.can_manage_notes(db, actor, issue)
        with transaction(db):
            created = StewardNoteRepository(db).add(
                db_models.StewardNote(issue_id=issue_id, steward_id=actor.id, note=note)
            )
        return created

    @staticmethod
    def get_notes(
        db: Session, issue_id: int, actor: db_models.User
    ) -> List[db_models.StewardNote]:
        issue = StewardService._get_issue(db, issue_id)
        PermissionService.can_manage_notes(db, actor, issue)
        return StewardNoteRepository(db).get_for_issue(issue_id)

    # ------------------------------------------------------------------
    # Workload
    # ------------------------------------------------------------------

    @staticmethod
    def get_my_issues(
        db: Session,
        steward: db_models.User,
        status: Optional[db_models.IssueStatus] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[db_models.Issue]:
        """Issues in the steward's scope, most urgent first."""
        statuses = (status,) if status else ACTIVE_ISSUE_STATUSES
        return IssueRepository(db).get_in_steward_scope(
            steward.id, statuses, skip, limit
        )

    @staticmethod
    def get_stats(db: Session, steward_id: int) -> schemas.StewardStats:
        StewardService._require_steward(db, steward_id)
        issue_repo = IssueRepository(db)
        counts = issue_repo.get_scope_status_counts(steward_id)
        return schemas.StewardStats(
            steward_id=steward_id,
            active_assignments=len(AssignmentRepository(db).get_for_steward(steward_id)),
            issues_in_scope=sum(counts.values()),
            open_issues=sum(counts[s.value] for s in ACTIVE_ISSUE_STATUSES),
            resolved_issues=counts[db_models.IssueStatus.RESOLVED.value],
            status_changes=IssueHistoryRepository(db).count_by_user(steward_id),
            notes_written=StewardNoteRepository(db).count_by_steward(steward_id),
        )

    @staticmethod
    def get_workload(db: Session, steward: db_models.User) -> schemas.StewardWorkload:
        issue_repo = IssueRepository(db)
        return schemas.StewardWorkload(
            steward_id=steward.id,
            status_counts=issue_repo.get_scope_status_counts(steward.id),
            assigned_to_me=issue_repo.count_assigned_to(
                steward.id, ACTIVE_ISSUE_STATUSES
            ),
            high_urgency=issue_repo.count_high_urgency_in_scope(
                steward.id, HIGH_URGENCY, ACTIVE_ISSUE_STATUSES
            ),
        )
