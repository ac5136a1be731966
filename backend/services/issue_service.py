"""
Issue Service

Reporting, reading and the status lifecycle of civic issues.

Any authorized actor may move an issue to any status directly; there is no
predecessor check. Re-applying the current status is rejected, and DUPLICATE
is only reachable through mark_duplicate so the primary link is always set.
"""

import re
from datetime import datetime, timezone
from typing import List, Optional

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    BusinessRuleException,
    CannotVoteOwnIssueException,
    InactiveZoneException,
    InvalidStatusTransitionException,
    IssueNotFoundException,
    ValidationException,
)
from repositories.database import transaction
from repositories.issue_repository import IssueHistoryRepository, IssueRepository
from repositories.media_repository import MediaRepository
from repositories.user_repository import UserRepository
from repositories.zone_repository import ACTIVE_ISSUE_STATUSES
from services.cache_service import CacheService, cache_key
from services.category_service import CategoryService
from services.media_service import MediaService
from services.permission_service import PermissionService
from services.rate_limit_service import RateLimitService
from services.reputation_service import (
    DUPLICATE_REPORTED,
    ISSUE_REPORTED,
    ISSUE_RESOLVED,
    ReputationService,
)
from services.vote_service import VoteService
from services.zone_service import ZoneService

IssueStatus = db_models.IssueStatus

# Issues in these states no longer accept votes
CLOSED_TO_VOTING = (IssueStatus.ARCHIVED, IssueStatus.DUPLICATE)

_STOP_WORDS = frozenset(
    {"the", "and", "for", "with", "from", "near", "this", "that", "there", "street"}
)
_MAX_KEYWORDS = 5


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def extract_keywords(title: str) -> list[str]:
    """
    Pick the significant words of a title for similarity search.

    Words shorter than four letters and common filler words are dropped.
    """
    words = re.findall(r"[a-z0-9]+", title.lower())
    keywords: list[str] = []
    for word in words:
        if len(word) < 4 or word in _STOP_WORDS or word in keywords:
            continue
        keywords.append(word)
    return keywords[:_MAX_KEYWORDS]


class IssueService:
    """Service for issue business logic."""

    @staticmethod
    def _get_issue(db: Session, issue_id: int) -> db_models.Issue:
        issue = IssueRepository(db).get_by_id(issue_id)
        if not issue:
            raise IssueNotFoundException(issue_id)
        return issue

    @staticmethod
    def _invalidate_aggregates(*zone_ids: int) -> None:
        for zone_id in set(zone_ids):
            CacheService.invalidate(cache_key("zone", zone_id, "stats"))
        CacheService.invalidate_prefix(cache_key("dashboard"))

    # ------------------------------------------------------------------
    # Reporting and reads
    # ------------------------------------------------------------------

    @staticmethod
    def create_issue(
        db: Session, reporter: db_models.User, data: schemas.IssueCreate
    ) -> db_models.Issue:
        """
        Report a new issue.

        Args:
            db: Database session
            reporter: Reporting user
            data: Issue payload

        Returns:
            Created issue (status OPEN)

        Raises:
            RateLimitExceededException: If the reporter's issue budget is spent
            CategoryNotFoundException: If category not found
            ZoneNotFoundException: If zone not found
            InactiveZoneException: If the zone is deactivated
        """
        RateLimitService.hit("issue", reporter.id)
        CategoryService.get_category(db, data.category_id)
        zone = ZoneService.get_zone(db, data.zone_id)
        if not zone.is_active:
            raise InactiveZoneException(zone.id)

        repo = IssueRepository(db)
        with transaction(db):
            issue = repo.add(
                db_models.Issue(
                    title=data.title,
                    description=data.description,
                    category_id=data.category_id,
                    zone_id=data.zone_id,
                    user_id=reporter.id,
                    status=IssueStatus.OPEN,
                    urgency_score=data.urgency_score,
                    location_lat=data.location_lat,
                    location_lng=data.location_lng,
                    address=data.address,
                )
            )
            IssueHistoryRepository(db).record(
                issue.id, reporter.id, None, IssueStatus.OPEN, "Issue reported"
            )

            media_repo = MediaRepository(db)
            if data.thumbnail_url:
                media_repo.add(
                    MediaService.build_media(
                        issue.id, reporter.id, data.thumbnail_url, is_thumbnail=True
                    )
                )
            for url in data.media_urls:
                media_repo.add(MediaService.build_media(issue.id, reporter.id, url))

            UserRepository(db).increment_counter(reporter.id, "issues_reported")
            ReputationService.apply(db, reporter.id, ISSUE_REPORTED)

        IssueService._invalidate_aggregates(issue.zone_id)
        ReputationService.invalidate_users(reporter.id)
        logger.info(
            f"Issue {issue.id} reported in zone {issue.zone_id} "
            f"(category {issue.category_id})"
        )
        return issue

    @staticmethod
    def get_issue(db: Session, issue_id: int) -> db_models.Issue:
        return IssueService._get_issue(db, issue_id)

    @staticmethod
    def get_issue_detail(db: Session, issue_id: int) -> schemas.IssueDetail:
        """Issue with its comment and vote counts and media."""
        issue = IssueService._get_issue(db, issue_id)
        counts = IssueRepository(db).count_children(issue_id)
        media = MediaRepository(db).get_for_issue(issue_id)
        return schemas.IssueDetail.model_validate(
            {
                **schemas.Issue.model_validate(issue).model_dump(),
                "comment_count": counts["comment_count"],
                "vote_count": counts["vote_count"],
                "media": [schemas.Media.model_validate(m) for m in media],
            }
        )

    @staticmethod
    def list_issues(
        db: Session,
        status: Optional[IssueStatus] = None,
        category_id: Optional[int] = None,
        zone_id: Optional[int] = None,
        user_id: Optional[int] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> schemas.IssueList:
        issues, total = IssueRepository(db).list_issues(
            status=status,
            category_id=category_id,
            zone_id=zone_id,
            user_id=user_id,
            search=search,
            skip=skip,
            limit=limit,
        )
        return schemas.IssueList(
            items=[schemas.Issue.model_validate(issue) for issue in issues],
            total=total,
            skip=skip,
            limit=limit,
        )

    @staticmethod
    def get_issue_history(db: Session, issue_id: int) -> List[db_models.IssueHistory]:
        IssueService._get_issue(db, issue_id)
        return IssueHistoryRepository(db).get_for_issue(issue_id)

    @staticmethod
    def find_similar(
        db: Session, category_id: int, zone_id: int, title: str, limit: int = 5
    ) -> List[db_models.Issue]:
        """
        Active issues in the same category and zone sharing a title keyword.

        Shown to reporters before they file, to cut down on duplicates.
        """
        return IssueRepository(db).find_similar(
            category_id,
            zone_id,
            extract_keywords(title),
            ACTIVE_ISSUE_STATUSES,
            limit,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @staticmethod
    def _apply_status(
        db: Session,
        issue_id: int,
        new_status: IssueStatus,
        actor: db_models.User,
        reason: Optional[str],
    ) -> db_models.Issue:
        """Status change without its own transaction; shared by single and bulk updates."""
        if new_status == IssueStatus.DUPLICATE:
            raise InvalidStatusTransitionException(
                "Use mark-duplicate to link an issue to its primary issue"
            )

        issue = IssueRepository(db).get_for_update(issue_id)
        if not issue:
            raise IssueNotFoundException(issue_id)
        PermissionService.can_update_status(db, actor, issue)
        if issue.status == new_status:
            raise InvalidStatusTransitionException(
                f"Issue {issue_id} is already {new_status.value}"
            )

        old_status = issue.status
        now = _utc_now()
        issue.status = new_status
        issue.updated_at = now

        if new_status == IssueStatus.RESOLVED:
            issue.resolved_at = now
            UserRepository(db).increment_counter(issue.user_id, "issues_resolved")
            ReputationService.apply(db, issue.user_id, ISSUE_RESOLVED)
        elif old_status == IssueStatus.RESOLVED:
            issue.resolved_at = None

        if old_status == IssueStatus.DUPLICATE:
            issue.primary_issue_id = None

        if actor.role == db_models.UserRole.STEWARD and issue.assigned_steward_id is None:
            issue.assigned_steward_id = actor.id

        IssueHistoryRepository(db).record(
            issue.id, actor.id, old_status, new_status, reason
        )
        return issue

    @staticmethod
    def update_status(
        db: Session,
        issue_id: int,
        new_status: IssueStatus,
        actor: db_models.User,
        reason: Optional[str] = None,
    ) -> db_models.Issue:
        """
        Move an issue to a new status.

        Args:
            db: Database session
            issue_id: Issue ID
            new_status: Target status (not DUPLICATE)
            actor: Steward in scope or super admin
            reason: Optional reason stored in the history

        Returns:
            Updated issue

        Raises:
            IssueNotFoundException: If issue not found
            PermissionDeniedException: If actor may not change this issue
            InvalidStatusTransitionException: If the issue already has the
                status, or the target is DUPLICATE
        """
        with transaction(db):
            issue = IssueService._apply_status(db, issue_id, new_status, actor, reason)
        IssueService._invalidate_aggregates(issue.zone_id)
        ReputationService.invalidate_users(issue.user_id)
        logger.info(f"Issue {issue_id} -> {new_status.value} by user {actor.id}")
        return issue

    @staticmethod
    def bulk_update_status(
        db: Session,
        issue_ids: list[int],
        new_status: IssueStatus,
        actor: db_models.User,
        reason: Optional[str] = None,
    ) -> List[db_models.Issue]:
        """
        Apply one status change to many issues, all or nothing.

        The first failing issue aborts the batch and nothing is written.
        """
        with transaction(db):
            issues = [
                IssueService._apply_status(db, issue_id, new_status, actor, reason)
                for issue_id in dict.fromkeys(issue_ids)
            ]
        IssueService._invalidate_aggregates(*(issue.zone_id for issue in issues))
        ReputationService.invalidate_users(*(issue.user_id for issue in issues))
        logger.info(
            f"Bulk status {new_status.value} applied to {len(issues)} issues "
            f"by user {actor.id}"
        )
        return issues

    @staticmethod
    def mark_duplicate(
        db: Session,
        issue_id: int,
        primary_issue_id: int,
        actor: db_models.User,
        reason: Optional[str] = None,
    ) -> db_models.Issue:
        """
        Link an issue to the primary issue it duplicates.

        The duplicate's reporter still earns a small reputation bonus for
        the report.

        Raises:
            ValidationException: If the issue points at itself
            IssueNotFoundException: If either issue is missing
            PermissionDeniedException: If actor may not change this issue
            BusinessRuleException: If the primary is itself a duplicate
            InvalidStatusTransitionException: If the issue is already a duplicate
        """
        if issue_id == primary_issue_id:
            raise ValidationException("An issue cannot be a duplicate of itself")

        repo = IssueRepository(db)
        with transaction(db):
            issue = repo.get_for_update(issue_id)
            if not issue:
                raise IssueNotFoundException(issue_id)
            PermissionService.can_mark_duplicate(db, actor, issue)

            primary = repo.get_by_id(primary_issue_id)
            if not primary:
                raise IssueNotFoundException(primary_issue_id)
            if primary.status == IssueStatus.DUPLICATE:
                raise BusinessRuleException(
                    f"Issue {primary_issue_id} is itself a duplicate"
                )
            if issue.status == IssueStatus.DUPLICATE:
                raise InvalidStatusTransitionException(
                    f"Issue {issue_id} is already marked as duplicate"
                )

            old_status = issue.status
            issue.status = IssueStatus.DUPLICATE
            issue.primary_issue_id = primary.id
            issue.updated_at = _utc_now()
            if old_status == IssueStatus.RESOLVED:
                issue.resolved_at = None
            if (
                actor.role == db_models.UserRole.STEWARD
                and issue.assigned_steward_id is None
            ):
                issue.assigned_steward_id = actor.id

            IssueHistoryRepository(db).record(
                issue.id,
                actor.id,
                old_status,
                IssueStatus.DUPLICATE,
                reason or f"Duplicate of issue {primary.id}",
            )
            ReputationService.apply(db, issue.user_id, DUPLICATE_REPORTED)

        IssueService._invalidate_aggregates(issue.zone_id)
        ReputationService.invalidate_users(issue.user_id)
        logger.info(f"Issue {issue_id} marked duplicate of {primary_issue_id}")
        return issue

    @staticmethod
    def archive_issue(
        db: Session,
        issue_id: int,
        actor: db_models.User,
        reason: Optional[str] = None,
    ) -> db_models.Issue:
        """Soft delete: the issue stays readable with status ARCHIVED."""
        return IssueService.update_status(
            db, issue_id, IssueStatus.ARCHIVED, actor, reason
        )

    @staticmethod
    def hard_delete(db: Session, issue_id: int, actor: db_models.User) -> None:
        """
        Permanently delete an issue and everything attached to it.

        Raises:
            IssueNotFoundException: If issue not found
            PermissionDeniedException: Unless actor is the reporter or a super admin
        """
        issue = IssueService._get_issue(db, issue_id)
        PermissionService.can_hard_delete(actor, issue)
        zone_id = issue.zone_id
        with transaction(db):
            IssueRepository(db).delete_with_dependents(issue)
        IssueService._invalidate_aggregates(zone_id)
        logger.warning(f"Issue {issue_id} permanently deleted by user {actor.id}")

    # ------------------------------------------------------------------
    # Voting
    # ------------------------------------------------------------------

    @staticmethod
    def vote_on_issue(
        db: Session, issue_id: int, voter: db_models.User, vote_type: object
    ) -> schemas.VoteResult:
        """
        Vote on someone else's issue.

        Raises:
            IssueNotFoundException: If issue not found
            CannotVoteOwnIssueException: If the voter reported the issue
            BusinessRuleException: If the issue is archived or a duplicate
            RateLimitExceededException: If the voter's vote budget is spent
            InvalidVoteTypeException: If vote_type is not 1 or -1
        """
        issue = IssueService._get_issue(db, issue_id)
        if issue.user_id == voter.id:
            raise CannotVoteOwnIssueException()
        if issue.status in CLOSED_TO_VOTING:
            raise BusinessRuleException(
                f"Cannot vote on an issue with status {issue.status.value}"
            )
        RateLimitService.hit("vote", voter.id)
        return VoteService.cast_vote(db, issue_id, voter.id, vote_type)

    @staticmethod
    def remove_vote(db: Session, issue_id: int, voter: db_models.User) -> int:
        IssueService._get_issue(db, issue_id)
        return VoteService.delete_vote(db, issue_id, voter.id)

    @staticmethod
    def get_my_vote(
        db: Session, issue_id: int, voter: db_models.User
    ) -> Optional[db_models.Vote]:
        IssueService._get_issue(db, issue_id)
        return VoteService.get_user_vote(db, issue_id, voter.id)
