"""
Vote service for business logic.

Each user holds at most one vote per issue. Casting the same value again
removes it, casting the opposite value flips it. The issue's vote_score is
recomputed from the vote table after every change and the reporter's
reputation follows the vote.
"""

from datetime import datetime, timezone
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    InvalidVoteTypeException,
    IssueNotFoundException,
    VoteNotFoundException,
)
from repositories.database import transaction
from repositories.issue_repository import IssueRepository
from repositories.vote_repository import VoteRepository
from services.cache_service import CacheService, cache_key
from services.reputation_service import ReputationService

VALID_VOTE_TYPES = (db_models.VoteType.UPVOTE.value, db_models.VoteType.DOWNVOTE.value)


class VoteService:
    """Service for vote-related business logic."""

    @staticmethod
    def _validate_vote_type(vote_type: object) -> int:
        if isinstance(vote_type, bool) or vote_type not in VALID_VOTE_TYPES:
            raise InvalidVoteTypeException(vote_type)
        return int(vote_type)  # type: ignore[call-overload]

    @staticmethod
    def cast_vote(
        db: Session, issue_id: int, voter_id: int, vote_type: object
    ) -> schemas.VoteResult:
        """
        Cast, toggle off or flip a vote.

        Args:
            db: Database session
            issue_id: Issue ID
            voter_id: Voting user ID
            vote_type: 1 (upvote) or -1 (downvote)

        Returns:
            Action taken, the resulting vote value (None after toggle-off)
            and the recomputed vote score

        Raises:
            InvalidVoteTypeException: If vote_type is not 1 or -1
            IssueNotFoundException: If issue not found
        """
        value = VoteService._validate_vote_type(vote_type)
        issue_repo = IssueRepository(db)
        vote_repo = VoteRepository(db)

        with transaction(db):
            issue = issue_repo.get_for_update(issue_id)
            if not issue:
                raise IssueNotFoundException(issue_id)

            existing = vote_repo.get_by_issue_and_user(issue_id, voter_id)
            old_value: Optional[int] = existing.vote_type if existing else None

            if existing is None:
                vote_repo.add(
                    db_models.Vote(issue_id=issue_id, user_id=voter_id, vote_type=value)
                )
                action, new_value = "created", value
            elif existing.vote_type == value:
                vote_repo.delete(existing)
                action, new_value = "removed", None
            else:
                existing.vote_type = value
                existing.updated_at = datetime.now(timezone.utc)
                vote_repo.flush()
                action, new_value = "changed", value

            score = issue_repo.recompute_vote_score(issue_id)
            ReputationService.apply(
                db, issue.user_id, ReputationService.vote_delta(old_value, new_value)
            )

        ReputationService.invalidate_users(issue.user_id)
        CacheService.invalidate_prefix(cache_key("dashboard"))
        logger.debug(f"Vote {action} on issue {issue_id} by user {voter_id}")
        return schemas.VoteResult(action=action, vote_type=new_value, vote_score=score)

    @staticmethod
    def delete_vote(db: Session, issue_id: int, voter_id: int) -> int:
        """
        Remove a user's vote explicitly.

        Args:
            db: Database session
            issue_id: Issue ID
            voter_id: Voting user ID

        Returns:
            The recomputed vote score

        Raises:
            VoteNotFoundException: If the user has not voted on the issue
        """
        issue_repo = IssueRepository(db)
        vote_repo = VoteRepository(db)

        with transaction(db):
            issue = issue_repo.get_for_update(issue_id)
            if not issue:
                raise IssueNotFoundException(issue_id)
            vote = vote_repo.get_by_issue_and_user(issue_id, voter_id)
            if not vote:
                raise VoteNotFoundException("Vote not found")

            old_value = vote.vote_type
            vote_repo.delete(vote)
            score = issue_repo.recompute_vote_score(issue_id)
            ReputationService.apply(
                db, issue.user_id, ReputationService.vote_delta(old_value, None)
            )

        ReputationService.invalidate_users(issue.user_id)
        CacheService.invalidate_prefix(cache_key("dashboard"))
        return score

    @staticmethod
    def get_user_vote(
        db: Session, issue_id: int, user_id: int
    ) -> Optional[db_models.Vote]:
        return VoteRepository(db).get_by_issue_and_user(issue_id, user_id)

    @staticmethod
    def get_vote_counts(db: Session, issue_id: int) -> dict[str, int]:
        return VoteRepository(db).get_counts(issue_id)
