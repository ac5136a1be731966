"""
Reputation awards for lifecycle, voting and comment events.
"""

from sqlalchemy.orm import Session

from repositories.user_repository import UserRepository
from services.badge_service import BadgeService
from services.cache_service import CacheService, cache_key

ISSUE_REPORTED = 5
ISSUE_RESOLVED = 10
DUPLICATE_REPORTED = 3
COMMENT_POSTED = 1

# Points the issue reporter gains or loses per vote received
UPVOTE_RECEIVED = 2
DOWNVOTE_RECEIVED = -1


class ReputationService:
    """Applies reputation deltas inside the caller's transaction."""

    @staticmethod
    def apply(db: Session, user_id: int, delta: int) -> int:
        """
        Change a user's reputation and award any badge the new score unlocks.

        The score is clamped at zero by the update itself.

        Args:
            db: Database session
            user_id: User receiving the change
            delta: Points to add (negative to remove)

        Returns:
            Reputation after the change
        """
        score = UserRepository(db).adjust_reputation(user_id, delta)
        if delta > 0:
            BadgeService.check_and_award_badges(db, user_id, score)
        return score

    @staticmethod
    def invalidate_users(*user_ids: int) -> None:
        """
        Drop cached profiles, stats, badges and the leaderboard.

        Call after the transaction that applied the change has committed.
        """
        for user_id in set(user_ids):
            CacheService.invalidate(cache_key("user", user_id))
            BadgeService.invalidate_caches(user_id)
        CacheService.invalidate(cache_key("leaderboard"))

    @staticmethod
    def vote_delta(old_vote: int | None, new_vote: int | None) -> int:
        """
        Reputation change for the reporter when a vote moves.

        Args:
            old_vote: Previous vote value (None if there was none)
            new_vote: Vote value after the change (None if removed)

        Returns:
            Delta for the reporter: +2/-1 for a new vote, the reverse on
            removal, and the full swing (+3/-3) on a flip
        """

        def _points(vote: int | None) -> int:
            if vote is None:
                return 0
            return UPVOTE_RECEIVED if vote > 0 else DOWNVOTE_RECEIVED

        return _points(new_vote) - _points(old_vote)
