"""
Badge service: badge catalogue and reputation-based awards.
"""

from typing import List

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    AlreadyExistsException,
    BadgeNotFoundException,
    ConflictException,
    NotFoundException,
    UserNotFoundException,
)
from repositories.badge_repository import BadgeRepository
from repositories.database import transaction
from repositories.user_repository import UserRepository
from services.cache_service import BADGES_TTL, CacheService, cache_key


class BadgeService:
    """Service for badge business logic."""

    @staticmethod
    def invalidate_caches(user_id: int | None = None) -> None:
        keys = [cache_key("badges", "all")]
        if user_id is not None:
            keys.append(cache_key("user", user_id, "badges"))
            keys.append(cache_key("user", user_id, "stats"))
        CacheService.invalidate(*keys)

    @staticmethod
    def list_badges(db: Session) -> list[dict]:
        """All badges ordered by required score (cached)."""

        def _load() -> list[dict]:
            return [
                schemas.Badge.model_validate(badge).model_dump(mode="json")
                for badge in BadgeRepository(db).list_badges()
            ]

        return CacheService.cached(cache_key("badges", "all"), _load, BADGES_TTL)

    @staticmethod
    def get_badge(db: Session, badge_id: int) -> db_models.Badge:
        badge = BadgeRepository(db).get_by_id(badge_id)
        if not badge:
            raise BadgeNotFoundException(badge_id)
        return badge

    @staticmethod
    def create_badge(db: Session, data: schemas.BadgeCreate) -> db_models.Badge:
        """
        Create a badge.

        Raises:
            AlreadyExistsException: If a badge with the same name exists
        """
        repo = BadgeRepository(db)
        if repo.get_by_name(data.name):
            raise AlreadyExistsException(f"Badge '{data.name}' already exists")
        with transaction(db):
            badge = repo.add(db_models.Badge(**data.model_dump()))
        BadgeService.invalidate_caches()
        logger.info(f"Badge created: {badge.name} (score {badge.required_score})")
        return badge

    @staticmethod
    def update_badge(
        db: Session, badge_id: int, data: schemas.BadgeUpdate
    ) -> db_models.Badge:
        repo = BadgeRepository(db)
        badge = BadgeService.get_badge(db, badge_id)
        updates = data.model_dump(exclude_unset=True)
        if "name" in updates and updates["name"] != badge.name:
            if repo.get_by_name(updates["name"]):
                raise AlreadyExistsException(f"Badge '{updates['name']}' already exists")
        with transaction(db):
            for field, value in updates.items():
                setattr(badge, field, value)
            repo.flush()
        BadgeService.invalidate_caches()
        return badge

    @staticmethod
    def delete_badge(db: Session, badge_id: int) -> None:
        """Delete a badge and every award of it."""
        repo = BadgeRepository(db)
        badge = BadgeService.get_badge(db, badge_id)
        with transaction(db):
            repo.delete_awards(badge_id)
            repo.delete(badge)
        CacheService.invalidate_prefix(cache_key("user"))
        BadgeService.invalidate_caches()
        logger.info(f"Badge {badge_id} deleted")

    @staticmethod
    def award_badge(db: Session, user_id: int, badge_id: int) -> db_models.UserBadge:
        """
        Manually award a badge.

        Raises:
            UserNotFoundException: If user not found
            BadgeNotFoundException: If badge not found
            ConflictException: If the user already holds the badge
        """
        repo = BadgeRepository(db)
        if not UserRepository(db).get_by_id(user_id):
            raise UserNotFoundException(f"User with ID {user_id} not found")
        BadgeService.get_badge(db, badge_id)
        if repo.get_user_badge(user_id, badge_id):
            raise ConflictException("User already holds this badge")
        with transaction(db):
            award = db_models.UserBadge(user_id=user_id, badge_id=badge_id)
            db.add(award)
            db.flush()
        BadgeService.invalidate_caches(user_id)
        return award

    @staticmethod
    def remove_badge(db: Session, user_id: int, badge_id: int) -> None:
        repo = BadgeRepository(db)
        award = repo.get_user_badge(user_id, badge_id)
        if not award:
            raise NotFoundException("User does not hold this badge")
        with transaction(db):
            db.delete(award)
            db.flush()
        BadgeService.invalidate_caches(user_id)

    @staticmethod
    def get_holders(
        db: Session, badge_id: int, skip: int = 0, limit: int = 50
    ) -> list[schemas.BadgeHolder]:
        BadgeService.get_badge(db, badge_id)
        return [
            schemas.BadgeHolder(
                user_id=award.user.id,
                full_name=award.user.full_name,
                reputation_score=award.user.reputation_score,
                awarded_at=award.awarded_at,
            )
            for award in BadgeRepository(db).get_holders(badge_id, skip, limit)
        ]

    @staticmethod
    def get_stats(db: Session, badge_id: int) -> schemas.BadgeStats:
        BadgeService.get_badge(db, badge_id)
        holders = BadgeRepository(db).count_holders(badge_id)
        total_users = UserRepository(db).count()
        percentage = round(holders * 100.0 / total_users, 2) if total_users else 0.0
        return schemas.BadgeStats(
            badge_id=badge_id,
            holder_count=holders,
            total_users=total_users,
            holder_percentage=percentage,
        )

    @staticmethod
    def check_and_award_badges(
        db: Session, user_id: int, score: int
    ) -> List[db_models.Badge]:
        """
        Award every badge whose threshold the user's score has reached.

        Runs inside the caller's transaction; badges already held are
        skipped, so each badge is earned at most once. The caller clears the
        badge caches after commit.

        Args:
            db: Database session
            user_id: User ID
            score: User's current reputation

        Returns:
            Newly awarded badges
        """
        repo = BadgeRepository(db)
        earned = repo.get_unearned_within_score(user_id, score)
        for badge in earned:
            db.add(db_models.UserBadge(user_id=user_id, badge_id=badge.id))
            logger.info(f"User {user_id} earned badge '{badge.name}'")
        if earned:
            db.flush()
        return earned
