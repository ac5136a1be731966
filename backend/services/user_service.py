"""
User Service

Registration, profiles, leaderboard and role management.
"""

from typing import List

from loguru import logger
from sqlalchemy import func
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    BusinessRuleException,
    UserAlreadyExistsException,
    UserNotFoundException,
)
from repositories.badge_repository import BadgeRepository
from repositories.database import transaction
from repositories.user_repository import UserRepository
from services.cache_service import (
    LEADERBOARD_TTL,
    STATS_TTL,
    USER_BADGES_TTL,
    USER_TTL,
    CacheService,
    cache_key,
)
from services.permission_service import PermissionService


class UserService:
    """Service for managing users."""

    @staticmethod
    def register_user(db: Session, user_data: schemas.UserCreate) -> db_models.User:
        """
        Register a new citizen account.

        Args:
            db: Database session
            user_data: Registration payload

        Returns:
            Created user

        Raises:
            UserAlreadyExistsException: If the email is already registered
        """
        repo = UserRepository(db)
        if repo.get_by_email(user_data.email):
            raise UserAlreadyExistsException("Email already registered")

        with transaction(db):
            user = repo.add(
                db_models.User(
                    email=user_data.email.lower(),
                    full_name=user_data.full_name,
                    hashed_password=auth.get_password_hash(user_data.password),
                    role=db_models.UserRole.CITIZEN,
                )
            )
        logger.info(f"User registered: id={user.id}")
        return user

    @staticmethod
    def get_user(db: Session, user_id: int) -> db_models.User:
        user = UserRepository(db).get_by_id(user_id)
        if not user:
            raise UserNotFoundException(f"User with ID {user_id} not found")
        return user

    @staticmethod
    def get_public_profile(db: Session, user_id: int) -> dict:
        """Public profile (cached)."""

        def _load() -> dict:
            user = UserService.get_user(db, user_id)
            return schemas.UserPublic.model_validate(user).model_dump(mode="json")

        return CacheService.cached(cache_key("user", user_id), _load, USER_TTL)

    @staticmethod
    def get_leaderboard(db: Session, limit: int = 50) -> list[dict]:
        """
        Users ranked by reputation (cached).

        The full top 100 is cached once and sliced per request.
        """

        def _load() -> list[dict]:
            return [
                schemas.UserPublic.model_validate(user).model_dump(mode="json")
                for user in UserRepository(db).get_leaderboard(100)
            ]

        board = CacheService.cached(cache_key("leaderboard"), _load, LEADERBOARD_TTL)
        return board[:limit]

    @staticmethod
    def get_user_stats(db: Session, user_id: int) -> dict:
        """Activity summary for a user (cached)."""

        def _load() -> dict:
            user = UserService.get_user(db, user_id)
            comments = (
                db.query(func.count(db_models.Comment.id))
                .filter(db_models.Comment.user_id == user_id)
                .scalar()
            )
            votes = (
                db.query(func.count(db_models.Vote.id))
                .filter(db_models.Vote.user_id == user_id)
                .scalar()
            )
            badges = len(BadgeRepository(db).get_user_badges(user_id))
            return schemas.UserStats(
                user_id=user.id,
                reputation_score=user.reputation_score,
                issues_reported=user.issues_reported,
                issues_resolved=user.issues_resolved,
                comments_count=comments or 0,
                votes_cast=votes or 0,
                badges_count=badges,
            ).model_dump(mode="json")

        return CacheService.cached(cache_key("user", user_id, "stats"), _load, STATS_TTL)

    @staticmethod
    def get_user_badges(db: Session, user_id: int) -> list[dict]:
        """Badges held by a user, newest first (cached)."""

        def _load() -> list[dict]:
            UserService.get_user(db, user_id)
            return [
                schemas.UserBadge.model_validate(award).model_dump(mode="json")
                for award in BadgeRepository(db).get_user_badges(user_id)
            ]

        return CacheService.cached(
            cache_key("user", user_id, "badges"), _load, USER_BADGES_TTL
        )

    @staticmethod
    def search_users(db: Session, term: str, limit: int = 20) -> List[db_models.User]:
        return UserRepository(db).search(term, limit)

    @staticmethod
    def update_role(
        db: Session,
        user_id: int,
        new_role: db_models.UserRole,
        actor: db_models.User,
    ) -> db_models.User:
        """
        Change a user's role.

        Demoting a steward deactivates their assignments so no scope outlives
        the role.

        Args:
            db: Database session
            user_id: Target user ID
            new_role: Role to grant
            actor: Super admin performing the change

        Returns:
            Updated user

        Raises:
            InsufficientPermissionsException: If actor is not a super admin
            UserNotFoundException: If user not found
            BusinessRuleException: If an admin tries to change their own role
        """
        PermissionService.require_super_admin(actor)
        user = UserService.get_user(db, user_id)
        if user.id == actor.id:
            raise BusinessRuleException("You cannot change your own role")

        with transaction(db):
            old_role = user.role
            user.role = new_role
            if old_role == db_models.UserRole.STEWARD and new_role != old_role:
                db.query(db_models.StewardCategoryAssignment).filter(
                    db_models.StewardCategoryAssignment.steward_id == user.id
                ).update(
                    {db_models.StewardCategoryAssignment.is_active: False},
                    synchronize_session="fetch",
                )
            db.flush()

        CacheService.invalidate(cache_key("user", user_id), cache_key("leaderboard"))
        logger.info(f"User {user_id} role changed {old_role.value} -> {new_role.value}")
        return user
