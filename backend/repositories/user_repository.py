"""
User repository for database operations.
"""

from typing import List, Optional

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class UserRepository(BaseRepository[db_models.User]):
    """Repository for User entity database operations."""

    def __init__(self, db: Session):
        super().__init__(db_models.User, db)

    def get_by_email(self, email: str) -> Optional[db_models.User]:
        """
        Get user by email address (case-insensitive).

        Args:
            email: Email address

        Returns:
            User if found, None otherwise
        """
        return (
            self.db.query(db_models.User)
            .filter(func.lower(db_models.User.email) == email.lower())
            .first()
        )

    def adjust_reputation(self, user_id: int, delta: int) -> int:
        """
        Add a (possibly negative) delta to a user's reputation.

        The update runs as a single SQL statement and clamps at zero, so a
        concurrent writer cannot push the score below the floor.

        Args:
            user_id: User ID
            delta: Points to add

        Returns:
            The reputation score after the update (0 if user is missing)
        """
        new_score = db_models.User.reputation_score + delta
        self.db.query(db_models.User).filter(db_models.User.id == user_id).update(
            {db_models.User.reputation_score: case((new_score < 0, 0), else_=new_score)},
            synchronize_session=False,
        )
        user = self.db.get(db_models.User, user_id)
        if user is None:
            return 0
        self.db.refresh(user, attribute_names=["reputation_score"])
        return user.reputation_score

    def increment_counter(self, user_id: int, column: str, amount: int = 1) -> None:
        """
        Increment an activity counter (issues_reported, issues_resolved).

        Args:
            user_id: User ID
            column: Counter attribute name
            amount: Increment
        """
        attr = getattr(db_models.User, column)
        self.db.query(db_models.User).filter(db_models.User.id == user_id).update(
            {attr: attr + amount}, synchronize_session=False
        )
        user = self.db.get(db_models.User, user_id)
        if user is not None:
            self.db.refresh(user, attribute_names=[column])

    def get_leaderboard(self, limit: int = 50) -> List[db_models.User]:
        """Active users ordered by reputation, highest first."""
        return (
            self.db.query(db_models.User)
            .filter(db_models.User.is_active.is_(True))
            .order_by(
                db_models.User.reputation_score.desc(), db_models.User.id.asc()
            )
            .limit(limit)
            .all()
        )

    def search(self, term: str, limit: int = 20) -> List[db_models.User]:
        """Find users whose name or email contains the term."""
        pattern = f"%{term}%"
        return (
            self.db.query(db_models.User)
            .filter(
                or_(
                    db_models.User.full_name.ilike(pattern),
                    db_models.User.email.ilike(pattern),
                )
            )
            .order_by(db_models.User.full_name)
            .limit(limit)
            .all()
        )

    def get_by_role(self, role: db_models.UserRole) -> List[db_models.User]:
        """Get all users holding a role."""
        return (
            self.db.query(db_models.User)
            .filter(db_models.User.role == role)
            .order_by(db_models.User.full_name)
            .all()
        )
