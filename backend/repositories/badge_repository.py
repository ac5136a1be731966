"""
Badge repository for database operations.
"""

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class BadgeRepository(BaseRepository[db_models.Badge]):
    """Repository for Badge and UserBadge database operations."""

    def __init__(self, db: Session):
        super().__init__(db_models.Badge, db)

    def get_by_name(self, name: str) -> Optional[db_models.Badge]:
        return (
            self.db.query(db_models.Badge).filter(db_models.Badge.name == name).first()
        )

    def list_badges(self) -> List[db_models.Badge]:
        return (
            self.db.query(db_models.Badge)
            .order_by(db_models.Badge.required_score.asc(), db_models.Badge.id.asc())
            .all()
        )

    def get_user_badge(
        self, user_id: int, badge_id: int
    ) -> Optional[db_models.UserBadge]:
        return (
            self.db.query(db_models.UserBadge)
            .filter(
                db_models.UserBadge.user_id == user_id,
                db_models.UserBadge.badge_id == badge_id,
            )
            .first()
        )

    def get_unearned_within_score(
        self, user_id: int, score: int
    ) -> List[db_models.Badge]:
        """
        Badges the user qualifies for by score but does not hold yet.

        Args:
            user_id: User ID
            score: User's current reputation

        Returns:
            Badges to award, lowest threshold first
        """
        held = select(db_models.UserBadge.badge_id).where(
            db_models.UserBadge.user_id == user_id
        )
        return (
            self.db.query(db_models.Badge)
            .filter(
                db_models.Badge.required_score <= score,
                db_models.Badge.id.not_in(held),
            )
            .order_by(db_models.Badge.required_score.asc())
            .all()
        )

    def get_user_badges(self, user_id: int) -> List[db_models.UserBadge]:
        return (
            self.db.query(db_models.UserBadge)
            .filter(db_models.UserBadge.user_id == user_id)
            .order_by(db_models.UserBadge.awarded_at.desc())
            .all()
        )

    def get_holders(
        self, badge_id: int, skip: int = 0, limit: int = 50
    ) -> List[db_models.UserBadge]:
        return (
            self.db.query(db_models.UserBadge)
            .filter(db_models.UserBadge.badge_id == badge_id)
            .order_by(db_models.UserBadge.awarded_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_holders(self, badge_id: int) -> int:
        return (
            self.db.query(func.count(db_models.UserBadge.id))
            .filter(db_models.UserBadge.badge_id == badge_id)
            .scalar()
            or 0
        )

    def delete_awards(self, badge_id: int) -> None:
        self.db.query(db_models.UserBadge).filter(
            db_models.UserBadge.badge_id == badge_id
        ).delete(synchronize_session="fetch")
