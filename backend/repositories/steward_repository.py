"""
Repositories for steward assignments, notes and applications.
"""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class AssignmentRepository(BaseRepository[db_models.StewardCategoryAssignment]):
    """Repository for (steward, category, zone) assignments."""

    def __init__(self, db: Session):
        super().__init__(db_models.StewardCategoryAssignment, db)

    def get_triple(
        self, steward_id: int, category_id: int, zone_id: int
    ) -> Optional[db_models.StewardCategoryAssignment]:
        """
        Get the assignment row for an exact triple, active or not.

        Args:
            steward_id: Steward user ID
            category_id: Category ID
            zone_id: Zone ID

        Returns:
            Assignment if found, None otherwise
        """
        model = db_models.StewardCategoryAssignment
        return (
            self.db.query(model)
            .filter(
                model.steward_id == steward_id,
                model.category_id == category_id,
                model.zone_id == zone_id,
            )
            .first()
        )

    def exists_active(self, steward_id: int, category_id: int, zone_id: int) -> bool:
        """True iff an active row exists for the exact triple."""
        model = db_models.StewardCategoryAssignment
        return (
            self.db.query(model.id)
            .filter(
                model.steward_id == steward_id,
                model.category_id == category_id,
                model.zone_id == zone_id,
                model.is_active.is_(True),
            )
            .first()
            is not None
        )

    def get_for_steward(
        self, steward_id: int, active_only: bool = True
    ) -> List[db_models.StewardCategoryAssignment]:
        model = db_models.StewardCategoryAssignment
        query = self.db.query(model).filter(model.steward_id == steward_id)
        if active_only:
            query = query.filter(model.is_active.is_(True))
        return query.order_by(model.zone_id, model.category_id).all()

    def get_stewards_for_zone(self, zone_id: int) -> List[db_models.User]:
        """Distinct users holding at least one active assignment in the zone."""
        model = db_models.StewardCategoryAssignment
        return (
            self.db.query(db_models.User)
            .join(model, model.steward_id == db_models.User.id)
            .filter(model.zone_id == zone_id, model.is_active.is_(True))
            .distinct()
            .order_by(db_models.User.full_name)
            .all()
        )


class StewardNoteRepository(BaseRepository[db_models.StewardNote]):
    """Repository for steward notes on issues."""

    def __init__(self, db: Session):
        super().__init__(db_models.StewardNote, db)

    def get_for_issue(self, issue_id: int) -> List[db_models.StewardNote]:
        return (
            self.db.query(db_models.StewardNote)
            .filter(db_models.StewardNote.issue_id == issue_id)
            .order_by(
                db_models.StewardNote.created_at.desc(),
                db_models.StewardNote.id.desc(),
            )
            .all()
        )

    def count_by_steward(self, steward_id: int) -> int:
        return (
            self.db.query(func.count(db_models.StewardNote.id))
            .filter(db_models.StewardNote.steward_id == steward_id)
            .scalar()
            or 0
        )


class ApplicationRepository(BaseRepository[db_models.StewardApplication]):
    """Repository for steward applications."""

    def __init__(self, db: Session):
        super().__init__(db_models.StewardApplication, db)

    def get_latest_for_user(
        self, user_id: int
    ) -> Optional[db_models.StewardApplication]:
        return (
            self.db.query(db_models.StewardApplication)
            .filter(db_models.StewardApplication.user_id == user_id)
            .order_by(
                db_models.StewardApplication.created_at.desc(),
                db_models.StewardApplication.id.desc(),
            )
            .first()
        )

    def get_open_for_user(
        self, user_id: int
    ) -> Optional[db_models.StewardApplication]:
        """Pending or approved application blocking a new submission."""
        return (
            self.db.query(db_models.StewardApplication)
            .filter(
                db_models.StewardApplication.user_id == user_id,
                db_models.StewardApplication.status.in_(
                    (
                        db_models.ApplicationStatus.PENDING,
                        db_models.ApplicationStatus.APPROVED,
                    )
                ),
            )
            .first()
        )

    def get_pending(self) -> List[db_models.StewardApplication]:
        return (
            self.db.query(db_models.StewardApplication)
            .filter(
                db_models.StewardApplication.status
                == db_models.ApplicationStatus.PENDING
            )
            .order_by(db_models.StewardApplication.created_at.asc())
            .all()
        )
