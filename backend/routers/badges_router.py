"""Badge router endpoints."""

from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimit, PaginationSkip
from repositories.database import get_db
from services import BadgeService

router = APIRouter(prefix="/badges", tags=["badges"])


@router.get("/", response_model=List[schemas.Badge])
def list_badges(db: Session = Depends(get_db)) -> list[dict]:
    """All badges, lowest required score first."""
    return BadgeService.list_badges(db)


@router.post("/", response_model=schemas.Badge, status_code=201)
def create_badge(
    badge: schemas.BadgeCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> db_models.Badge:
    return BadgeService.create_badge(db, badge)


@router.post("/award", status_code=201)
def award_badge(
    award: schemas.BadgeAward,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> dict[str, str]:
    """Award a badge manually, regardless of reputation."""
    BadgeService.award_badge(db, award.user_id, award.badge_id)
    return {"message": "Badge awarded"}


@router.delete("/award", status_code=204)
def remove_badge(
    award: schemas.BadgeAward,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> Response:
    BadgeService.remove_badge(db, award.user_id, award.badge_id)
    return Response(status_code=204)


@router.get("/{badge_id}", response_model=schemas.Badge)
def get_badge(badge_id: int, db: Session = Depends(get_db)) -> db_models.Badge:
    return BadgeService.get_badge(db, badge_id)


@router.put("/{badge_id}", response_model=schemas.Badge)
def update_badge(
    badge_id: int,
    badge: schemas.BadgeUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> db_models.Badge:
    return BadgeService.update_badge(db, badge_id, badge)


@router.delete("/{badge_id}", status_code=204)
def delete_badge(
    badge_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> Response:
    """Delete a badge and revoke it from every holder."""
    BadgeService.delete_badge(db, badge_id)
    return Response(status_code=204)


@router.get("/{badge_id}/holders", response_model=List[schemas.BadgeHolder])
def get_badge_holders(
    badge_id: int,
    skip: PaginationSkip = 0,
    limit: PaginationLimit = 50,
    db: Session = Depends(get_db),
) -> List[schemas.BadgeHolder]:
    return BadgeService.get_holders(db, badge_id, skip, limit)


@router.get("/{badge_id}/stats", response_model=schemas.BadgeStats)
def get_badge_stats(badge_id: int, db: Session = Depends(get_db)) -> schemas.BadgeStats:
    return BadgeService.get_stats(db, badge_id)
