"""User profile router endpoints."""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from repositories.database import get_db
from services import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/leaderboard", response_model=List[schemas.UserPublic])
def get_leaderboard(
    limit: int = Query(50, ge=1, le=100), db: Session = Depends(get_db)
) -> list[dict]:
    """Users ranked by reputation (cached)."""
    return UserService.get_leaderboard(db, limit)


@router.get("/search", response_model=List[schemas.User])
def search_users(
    q: str = Query(..., min_length=2, max_length=100),
    limit: int = Query(20, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_steward_user),
) -> List[db_models.User]:
    """Find users by name or email. Stewards and admins only."""
    return UserService.search_users(db, q, limit)


@router.get("/{user_id}", response_model=schemas.UserPublic)
def get_user_profile(user_id: int, db: Session = Depends(get_db)) -> dict:
    return UserService.get_public_profile(db, user_id)


@router.get("/{user_id}/badges", response_model=List[schemas.UserBadge])
def get_user_badges(user_id: int, db: Session = Depends(get_db)) -> list[dict]:
    return UserService.get_user_badges(db, user_id)


@router.get("/{user_id}/stats", response_model=schemas.UserStats)
def get_user_stats(user_id: int, db: Session = Depends(get_db)) -> dict:
    return UserService.get_user_stats(db, user_id)


@router.put("/{user_id}/role", response_model=schemas.User)
def update_user_role(
    user_id: int,
    update: schemas.RoleUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> db_models.User:
    """
    Change a user's role.

    Demoting a steward deactivates their assignments.
    """
    return UserService.update_role(db, user_id, update.role, current_user)
