"""Public dashboard endpoints."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import models.schemas as schemas
from helpers.pagination import PaginationLimitSmall
from repositories.database import get_db
from services import DashboardService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=schemas.SystemStats)
def get_system_stats(db: Session = Depends(get_db)) -> dict:
    return DashboardService.get_system_stats(db)


@router.get("/top-issues", response_model=List[schemas.Issue])
def get_top_issues(
    limit: PaginationLimitSmall = 10, db: Session = Depends(get_db)
) -> list[dict]:
    """Highest voted issues that are not archived or duplicates."""
    return DashboardService.get_top_issues(db, limit)


@router.get("/categories", response_model=List[schemas.CategoryStats])
def get_category_stats(db: Session = Depends(get_db)) -> list[dict]:
    return DashboardService.get_category_stats(db)
