"""Zone router endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimit, PaginationSkip
from repositories.database import get_db
from services import ZoneService

router = APIRouter(prefix="/zones", tags=["zones"])


@router.get("/", response_model=List[schemas.Zone])
def list_zones(
    include_inactive: bool = False, db: Session = Depends(get_db)
) -> list[dict]:
    """Active zones by default; include_inactive adds deactivated ones."""
    return ZoneService.list_zones(db, include_inactive)


@router.post("/", response_model=schemas.Zone, status_code=201)
def create_zone(
    zone: schemas.ZoneCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> db_models.Zone:
    return ZoneService.create_zone(db, zone)


@router.get("/{zone_id}", response_model=schemas.Zone)
def get_zone(zone_id: int, db: Session = Depends(get_db)) -> db_models.Zone:
    return ZoneService.get_zone(db, zone_id)


@router.put("/{zone_id}", response_model=schemas.Zone)
def update_zone(
    zone_id: int,
    zone: schemas.ZoneUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> db_models.Zone:
    return ZoneService.update_zone(db, zone_id, zone)


@router.delete("/{zone_id}", response_model=schemas.Zone)
def deactivate_zone(
    zone_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> db_models.Zone:
    """
    Deactivate a zone.

    Refused with 409 while open, acknowledged or in-progress issues remain.
    """
    return ZoneService.deactivate_zone(db, zone_id)


@router.post("/{zone_id}/reactivate", response_model=schemas.Zone)
def reactivate_zone(
    zone_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> db_models.Zone:
    return ZoneService.reactivate_zone(db, zone_id)


@router.get("/{zone_id}/stats", response_model=schemas.ZoneStats)
def get_zone_stats(zone_id: int, db: Session = Depends(get_db)) -> dict:
    return ZoneService.get_zone_stats(db, zone_id)


@router.get("/{zone_id}/issues", response_model=schemas.IssueList)
def get_zone_issues(
    zone_id: int,
    status: Optional[db_models.IssueStatus] = None,
    skip: PaginationSkip = 0,
    limit: PaginationLimit = 20,
    db: Session = Depends(get_db),
) -> schemas.IssueList:
    issues, total = ZoneService.get_zone_issues(db, zone_id, status, skip, limit)
    return schemas.IssueList(
        items=[schemas.Issue.model_validate(issue) for issue in issues],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/{zone_id}/stewards", response_model=List[schemas.UserPublic])
def get_zone_stewards(
    zone_id: int, db: Session = Depends(get_db)
) -> List[db_models.User]:
    return ZoneService.get_zone_stewards(db, zone_id)
