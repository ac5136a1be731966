"""
Zone Service

Geographic zones: administration, statistics and steward coverage.
"""

from typing import List

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    AlreadyExistsException,
    BusinessRuleException,
    ZoneInUseException,
    ZoneNotFoundException,
)
from repositories.database import transaction
from repositories.issue_repository import IssueRepository
from repositories.steward_repository import AssignmentRepository
from repositories.zone_repository import ZoneRepository
from services.cache_service import STATS_TTL, CacheService, cache_key


class ZoneService:
    """Service for zone business logic."""

    @staticmethod
    def _invalidate(zone_id: int | None = None) -> None:
        CacheService.invalidate_prefix(cache_key("zones", "list"))
        if zone_id is not None:
            CacheService.invalidate(cache_key("zone", zone_id, "stats"))

    @staticmethod
    def get_zone(db: Session, zone_id: int) -> db_models.Zone:
        zone = ZoneRepository(db).get_by_id(zone_id)
        if not zone:
            raise ZoneNotFoundException(zone_id)
        return zone

    @staticmethod
    def list_zones(db: Session, include_inactive: bool = False) -> list[dict]:
        """Zones ordered by name (cached per visibility)."""

        def _load() -> list[dict]:
            return [
                schemas.Zone.model_validate(zone).model_dump(mode="json")
                for zone in ZoneRepository(db).list_zones(include_inactive)
            ]

        scope = "all" if include_inactive else "active"
        return CacheService.cached(cache_key("zones", "list", scope), _load, STATS_TTL)

    @staticmethod
    def create_zone(db: Session, data: schemas.ZoneCreate) -> db_models.Zone:
        """
        Create a zone.

        Raises:
            AlreadyExistsException: If a zone with the same name exists
        """
        repo = ZoneRepository(db)
        if repo.get_by_name(data.name):
            raise AlreadyExistsException(f"Zone '{data.name}' already exists")
        with transaction(db):
            zone = repo.add(db_models.Zone(**data.model_dump()))
        ZoneService._invalidate()
        logger.info(f"Zone created: {zone.name}")
        return zone

    @staticmethod
    def update_zone(
        db: Session, zone_id: int, data: schemas.ZoneUpdate
    ) -> db_models.Zone:
        repo = ZoneRepository(db)
        zone = ZoneService.get_zone(db, zone_id)
        updates = data.model_dump(exclude_unset=True)
        if "name" in updates and updates["name"] != zone.name:
            if repo.get_by_name(updates["name"]):
                raise AlreadyExistsException(f"Zone '{updates['name']}' already exists")
        with transaction(db):
            for field, value in updates.items():
                setattr(zone, field, value)
            repo.flush()
        ZoneService._invalidate(zone_id)
        return zone

    @staticmethod
    def deactivate_zone(db: Session, zone_id: int) -> db_models.Zone:
        """
        Soft delete a zone.

        Args:
            db: Database session
            zone_id: Zone ID

        Returns:
            The deactivated zone

        Raises:
            ZoneNotFoundException: If zone not found
            BusinessRuleException: If the zone is already inactive
            ZoneInUseException: If open, acknowledged or in-progress issues
                still reference the zone
        """
        repo = ZoneRepository(db)
        zone = ZoneService.get_zone(db, zone_id)
        if not zone.is_active:
            raise BusinessRuleException(f"Zone {zone_id} is already inactive")
        active = repo.count_active_issues(zone_id)
        if active:
            raise ZoneInUseException(
                f"Zone {zone_id} still has {active} active issue(s)"
            )
        with transaction(db):
            zone.is_active = False
            repo.flush()
        ZoneService._invalidate(zone_id)
        logger.info(f"Zone {zone_id} deactivated")
        return zone

    @staticmethod
    def reactivate_zone(db: Session, zone_id: int) -> db_models.Zone:
        repo = ZoneRepository(db)
        zone = ZoneService.get_zone(db, zone_id)
        with transaction(db):
            zone.is_active = True
            repo.flush()
        ZoneService._invalidate(zone_id)
        return zone

    @staticmethod
    def get_zone_stats(db: Session, zone_id: int) -> dict:
        """Issue counts per status, votes and steward coverage (cached)."""

        def _load() -> dict:
            ZoneService.get_zone(db, zone_id)
            repo = ZoneRepository(db)
            status_counts = repo.get_status_counts(zone_id)
            aggregates = repo.get_stats_aggregates(zone_id)
            return schemas.ZoneStats(
                zone_id=zone_id,
                total_issues=sum(status_counts.values()),
                status_counts=status_counts,
                total_votes=aggregates["total_votes"],
                steward_count=aggregates["steward_count"],
            ).model_dump(mode="json")

        return CacheService.cached(cache_key("zone", zone_id, "stats"), _load, STATS_TTL)

    @staticmethod
    def get_zone_issues(
        db: Session,
        zone_id: int,
        status: db_models.IssueStatus | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[List[db_models.Issue], int]:
        ZoneService.get_zone(db, zone_id)
        return IssueRepository(db).list_issues(
            status=status, zone_id=zone_id, skip=skip, limit=limit
        )

    @staticmethod
    def get_zone_stewards(db: Session, zone_id: int) -> List[db_models.User]:
        """Stewards holding at least one active assignment in the zone."""
        ZoneService.get_zone(db, zone_id)
        return AssignmentRepository(db).get_stewards_for_zone(zone_id)
