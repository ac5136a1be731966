"""
Initialize the database with an admin user, default categories, zones and badges.

Safe to run repeatedly: rows that already exist (matched by name or email)
are left untouched.
"""

from dataclasses import dataclass, field
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

from authentication.auth import get_password_hash
from models.config import settings
from repositories.database import Base, SessionLocal, engine
from repositories.db_models import (
    Badge,
    IssueCategory,
    User,
    UserRole,
    Zone,
    ZoneType,
)

DEFAULT_CATEGORIES = [
    {
        "name": "Roads & Potholes",
        "description": "Potholes, damaged pavement and road markings",
        "icon": "road",
    },
    {
        "name": "Street Lighting",
        "description": "Broken or flickering street lights",
        "icon": "lightbulb",
    },
    {
        "name": "Waste & Cleanliness",
        "description": "Missed collections, illegal dumping and litter",
        "icon": "trash",
    },
    {
        "name": "Parks & Green Spaces",
        "description": "Damaged equipment, fallen trees and park maintenance",
        "icon": "tree",
    },
    {
        "name": "Water & Drainage",
        "description": "Leaks, flooding and blocked drains",
        "icon": "droplet",
    },
    {
        "name": "Public Safety",
        "description": "Hazards that put residents at risk",
        "icon": "shield",
    },
]

DEFAULT_ZONES = [
    {
        "name": "Downtown",
        "description": "Central business district",
        "zone_type": ZoneType.DISTRICT,
    },
    {
        "name": "North District",
        "description": "Residential areas north of the river",
        "zone_type": ZoneType.DISTRICT,
    },
    {
        "name": "South District",
        "description": "Residential and industrial areas south of the river",
        "zone_type": ZoneType.DISTRICT,
    },
]

DEFAULT_BADGES = [
    {
        "name": "Newcomer",
        "description": "Earned a first reputation point",
        "required_score": 1,
    },
    {
        "name": "Active Citizen",
        "description": "Reached 50 reputation points",
        "required_score": 50,
    },
    {
        "name": "Community Champion",
        "description": "Reached 200 reputation points",
        "required_score": 200,
    },
]


@dataclass
class SeedContext:
    """Ids produced by earlier seeding steps, passed to later ones."""

    admin_id: Optional[int] = None
    category_ids: dict[str, int] = field(default_factory=dict)
    zone_ids: dict[str, int] = field(default_factory=dict)
    badge_ids: dict[str, int] = field(default_factory=dict)


def seed_admin(db: Session, ctx: SeedContext) -> None:
    """Create the super admin from ADMIN_EMAIL / ADMIN_PASSWORD."""
    admin = db.query(User).filter(User.email == settings.ADMIN_EMAIL).first()
    if admin is None:
        admin = User(
            email=settings.ADMIN_EMAIL,
            full_name="Administrator",
            hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
            role=UserRole.SUPER_ADMIN,
        )
        db.add(admin)
        db.flush()
        logger.info(f"Admin user created: {settings.ADMIN_EMAIL}")
    ctx.admin_id = admin.id


def seed_categories(db: Session, ctx: SeedContext) -> None:
    for data in DEFAULT_CATEGORIES:
        category = (
            db.query(IssueCategory).filter(IssueCategory.name == data["name"]).first()
        )
        if category is None:
            category = IssueCategory(**data)
            db.add(category)
            db.flush()
            logger.info(f"Category created: {category.name}")
        ctx.category_ids[category.name] = category.id


def seed_zones(db: Session, ctx: SeedContext) -> None:
    for data in DEFAULT_ZONES:
        zone = db.query(Zone).filter(Zone.name == data["name"]).first()
        if zone is None:
            zone = Zone(**data)
            db.add(zone)
            db.flush()
            logger.info(f"Zone created: {zone.name}")
        ctx.zone_ids[zone.name] = zone.id


def seed_badges(db: Session, ctx: SeedContext) -> None:
    for data in DEFAULT_BADGES:
        badge = db.query(Badge).filter(Badge.name == data["name"]).first()
        if badge is None:
            badge = Badge(**data)
            db.add(badge)
            db.flush()
            logger.info(f"Badge created: {badge.name}")
        ctx.badge_ids[badge.name] = badge.id


def init_db(db: Optional[Session] = None) -> SeedContext:
    """
    Create tables and seed default data.

    Args:
        db: Session to seed; a new one is opened (and closed) when omitted.

    Returns:
        SeedContext with the ids of every seeded row
    """
    Base.metadata.create_all(bind=engine if db is None else db.get_bind())

    owns_session = db is None
    session = db if db is not None else SessionLocal()
    ctx = SeedContext()
    try:
        seed_admin(session, ctx)
        seed_categories(session, ctx)
        seed_zones(session, ctx)
        seed_badges(session, ctx)
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("Database initialization failed")
        raise
    finally:
        if owns_session:
            session.close()

    logger.info(
        f"Database initialization complete: {len(ctx.category_ids)} categories, "
        f"{len(ctx.zone_ids)} zones, {len(ctx.badge_ids)} badges"
    )
    return ctx


if __name__ == "__main__":
    init_db()
