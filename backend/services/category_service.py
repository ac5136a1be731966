"""
Category Service

Handles the issue category taxonomy with caching.
"""

from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import AlreadyExistsException, CategoryNotFoundException
from repositories.category_repository import CategoryRepository
from repositories.database import transaction
from services.cache_service import CATEGORIES_TTL, CacheService, cache_key


class CategoryService:
    """Service for managing issue categories."""

    _CACHE_ALL = ("categories", "all")

    @staticmethod
    def get_all_categories(db: Session) -> list[dict]:
        """
        Get all categories ordered by name (cached).

        Args:
            db: Database session

        Returns:
            List of serialized categories
        """

        def _load() -> list[dict]:
            return [
                schemas.Category.model_validate(category).model_dump(mode="json")
                for category in CategoryRepository(db).list_categories()
            ]

        return CacheService.cached(
            cache_key(*CategoryService._CACHE_ALL), _load, CATEGORIES_TTL
        )

    @staticmethod
    def get_category(db: Session, category_id: int) -> db_models.IssueCategory:
        """
        Get a category by ID.

        Raises:
            CategoryNotFoundException: If category not found
        """
        category = CategoryRepository(db).get_by_id(category_id)
        if not category:
            raise CategoryNotFoundException(f"Category with ID {category_id} not found")
        return category

    @staticmethod
    def create_category(
        db: Session, category_data: schemas.CategoryCreate
    ) -> db_models.IssueCategory:
        """
        Create a new category.

        Args:
            db: Database session
            category_data: Category creation data

        Returns:
            Created category

        Raises:
            AlreadyExistsException: If category with same name exists
        """
        repo = CategoryRepository(db)
        if repo.get_by_name(category_data.name):
            raise AlreadyExistsException(
                f"Category '{category_data.name}' already exists"
            )
        with transaction(db):
            category = repo.add(db_models.IssueCategory(**category_data.model_dump()))
        CacheService.invalidate(cache_key(*CategoryService._CACHE_ALL))
        return category

    @staticmethod
    def get_category_stats(db: Session) -> list[schemas.CategoryStats]:
        """Issue count per category, busiest first."""
        return [
            schemas.CategoryStats(
                category_id=category.id, name=category.name, issue_count=count
            )
            for category, count in CategoryRepository(db).get_issue_counts()
        ]
