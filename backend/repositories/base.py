"""
Base repository class providing common database operations.

Repositories stage changes (add, flush, delete) but never commit. The
calling service wraps its writes in `repositories.database.transaction`.
"""

from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from repositories.database import Base

T = TypeVar("T", bound=Base)  # type: ignore[type-arg]


class BaseRepository(Generic[T]):
    """
    Base repository providing common CRUD operations.

    Type parameter T should be a SQLAlchemy model class.
    """

    def __init__(self, model: type[T], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def get_by_id(self, id: int) -> T | None:
        """
        Get entity by ID.

        Args:
            id: Entity ID

        Returns:
            Entity if found, None otherwise
        """
        return self.db.query(self.model).filter(self.model.id == id).first()

    def add(self, entity: T) -> T:
        """
        Stage a new entity and flush it so its ID is assigned.

        Args:
            entity: Entity to add

        Returns:
            The same entity, now with a primary key
        """
        self.db.add(entity)
        self.db.flush()
        return entity

    def delete(self, entity: T) -> None:
        """
        Stage deletion of an entity.

        Args:
            entity: Entity to delete
        """
        self.db.delete(entity)
        self.db.flush()

    def count(self) -> int:
        """Count total number of entities."""
        return self.db.query(self.model).count()

    def flush(self) -> None:
        """Flush pending changes without committing."""
        self.db.flush()
