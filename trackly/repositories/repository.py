from sqlalchemy.orm import Session
from typing import Generic, Type, TypeVar, Optional, Dict, Any
from trackly.models.base import Base

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """Base repository with common CRUD operations."""

    def __init__(self, model: Type[T], db: Session):
        """
        Initialize repository with model and database session.

        Args:
            model: The SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def get(self, id: Any) -> Optional[T]:
        """Get a single record by primary key."""
        return self.db.get(self.model, id)

    def create(self, obj: T) -> T:
        """Create a new record."""
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def update(self, id: Any, data: Dict[str, Any]) -> Optional[T]:
        """Update a record by primary key."""
        obj = self.get(id)
        if not obj:
            return None

        for key, value in data.items():
            if hasattr(obj, key):
                setattr(obj, key, value)

        self.db.commit()
        self.db.refresh(obj)
        return obj

    def delete(self, id: Any) -> bool:
        """Delete a record by primary key. Returns True if deleted, False if not found."""
        obj = self.get(id)
        if not obj:
            return False

        self.db.delete(obj)
        self.db.commit()
        return True

    def _dialect_insert(self):
        """
        Return the dialect's INSERT construct when it supports ON CONFLICT,
        otherwise None.
        """
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
            return insert
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
            return insert
        return None
