"""
Base Repository

Abstract base class for all repositories.
Provides common database operations.
"""

from typing import Generic, TypeVar, Type, Optional, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.db.database import Base

ModelType = TypeVar("ModelType", bound=Base)

class BaseRepository(Generic[ModelType]):
    """
    Base repository class with common CRUD operations.

    All repositories should inherit from this class. The CRUD helpers here
    commit on their own; the conditional state-change helpers in subclasses
    only flush, leaving the commit to the calling service so that a whole
    transition lands in one transaction.
    """
    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    # -----------------------------
    # Get Element By id
    # -----------------------------
    async def get_by_id(self, id: Any, for_update: bool = False) -> Optional[ModelType]:
        """
        Get a record by ID.

        With for_update=True the row is locked (SELECT ... FOR UPDATE) until
        the surrounding transaction ends, and the identity map is refreshed.
        """
        query = select(self.model).where(self.model.id == id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    # -----------------------------
    # Create Single Record
    # -----------------------------
    async def create(self, **kwargs) -> ModelType:
        """Create a new record."""
        instance = self.model(**kwargs)
        self.db.add(instance)
        await self.db.commit()
        await self.db.refresh(instance)
        return instance

    # -----------------------------
    # Update record
    # -----------------------------
    async def update(self, id: Any, **kwargs) -> Optional[ModelType]:
        """Update a record by ID."""
        instance = await self.get_by_id(id)
        if not instance:
            return None

        for key, value in kwargs.items():
            setattr(instance, key, value)

        await self.db.commit()
        await self.db.refresh(instance)
        return instance

    # -----------------------------
    # Delete record
    # -----------------------------
    async def delete(self, id: Any) -> bool:
        """Delete a record by ID."""
        instance = await self.get_by_id(id)
        if not instance:
            return False

        await self.db.delete(instance)
        await self.db.commit()
        return True

    # -----------------------------
    # Reload from database
    # -----------------------------
    async def reload(self, instance: ModelType) -> ModelType:
        """Re-read an instance after SQL-side updates."""
        await self.db.refresh(instance)
        return instance
