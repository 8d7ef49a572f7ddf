"""
Base repository class with common CRUD operations using async SQLAlchemy.
Provides generic database operations that can be extended by specific repositories.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from listing_api.database import Base
from typing import TypeVar, Generic, Optional, Dict, Any, Type
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class providing common CRUD operations.

    Write methods commit by default. Pass commit=False to only flush, leaving the
    surrounding transaction to commit or roll back the change.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository with model class and database session.

        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    async def create(self, obj_in: Dict[str, Any], commit: bool = True) -> ModelType:
        """
        Create a new record in the database.

        Args:
            obj_in: Dictionary of field values for the new record
            commit: Whether to commit, or only flush into the open transaction

        Returns:
            Created model instance
        """
        db_obj = self.model(**obj_in)
        self.db.add(db_obj)
        await self._persist(commit, f"create {self.model.__name__}")
        logger.debug(f"Created {self.model.__name__} with id: {db_obj.id}")
        return db_obj

    async def get_by_id(
        self,
        id: uuid.UUID,
        load_relationships: bool = False,
        for_update: bool = False
    ) -> Optional[ModelType]:
        """
        Get a record by its ID.

        Args:
            id: UUID of the record to retrieve
            load_relationships: Whether to eagerly load relationships
            for_update: Lock the row and reload it from the database

        Returns:
            Model instance if found, None otherwise
        """
        query = select(self.model).where(self.model.id == id)

        if load_relationships:
            for relationship in self.model.__mapper__.relationships:
                query = query.options(selectinload(getattr(self.model, relationship.key)))

        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)

        result = await self.db.execute(query)
        obj = result.scalar_one_or_none()

        if obj:
            logger.debug(f"Retrieved {self.model.__name__} with id: {id}")
        else:
            logger.debug(f"{self.model.__name__} with id {id} not found")

        return obj

    async def update(self, db_obj: ModelType, obj_in: Dict[str, Any], commit: bool = True) -> ModelType:
        """
        Update a loaded record with the given field values.
        None values and empty strings are skipped so absent fields keep their stored value.

        Args:
            db_obj: Model instance to update
            obj_in: Dictionary of field values to update
            commit: Whether to commit, or only flush into the open transaction

        Returns:
            Updated model instance
        """
        update_data = {k: v for k, v in obj_in.items() if v is not None and v != ""}

        if not update_data:
            logger.warning(f"No valid data provided for updating {self.model.__name__} {db_obj.id}")
            return db_obj

        for field, value in update_data.items():
            setattr(db_obj, field, value)

        await self._persist(commit, f"update {self.model.__name__} {db_obj.id}")
        logger.debug(f"Updated {self.model.__name__} with id: {db_obj.id}")
        return db_obj

    async def delete(self, db_obj: ModelType, commit: bool = True) -> None:
        """
        Delete a loaded record.

        Args:
            db_obj: Model instance to delete
            commit: Whether to commit, or only flush into the open transaction
        """
        obj_id = db_obj.id
        await self.db.delete(db_obj)
        await self._persist(commit, f"delete {self.model.__name__} {obj_id}")
        logger.debug(f"Deleted {self.model.__name__} with id: {obj_id}")

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """
        Count records with optional equality filtering.

        Args:
            filters: Dictionary of field filters

        Returns:
            Number of matching records
        """
        query = select(func.count(self.model.id))

        if filters:
            for field, value in filters.items():
                if hasattr(self.model, field):
                    query = query.where(getattr(self.model, field) == value)

        result = await self.db.execute(query)
        count = result.scalar()

        logger.debug(f"Counted {count} {self.model.__name__} records")
        return count

    async def exists(self, id: uuid.UUID) -> bool:
        """
        Check if a record exists by its ID.

        Args:
            id: UUID of the record to check

        Returns:
            True if record exists, False otherwise
        """
        query = select(func.count(self.model.id)).where(self.model.id == id)
        result = await self.db.execute(query)
        return result.scalar() > 0

    async def _persist(self, commit: bool, action: str) -> None:
        """Commit or flush pending changes; a failed commit is rolled back here."""
        if not commit:
            await self.db.flush()
            return

        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise
