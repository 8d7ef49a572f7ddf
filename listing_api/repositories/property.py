"""
Property repository for listing, lookup, and creation of property records.
Builds the filtered, sorted, and paginated listing query.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
from listing_api.repositories.base import BaseRepository
from listing_api.models.property import Property, PropertyType
from typing import Optional, List, Dict, Any, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


# API field names accepted by the _sort parameter
SORTABLE_FIELDS = {
    "id": Property.id,
    "_id": Property.id,
    "title": Property.title,
    "description": Property.description,
    "propertyType": Property.property_type,
    "location": Property.location,
    "price": Property.price,
    "createdAt": Property.created_at,
    "updatedAt": Property.updated_at,
}

DESCENDING_ORDERS = {"desc", "descending", "-1"}


class PropertyListFilters:
    """Data class for listing filters, pagination, and sorting."""

    def __init__(
        self,
        property_type: Optional[str] = None,
        title_like: Optional[str] = None,
        start: Optional[int] = None,
        end: Optional[int] = None,
        sort: Optional[str] = None,
        order: Optional[str] = None
    ):
        self.property_type = property_type
        self.title_like = title_like
        self.start = start
        self.end = end
        self.sort = sort
        self.order = order


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PropertyRepository(BaseRepository[Property]):
    """Repository for property listings."""

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    async def create_property(self, property_data: Dict[str, Any], commit: bool = True) -> Property:
        """
        Create a new property.

        Args:
            property_data: Dictionary containing property fields and creator_id
            commit: Whether to commit, or only flush into the open transaction

        Returns:
            Created property instance with its ID assigned
        """
        created_property = await self.create(property_data, commit=commit)
        logger.info(f"Created property: {created_property.title} (ID: {created_property.id})")
        return created_property

    async def get_property_with_creator(self, property_id: uuid.UUID) -> Optional[Property]:
        """
        Get property with its creator populated.

        Args:
            property_id: UUID of the property

        Returns:
            Property with the creator loaded, or None if not found
        """
        query = (
            select(Property)
            .options(selectinload(Property.creator))
            .where(Property.id == property_id)
        )

        result = await self.db.execute(query)
        property_obj = result.scalar_one_or_none()

        if property_obj:
            logger.debug(f"Retrieved property with creator: {property_id}")

        return property_obj

    def _build_conditions(self, filters: PropertyListFilters) -> Optional[list]:
        """
        Build WHERE conditions shared by the count and page queries.
        Returns None when the filters cannot match anything.
        """
        conditions = []

        if filters.property_type:
            property_type = PropertyType.parse(filters.property_type)
            if property_type is None:
                return None
            conditions.append(Property.property_type == property_type)

        if filters.title_like:
            pattern = f"%{_escape_like(filters.title_like)}%"
            conditions.append(Property.title.ilike(pattern, escape="\\"))

        return conditions

    async def list_properties(self, filters: PropertyListFilters) -> Tuple[List[Property], int]:
        """
        List properties matching the filters.

        The total count ignores pagination. _start is the offset and _end the limit;
        an absent or zero _end means no limit. Unknown sort fields are ignored.
        Sorted pages break ties on the ID so consecutive pages never overlap.

        Args:
            filters: Listing filters

        Returns:
            Tuple of (page of properties, total matching count)
        """
        conditions = self._build_conditions(filters)
        if conditions is None:
            logger.debug(f"Unknown property type filter: {filters.property_type}")
            return [], 0

        count_query = select(func.count(Property.id)).where(*conditions)
        total_count = (await self.db.execute(count_query)).scalar()

        query = select(Property).where(*conditions)

        if filters.sort:
            sort_column = SORTABLE_FIELDS.get(filters.sort)
            if sort_column is None:
                logger.debug(f"Ignoring unknown sort field: {filters.sort}")
            elif filters.order and filters.order.lower() in DESCENDING_ORDERS:
                query = query.order_by(sort_column.desc(), Property.id.asc())
            else:
                query = query.order_by(sort_column.asc(), Property.id.asc())

        if filters.start:
            query = query.offset(filters.start)
        if filters.end:
            query = query.limit(filters.end)

        result = await self.db.execute(query)
        properties = list(result.scalars().all())

        logger.debug(f"Listed {len(properties)} of {total_count} properties")
        return properties, total_count
