"""
Property service for managing property listings.

Keeps each property and its owner's all_properties list consistent: creation and
deletion change both records inside one transaction, and the photo upload runs
before anything is written so a rollback never has to undo it.
"""

from typing import List, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from listing_api.repositories.property import PropertyRepository, PropertyListFilters
from listing_api.repositories.user import UserRepository
from listing_api.models.property import Property
from listing_api.schemas.property import PropertyCreate, PropertyUpdate
from listing_api.services.image_store import ImageStore
from listing_api.services.transaction import TransactionCoordinator
from listing_api.utils.exceptions import (
    OwnerNotFoundError,
    PropertyNotFoundError,
    StoreError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class PropertyService:
    """
    Property service handling listing, lookup, creation, update and deletion.
    """

    def __init__(self, db_session: AsyncSession, image_store: ImageStore):
        self.db = db_session
        self.image_store = image_store
        self.property_repo = PropertyRepository(db_session)
        self.user_repo = UserRepository(db_session)
        self.coordinator = TransactionCoordinator(db_session)

    async def list_properties(self, filters: PropertyListFilters) -> Tuple[List[Property], int]:
        """
        List properties matching the filters.

        Args:
            filters: Category, title, pagination and sort parameters

        Returns:
            Tuple of (page of properties, total matching count)

        Raises:
            StoreError: If the query fails
        """
        try:
            return await self.property_repo.list_properties(filters)
        except SQLAlchemyError as e:
            logger.error(f"Failed to list properties: {e}")
            raise StoreError(str(e)) from e

    async def get_property(self, property_id: uuid.UUID) -> Property:
        """
        Get a property with its creator populated.

        Args:
            property_id: UUID of the property

        Returns:
            Property instance with the creator loaded

        Raises:
            PropertyNotFoundError: If the property doesn't exist
            StoreError: If the query fails
        """
        try:
            property_obj = await self.property_repo.get_property_with_creator(property_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to get property {property_id}: {e}")
            raise StoreError(str(e)) from e

        if not property_obj:
            raise PropertyNotFoundError(str(property_id))

        return property_obj

    async def create_property(self, property_data: PropertyCreate) -> Property:
        """
        Create a property owned by the user with the given email.

        The owner row is locked, the photo uploaded, the property inserted and its
        ID appended to the owner's list, then everything commits together. Any
        failure rolls back both writes.

        Args:
            property_data: Validated creation request

        Returns:
            Created property

        Raises:
            OwnerNotFoundError: If no user has the given email
            UploadError: If the photo upload fails
            StoreError: If a database write or the commit fails
        """
        async with self.coordinator.transaction("create property"):
            owner = await self.user_repo.get_by_email(property_data.email, for_update=True)
            if not owner:
                raise OwnerNotFoundError(property_data.email)

            photo_url = await self.image_store.upload(property_data.photo)

            property_obj = await self.property_repo.create_property(
                {
                    "title": property_data.title,
                    "description": property_data.description,
                    "property_type": property_data.property_type,
                    "location": property_data.location,
                    "price": property_data.price,
                    "photo": photo_url,
                    "creator_id": owner.id,
                },
                commit=False
            )

            await self.user_repo.add_property(owner, property_obj.id)

        logger.info(f"Property created for {owner.email}: {property_obj.title} (ID: {property_obj.id})")
        return property_obj

    async def update_property(self, property_id: uuid.UUID, property_data: PropertyUpdate) -> Property:
        """
        Update the listing fields present in the request.

        Fields missing from the request keep their stored values. A photo that
        differs from the stored URL is uploaded and replaced by the new URL.

        Args:
            property_id: UUID of the property to update
            property_data: Validated update request

        Returns:
            Updated property

        Raises:
            PropertyNotFoundError: If the property doesn't exist
            UploadError: If the new photo upload fails
            StoreError: If the write fails
        """
        property_obj = await self.get_property(property_id)

        update_data = property_data.model_dump(exclude_unset=True)
        photo = update_data.pop("photo", None)
        if photo and photo != property_obj.photo:
            update_data["photo"] = await self.image_store.upload(photo)

        try:
            updated_property = await self.property_repo.update(property_obj, update_data)
        except SQLAlchemyError as e:
            logger.error(f"Failed to update property {property_id}: {e}")
            raise StoreError(str(e)) from e

        logger.info(f"Property updated: {property_id}")
        return updated_property

    async def delete_property(self, property_id: uuid.UUID) -> None:
        """
        Delete a property and remove it from its creator's list in one transaction.

        Args:
            property_id: UUID of the property to delete

        Raises:
            PropertyNotFoundError: If the property doesn't exist
            StoreError: If a database write or the commit fails
        """
        property_obj = await self.get_property(property_id)
        creator_id = property_obj.creator_id

        async with self.coordinator.transaction("delete property"):
            # Reload the creator under lock so a concurrent create is not overwritten
            creator = await self.user_repo.get_by_id(creator_id, for_update=True)

            await self.property_repo.delete(property_obj, commit=False)

            if creator:
                await self.user_repo.remove_property(creator, property_id)
            else:
                logger.warning(f"Creator {creator_id} of property {property_id} no longer exists")

        logger.info(f"Property deleted: {property_id}")
