"""
User repository for owner lookups and maintenance of the owned-property list.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from listing_api.repositories.base import BaseRepository
from listing_api.models.user import User
from typing import Optional, Dict, Any
import uuid
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for property owners.
    The all_properties list is only changed through add_property/remove_property.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with a normalized email.
        Used for seeding; registration lives outside this service.

        Args:
            user_data: Dictionary with name, email and optional avatar

        Returns:
            Created user instance

        Raises:
            ValueError: If the email is invalid or already registered
        """
        email = User.validate_email_format(user_data["email"])

        existing_user = await self.get_by_email(email)
        if existing_user:
            raise ValueError(f"User with email {email} already exists")

        create_data = {
            **user_data,
            "email": email,
            "all_properties": list(user_data.get("all_properties", [])),
        }

        created_user = await self.create(create_data)
        logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
        return created_user

    async def get_by_email(self, email: str, for_update: bool = False) -> Optional[User]:
        """
        Get user by email address.

        Args:
            email: Email address to search for
            for_update: Lock the row and reload it from the database

        Returns:
            User instance if found, None otherwise
        """
        normalized_email = email.lower().strip()

        query = select(User).where(User.email == normalized_email)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)

        result = await self.db.execute(query)
        user = result.scalar_one_or_none()

        if user:
            logger.debug(f"Retrieved user by email: {email}")
        else:
            logger.debug(f"User with email {email} not found")

        return user

    async def add_property(self, user: User, property_id: uuid.UUID, commit: bool = False) -> User:
        """
        Append a property ID to the user's owned list.

        Args:
            user: Owner, loaded in the current transaction
            property_id: ID of the new property
            commit: Whether to commit, or only flush into the open transaction

        Returns:
            Updated user
        """
        # Assign a new list so the JSON column is flagged as modified
        user.all_properties = user.with_property(property_id)
        await self._persist(commit, f"add property {property_id} to user {user.id}")
        logger.debug(f"Added property {property_id} to user {user.id}")
        return user

    async def remove_property(self, user: User, property_id: uuid.UUID, commit: bool = False) -> User:
        """
        Remove a property ID from the user's owned list.

        Args:
            user: Owner, loaded in the current transaction
            property_id: ID of the removed property
            commit: Whether to commit, or only flush into the open transaction

        Returns:
            Updated user
        """
        user.all_properties = user.without_property(property_id)
        await self._persist(commit, f"remove property {property_id} from user {user.id}")
        logger.debug(f"Removed property {property_id} from user {user.id}")
        return user
