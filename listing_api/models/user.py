"""
User model for property owners.
Users are registered elsewhere; this service reads them and maintains their list of owned properties.
"""

from sqlalchemy import String, JSON
from sqlalchemy.orm import Mapped, mapped_column
from listing_api.database import Base
from email_validator import validate_email, EmailNotValidError
import uuid
from typing import List, Optional


class User(Base):
    """
    User model owning property listings.
    Keeps an ordered list of owned property IDs mirroring Property.creator_id.
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="User's display name"
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="User email address - unique, used to resolve property ownership"
    )

    avatar: Mapped[Optional[str]] = mapped_column(
        String(1000),
        nullable=True,
        comment="Avatar image URL"
    )

    # Property IDs stored as strings, in creation order
    all_properties: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="IDs of the properties owned by this user"
    )

    def __repr__(self) -> str:
        """String representation of the user."""
        return f"<User(id={self.id}, email={self.email})>"

    @classmethod
    def validate_email_format(cls, email: str) -> str:
        """
        Validate email format using email-validator.

        Args:
            email: Email address to validate

        Returns:
            Normalized email address

        Raises:
            ValueError: If email format is invalid
        """
        try:
            valid_email = validate_email(email, check_deliverability=False)
            return valid_email.normalized.lower()
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email format: {str(e)}")

    def owns_property(self, property_id: uuid.UUID) -> bool:
        """Check whether a property ID is on this user's list."""
        return str(property_id) in (self.all_properties or [])

    def with_property(self, property_id: uuid.UUID) -> List[str]:
        """Owned property list with the given ID appended."""
        return [*(self.all_properties or []), str(property_id)]

    def without_property(self, property_id: uuid.UUID) -> List[str]:
        """Owned property list with every occurrence of the given ID removed."""
        return [pid for pid in (self.all_properties or []) if pid != str(property_id)]

    def to_dict(self) -> dict:
        """
        Convert user to dictionary.

        Returns:
            Dictionary representation of user
        """
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "avatar": self.avatar,
            "allProperties": list(self.all_properties or []),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
