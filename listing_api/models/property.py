"""
Property model for real-estate listings.
Handles listing data, the hosted photo reference, and the link to the owning user.
"""

from sqlalchemy import String, Text, Numeric, Enum as SQLEnum, Index, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from listing_api.database import Base
from decimal import Decimal
import enum
import uuid
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from listing_api.models.user import User


class PropertyType(str, enum.Enum):
    """Property category."""
    APARTMENT = "apartment"
    VILLA = "villa"
    FARMHOUSE = "farmhouse"
    CONDOS = "condos"
    TOWNHOUSE = "townhouse"
    DUPLEX = "duplex"
    STUDIO = "studio"
    CHALET = "chalet"

    @classmethod
    def _missing_(cls, value):
        # Accept "Apartment", " VILLA " and the like
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        return None

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["PropertyType"]:
        """Parse a category name, returning None when it is not a known category."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class Property(Base):
    """
    Property listing owned by exactly one user.
    The owner's all_properties list must contain this property's ID while it exists.
    """

    __tablename__ = "properties"

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Property listing title"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Detailed property description"
    )

    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType, values_callable=lambda enum_cls: [member.value for member in enum_cls]),
        nullable=False,
        index=True,
        comment="Property category"
    )

    location: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Property location/address"
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        index=True,
        comment="Property price in local currency"
    )

    photo: Mapped[str] = mapped_column(
        String(1000),
        nullable=False,
        comment="URL of the hosted property photo"
    )

    creator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
        comment="ID of the user who listed this property"
    )

    creator: Mapped["User"] = relationship(
        "User",
        lazy="selectin"
    )

    def __repr__(self) -> str:
        """String representation of the property."""
        return f"<Property(id={self.id}, title={self.title[:30]}..., price={self.price})>"

    def to_dict(self, include_creator: bool = False) -> dict:
        """
        Convert property to dictionary.

        Args:
            include_creator: Whether to populate the creator with the full user record

        Returns:
            Dictionary representation of property
        """
        result = {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "propertyType": self.property_type.value,
            "location": self.location,
            "price": float(self.price),
            "photo": self.photo,
            "creator": str(self.creator_id),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

        if include_creator and self.creator:
            result["creator"] = self.creator.to_dict()

        return result


# Composite index for category filtering with title search
type_title_index = Index(
    'idx_properties_type_title',
    Property.property_type,
    Property.title
)
