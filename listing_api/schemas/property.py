"""
Pydantic schemas for property requests and responses.
Converts loosely typed request bodies into typed listing fields at the API boundary.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from uuid import UUID
from listing_api.models.property import PropertyType
from listing_api.schemas.user import UserResponse


def _strip_required(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{field_name} cannot be empty")
    return value.strip()


class PropertyCreate(BaseModel):
    """Request body for creating a property on behalf of the user with the given email."""

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "title": "Lakeside Flat",
                "description": "Two bedroom flat with a view over the lake.",
                "propertyType": "apartment",
                "location": "Geneva, Switzerland",
                "price": 100000,
                "photo": "data:image/png;base64,iVBORw0KGgo...",
                "email": "a@x.com"
            }
        }
    }

    title: str = Field(..., max_length=255, description="Property listing title")
    description: str = Field(..., description="Detailed property description")
    property_type: PropertyType = Field(..., alias="propertyType", description="Property category")
    location: str = Field(..., max_length=255, description="Property location/address")
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2, description="Property price")
    photo: str = Field(..., min_length=1, description="Image payload: base64 data URI or remote image URL")
    email: EmailStr = Field(..., description="Email of the user listing the property")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        """Validate and clean title."""
        return _strip_required(v, "Title")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        """Validate and clean description."""
        return _strip_required(v, "Description")

    @field_validator("location")
    @classmethod
    def validate_location(cls, v):
        """Validate and clean location."""
        return _strip_required(v, "Location")


class PropertyUpdate(BaseModel):
    """
    Request body for updating a property.
    Only fields present in the request are changed; the creator cannot be changed.
    """

    model_config = {"populate_by_name": True}

    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    property_type: Optional[PropertyType] = Field(None, alias="propertyType")
    location: Optional[str] = Field(None, max_length=255)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    photo: Optional[str] = Field(
        None,
        description="New image payload, or the current photo URL to keep it"
    )

    @field_validator("title", "description", "location")
    @classmethod
    def strip_text(cls, v):
        """Trim text fields; blank values are treated as absent."""
        if v is None:
            return v
        return v.strip() or None


class PropertyResponse(BaseModel):
    """Property as returned by the listing endpoint, with the creator as an ID."""

    model_config = {"populate_by_name": True}

    id: UUID
    title: str
    description: str
    property_type: PropertyType = Field(..., alias="propertyType")
    location: str
    price: float
    photo: str
    creator: UUID
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")


class PropertyDetailResponse(PropertyResponse):
    """Property with the creator populated with the full user record."""

    creator: UserResponse
