"""
Pydantic schemas for request and response bodies.
"""

from listing_api.schemas.error import ErrorResponse, MessageResponse
from listing_api.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyDetailResponse,
)
from listing_api.schemas.user import UserResponse

__all__ = [
    "ErrorResponse",
    "MessageResponse",
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyResponse",
    "PropertyDetailResponse",
    "UserResponse",
]
