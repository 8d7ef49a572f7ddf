"""
Database models for the Property Listing API.
Includes the User and Property models linked by ownership.
"""

from listing_api.models.user import User
from listing_api.models.property import Property, PropertyType

__all__ = [
    "User",
    "Property",
    "PropertyType",
]
