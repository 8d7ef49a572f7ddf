"""
Repository layer for data access operations.
"""

from listing_api.repositories.base import BaseRepository
from listing_api.repositories.property import PropertyRepository, PropertyListFilters
from listing_api.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "PropertyRepository",
    "PropertyListFilters",
    "UserRepository"
]
