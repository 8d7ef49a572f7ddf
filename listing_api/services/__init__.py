"""
Service layer for business logic.
"""

from listing_api.services.image_store import ImageStore, CloudinaryImageStore, LocalImageStore, build_image_store
from listing_api.services.property import PropertyService
from listing_api.services.transaction import TransactionCoordinator

__all__ = [
    "ImageStore",
    "CloudinaryImageStore",
    "LocalImageStore",
    "build_image_store",
    "PropertyService",
    "TransactionCoordinator",
]
