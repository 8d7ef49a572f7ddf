"""
FastAPI dependency injection utilities for services and shared resources.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from listing_api.database import get_db
from listing_api.services.image_store import ImageStore
from listing_api.services.property import PropertyService


async def get_image_store(request: Request) -> ImageStore:
    """
    Get the image store adapter created at application startup.

    Args:
        request: Current request

    Returns:
        ImageStore instance
    """
    return request.app.state.image_store


async def get_property_service(
    db: AsyncSession = Depends(get_db),
    image_store: ImageStore = Depends(get_image_store)
) -> PropertyService:
    """
    Get property service instance.

    Args:
        db: Database session
        image_store: Image store adapter

    Returns:
        PropertyService instance
    """
    return PropertyService(db, image_store)
