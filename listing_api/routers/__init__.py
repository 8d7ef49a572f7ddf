"""
API route handlers for the Property Listing API.
"""

from .properties import router as properties_router

__all__ = ["properties_router"]
