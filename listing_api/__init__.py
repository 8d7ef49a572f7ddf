"""
Property Listing API.
CRUD service for real-estate listings that keeps each property and its owner's property list consistent.
"""

__version__ = "1.0.0"
