"""
Custom exception classes for the Property Listing API.
Provides structured error handling with appropriate HTTP status codes.
"""

from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base API exception class."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

    def __str__(self) -> str:
        return str(self.detail)


class NotFoundError(APIException):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        if resource_id:
            detail += f" with ID: {resource_id}"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND"
        )


# Property operation failures. All of them surface as a 500 with the message text.
class PropertyOperationError(APIException):
    """Base exception for failed property operations."""

    def __init__(self, detail: str, error_code: str = "PROPERTY_OPERATION_FAILED"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code=error_code
        )


class OwnerNotFoundError(PropertyOperationError):
    """No user matches the owner email given for a new property."""

    def __init__(self, email: str):
        super().__init__("User not found", error_code="OWNER_NOT_FOUND")
        self.email = email


class PropertyNotFoundError(PropertyOperationError):
    """Property not found exception."""

    def __init__(self, property_id: str):
        super().__init__(f"Property not found with ID: {property_id}", error_code="PROPERTY_NOT_FOUND")
        self.property_id = property_id


class UploadError(PropertyOperationError):
    """Image hosting failure."""

    def __init__(self, detail: str):
        super().__init__(f"Image upload failed: {detail}", error_code="UPLOAD_ERROR")


class StoreError(PropertyOperationError):
    """Read, write, or transaction failure in the database."""

    def __init__(self, detail: str):
        super().__init__(detail, error_code="STORE_ERROR")
