"""
Message and error response schemas, plus OpenAPI response documentation helpers.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class MessageResponse(BaseModel):
    """Acknowledgement body returned by mutations."""

    message: str = Field(..., description="Human-readable result message")


class ErrorDetail(BaseModel):
    """Single field-level validation problem."""

    field: str
    message: str
    type: str


class ErrorResponse(BaseModel):
    """Error body; details are only present for request validation failures."""

    message: str = Field(..., description="Underlying error message")
    details: Optional[List[ErrorDetail]] = None


ERROR_DESCRIPTIONS = {
    404: ("Not Found", "Property not found"),
    422: ("Validation Error", "Request validation failed"),
    500: ("Internal Server Error", "Failed to create property, please try again later"),
}


def get_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """
    Build OpenAPI response entries for the given status codes.

    Args:
        status_codes: HTTP status codes to document

    Returns:
        Mapping usable as the `responses` argument of a route decorator
    """
    responses = {}
    for code in status_codes:
        description, example = ERROR_DESCRIPTIONS[code]
        responses[code] = {
            "model": ErrorResponse,
            "description": description,
            "content": {"application/json": {"example": {"message": example}}},
        }
    return responses


def get_mutation_error_responses() -> Dict[int, Dict[str, Any]]:
    """Error responses shared by create, update and delete."""
    return get_error_responses(422, 500)
