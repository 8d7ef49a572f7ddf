"""
Property API endpoints: listing, detail lookup, creation, update and deletion.
"""

from fastapi import APIRouter, Depends, Query, Path, Response, status
from typing import Optional, List
from uuid import UUID

from listing_api.repositories.property import PropertyListFilters
from listing_api.services.property import PropertyService
from listing_api.schemas.error import MessageResponse, get_error_responses, get_mutation_error_responses
from listing_api.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyDetailResponse,
)
from listing_api.utils.dependencies import get_property_service
from listing_api.utils.exceptions import NotFoundError, PropertyNotFoundError


router = APIRouter(prefix="/properties", tags=["Properties"])

TOTAL_COUNT_HEADER = "x-total-count"


@router.get(
    "",
    response_model=List[PropertyResponse],
    status_code=status.HTTP_200_OK,
    summary="List properties",
    description="List properties filtered by category and title, with offset/limit pagination and sorting.",
    responses=get_error_responses(422, 500)
)
async def list_properties(
    response: Response,
    property_type: Optional[str] = Query(None, alias="propertyType", description="Exact property category"),
    title_like: Optional[str] = Query(None, description="Case-insensitive title substring"),
    start: Optional[int] = Query(None, alias="_start", description="Number of records to skip"),
    end: Optional[int] = Query(None, alias="_end", description="Maximum number of records to return"),
    sort: Optional[str] = Query(None, alias="_sort", description="Field to sort by"),
    order: Optional[str] = Query(None, alias="_order", description="Sort order (asc/desc)"),
    property_service: PropertyService = Depends(get_property_service)
) -> List[PropertyResponse]:
    """
    List properties. The total number of matches, ignoring pagination, is
    returned in the x-total-count header.
    """
    filters = PropertyListFilters(
        property_type=property_type,
        title_like=title_like,
        start=start,
        end=end,
        sort=sort,
        order=order
    )

    properties, total_count = await property_service.list_properties(filters)

    response.headers[TOTAL_COUNT_HEADER] = str(total_count)
    response.headers["Access-Control-Expose-Headers"] = TOTAL_COUNT_HEADER

    return [PropertyResponse.model_validate(prop.to_dict()) for prop in properties]


@router.get(
    "/{property_id}",
    response_model=PropertyDetailResponse,
    status_code=status.HTTP_200_OK,
    summary="Get property details",
    description="Get a property with its creator populated.",
    responses=get_error_responses(404, 422, 500)
)
async def get_property(
    property_id: UUID = Path(..., description="Property ID"),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyDetailResponse:
    """
    Get detailed information about a specific property.

    Raises:
        NotFoundError: If the property doesn't exist
    """
    try:
        property_obj = await property_service.get_property(property_id)
    except PropertyNotFoundError:
        raise NotFoundError("Property")

    return PropertyDetailResponse.model_validate(property_obj.to_dict(include_creator=True))


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Create property",
    description="Create a property for the user with the given email and upload its photo.",
    responses=get_mutation_error_responses()
)
async def create_property(
    property_data: PropertyCreate,
    property_service: PropertyService = Depends(get_property_service)
) -> MessageResponse:
    """
    Create a new property listing.
    Failures (unknown owner, upload failure, database error) return 500 with the error message.
    """
    await property_service.create_property(property_data)
    return MessageResponse(message="Property created successfully")


@router.patch(
    "/{property_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Update property",
    description="Update the listing fields present in the request body.",
    responses=get_mutation_error_responses()
)
async def update_property(
    property_data: PropertyUpdate,
    property_id: UUID = Path(..., description="Property ID"),
    property_service: PropertyService = Depends(get_property_service)
) -> MessageResponse:
    """Update property details."""
    await property_service.update_property(property_id, property_data)
    return MessageResponse(message="Property updated successfully")


@router.delete(
    "/{property_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete property",
    description="Delete a property and remove it from its creator's property list.",
    responses=get_mutation_error_responses()
)
async def delete_property(
    property_id: UUID = Path(..., description="Property ID"),
    property_service: PropertyService = Depends(get_property_service)
) -> MessageResponse:
    """Delete property listing."""
    await property_service.delete_property(property_id)
    return MessageResponse(message="Property deleted successfully")
