"""
Pydantic schemas for user responses.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from uuid import UUID


class UserResponse(BaseModel):
    """User record as embedded in a property's creator field."""

    model_config = {"populate_by_name": True}

    id: UUID
    name: str
    email: str
    avatar: Optional[str] = None
    all_properties: List[str] = Field(default_factory=list, alias="allProperties")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")
