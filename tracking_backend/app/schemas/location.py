"""
Location Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List


class LocationCreate(BaseModel):
    """Schema for adding (or re-activating) a location."""
    name: str = Field(..., min_length=1, max_length=200, description="Location name")


class LocationUpdate(BaseModel):
    """Schema for renaming or toggling a location."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    is_active: Optional[bool] = None


class LocationResponse(BaseModel):
    id: int
    name: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LocationListResponse(BaseModel):
    locations: List[LocationResponse]
    total: int
