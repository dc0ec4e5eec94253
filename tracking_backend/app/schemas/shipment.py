"""
Shipment Pydantic schemas.

Defines request and response models for shipment submission, listing and
staff updates.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime, date
from typing import Optional, List
from tracking_backend.app.domain.tracking import waybill
from tracking_backend.app.models.shipment_enums import ShipmentStatus, ProgressStep, ShipmentType


class ContactInfo(BaseModel):
    """Sender / receiver contact details."""
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = Field(None, max_length=500)


class ShipmentCreate(BaseModel):
    """Schema for submitting a new shipment."""
    sender_name: str = Field(..., min_length=1, max_length=200)
    sender_contact: Optional[ContactInfo] = None
    receiver_name: str = Field(..., min_length=1, max_length=200)
    receiver_contact: Optional[ContactInfo] = None
    items_description: Optional[str] = Field(None, max_length=1000)
    weight: float = Field(..., gt=0, description="Weight in kilograms")
    package_quantity: int = Field(default=1, ge=1, description="Number of packages")
    shipment_type: ShipmentType = ShipmentType.STANDARD
    origin_location: Optional[str] = Field(None, max_length=200)
    destination: Optional[str] = Field(None, max_length=200)
    shipment_date: date
    tracking_number: Optional[str] = Field(None, description="Customer-supplied waybill number")


class ShipmentStatusUpdate(BaseModel):
    """
    Staff update of a shipment.

    Every field is optional; an update without progress_step is a pure
    correction.
    """
    progress_step: Optional[ProgressStep] = None
    location: Optional[str] = Field(None, max_length=200, description="Where the event happened")
    destination: Optional[str] = Field(None, max_length=200)
    waybill_number: Optional[str] = None
    receiver_name: Optional[str] = Field(None, max_length=200, description="SuperAdmin only")
    weight: Optional[float] = Field(None, description="SuperAdmin only")
    package_image_bucket: Optional[str] = None
    package_image_path: Optional[str] = None
    package_image_url: Optional[str] = None


class ShipmentEventResponse(BaseModel):
    """Schema for a tracking event."""
    id: int
    shipment_id: int
    event_type: str
    description: Optional[str] = None
    location: Optional[str] = None
    event_time: datetime
    created_by: Optional[int] = None

    class Config:
        from_attributes = True


class ShipmentResponse(BaseModel):
    """Schema for shipment response."""
    id: int
    user_id: int
    tracking_number: Optional[str] = None
    sender_name: str
    sender_contact: Optional[ContactInfo] = None
    receiver_name: str
    receiver_contact: Optional[ContactInfo] = None
    items_description: Optional[str] = None
    weight: float
    package_quantity: int
    shipment_type: ShipmentType
    origin_location: Optional[str] = None
    destination: Optional[str] = None
    shipment_date: date
    package_image_url: Optional[str] = None
    status: ShipmentStatus
    progress_step: ProgressStep
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @field_validator("tracking_number", mode="before")
    @classmethod
    def unassigned_waybill_is_none(cls, value):
        return waybill.from_storage(value)


class ShipmentDetailResponse(ShipmentResponse):
    """Shipment with its events, oldest first."""
    events: List[ShipmentEventResponse] = []


class ShipmentListResponse(BaseModel):
    """Schema for paginated shipment list."""
    shipments: List[ShipmentResponse]
    total: int
    page: int
    limit: int
    total_pages: int
