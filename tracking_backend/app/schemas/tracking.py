"""
Public tracking schemas.

What an anonymous visitor sees for a waybill number.
"""

from pydantic import BaseModel
from datetime import datetime, date
from typing import Optional, List
from tracking_backend.app.models.shipment_enums import ShipmentStatus, ProgressStep, ShipmentType


class TrackingEvent(BaseModel):
    event_type: str
    label: str
    description: str
    location: Optional[str] = None
    event_time: datetime


class TrackingResponse(BaseModel):
    """
    Public view of a shipment, events newest first.

    Names and package details are shown; contact details and the image
    storage location are not.
    """
    tracking_number: str
    status: ShipmentStatus
    status_label: str
    progress_step: ProgressStep
    progress_label: str
    progress_index: int
    step_index: int
    origin_location: Optional[str] = None
    destination: Optional[str] = None
    sender_name: str
    receiver_name: str
    items_description: Optional[str] = None
    weight: float
    package_quantity: int
    shipment_type: ShipmentType
    package_image_url: Optional[str] = None
    shipment_date: date
    estimated_delivery_date: datetime
    last_updated: datetime
    events: List[TrackingEvent]
