"""
Shipment-related enumerations.

Values are the lowercase strings persisted in the database and exchanged
over the API.
"""

import enum


class ShipmentStatus(str, enum.Enum):
    """
    Lifecycle status of a shipment (authoritative persisted state).

    Status flow driven by staff:
        CREATED -> IN_TRANSIT -> DELIVERED

    DRAFT, CONFIRMED, CANCELLED and RETURNED are valid states with no
    staff-driven producer; they are still rendered by the status model.
    """
    DRAFT = "draft"
    CREATED = "created"
    CONFIRMED = "confirmed"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


class ProgressStep(str, enum.Enum):
    """Coarse user-facing progress step, one per stage of the progress bar."""
    PENDING = "pending"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"


class ShipmentType(str, enum.Enum):
    """Service level chosen at creation."""
    STANDARD = "standard"
    EXPRESS = "express"
    OVERNIGHT = "overnight"


# Event type recorded when a shipment is first submitted
SHIPMENT_CREATED_EVENT = "shipment_created"
