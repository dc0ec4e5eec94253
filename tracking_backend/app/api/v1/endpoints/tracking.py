"""
Public Tracking Endpoint.

Anyone holding a waybill number can follow the shipment; no sign-in needed.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Path

from tracking_backend.app.domain.tracking import status_model, waybill
from tracking_backend.app.domain.tracking.timeline import sorted_timeline, estimated_delivery_date
from tracking_backend.app.schemas.tracking import TrackingResponse, TrackingEvent
from tracking_backend.app.services.shipment_repository import ShipmentRepository, get_shipment_repository

router = APIRouter(prefix="/tracking", tags=["Public Tracking"])

DEFAULT_EVENT_DESCRIPTION = "Shipment update"


@router.get("/{tracking_number}", response_model=TrackingResponse)
async def track_shipment(
    tracking_number: str = Path(..., description="Waybill number, e.g. CRY-123-4567"),
    repository: ShipmentRepository = Depends(get_shipment_repository)
):
    """
    Look up a shipment by waybill number.

    The number is normalized first, so lowercase input, stray spaces and
    typographic dashes still match. Events are returned newest first.
    """
    normalized = waybill.normalize(tracking_number)
    if not normalized:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Tracking number is required"
        )

    # Raises InvalidWaybillFormatError -> 400
    normalized = waybill.parse_waybill(normalized)

    shipment = await repository.get_by_tracking_number(normalized)
    if not shipment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Shipment not found"
        )

    events = sorted_timeline(await repository.events_for(shipment.id), descending=True)
    step = status_model.reconcile_progress_step(shipment.status, shipment.progress_step)

    return TrackingResponse(
        tracking_number=normalized,
        status=shipment.status,
        status_label=status_model.display_label(shipment.status),
        progress_step=step,
        progress_label=status_model.display_label(step),
        progress_index=status_model.to_progress_index(shipment.status),
        step_index=status_model.progress_index_for_step(step),
        origin_location=shipment.origin_location,
        destination=shipment.destination,
        sender_name=shipment.sender_name,
        receiver_name=shipment.receiver_name,
        items_description=shipment.items_description,
        weight=shipment.weight,
        package_quantity=shipment.package_quantity,
        shipment_type=shipment.shipment_type,
        package_image_url=shipment.package_image_url,
        shipment_date=shipment.shipment_date,
        estimated_delivery_date=estimated_delivery_date(shipment.created_at),
        last_updated=shipment.updated_at,
        events=[
            TrackingEvent(
                event_type=event.event_type,
                label=status_model.display_label(event.event_type),
                description=event.description or DEFAULT_EVENT_DESCRIPTION,
                location=event.location,
                event_time=event.event_time,
            )
            for event in events
        ],
    )
