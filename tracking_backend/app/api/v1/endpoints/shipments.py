"""
Shipment API Endpoints.

Signed-in users submit shipments and follow their own; staff may read any.
"""

import math

from fastapi import APIRouter, Depends, status, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession
from tracking_backend.app.db.session import get_db
from tracking_backend.app.domain.tracking.timeline import sorted_timeline
from tracking_backend.app.schemas.shipment import (
    ShipmentCreate, ShipmentResponse, ShipmentDetailResponse,
    ShipmentEventResponse, ShipmentListResponse
)
from tracking_backend.app.core.guards import OwnershipGuard
from tracking_backend.app.core.dependencies import get_current_user
from tracking_backend.app.services.audit import log_staff_action, AuditAction
from tracking_backend.app.services.shipment_repository import ShipmentRepository, get_shipment_repository
from tracking_backend.app.services.shipment_service import ShipmentService, get_shipment_service

router = APIRouter(prefix="/shipments", tags=["Shipments"])
ownership_guard = OwnershipGuard()


@router.post("", response_model=ShipmentResponse, status_code=status.HTTP_201_CREATED)
async def create_shipment(
    shipment_data: ShipmentCreate,
    current_user: dict = Depends(get_current_user),
    service: ShipmentService = Depends(get_shipment_service),
    db: AsyncSession = Depends(get_db)
):
    """
    Submit a new shipment.

    The shipment starts as created / pending and receives a
    `shipment_created` tracking event.
    """
    shipment = await service.create_shipment(shipment_data, current_user["user_id"])

    await log_staff_action(
        db=db,
        current_user=current_user,
        action=AuditAction.SHIPMENT_CREATED,
        target_type="shipment",
        target_id=shipment.id,
        metadata={"tracking_number": shipment.tracking_number, "weight": shipment.weight}
    )

    return ShipmentResponse.model_validate(shipment)


@router.get("", response_model=ShipmentListResponse)
async def list_my_shipments(
    search: str = Query(None, description="Waybill, origin or destination"),
    status_filter: str = Query("all", alias="status", description="Status or progress step, or 'all'"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(get_current_user),
    repository: ShipmentRepository = Depends(get_shipment_repository)
):
    """List the caller's own shipments, newest first."""
    shipments, total = await repository.list_shipments(
        owner_id=current_user["user_id"],
        search=search,
        status=status_filter,
        offset=(page - 1) * limit,
        limit=limit,
    )

    return ShipmentListResponse(
        shipments=[ShipmentResponse.model_validate(s) for s in shipments],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit)
    )


@router.get("/{shipment_id}", response_model=ShipmentDetailResponse)
async def get_shipment(
    shipment_id: int = Path(..., description="Shipment ID"),
    current_user: dict = Depends(get_current_user),
    service: ShipmentService = Depends(get_shipment_service)
):
    """
    Shipment details with its tracking events, oldest first.

    Ownership is enforced for non-staff callers.
    """
    shipment = await service.get_or_404(shipment_id)
    ownership_guard.enforce(shipment.user_id, current_user, "shipment")

    events = sorted_timeline(await service.repository.events_for(shipment.id))

    return ShipmentDetailResponse(
        **ShipmentResponse.model_validate(shipment).model_dump(),
        events=[ShipmentEventResponse.model_validate(e) for e in events]
    )
