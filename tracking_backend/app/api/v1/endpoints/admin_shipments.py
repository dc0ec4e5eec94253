"""
Staff Shipment Management Endpoints.

Paginated table, status updates, corrections, deletion and CSV export.
Admins and SuperAdmins may update; only SuperAdmins may delete or correct
receiver name and weight.
"""

import logging
import math

from fastapi import APIRouter, Depends, HTTPException, status, Query, Path, Response
from sqlalchemy.ext.asyncio import AsyncSession
from tracking_backend.app.core.config import settings
from tracking_backend.app.core.guards import require_staff, require_superadmin
from tracking_backend.app.db.session import get_db
from tracking_backend.app.domain.tracking.state_machine import ShipmentUpdate
from tracking_backend.app.domain.tracking.timeline import latest_by_type_per_shipment
from tracking_backend.app.models.shipment_enums import ProgressStep
from tracking_backend.app.schemas.shipment import (
    ShipmentResponse, ShipmentListResponse, ShipmentStatusUpdate
)
from tracking_backend.app.services.audit import log_staff_action, AuditAction
from tracking_backend.app.services.export import build_shipments_csv, export_filename
from tracking_backend.app.services.shipment_repository import ShipmentRepository, get_shipment_repository
from tracking_backend.app.services.shipment_service import ShipmentService, get_shipment_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/shipments", tags=["Admin - Shipments"])


@router.get("", response_model=ShipmentListResponse)
async def list_shipments(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    search: str = Query(None, description="Waybill, route, sender or receiver"),
    status_filter: str = Query("all", alias="status", description="Progress step or status, or 'all'"),
    current_user: dict = Depends(require_staff),
    repository: ShipmentRepository = Depends(get_shipment_repository)
):
    """All shipments, newest first, with search and status filtering."""
    shipments, total = await repository.list_shipments(
        search=search,
        status=status_filter,
        offset=(page - 1) * limit,
        limit=limit,
        include_parties=True,
    )

    return ShipmentListResponse(
        shipments=[ShipmentResponse.model_validate(s) for s in shipments],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit)
    )


@router.get("/export")
async def export_shipments(
    search: str = Query(None),
    status_filter: str = Query("all", alias="status"),
    current_user: dict = Depends(require_staff),
    repository: ShipmentRepository = Depends(get_shipment_repository),
    db: AsyncSession = Depends(get_db)
):
    """
    CSV export of every matching shipment (up to the configured row limit)
    including the date of its latest delivery event.
    """
    shipments, total = await repository.list_shipments(
        search=search,
        status=status_filter,
        limit=settings.export_max_rows,
        include_parties=True,
    )
    if total > len(shipments):
        logger.warning("Export truncated to %s of %s shipments", len(shipments), total)

    delivered_events = await repository.events_for_shipments(
        [s.id for s in shipments], event_type=ProgressStep.DELIVERED.value
    )
    latest_delivered = latest_by_type_per_shipment(delivered_events, ProgressStep.DELIVERED.value)
    delivered_at_by_id = {
        shipment_id: event.event_time for shipment_id, event in latest_delivered.items()
    }

    content = build_shipments_csv(shipments, delivered_at_by_id)

    await log_staff_action(
        db=db,
        current_user=current_user,
        action=AuditAction.SHIPMENTS_EXPORTED,
        target_type="shipment",
        target_id=None,
        metadata={"rows": len(shipments), "total": total}
    )

    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'}
    )


@router.patch("/{shipment_id}", response_model=ShipmentResponse)
async def update_shipment(
    update_data: ShipmentStatusUpdate,
    shipment_id: int = Path(..., description="Shipment ID"),
    current_user: dict = Depends(require_staff),
    service: ShipmentService = Depends(get_shipment_service),
    db: AsyncSession = Depends(get_db)
):
    """
    Move a shipment along its journey and/or correct its details.

    - progress_step: new step (omitted = correction only)
    - location: where it happened, recorded on the tracking event
    - destination, waybill_number, package image: corrections
    - receiver_name, weight: SuperAdmin only
    """
    fields = update_data.model_dump(exclude_none=True)
    if not fields:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Nothing to update"
        )

    plan = await service.update_shipment(shipment_id, ShipmentUpdate(**fields), current_user)
    shipment = await service.get_or_404(shipment_id)

    await log_staff_action(
        db=db,
        current_user=current_user,
        action=AuditAction.SHIPMENT_UPDATED,
        target_type="shipment",
        target_id=shipment_id,
        metadata={
            "previous_status": plan.previous_status.value,
            "status": plan.status.value,
            "progress_step": plan.progress_step.value,
            "fields": sorted(fields),
        }
    )

    return ShipmentResponse.model_validate(shipment)


@router.delete("/{shipment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shipment(
    shipment_id: int = Path(..., description="Shipment ID"),
    current_user: dict = Depends(require_superadmin),
    service: ShipmentService = Depends(get_shipment_service),
    db: AsyncSession = Depends(get_db)
):
    """Permanently delete a shipment and its tracking events (SuperAdmin only)."""
    shipment = await service.delete_shipment(shipment_id)

    await log_staff_action(
        db=db,
        current_user=current_user,
        action=AuditAction.SHIPMENT_DELETED,
        target_type="shipment",
        target_id=shipment_id,
        metadata={"tracking_number": shipment.tracking_number}
    )

    return Response(status_code=status.HTTP_204_NO_CONTENT)
