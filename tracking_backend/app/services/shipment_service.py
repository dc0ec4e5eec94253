"""
Shipment Service.

Orchestrates shipment creation, staff updates and deletion on top of the
ShipmentRepository and the tracking domain rules.

Consistency policy: the shipment row is the source of truth. Tracking
events are appended after the shipment write has been committed; if the
append fails the error is logged, the session is rolled back and the
already committed shipment change stands.
"""

import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tracking_backend.app.core.exceptions import (
    DuplicateWaybillError,
    InsufficientPermissionsError,
    ResourceNotFoundError,
)
from tracking_backend.app.core.guards import is_superadmin
from tracking_backend.app.domain.tracking import waybill
from tracking_backend.app.domain.tracking.state_machine import (
    PlannedTransition,
    ShipmentUpdate,
    plan_update,
)
from tracking_backend.app.models.shipment import Shipment
from tracking_backend.app.models.shipment_enums import (
    ShipmentStatus,
    ProgressStep,
    SHIPMENT_CREATED_EVENT,
)
from tracking_backend.app.models.shipment_event import ShipmentEvent
from tracking_backend.app.schemas.shipment import ShipmentCreate
from tracking_backend.app.services.shipment_repository import (
    ShipmentRepository,
    get_shipment_repository,
)

logger = logging.getLogger(__name__)

SHIPMENT_CREATED_DESCRIPTION = "Shipment created and pending pickup"


class ShipmentService:

    def __init__(self, repository: ShipmentRepository):
        self.repository = repository

    async def get_or_404(self, shipment_id: int) -> Shipment:
        shipment = await self.repository.get(shipment_id)
        if shipment is None:
            raise ResourceNotFoundError("Shipment", shipment_id)
        return shipment

    async def create_shipment(self, data: ShipmentCreate, user_id: int) -> Shipment:
        """
        Submit a new shipment as `created` / `pending`.

        A customer-supplied waybill number is normalized and validated; a
        blank one leaves the shipment unassigned.
        """
        tracking_number = None
        if data.tracking_number and data.tracking_number.strip():
            tracking_number = waybill.parse_waybill(data.tracking_number)
            if await self.repository.tracking_number_taken(tracking_number):
                raise DuplicateWaybillError(tracking_number)

        shipment = Shipment(
            user_id=user_id,
            tracking_number=tracking_number,
            sender_name=data.sender_name.strip(),
            sender_contact=data.sender_contact.model_dump() if data.sender_contact else None,
            receiver_name=data.receiver_name.strip(),
            receiver_contact=data.receiver_contact.model_dump() if data.receiver_contact else None,
            items_description=data.items_description,
            weight=data.weight,
            package_quantity=data.package_quantity,
            shipment_type=data.shipment_type,
            origin_location=data.origin_location,
            destination=data.destination,
            shipment_date=data.shipment_date,
            status=ShipmentStatus.CREATED,
            progress_step=ProgressStep.PENDING,
        )

        try:
            shipment = await self.repository.add(shipment)
        except IntegrityError:
            await self.repository.rollback()
            raise DuplicateWaybillError(tracking_number or "")

        await self._record_event(
            shipment,
            event_type=SHIPMENT_CREATED_EVENT,
            description=SHIPMENT_CREATED_DESCRIPTION,
            location=shipment.origin_location,
            created_by=user_id,
        )

        logger.info("Shipment %s created by user %s", shipment.id, user_id)
        return shipment

    async def update_shipment(
        self,
        shipment_id: int,
        update: ShipmentUpdate,
        current_user: dict,
    ) -> PlannedTransition:
        """
        Apply a staff update: persist status, step and corrections, then
        append the tracking event.

        Raises:
            ResourceNotFoundError: unknown shipment
            InsufficientPermissionsError: receiver/weight correction by non-SuperAdmin
            InvalidStatusTransitionError: backward or out-of-terminal move
            InvalidWaybillFormatError: malformed waybill correction
            DuplicateWaybillError: waybill already used by another shipment
        """
        shipment = await self.get_or_404(shipment_id)

        if (update.receiver_name is not None or update.weight is not None) and not is_superadmin(current_user):
            raise InsufficientPermissionsError("Only SuperAdmins can edit receiver name and weight")

        plan = plan_update(shipment.status, shipment.progress_step, update)

        new_tracking_number = plan.changes.get("tracking_number")
        if new_tracking_number and new_tracking_number != shipment.tracking_number:
            if await self.repository.tracking_number_taken(new_tracking_number, exclude_id=shipment.id):
                raise DuplicateWaybillError(new_tracking_number)

        try:
            await self.repository.apply_changes(shipment, plan.changes)
        except IntegrityError:
            await self.repository.rollback()
            raise DuplicateWaybillError(new_tracking_number or "")

        await self._record_event(
            shipment,
            event_type=plan.event.event_type,
            description=plan.event.description,
            location=plan.event.location,
            created_by=current_user.get("user_id"),
        )

        logger.info(
            "Shipment %s updated by user %s: %s -> %s (%s)",
            shipment.id, current_user.get("user_id"),
            plan.previous_status.value, plan.status.value, plan.progress_step.value,
        )
        return plan

    async def delete_shipment(self, shipment_id: int) -> Shipment:
        shipment = await self.get_or_404(shipment_id)
        await self.repository.delete(shipment)
        logger.info("Shipment %s deleted", shipment_id)
        return shipment

    async def _record_event(
        self,
        shipment: Shipment,
        event_type: str,
        description: str,
        location: Optional[str],
        created_by: Optional[int],
    ) -> Optional[ShipmentEvent]:
        """Best-effort event append; returns None when the write failed."""
        try:
            return await self.repository.append_event(
                shipment_id=shipment.id,
                event_type=event_type,
                description=description,
                location=location,
                created_by=created_by,
            )
        except SQLAlchemyError:
            logger.exception(
                "Failed to record '%s' event for shipment %s; shipment change kept",
                event_type, shipment.id,
            )
            await self.repository.rollback()
            # rollback expires loaded rows
            await self.repository.refresh(shipment)
            return None


async def get_shipment_service(
    repository: ShipmentRepository = Depends(get_shipment_repository),
) -> ShipmentService:
    return ShipmentService(repository)
