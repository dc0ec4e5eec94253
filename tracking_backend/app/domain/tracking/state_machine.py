"""
Shipment State Machine.

Plans a staff update of a shipment: validates the requested transition and
corrections, and computes the field changes to persist together with the
tracking event to append. Nothing here touches storage.

Allowed transitions:
    draft / created / confirmed  ->  in_transit  ->  delivered
    any state                    ->  same state (refinement or correction)

draft, created and confirmed share a rank; moving between them is rejected.

delivered, cancelled and returned are terminal.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from tracking_backend.app.domain.tracking import status_model, waybill
from tracking_backend.app.domain.tracking.exceptions import (
    InvalidStatusTransitionError,
    TrackingDomainError,
)
from tracking_backend.app.models.shipment_enums import ProgressStep, ShipmentStatus


TERMINAL_STATUSES = frozenset({
    ShipmentStatus.DELIVERED,
    ShipmentStatus.CANCELLED,
    ShipmentStatus.RETURNED,
})

_RANK = {
    ShipmentStatus.DRAFT: 0,
    ShipmentStatus.CREATED: 0,
    ShipmentStatus.CONFIRMED: 0,
    ShipmentStatus.IN_TRANSIT: 1,
    ShipmentStatus.DELIVERED: 2,
}


class InvalidWeightError(TrackingDomainError):
    """Raised when a weight correction is not a positive number."""

    def __init__(self):
        super().__init__("Invalid weight")


@dataclass
class ShipmentUpdate:
    """A staff request against one shipment. Every field is optional."""
    progress_step: Optional[ProgressStep] = None
    location: Optional[str] = None
    destination: Optional[str] = None
    waybill_number: Optional[str] = None
    receiver_name: Optional[str] = None
    weight: Optional[float] = None
    package_image_bucket: Optional[str] = None
    package_image_path: Optional[str] = None
    package_image_url: Optional[str] = None


@dataclass
class PlannedEvent:
    """Tracking event to append once the shipment write succeeded."""
    event_type: str
    description: str
    location: Optional[str] = None


@dataclass
class PlannedTransition:
    """Result of planning an update."""
    previous_status: ShipmentStatus
    status: ShipmentStatus
    progress_step: ProgressStep
    changes: Dict[str, Any] = field(default_factory=dict)
    event: Optional[PlannedEvent] = None

    @property
    def is_status_change(self) -> bool:
        return self.previous_status != self.status


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def can_transition(current: ShipmentStatus, target: ShipmentStatus) -> bool:
    """Return True when staff may move a shipment from current to target."""
    if current == target:
        return True
    if current in TERMINAL_STATUSES:
        return False
    return _RANK.get(target, 0) > _RANK.get(current, 0)


def describe_step_change(step: ProgressStep, location: Optional[str] = None) -> str:
    """Sentence stored on the tracking event for a status update."""
    description = f"Status changed to {step.value.replace('_', ' ')}"
    if location:
        description = f"{description} - Location: {location}"
    return description


def plan_update(
    current_status: Any,
    stored_step: Any,
    update: ShipmentUpdate,
    now: Optional[datetime] = None,
) -> PlannedTransition:
    """
    Plan a staff update.

    Without a target progress step the update is a pure correction: the
    lifecycle status and the (reconciled) progress step are kept, and an
    event recording the unchanged step is still produced.

    Args:
        current_status: Persisted lifecycle status
        stored_step: Persisted progress step (may be stale)
        update: Requested step and corrections
        now: Timestamp for updated_at (defaults to current UTC time)

    Returns:
        PlannedTransition with the column changes and the event to append

    Raises:
        InvalidStatusTransitionError: backward move or move out of a terminal state
        InvalidWaybillFormatError: waybill correction is malformed
        InvalidWeightError: weight correction is not a positive number
    """
    if now is None:
        now = datetime.now(timezone.utc)

    try:
        current = ShipmentStatus(current_status)
    except ValueError:
        current = ShipmentStatus.CREATED

    # 1. Resolve the target status and step
    if update.progress_step is None:
        target_status = current
        target_step = status_model.reconcile_progress_step(current, stored_step)
    else:
        target_step = ProgressStep(update.progress_step)
        if status_model.to_progress_step(current) == target_step:
            # same bucket: refine the step, keep draft / confirmed as they are
            target_status = current
        else:
            target_status = status_model.to_lifecycle_status(target_step)
        if not can_transition(current, target_status):
            raise InvalidStatusTransitionError(current.value, target_status.value)

    changes: Dict[str, Any] = {
        "status": target_status,
        "progress_step": target_step,
        "updated_at": now,
    }

    # 2. Corrections
    destination = _clean(update.destination)
    if destination:
        changes["destination"] = destination

    receiver_name = _clean(update.receiver_name)
    if receiver_name:
        changes["receiver_name"] = receiver_name

    if update.weight is not None:
        weight = float(update.weight)
        if not math.isfinite(weight) or weight <= 0:
            raise InvalidWeightError()
        changes["weight"] = weight

    if _clean(update.waybill_number):
        changes["tracking_number"] = waybill.parse_waybill(update.waybill_number)

    if update.package_image_bucket and update.package_image_path and update.package_image_url:
        changes["package_image_bucket"] = update.package_image_bucket
        changes["package_image_path"] = update.package_image_path
        changes["package_image_url"] = update.package_image_url

    # 3. Event
    location = _clean(update.location)
    event = PlannedEvent(
        event_type=target_step.value,
        description=describe_step_change(target_step, location),
        location=location,
    )

    return PlannedTransition(
        previous_status=current,
        status=target_status,
        progress_step=target_step,
        changes=changes,
        event=event,
    )
