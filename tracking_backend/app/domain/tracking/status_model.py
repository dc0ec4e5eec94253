"""
Shipment Status Model.

Single source of truth for translating between the persisted lifecycle
status, the coarse progress step shown to users, the 4-stage progress bar
index, and the display label / colour treatment.

Every function here is total: unrecognized strings degrade to a default
instead of raising.
"""

import re
from typing import NamedTuple, Optional, Union

from tracking_backend.app.models.shipment_enums import ProgressStep, ShipmentStatus


StatusLike = Union[str, ShipmentStatus, ProgressStep, None]


# Lifecycle status -> progress step.
# CANCELLED and RETURNED collapse to PENDING in the coarse view: the progress
# bar has no stage for them.
_STATUS_TO_STEP = {
    ShipmentStatus.DRAFT: ProgressStep.PENDING,
    ShipmentStatus.CREATED: ProgressStep.PENDING,
    ShipmentStatus.CONFIRMED: ProgressStep.PENDING,
    ShipmentStatus.IN_TRANSIT: ProgressStep.IN_TRANSIT,
    ShipmentStatus.DELIVERED: ProgressStep.DELIVERED,
    ShipmentStatus.CANCELLED: ProgressStep.PENDING,
    ShipmentStatus.RETURNED: ProgressStep.PENDING,
}

# Progress step -> lifecycle status. Not the inverse of the table above:
# it never yields DRAFT, CONFIRMED, CANCELLED or RETURNED.
_STEP_TO_STATUS = {
    ProgressStep.PENDING: ShipmentStatus.CREATED,
    ProgressStep.IN_TRANSIT: ShipmentStatus.IN_TRANSIT,
    ProgressStep.OUT_FOR_DELIVERY: ShipmentStatus.IN_TRANSIT,
    ProgressStep.DELIVERED: ShipmentStatus.DELIVERED,
}

# Index 2 (out for delivery) cannot be derived from the lifecycle status.
_STATUS_TO_INDEX = {
    ShipmentStatus.IN_TRANSIT: 1,
    ShipmentStatus.DELIVERED: 3,
}

_STEP_TO_INDEX = {
    ProgressStep.PENDING: 0,
    ProgressStep.IN_TRANSIT: 1,
    ProgressStep.OUT_FOR_DELIVERY: 2,
    ProgressStep.DELIVERED: 3,
}

_LABELS = {
    "draft": "Draft",
    "created": "Pending",
    "pending": "Pending",
    "confirmed": "Confirmed",
    "in_transit": "In Transit",
    "out_for_delivery": "Out for Delivery",
    "delivered": "Delivered",
    "cancelled": "Cancelled",
    "returned": "Returned",
}


class DisplayStyle(NamedTuple):
    """Background / foreground colour pair for a status badge."""
    background: str
    foreground: str


WHITE = "#FFFFFF"
DEFAULT_STYLE = DisplayStyle(background="#6B7280", foreground=WHITE)

_STYLES = {
    "draft": DisplayStyle("#9CA3AF", WHITE),
    "created": DisplayStyle("#FF8D28", WHITE),
    "pending": DisplayStyle("#FF8D28", WHITE),
    "confirmed": DisplayStyle("#8B5CF6", WHITE),
    "in_transit": DisplayStyle("#00C8B3", WHITE),
    "in transit": DisplayStyle("#00C8B3", WHITE),
    "out_for_delivery": DisplayStyle("#3B82F6", WHITE),
    "out for delivery": DisplayStyle("#3B82F6", WHITE),
    "delivered": DisplayStyle("#34C759", WHITE),
    "cancelled": DisplayStyle("#EF4444", WHITE),
    "returned": DisplayStyle("#F59E0B", WHITE),
}

_WORD_START = re.compile(r"\b\w")


def _key(value: StatusLike) -> str:
    if value is None:
        return ""
    if isinstance(value, (ShipmentStatus, ProgressStep)):
        return value.value
    return str(value).strip().lower()


def _as_status(value: StatusLike) -> Optional[ShipmentStatus]:
    try:
        return ShipmentStatus(_key(value))
    except ValueError:
        return None


def _as_step(value: StatusLike) -> Optional[ProgressStep]:
    try:
        return ProgressStep(_key(value))
    except ValueError:
        return None


def to_progress_step(status: StatusLike) -> ProgressStep:
    """
    Map a lifecycle status onto one of the four progress steps.

    Unknown statuses are treated as PENDING.
    """
    known = _as_status(status)
    if known is None:
        return ProgressStep.PENDING
    return _STATUS_TO_STEP[known]


def to_lifecycle_status(step: StatusLike) -> ShipmentStatus:
    """
    Map a progress step picked by staff onto the lifecycle status to persist.

    Both transit steps persist as IN_TRANSIT. Unknown steps map to CREATED.
    """
    known = _as_step(step)
    if known is None:
        return ShipmentStatus.CREATED
    return _STEP_TO_STATUS[known]


def to_progress_index(status: StatusLike) -> int:
    """
    Progress bar index (0-3) derived from the lifecycle status alone.

    Never returns 2: the lifecycle status cannot tell "out for delivery"
    apart from "in transit". See progress_index_for_step for the step-based
    variant.
    """
    known = _as_status(status)
    return _STATUS_TO_INDEX.get(known, 0)


def progress_index_for_step(step: StatusLike) -> int:
    """Progress bar index (0-3) derived from a progress step."""
    known = _as_step(step)
    return _STEP_TO_INDEX.get(known, 0)


def reconcile_progress_step(status: StatusLike, stored_step: StatusLike = None) -> ProgressStep:
    """
    Re-derive the progress step of a shipment from its persisted values.

    The lifecycle status decides the coarse bucket. A stored
    OUT_FOR_DELIVERY is kept only while the status is still IN_TRANSIT,
    since the lifecycle status has no such distinction.

    Args:
        status: Persisted lifecycle status
        stored_step: Denormalized progress step, possibly stale

    Returns:
        The progress step to display
    """
    derived = to_progress_step(status)
    if derived == ProgressStep.IN_TRANSIT and _as_step(stored_step) == ProgressStep.OUT_FOR_DELIVERY:
        return ProgressStep.OUT_FOR_DELIVERY
    return derived


def display_label(value: StatusLike) -> str:
    """
    Human readable English label for a status or progress step.

    Unrecognized values are title-cased word by word ("on_hold" -> "On Hold").
    """
    key = _key(value)
    if not key:
        return "Unknown"
    if key in _LABELS:
        return _LABELS[key]
    words = str(value).strip().replace("_", " ").replace("-", " ")
    return _WORD_START.sub(lambda match: match.group().upper(), words)


def display_style(value: StatusLike) -> DisplayStyle:
    """Badge colours for a status or progress step; neutral gray when unknown."""
    return _STYLES.get(_key(value), DEFAULT_STYLE)
