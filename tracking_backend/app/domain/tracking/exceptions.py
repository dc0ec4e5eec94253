"""
Domain errors raised by the tracking model.

They carry no HTTP semantics; the API layer maps them onto responses.
"""


class TrackingDomainError(ValueError):
    """Base class for tracking domain errors."""


class InvalidWaybillFormatError(TrackingDomainError):
    """Raised when a waybill number does not match CRY-###-####."""

    def __init__(self, value: str = ""):
        self.value = value
        super().__init__("Invalid waybill number format. Expected CRY-123-4567")


class InvalidStatusTransitionError(TrackingDomainError):
    """Raised when a staff update would move a shipment backwards or out of a terminal state."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change shipment status from '{current}' to '{target}'")
