"""
Shipment Event database model.

Append-only log of what happened to a shipment on its journey.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from tracking_backend.app.db.session import Base
from tracking_backend.app.models.shipment import utc_now


class ShipmentEvent(Base):
    """
    Tracking event.

    Rows are never updated. `event_time` is when the real-world event
    happened and is the timeline ordering key; `created_at` is insert time.
    """
    __tablename__ = "shipment_events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # References
    shipment_id = Column(Integer, ForeignKey('shipments.id', ondelete="CASCADE"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey('users.id'), nullable=True)  # NULL for system events

    # What happened
    event_type = Column(String(50), nullable=False, index=True)
    description = Column(String(500), nullable=True)
    location = Column(String(200), nullable=True)

    # Timing
    event_time = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    def __repr__(self):
        return f"<ShipmentEvent(shipment_id={self.shipment_id}, type='{self.event_type}', at={self.event_time})>"
