"""
Shipment database model.

Users create shipments; staff move them through the lifecycle.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum, Date, JSON
from tracking_backend.app.db.session import Base
from tracking_backend.app.models.shipment_enums import ShipmentStatus, ProgressStep, ShipmentType


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Shipment(Base):
    """
    Shipment model for the tracking platform.

    `status` is the authoritative lifecycle state. `progress_step` is a
    denormalized, coarser copy used for the progress bar and is reconciled
    against `status` whenever it is displayed.
    """
    __tablename__ = "shipments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # Waybill (NULL until staff assign one)
    tracking_number = Column(String(32), unique=True, nullable=True, index=True)

    # Parties
    sender_name = Column(String(200), nullable=False)
    sender_contact = Column(JSON, nullable=True)
    receiver_name = Column(String(200), nullable=False)
    receiver_contact = Column(JSON, nullable=True)

    # Package
    items_description = Column(String(1000), nullable=True)
    weight = Column(Float, nullable=False)
    package_quantity = Column(Integer, nullable=False, default=1)
    shipment_type = Column(
        Enum(ShipmentType, values_callable=_enum_values),
        default=ShipmentType.STANDARD,
        nullable=False,
    )

    # Route (location names, not foreign keys)
    origin_location = Column(String(200), nullable=True)
    destination = Column(String(200), nullable=True)
    shipment_date = Column(Date, nullable=False)

    # Package image reference (file itself lives in external storage)
    package_image_bucket = Column(String(200), nullable=True)
    package_image_path = Column(String(500), nullable=True)
    package_image_url = Column(String(1000), nullable=True)

    # Status
    status = Column(
        Enum(ShipmentStatus, values_callable=_enum_values),
        default=ShipmentStatus.CREATED,
        nullable=False,
        index=True,
    )
    progress_step = Column(
        Enum(ProgressStep, values_callable=_enum_values),
        default=ProgressStep.PENDING,
        nullable=False,
        index=True,
    )

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    def __repr__(self):
        return f"<Shipment(id={self.id}, waybill='{self.tracking_number}', status='{self.status.value}')>"
