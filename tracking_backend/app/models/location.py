"""
Location database model.

Named origins / destinations offered when creating a shipment.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from tracking_backend.app.db.session import Base


class Location(Base):
    """
    Location reference data.

    Shipments store the location name, not a foreign key, so renaming or
    deactivating a location never rewrites existing shipments.
    """
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(200), unique=True, nullable=False, index=True)

    # Status (soft delete)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Location(id={self.id}, name='{self.name}', active={self.is_active})>"
