"""
Shipment record store.

Thin async data access for shipments and their tracking events. One
instance is built per request around the request's session.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from fastapi import Depends
from sqlalchemy import select, func, or_, delete, false
from sqlalchemy.ext.asyncio import AsyncSession

from tracking_backend.app.db.session import get_db
from tracking_backend.app.domain.tracking import waybill
from tracking_backend.app.models.shipment import Shipment, utc_now
from tracking_backend.app.models.shipment_enums import ShipmentStatus, ProgressStep
from tracking_backend.app.models.shipment_event import ShipmentEvent


_STEP_VALUES = {step.value for step in ProgressStep}
_STATUS_VALUES = {status.value for status in ShipmentStatus}


def status_filter(value: Optional[str]):
    """
    WHERE clause for a status query parameter.

    Progress step values filter on progress_step, other lifecycle values on
    status. None / "all" means no filtering; unknown values match nothing.
    """
    if not value:
        return None
    key = value.strip().lower()
    if key in ("", "all"):
        return None
    if key in _STEP_VALUES:
        return Shipment.progress_step == ProgressStep(key)
    if key in _STATUS_VALUES:
        return Shipment.status == ShipmentStatus(key)
    return false()


def search_filter(term: Optional[str], include_parties: bool = False):
    """Case-insensitive substring match over waybill and route fields."""
    if not term or not term.strip():
        return None
    term = term.strip()
    pattern = f"%{term}%"
    clauses = [
        Shipment.tracking_number.ilike(pattern),
        Shipment.origin_location.ilike(pattern),
        Shipment.destination.ilike(pattern),
    ]
    # Also find waybills typed with odd dashes or spacing
    normalized = waybill.normalize(term)
    if normalized and normalized != term:
        clauses.append(Shipment.tracking_number.ilike(f"%{normalized}%"))
    if include_parties:
        clauses.append(Shipment.sender_name.ilike(pattern))
        clauses.append(Shipment.receiver_name.ilike(pattern))
    return or_(*clauses)


class ShipmentRepository:
    """Shipment and tracking event persistence."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # Shipments

    async def get(self, shipment_id: int) -> Optional[Shipment]:
        result = await self.db.execute(select(Shipment).where(Shipment.id == shipment_id))
        return result.scalar_one_or_none()

    async def get_by_tracking_number(self, tracking_number: str) -> Optional[Shipment]:
        result = await self.db.execute(
            select(Shipment).where(Shipment.tracking_number == tracking_number)
        )
        return result.scalar_one_or_none()

    async def tracking_number_taken(self, tracking_number: str, exclude_id: Optional[int] = None) -> bool:
        query = select(func.count(Shipment.id)).where(Shipment.tracking_number == tracking_number)
        if exclude_id is not None:
            query = query.where(Shipment.id != exclude_id)
        return ((await self.db.execute(query)).scalar() or 0) > 0

    async def add(self, shipment: Shipment) -> Shipment:
        self.db.add(shipment)
        await self.db.commit()
        await self.db.refresh(shipment)
        return shipment

    async def apply_changes(self, shipment: Shipment, changes: Dict[str, Any]) -> Shipment:
        """Set the given columns and commit in one write."""
        for column, value in changes.items():
            setattr(shipment, column, value)
        await self.db.commit()
        await self.db.refresh(shipment)
        return shipment

    async def delete(self, shipment: Shipment) -> None:
        """Hard delete a shipment together with its events."""
        await self.db.execute(delete(ShipmentEvent).where(ShipmentEvent.shipment_id == shipment.id))
        await self.db.delete(shipment)
        await self.db.commit()

    async def list_shipments(
        self,
        owner_id: Optional[int] = None,
        search: Optional[str] = None,
        status: Optional[str] = None,
        offset: int = 0,
        limit: Optional[int] = None,
        include_parties: bool = False,
    ) -> Tuple[List[Shipment], int]:
        """
        Filtered shipments, newest first, plus the total matching count.

        Args:
            owner_id: Restrict to one user's shipments (None for all)
            search: Free-text search term
            status: Step or lifecycle status value, or "all"
            offset: Rows to skip
            limit: Maximum rows to return (None for no limit)
            include_parties: Also search sender and receiver names
        """
        conditions = []
        if owner_id is not None:
            conditions.append(Shipment.user_id == owner_id)
        for clause in (search_filter(search, include_parties), status_filter(status)):
            if clause is not None:
                conditions.append(clause)

        count_query = select(func.count(Shipment.id)).where(*conditions)
        total = (await self.db.execute(count_query)).scalar() or 0

        query = (
            select(Shipment)
            .where(*conditions)
            .order_by(Shipment.created_at.desc(), Shipment.id.desc())
            .offset(offset)
        )
        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    # Events

    async def append_event(
        self,
        shipment_id: int,
        event_type: str,
        description: Optional[str] = None,
        location: Optional[str] = None,
        created_by: Optional[int] = None,
        event_time: Optional[datetime] = None,
    ) -> ShipmentEvent:
        event = ShipmentEvent(
            shipment_id=shipment_id,
            event_type=event_type,
            description=description,
            location=location,
            created_by=created_by,
            event_time=event_time or utc_now(),
        )
        self.db.add(event)
        await self.db.commit()
        await self.db.refresh(event)
        return event

    async def events_for(self, shipment_id: int) -> List[ShipmentEvent]:
        """Events of one shipment in insertion order."""
        result = await self.db.execute(
            select(ShipmentEvent)
            .where(ShipmentEvent.shipment_id == shipment_id)
            .order_by(ShipmentEvent.id)
        )
        return list(result.scalars().all())

    async def events_for_shipments(
        self,
        shipment_ids: Iterable[int],
        event_type: Optional[str] = None,
    ) -> List[ShipmentEvent]:
        """Events of many shipments in one query, optionally of a single type."""
        shipment_ids = list(shipment_ids)
        if not shipment_ids:
            return []
        query = select(ShipmentEvent).where(ShipmentEvent.shipment_id.in_(shipment_ids))
        if event_type is not None:
            query = query.where(ShipmentEvent.event_type == event_type)
        result = await self.db.execute(query.order_by(ShipmentEvent.id))
        return list(result.scalars().all())

    # Session

    async def rollback(self) -> None:
        await self.db.rollback()

    async def refresh(self, instance) -> None:
        await self.db.refresh(instance)


async def get_shipment_repository(db: AsyncSession = Depends(get_db)) -> ShipmentRepository:
    """FastAPI dependency: repository bound to the request session."""
    return ShipmentRepository(db)
