"""
Analytics Service.

Read-only aggregation for the staff dashboard and analytics pages.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from tracking_backend.app.core.config import settings
from tracking_backend.app.domain.tracking import status_model
from tracking_backend.app.models.enums import UserRole
from tracking_backend.app.models.shipment import Shipment
from tracking_backend.app.models.shipment_enums import ShipmentStatus
from tracking_backend.app.models.user import User
from tracking_backend.app.schemas.admin import DashboardResponse
from tracking_backend.app.schemas.analytics import (
    AnalyticsResponse, DailyCount, StatusCount, RouteCount
)
from tracking_backend.app.schemas.shipment import ShipmentResponse

ACTIVE_STATUSES = [ShipmentStatus.CONFIRMED, ShipmentStatus.IN_TRANSIT]
TOP_ROUTES_LIMIT = 5
ROUTE_SEPARATOR = " → "


def route_label(origin: Optional[str], destination: Optional[str]) -> str:
    return f"{origin or '—'}{ROUTE_SEPARATOR}{destination or '—'}"


class AnalyticsService:

    @staticmethod
    async def get_dashboard(db: AsyncSession, include_user_counts: bool) -> DashboardResponse:
        """Counters and most recent shipments. User counts only when requested."""
        total_shipments = (await db.execute(select(func.count(Shipment.id)))).scalar() or 0

        active_shipments = (await db.execute(
            select(func.count(Shipment.id)).where(Shipment.status.in_(ACTIVE_STATUSES))
        )).scalar() or 0

        total_users = None
        total_admins = None
        if include_user_counts:
            total_users = (await db.execute(select(func.count(User.id)))).scalar() or 0
            total_admins = (await db.execute(
                select(func.count(User.id)).where(User.role == UserRole.ADMIN)
            )).scalar() or 0

        recent_result = await db.execute(
            select(Shipment)
            .order_by(Shipment.created_at.desc(), Shipment.id.desc())
            .limit(settings.dashboard_recent_shipments)
        )
        recent = recent_result.scalars().all()

        return DashboardResponse(
            total_shipments=total_shipments,
            active_shipments=active_shipments,
            total_users=total_users,
            total_admins=total_admins,
            recent_shipments=[ShipmentResponse.model_validate(s) for s in recent],
            is_superadmin=include_user_counts,
        )

    @staticmethod
    async def get_shipment_trend(db: AsyncSession, days: Optional[int] = None,
                                 now: Optional[datetime] = None) -> List[DailyCount]:
        """Shipments created per day over the trailing window, zero-filled, oldest first."""
        days = days or settings.analytics_trend_days
        now = now or datetime.now(timezone.utc)
        first_day = (now - timedelta(days=days - 1)).date()
        cutoff = datetime.combine(first_day, datetime.min.time(), tzinfo=timezone.utc)

        result = await db.execute(
            select(Shipment.created_at).where(Shipment.created_at >= cutoff)
        )

        counts = {(first_day + timedelta(days=offset)).isoformat(): 0 for offset in range(days)}
        for (created_at,) in result.all():
            day = created_at.date().isoformat()
            if day in counts:
                counts[day] += 1

        return [DailyCount(date=day, count=count) for day, count in counts.items()]

    @staticmethod
    async def get_status_distribution(db: AsyncSession) -> List[StatusCount]:
        """Shipment count per lifecycle status, most common first."""
        result = await db.execute(
            select(Shipment.status, func.count(Shipment.id))
            .group_by(Shipment.status)
        )
        rows = sorted(result.all(), key=lambda row: (-row[1], row[0].value))

        distribution = []
        for shipment_status, count in rows:
            style = status_model.display_style(shipment_status)
            distribution.append(StatusCount(
                status=shipment_status.value,
                label=status_model.display_label(shipment_status),
                count=count,
                background=style.background,
                foreground=style.foreground,
            ))
        return distribution

    @staticmethod
    async def get_top_routes(db: AsyncSession, limit: int = TOP_ROUTES_LIMIT) -> List[RouteCount]:
        """Busiest origin/destination pairs."""
        shipment_count = func.count(Shipment.id).label("shipment_count")
        result = await db.execute(
            select(Shipment.origin_location, Shipment.destination, shipment_count)
            .group_by(Shipment.origin_location, Shipment.destination)
        )
        routes = [
            RouteCount(route=route_label(origin, destination), count=count)
            for origin, destination, count in result.all()
        ]
        routes.sort(key=lambda route: (-route.count, route.route))
        return routes[:limit]

    @staticmethod
    async def get_analytics(db: AsyncSession) -> AnalyticsResponse:
        return AnalyticsResponse(
            shipment_trend=await AnalyticsService.get_shipment_trend(db),
            status_distribution=await AnalyticsService.get_status_distribution(db),
            top_routes=await AnalyticsService.get_top_routes(db),
        )
