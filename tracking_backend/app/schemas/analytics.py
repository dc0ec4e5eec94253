from pydantic import BaseModel
from typing import List


class DailyCount(BaseModel):
    date: str  # YYYY-MM-DD
    count: int


class StatusCount(BaseModel):
    status: str
    label: str
    count: int
    background: str
    foreground: str


class RouteCount(BaseModel):
    route: str  # "Origin → Destination"
    count: int


class AnalyticsResponse(BaseModel):
    shipment_trend: List[DailyCount]
    status_distribution: List[StatusCount]
    top_routes: List[RouteCount]
