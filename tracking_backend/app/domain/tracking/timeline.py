"""
Timeline Aggregator.

Turns an unordered collection of tracking events into a chronological
timeline and answers "latest event of type X" lookups.

Functions accept any object exposing ``event_time``, ``event_type`` and
``shipment_id`` attributes (ORM rows or TimelineEvent instances).
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from tracking_backend.app.core.config import settings


@dataclass(frozen=True)
class TimelineEvent:
    """Plain, immutable tracking event."""
    shipment_id: Any
    event_type: str
    event_time: Optional[datetime]
    description: Optional[str] = None
    location: Optional[str] = None
    created_by: Optional[Any] = None
    id: Optional[Any] = None


def sorted_timeline(events: Iterable[Any], descending: bool = False) -> List[Any]:
    """
    Order events by event_time.

    The sort is stable, so events sharing a timestamp keep their input
    (insertion) order in both directions. Events without an event_time
    go last in either direction, in input order.

    Args:
        events: Events to order
        descending: Most recent first when True

    Returns:
        New list of events
    """
    events = list(events)
    timed = [event for event in events if event.event_time is not None]
    timeless = [event for event in events if event.event_time is None]
    return sorted(timed, key=lambda event: event.event_time, reverse=descending) + timeless


def latest_by_type(events: Iterable[Any], event_type: str) -> Optional[Any]:
    """
    Return the event of the given type with the greatest event_time.

    On equal timestamps the event seen later in the input wins. Events
    without an event_time are ignored. Returns None when nothing matches.
    """
    latest = None
    for event in events:
        if event.event_type != event_type or event.event_time is None:
            continue
        if latest is None or event.event_time >= latest.event_time:
            latest = event
    return latest


def group_by_shipment(events: Iterable[Any]) -> Dict[Any, List[Any]]:
    """Group events by shipment_id, preserving input order inside each group."""
    grouped: Dict[Any, List[Any]] = defaultdict(list)
    for event in events:
        grouped[event.shipment_id].append(event)
    return dict(grouped)


def latest_by_type_per_shipment(events: Iterable[Any], event_type: str) -> Dict[Any, Any]:
    """
    Latest event of a type for every shipment in a mixed batch.

    Events are grouped by shipment first so that one shipment's events never
    influence another's result. Shipments with no matching event are absent
    from the returned mapping.
    """
    result = {}
    for shipment_id, shipment_events in group_by_shipment(events).items():
        latest = latest_by_type(shipment_events, event_type)
        if latest is not None:
            result[shipment_id] = latest
    return result


def estimated_delivery_date(created_at: datetime, days: Optional[int] = None) -> datetime:
    """
    Estimated delivery: a fixed offset from creation (5 days by default).

    This is a heuristic, not a forecast; transit data is not consulted.
    """
    if days is None:
        days = settings.estimated_delivery_days
    return created_at + timedelta(days=days)
