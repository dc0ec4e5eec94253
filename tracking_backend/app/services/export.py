"""
CSV export of the staff shipment table.
"""

import csv
import io
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional

from tracking_backend.app.domain.tracking import status_model, waybill

MISSING = "—"

EXPORT_COLUMNS = [
    "Waybill Number",
    "Sender",
    "Origin",
    "Destination",
    "Receiver Phone",
    "Weight (kg)",
    "Package Quantity",
    "Description",
    "Status",
    "Shipment Date",
    "Delivery Date",
]


def format_date(value: Optional[Any]) -> Optional[str]:
    """'Oct 19, 2026' style date, None when there is no value."""
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.date()
    if not isinstance(value, date):
        return None
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def _or_missing(value: Any) -> Any:
    # falsy values (including 0) render as missing
    if value is None or value == "" or value == 0:
        return MISSING
    return value


def export_row(shipment, delivered_at: Optional[datetime]) -> list:
    """One CSV row for a shipment and its latest delivery time."""
    receiver_contact = shipment.receiver_contact or {}
    shipment_date = format_date(shipment.shipment_date) or format_date(shipment.created_at) or ""
    step = status_model.reconcile_progress_step(shipment.status, shipment.progress_step)

    return [
        waybill.from_storage(shipment.tracking_number) or MISSING,
        _or_missing(shipment.sender_name),
        _or_missing(shipment.origin_location),
        _or_missing(shipment.destination),
        _or_missing(receiver_contact.get("phone")),
        _or_missing(shipment.weight),
        _or_missing(shipment.package_quantity),
        _or_missing(shipment.items_description),
        status_model.display_label(step),
        shipment_date,
        format_date(delivered_at) or MISSING,
    ]


def build_shipments_csv(shipments: Iterable[Any], delivered_at_by_id: Dict[int, datetime]) -> str:
    """
    Render shipments as CSV text.

    Args:
        shipments: Shipments in display order
        delivered_at_by_id: Latest delivered event time per shipment id

    Returns:
        CSV with a header line, newline separated, minimal quoting
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for shipment in shipments:
        writer.writerow(export_row(shipment, delivered_at_by_id.get(shipment.id)))
    return buffer.getvalue()


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"shipment-management-{today.isoformat()}.csv"
