"""
Tests for staff shipment management (updates, corrections, deletion).
"""

from datetime import datetime

import pytest
from sqlalchemy import select, func
from sqlalchemy.exc import OperationalError

from tracking_backend.app.models.audit_log import AuditLog
from tracking_backend.app.models.shipment_event import ShipmentEvent
from tracking_backend.app.services.audit import AuditAction
from tracking_backend.app.services.shipment_repository import ShipmentRepository


async def _detail(client, shipment_id, headers):
    response = await client.get(f"/v1/shipments/{shipment_id}", headers=headers)
    assert response.status_code == 200
    return response.json()


@pytest.mark.asyncio
async def test_lagos_hub_scenario(client, customer, admin, create_shipment):
    """Staff marks a new shipment in transit at Lagos Hub."""
    _, headers = customer
    admin_user, admin_headers = admin

    shipment = await create_shipment(headers, destination="Port Harcourt")
    assert shipment["status"] == "created"

    response = await client.patch(
        f"/v1/admin/shipments/{shipment['id']}",
        json={"progress_step": "in_transit", "location": "Lagos Hub"},
        headers=admin_headers
    )

    assert response.status_code == 200
    updated = response.json()
    assert updated["status"] == "in_transit"
    assert updated["progress_step"] == "in_transit"
    assert updated["destination"] == "Port Harcourt"
    assert datetime.fromisoformat(updated["updated_at"]) > datetime.fromisoformat(shipment["updated_at"])

    events = (await _detail(client, shipment["id"], headers))["events"]
    assert [e["event_type"] for e in events] == ["shipment_created", "in_transit"]
    latest = events[-1]
    assert "in transit" in latest["description"]
    assert "Lagos Hub" in latest["description"]
    assert latest["location"] == "Lagos Hub"
    assert latest["created_by"] == admin_user.id


@pytest.mark.asyncio
async def test_full_journey(client, customer, admin, create_shipment):
    _, headers = customer
    _, admin_headers = admin
    shipment = await create_shipment(headers)

    for step, expected_status in [
        ("in_transit", "in_transit"),
        ("out_for_delivery", "in_transit"),
        ("delivered", "delivered"),
    ]:
        response = await client.patch(
            f"/v1/admin/shipments/{shipment['id']}",
            json={"progress_step": step},
            headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == expected_status
        assert response.json()["progress_step"] == step


@pytest.mark.asyncio
async def test_event_failure_keeps_status_update(client, customer, admin, create_shipment, mocker):
    _, headers = customer
    _, admin_headers = admin
    shipment = await create_shipment(headers)

    mocker.patch.object(
        ShipmentRepository, "append_event",
        side_effect=OperationalError("INSERT INTO shipment_events", {}, Exception("disk full"))
    )

    response = await client.patch(
        f"/v1/admin/shipments/{shipment['id']}",
        json={"progress_step": "in_transit", "location": "Lagos Hub"},
        headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["status"] == "in_transit"

    mocker.stopall()
    detail = await _detail(client, shipment["id"], headers)
    assert detail["status"] == "in_transit"
    assert [e["event_type"] for e in detail["events"]] == ["shipment_created"]


@pytest.mark.asyncio
async def test_backward_transition_conflict(client, customer, admin, create_shipment):
    _, headers = customer
    _, admin_headers = admin
    shipment = await create_shipment(headers)

    await client.patch(f"/v1/admin/shipments/{shipment['id']}", json={"progress_step": "delivered"}, headers=admin_headers)

    response = await client.patch(
        f"/v1/admin/shipments/{shipment['id']}",
        json={"progress_step": "pending"},
        headers=admin_headers
    )

    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_TRANSITION_001"
    assert response.json()["details"] == {"current_status": "delivered", "target_status": "created"}


@pytest.mark.asyncio
async def test_invalid_waybill_correction_leaves_shipment_untouched(client, customer, admin, create_shipment):
    _, headers = customer
    _, admin_headers = admin
    shipment = await create_shipment(headers)

    response = await client.patch(
        f"/v1/admin/shipments/{shipment['id']}",
        json={"progress_step": "in_transit", "waybill_number": "CRY-12-3456"},
        headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid waybill number format. Expected CRY-123-4567"

    detail = await _detail(client, shipment["id"], headers)
    assert detail["status"] == "created"
    assert detail["tracking_number"] is None
    assert len(detail["events"]) == 1


@pytest.mark.asyncio
async def test_waybill_assignment_and_duplicate(client, customer, admin, create_shipment):
    _, headers = customer
    _, admin_headers = admin
    first = await create_shipment(headers)
    second = await create_shipment(headers)

    response = await client.patch(
        f"/v1/admin/shipments/{first['id']}",
        json={"waybill_number": "cry-200 – 0002"},
        headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["tracking_number"] == "CRY-200-0002"
    # correction only: step unchanged
    assert response.json()["progress_step"] == "pending"

    duplicate = await client.patch(
        f"/v1/admin/shipments/{second['id']}",
        json={"waybill_number": "CRY-200-0002"},
        headers=admin_headers
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["error_code"] == "ERR_WAYBILL_002"


@pytest.mark.asyncio
async def test_receiver_and_weight_need_superadmin(client, customer, admin, superadmin, create_shipment):
    _, headers = customer
    _, admin_headers = admin
    _, root_headers = superadmin
    shipment = await create_shipment(headers)

    forbidden = await client.patch(
        f"/v1/admin/shipments/{shipment['id']}",
        json={"receiver_name": "Chidi", "weight": 3.0},
        headers=admin_headers
    )
    assert forbidden.status_code == 403

    allowed = await client.patch(
        f"/v1/admin/shipments/{shipment['id']}",
        json={"receiver_name": "Chidi", "weight": 3.0},
        headers=root_headers
    )
    assert allowed.status_code == 200
    assert allowed.json()["receiver_name"] == "Chidi"
    assert allowed.json()["weight"] == 3.0


@pytest.mark.asyncio
async def test_invalid_weight_correction(client, customer, superadmin, create_shipment):
    _, headers = customer
    _, root_headers = superadmin
    shipment = await create_shipment(headers)

    response = await client.patch(
        f"/v1/admin/shipments/{shipment['id']}",
        json={"weight": -2},
        headers=root_headers
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid weight"


@pytest.mark.asyncio
async def test_empty_update_rejected(client, customer, admin, create_shipment):
    _, headers = customer
    _, admin_headers = admin
    shipment = await create_shipment(headers)

    response = await client.patch(f"/v1/admin/shipments/{shipment['id']}", json={}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Nothing to update"


@pytest.mark.asyncio
async def test_customer_cannot_update(client, customer, create_shipment):
    _, headers = customer
    shipment = await create_shipment(headers)

    response = await client.patch(
        f"/v1/admin/shipments/{shipment['id']}",
        json={"progress_step": "delivered"},
        headers=headers
    )
    assert response.status_code == 403
    assert response.json()["message"] == "Admin access required"


@pytest.mark.asyncio
async def test_update_unknown_shipment(client, admin):
    _, admin_headers = admin

    response = await client.patch("/v1/admin/shipments/424242", json={"progress_step": "in_transit"}, headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_is_audited(client, customer, admin, create_shipment, db_session):
    _, headers = customer
    _, admin_headers = admin
    shipment = await create_shipment(headers)

    await client.patch(f"/v1/admin/shipments/{shipment['id']}", json={"progress_step": "in_transit"}, headers=admin_headers)

    log = (await db_session.execute(
        select(AuditLog).where(AuditLog.action == AuditAction.SHIPMENT_UPDATED)
    )).scalar_one()
    assert log.target_id == shipment["id"]
    assert log.meta_data["previous_status"] == "created"
    assert log.meta_data["status"] == "in_transit"


@pytest.mark.asyncio
async def test_list_paginates_and_filters(client, customer, admin, create_shipment):
    _, headers = customer
    _, admin_headers = admin

    created = [await create_shipment(headers, sender_name=f"Sender {i}") for i in range(3)]
    await client.patch(
        f"/v1/admin/shipments/{created[0]['id']}",
        json={"progress_step": "out_for_delivery"},
        headers=admin_headers
    )

    page = await client.get("/v1/admin/shipments", params={"page": 1, "limit": 2}, headers=admin_headers)
    data = page.json()
    assert data["total"] == 3
    assert data["total_pages"] == 2
    assert len(data["shipments"]) == 2

    out_for_delivery = await client.get("/v1/admin/shipments", params={"status": "out_for_delivery"}, headers=admin_headers)
    assert [s["id"] for s in out_for_delivery.json()["shipments"]] == [created[0]["id"]]

    lifecycle = await client.get("/v1/admin/shipments", params={"status": "created"}, headers=admin_headers)
    assert lifecycle.json()["total"] == 2

    by_sender = await client.get("/v1/admin/shipments", params={"search": "sender 2"}, headers=admin_headers)
    assert [s["sender_name"] for s in by_sender.json()["shipments"]] == ["Sender 2"]

    unknown = await client.get("/v1/admin/shipments", params={"status": "teleported"}, headers=admin_headers)
    assert unknown.json()["total"] == 0
    assert unknown.json()["total_pages"] == 0


@pytest.mark.asyncio
async def test_delete_requires_superadmin(client, customer, admin, superadmin, create_shipment, db_session):
    _, headers = customer
    _, admin_headers = admin
    _, root_headers = superadmin
    shipment = await create_shipment(headers)

    assert (await client.delete(f"/v1/admin/shipments/{shipment['id']}", headers=admin_headers)).status_code == 403

    response = await client.delete(f"/v1/admin/shipments/{shipment['id']}", headers=root_headers)
    assert response.status_code == 204

    assert (await client.get(f"/v1/shipments/{shipment['id']}", headers=headers)).status_code == 404
    remaining_events = (await db_session.execute(
        select(func.count(ShipmentEvent.id)).where(ShipmentEvent.shipment_id == shipment["id"])
    )).scalar()
    assert remaining_events == 0
