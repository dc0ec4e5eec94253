"""
Tests for the staff dashboard, analytics, user administration and audit trail.
"""

from datetime import datetime, timezone

import pytest

from tracking_backend.app.models.enums import UserRole


@pytest.mark.asyncio
async def test_dashboard_counts(client, customer, admin, superadmin, create_shipment):
    _, headers = customer
    _, admin_headers = admin
    _, root_headers = superadmin

    created = [await create_shipment(headers) for _ in range(6)]
    await client.patch(
        f"/v1/admin/shipments/{created[0]['id']}", json={"progress_step": "in_transit"}, headers=admin_headers
    )
    await client.patch(
        f"/v1/admin/shipments/{created[1]['id']}", json={"progress_step": "delivered"}, headers=admin_headers
    )

    data = (await client.get("/v1/admin/dashboard", headers=root_headers)).json()
    assert data["total_shipments"] == 6
    assert data["active_shipments"] == 1
    assert data["total_users"] == 3
    assert data["total_admins"] == 1
    assert data["is_superadmin"] is True
    assert [s["id"] for s in data["recent_shipments"]] == [s["id"] for s in reversed(created)][:5]


@pytest.mark.asyncio
async def test_dashboard_hides_user_counts_from_admins(client, admin):
    _, admin_headers = admin

    data = (await client.get("/v1/admin/dashboard", headers=admin_headers)).json()

    assert data["is_superadmin"] is False
    assert data["total_users"] is None
    assert data["total_admins"] is None


@pytest.mark.asyncio
async def test_dashboard_is_staff_only(client, customer):
    _, headers = customer

    response = await client.get("/v1/admin/dashboard", headers=headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_analytics(client, customer, admin, create_shipment):
    _, headers = customer
    _, admin_headers = admin

    for _ in range(3):
        await create_shipment(headers, origin_location="Abuja", destination="Lagos")
    await create_shipment(headers, origin_location="Kano", destination="Enugu")
    moved = await create_shipment(headers, origin_location=None, destination="Ibadan")
    await client.patch(
        f"/v1/admin/shipments/{moved['id']}", json={"progress_step": "in_transit"}, headers=admin_headers
    )

    response = await client.get("/v1/admin/analytics", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()

    trend = data["shipment_trend"]
    assert len(trend) == 7
    assert trend[-1]["date"] == datetime.now(timezone.utc).date().isoformat()
    assert trend[-1]["count"] == 5
    assert sum(day["count"] for day in trend[:-1]) == 0

    distribution = {row["status"]: row for row in data["status_distribution"]}
    assert distribution["created"]["count"] == 4
    assert distribution["created"]["label"] == "Pending"
    assert distribution["in_transit"]["count"] == 1
    assert data["status_distribution"][0]["status"] == "created"

    routes = data["top_routes"]
    assert routes[0] == {"route": "Abuja → Lagos", "count": 3}
    assert {"route": "— → Ibadan", "count": 1} in routes


@pytest.mark.asyncio
async def test_list_users_with_shipment_counts(client, customer, admin, create_shipment):
    customer_user, headers = customer
    _, admin_headers = admin

    await create_shipment(headers)
    await create_shipment(headers)

    response = await client.get("/v1/admin/users", headers=admin_headers)
    assert response.status_code == 200
    users = {u["email"]: u for u in response.json()["users"]}
    assert users[customer_user.email]["shipment_count"] == 2
    assert users["ops@tracking.example.com"]["shipment_count"] == 0

    admins = await client.get("/v1/admin/users", params={"role": "admin"}, headers=admin_headers)
    assert [u["email"] for u in admins.json()["users"]] == ["ops@tracking.example.com"]

    found = await client.get("/v1/admin/users", params={"search": "ada"}, headers=admin_headers)
    assert found.json()["total"] == 1


@pytest.mark.asyncio
async def test_create_user(client, superadmin):
    _, root_headers = superadmin

    response = await client.post(
        "/v1/admin/users",
        json={
            "email": "New.Staff@Tracking.Example.com",
            "password": "long-enough",
            "full_name": "New Staff",
            "role": "admin",
            "location": "Kano",
        },
        headers=root_headers
    )

    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "new.staff@tracking.example.com"
    assert data["role"] == "admin"
    assert data["shipment_count"] == 0

    login = await client.post(
        "/v1/auth/login",
        json={"email": "new.staff@tracking.example.com", "password": "long-enough"}
    )
    assert login.status_code == 200
    assert login.json()["role"] == "admin"


@pytest.mark.asyncio
async def test_create_user_rules(client, admin, superadmin, customer):
    _, admin_headers = admin
    _, root_headers = superadmin
    customer_user, _ = customer
    body = {"email": "someone@tracking.example.com", "password": "long-enough"}

    assert (await client.post("/v1/admin/users", json=body, headers=admin_headers)).status_code == 403

    elevated = await client.post("/v1/admin/users", json={**body, "role": "superadmin"}, headers=root_headers)
    assert elevated.status_code == 400

    duplicate = await client.post(
        "/v1/admin/users", json={**body, "email": customer_user.email.upper()}, headers=root_headers
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Email already registered"

    short = await client.post("/v1/admin/users", json={**body, "password": "short"}, headers=root_headers)
    assert short.status_code == 422


@pytest.mark.asyncio
async def test_update_user_role_and_location(client, customer, superadmin):
    customer_user, _ = customer
    _, root_headers = superadmin

    response = await client.patch(
        f"/v1/admin/users/{customer_user.id}",
        json={"role": "admin", "location": "  Abuja Hub "},
        headers=root_headers
    )

    assert response.status_code == 200
    assert response.json()["role"] == "admin"
    assert response.json()["location"] == "Abuja Hub"

    cleared = await client.patch(
        f"/v1/admin/users/{customer_user.id}", json={"location": "  "}, headers=root_headers
    )
    assert cleared.json()["location"] is None


@pytest.mark.asyncio
async def test_update_user_rules(client, customer, superadmin, make_user):
    customer_user, _ = customer
    _, root_headers = superadmin
    other_root, _ = await make_user("root2@tracking.example.com", UserRole.SUPERADMIN)

    empty = await client.patch(f"/v1/admin/users/{customer_user.id}", json={}, headers=root_headers)
    assert empty.status_code == 400

    elevate = await client.patch(
        f"/v1/admin/users/{customer_user.id}", json={"role": "superadmin"}, headers=root_headers
    )
    assert elevate.status_code == 400

    protected = await client.patch(
        f"/v1/admin/users/{other_root.id}", json={"role": "user"}, headers=root_headers
    )
    assert protected.status_code == 403

    missing = await client.patch("/v1/admin/users/9999", json={"role": "user"}, headers=root_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_audit_trail(client, customer, admin, superadmin, create_shipment):
    _, headers = customer
    _, admin_headers = admin
    _, root_headers = superadmin

    shipment = await create_shipment(headers)
    await client.patch(
        f"/v1/admin/shipments/{shipment['id']}", json={"progress_step": "in_transit"}, headers=admin_headers
    )

    assert (await client.get("/v1/admin/audit-logs", headers=admin_headers)).status_code == 403

    response = await client.get(
        "/v1/admin/audit-logs", params={"target_type": "shipment"}, headers=root_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert {log["action"] for log in data["logs"]} == {"SHIPMENT_CREATED", "SHIPMENT_UPDATED"}

    updates = await client.get(
        "/v1/admin/audit-logs", params={"action": "SHIPMENT_UPDATED"}, headers=root_headers
    )
    assert updates.json()["logs"][0]["actor_email"] == "ops@tracking.example.com"
