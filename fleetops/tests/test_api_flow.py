"""
Integration tests over the HTTP API.

Register -> Login -> Me -> Logout, role gating, error body mapping and a full
vehicle/driver/trip/fuel walk through the endpoints.
"""

import pytest
from datetime import timedelta

from fleetops.app.core.jwt import create_access_token
from fleetops.app.core.timeutils import utcnow, utctoday
from fleetops.app.models.enums import UserRole
from fleetops.app.models.vehicle_enums import VehicleStatus


VEHICLE_BODY = {
    "license_plate": "TR-1001",
    "vehicle_type": "TRUCK",
    "make": "DAF",
    "model": "XF",
    "year": 2020,
    "max_load_kg": 1000,
    "acquisition_cost": 85000,
}


def driver_body(**overrides) -> dict:
    body = {
        "employee_id": "EMP-100",
        "first_name": "Kim",
        "last_name": "Bakker",
        "phone": "+31611111111",
        "license_number": "LIC-100",
        "license_category": "TRUCK",
        "license_expiry_date": (utctoday() + timedelta(days=200)).isoformat(),
    }
    body.update(overrides)
    return body


# --- Authentication ---

@pytest.mark.asyncio
async def test_register_login_me_logout(client):
    response = await client.post("/v1/auth/register", json={
        "email": "Dispatch.Lead@FleetOps.com",
        "password": "sup3rsecret",
        "name": "Dispatch Lead",
        "role": "DISPATCHER",
    })
    assert response.status_code == 201
    assert response.json()["email"] == "dispatch.lead@fleetops.com"
    assert response.json()["role"] == "DISPATCHER"

    duplicate = await client.post("/v1/auth/register", json={
        "email": "dispatch.lead@fleetops.com",
        "password": "sup3rsecret",
        "name": "Someone Else",
        "role": "MANAGER",
    })
    assert duplicate.status_code == 409
    assert duplicate.json()["error_code"] == "CONFLICT"

    login = await client.post("/v1/auth/login", json={
        "email": "dispatch.lead@fleetops.com", "password": "sup3rsecret"
    })
    assert login.status_code == 200
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    me = await client.get("/v1/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["name"] == "Dispatch Lead"
    assert me.json()["last_login_at"] is not None

    logout = await client.post("/v1/auth/logout", headers=headers)
    assert logout.status_code == 204

    revoked = await client.get("/v1/auth/me", headers=headers)
    assert revoked.status_code == 401
    assert revoked.json()["error_code"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_login_with_wrong_password(client, users, user_password):
    response = await client.post("/v1/auth/login", json={
        "email": users[UserRole.MANAGER].email, "password": "not-the-password"
    })
    assert response.status_code == 401

    ok = await client.post("/v1/auth/login", json={
        "email": users[UserRole.MANAGER].email, "password": user_password
    })
    assert ok.status_code == 200


@pytest.mark.asyncio
async def test_register_rejects_short_password(client):
    response = await client.post("/v1/auth/register", json={
        "email": "short@fleetops.com", "password": "abc", "name": "Short", "role": "MANAGER"
    })
    assert response.status_code == 422
    assert response.json()["error_code"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_expired_token_rejected(client, users):
    token = create_access_token(users[UserRole.MANAGER], expires_delta=timedelta(minutes=-5))
    response = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["message"] == "Could not validate credentials"


@pytest.mark.asyncio
async def test_requests_without_token_rejected(client):
    response = await client.get("/v1/vehicles")
    assert response.status_code in (401, 403)


# --- Role gating ---

@pytest.mark.asyncio
async def test_only_managers_register_vehicles(client, auth_headers):
    for role in (UserRole.DISPATCHER, UserRole.SAFETY_OFFICER, UserRole.FINANCE_ANALYST):
        response = await client.post("/v1/vehicles", json=VEHICLE_BODY, headers=auth_headers(role))
        assert response.status_code == 403
        assert response.json()["error_code"] == "FORBIDDEN"

    response = await client.post("/v1/vehicles", json=VEHICLE_BODY, headers=auth_headers(UserRole.MANAGER))
    assert response.status_code == 201

    # Reads are open to every role
    listing = await client.get("/v1/vehicles", headers=auth_headers(UserRole.FINANCE_ANALYST))
    assert listing.status_code == 200
    assert listing.json()["total"] == 1


@pytest.mark.asyncio
async def test_safety_officer_manages_duty_status(client, auth_headers):
    created = await client.post("/v1/drivers", json=driver_body(), headers=auth_headers(UserRole.MANAGER))
    assert created.status_code == 201
    driver_id = created.json()["id"]

    forbidden = await client.post(
        "/v1/drivers", json=driver_body(employee_id="EMP-2", phone="+1", license_number="L-2"),
        headers=auth_headers(UserRole.SAFETY_OFFICER)
    )
    assert forbidden.status_code == 403

    response = await client.patch(
        f"/v1/drivers/{driver_id}", json={"status": "ON_DUTY"}, headers=auth_headers(UserRole.SAFETY_OFFICER)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "ON_DUTY"

    response = await client.patch(
        f"/v1/drivers/{driver_id}", json={"status": "ON_DUTY"}, headers=auth_headers(UserRole.DISPATCHER)
    )
    assert response.status_code == 403


# --- Error mapping ---

@pytest.mark.asyncio
async def test_error_bodies(client, auth_headers, make_vehicle):
    manager = auth_headers(UserRole.MANAGER)

    missing = await client.get("/v1/vehicles/999", headers=manager)
    assert missing.status_code == 404
    assert missing.json()["error_code"] == "NOT_FOUND"

    vehicle = await make_vehicle(status=VehicleStatus.RETIRED)
    plate = vehicle.license_plate
    transition = await client.patch(f"/v1/vehicles/{vehicle.id}", json={"status": "AVAILABLE"}, headers=manager)
    assert transition.status_code == 409
    body = transition.json()
    assert body["error_code"] == "INVALID_TRANSITION"
    assert body["details"]["current"] == "RETIRED"
    assert body["details"]["allowed"] == []

    duplicate = await client.post(
        "/v1/vehicles", json={**VEHICLE_BODY, "license_plate": plate}, headers=manager
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["error_code"] == "CONFLICT"

    bad_window = await client.get(
        "/v1/expenses", params={"from": "2024-05-01T00:00:00Z", "to": "2024-04-01T00:00:00Z"}, headers=manager
    )
    assert bad_window.status_code == 400
    assert bad_window.json()["error_code"] == "INVALID_INPUT"


# --- End to end ---

@pytest.mark.asyncio
async def test_trip_and_fuel_flow(client, auth_headers):
    manager = auth_headers(UserRole.MANAGER)
    dispatcher = auth_headers(UserRole.DISPATCHER)

    vehicle = (await client.post("/v1/vehicles", json=VEHICLE_BODY, headers=manager)).json()
    driver = (await client.post("/v1/drivers", json=driver_body(), headers=manager)).json()
    await client.patch(f"/v1/drivers/{driver['id']}", json={"status": "ON_DUTY"}, headers=manager)

    assignable = await client.get(f"/v1/drivers/{driver['id']}/assignable", headers=dispatcher)
    assert assignable.json() == {"driver_id": driver["id"], "assignable": True, "reasons": []}

    trip_body = {
        "vehicle_id": vehicle["id"],
        "driver_id": driver["id"],
        "origin_address": "Port of Rotterdam",
        "destination_address": "Venlo DC",
        "cargo_weight_kg": 1200,
        "scheduled_at": (utcnow() + timedelta(hours=1)).isoformat(),
    }
    too_heavy = await client.post("/v1/trips", json=trip_body, headers=dispatcher)
    assert too_heavy.status_code == 400
    assert too_heavy.json()["error_code"] == "PRECONDITION_FAILED"

    trip = await client.post("/v1/trips", json={**trip_body, "cargo_weight_kg": 800}, headers=dispatcher)
    assert trip.status_code == 201
    trip_id = trip.json()["id"]
    assert trip.json()["status"] == "DRAFT"
    assert trip.json()["trip_number"].endswith("-0001")

    dispatched = await client.post(f"/v1/trips/{trip_id}/dispatch", headers=dispatcher)
    assert dispatched.status_code == 200
    assert dispatched.json()["status"] == "DISPATCHED"

    again = await client.post(f"/v1/trips/{trip_id}/dispatch", headers=dispatcher)
    assert again.status_code == 409
    assert again.json()["error_code"] == "INVALID_TRANSITION"

    fill = await client.post("/v1/fuel-logs", json={
        "vehicle_id": vehicle["id"],
        "driver_id": driver["id"],
        "trip_id": trip_id,
        "fuel_type": "DIESEL",
        "liters": 50,
        "cost_per_liter": 10,
        "total_cost": 500,
        "odometer_at_fill_km": 120,
    }, headers=dispatcher)
    assert fill.status_code == 201
    assert fill.json()["expense"]["amount"] == 500
    assert fill.json()["expense"]["category"] == "FUEL"
    fuel_log_id = fill.json()["id"]

    corrected = await client.patch(f"/v1/fuel-logs/{fuel_log_id}", json={"total_cost": 650}, headers=dispatcher)
    assert corrected.status_code == 200
    expense = await client.get(f"/v1/fuel-logs/{fuel_log_id}/expense", headers=manager)
    assert expense.json()["amount"] == 650

    behind = await client.post(f"/v1/trips/{trip_id}/complete", json={"odometer_end_km": 110}, headers=dispatcher)
    assert behind.status_code == 400

    completed = await client.post(f"/v1/trips/{trip_id}/complete", json={"odometer_end_km": 300}, headers=dispatcher)
    assert completed.status_code == 200
    assert completed.json()["status"] == "COMPLETED"

    vehicle_after = await client.get(f"/v1/vehicles/{vehicle['id']}", headers=manager)
    assert vehicle_after.json()["status"] == "AVAILABLE"
    assert vehicle_after.json()["odometer_km"] == 300

    summary = await client.get("/v1/expenses/summary", params={"trip_id": trip_id}, headers=manager)
    assert summary.json() == [{"category": "FUEL", "total_amount": 650.0, "count": 1}]

    utilization = await client.get("/v1/analytics/fleet-utilization", headers=auth_headers(UserRole.FINANCE_ANALYST))
    assert utilization.json()["utilization_rate"] == 0.0

    trail = await client.get("/v1/audit-logs", params={"target_type": "trip", "target_id": trip_id}, headers=manager)
    assert trail.status_code == 200
    actions = [entry["action"] for entry in trail.json()["logs"]]
    assert set(actions) == {"TRIP_CREATED", "TRIP_DISPATCHED", "TRIP_COMPLETED"}

    not_for_dispatch = await client.get("/v1/audit-logs", headers=dispatcher)
    assert not_for_dispatch.status_code == 403


@pytest.mark.asyncio
async def test_maintenance_endpoints(client, auth_headers):
    manager = auth_headers(UserRole.MANAGER)
    vehicle = (await client.post("/v1/vehicles", json=VEHICLE_BODY, headers=manager)).json()

    log = await client.post("/v1/maintenance", json={
        "vehicle_id": vehicle["id"], "type": "CORRECTIVE", "description": "Replace clutch"
    }, headers=manager)
    assert log.status_code == 201
    log_id = log.json()["id"]

    dispatcher_try = await client.post(f"/v1/maintenance/{log_id}/start", headers=auth_headers(UserRole.DISPATCHER))
    assert dispatcher_try.status_code == 403

    assert (await client.post(f"/v1/maintenance/{log_id}/start", headers=manager)).status_code == 200
    expense = await client.post(
        f"/v1/maintenance/{log_id}/expenses", json={"description": "Clutch kit", "amount": 640}, headers=manager
    )
    assert expense.status_code == 201

    completed = await client.post(f"/v1/maintenance/{log_id}/complete", json={"labor_cost": 200}, headers=manager)
    assert completed.status_code == 200
    assert completed.json()["labor_cost"] == 200

    vehicle_after = await client.get(f"/v1/vehicles/{vehicle['id']}", headers=manager)
    assert vehicle_after.json()["status"] == "AVAILABLE"

    expenses = await client.get(f"/v1/maintenance/{log_id}/expenses", headers=manager)
    assert [e["amount"] for e in expenses.json()] == [640]


@pytest.mark.asyncio
async def test_transition_metadata(client, auth_headers):
    response = await client.get("/v1/meta/transitions", headers=auth_headers(UserRole.DISPATCHER))
    assert response.status_code == 200
    graphs = response.json()["graphs"]
    assert graphs["trip"]["DRAFT"] == ["CANCELLED", "DISPATCHED"]
    assert graphs["driver"]["SUSPENDED"] == ["OFF_DUTY"]


@pytest.mark.asyncio
async def test_pagination_bounds(client, auth_headers):
    response = await client.get("/v1/trips", params={"limit": 101}, headers=auth_headers(UserRole.MANAGER))
    assert response.status_code == 422

    response = await client.get("/v1/trips", params={"page": 2, "limit": 5}, headers=auth_headers(UserRole.MANAGER))
    assert response.status_code == 200
    assert response.json() == {"total": 0, "page": 2, "limit": 5, "total_pages": 0, "items": []}


@pytest.mark.asyncio
async def test_health_and_correlation_header(client):
    response = await client.get("/health", headers={"X-Correlation-ID": "req-42"})
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Correlation-ID"] == "req-42"
    assert "X-Process-Time" in response.headers

    generated = await client.get("/health")
    assert generated.headers["X-Correlation-ID"]
