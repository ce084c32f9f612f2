"""
Vehicle and driver registry tests.
"""

import pytest
from types import SimpleNamespace
from datetime import date, timedelta

from fleetops.app.core.timeutils import utctoday
from fleetops.app.domain.errors import (
    ConflictError, InvalidInputError, InvalidTransitionError, NotFoundError, PreconditionFailedError
)
from fleetops.app.domain.fleet.driver_service import DriverService, assignability_reasons, license_is_valid
from fleetops.app.domain.fleet.vehicle_service import VehicleService
from fleetops.app.models.driver_enums import DriverStatus
from fleetops.app.models.vehicle_enums import VehicleStatus, VehicleType
from fleetops.app.schemas.driver import DriverCreate, DriverUpdate
from fleetops.app.schemas.vehicle import VehicleCreate, VehicleUpdate


def vehicle_payload(**overrides) -> VehicleCreate:
    values = dict(
        license_plate="NL-42-XZ",
        vehicle_type=VehicleType.VAN,
        make="Mercedes",
        model="Sprinter",
        year=2022,
        vin="WDB9066331S123456",
        max_load_kg=1500.0,
        acquisition_cost=42000.0,
    )
    values.update(overrides)
    return VehicleCreate(**values)


def driver_payload(**overrides) -> DriverCreate:
    values = dict(
        employee_id="EMP-900",
        first_name="Robin",
        last_name="Jansen",
        phone="+31600000001",
        email="Robin.Jansen@FleetOps.com",
        license_number="NL-LIC-900",
        license_category=VehicleType.VAN,
        license_expiry_date=utctoday() + timedelta(days=30),
    )
    values.update(overrides)
    return DriverCreate(**values)


@pytest.mark.asyncio
async def test_register_vehicle_defaults(db_session):
    vehicle = await VehicleService.create(db_session, vehicle_payload())

    assert vehicle.status == VehicleStatus.AVAILABLE
    assert vehicle.odometer_km == 0.0
    assert vehicle.created_at is not None


@pytest.mark.asyncio
async def test_duplicate_plate_and_vin_conflict(db_session):
    await VehicleService.create(db_session, vehicle_payload())

    with pytest.raises(ConflictError) as exc_info:
        await VehicleService.create(db_session, vehicle_payload(vin=None))
    assert exc_info.value.details["field"] == "license_plate"

    with pytest.raises(ConflictError) as exc_info:
        await VehicleService.create(db_session, vehicle_payload(license_plate="NL-99-AB"))
    assert exc_info.value.details["field"] == "vin"


def test_vehicle_year_validation():
    with pytest.raises(ValueError):
        vehicle_payload(year=1850)


@pytest.mark.asyncio
async def test_list_vehicles_filters_and_paginates(db_session, make_vehicle):
    for _ in range(3):
        await make_vehicle(vehicle_type=VehicleType.TRUCK)
    await make_vehicle(vehicle_type=VehicleType.BIKE, status=VehicleStatus.RETIRED)

    trucks, total = await VehicleService.list(db_session, page=1, limit=2, vehicle_type=VehicleType.TRUCK)
    assert total == 3
    assert len(trucks) == 2

    retired, total = await VehicleService.list(db_session, page=1, limit=20, status=VehicleStatus.RETIRED)
    assert total == 1
    assert retired[0].vehicle_type == VehicleType.BIKE


@pytest.mark.asyncio
async def test_odometer_never_decreases_on_update(db_session, make_vehicle):
    vehicle = await make_vehicle(odometer_km=500.0)

    with pytest.raises(PreconditionFailedError):
        await VehicleService.update(db_session, vehicle.id, VehicleUpdate(odometer_km=499.0))

    vehicle = await VehicleService.update(db_session, vehicle.id, VehicleUpdate(odometer_km=650.0, make="Scania"))
    assert vehicle.odometer_km == 650.0
    assert vehicle.make == "Scania"


@pytest.mark.asyncio
async def test_vehicle_status_edits_follow_graph(db_session, make_vehicle):
    vehicle = await make_vehicle()

    with pytest.raises(PreconditionFailedError):
        await VehicleService.update(db_session, vehicle.id, VehicleUpdate(status=VehicleStatus.IN_SHOP))

    vehicle = await VehicleService.update(db_session, vehicle.id, VehicleUpdate(status=VehicleStatus.RETIRED))
    assert vehicle.status == VehicleStatus.RETIRED

    with pytest.raises(InvalidTransitionError):
        await VehicleService.update(db_session, vehicle.id, VehicleUpdate(status=VehicleStatus.AVAILABLE))


@pytest.mark.asyncio
async def test_on_trip_vehicle_cannot_be_released_directly(db_session, make_vehicle):
    vehicle = await make_vehicle(status=VehicleStatus.ON_TRIP)

    with pytest.raises(PreconditionFailedError):
        await VehicleService.update(db_session, vehicle.id, VehicleUpdate(status=VehicleStatus.AVAILABLE))


@pytest.mark.asyncio
async def test_empty_update_rejected(db_session, make_vehicle):
    vehicle = await make_vehicle()
    with pytest.raises(InvalidInputError):
        await VehicleService.update(db_session, vehicle.id, VehicleUpdate())


@pytest.mark.asyncio
async def test_register_driver(db_session):
    driver = await DriverService.create(db_session, driver_payload())

    assert driver.status == DriverStatus.OFF_DUTY
    assert driver.safety_score == 100.0
    assert driver.email == "robin.jansen@fleetops.com"
    assert driver.full_name == "Robin Jansen"

    with pytest.raises(ConflictError) as exc_info:
        await DriverService.create(db_session, driver_payload(employee_id="EMP-901", license_number="X-1"))
    assert exc_info.value.details["field"] == "phone"


@pytest.mark.asyncio
async def test_driver_duty_changes(db_session, make_driver):
    driver = await make_driver(status=DriverStatus.OFF_DUTY)

    driver = await DriverService.update(db_session, driver.id, DriverUpdate(status=DriverStatus.ON_DUTY, safety_score=87.5))
    assert driver.status == DriverStatus.ON_DUTY
    assert driver.safety_score == 87.5

    driver = await DriverService.update(db_session, driver.id, DriverUpdate(status=DriverStatus.SUSPENDED))
    assert driver.status == DriverStatus.SUSPENDED

    with pytest.raises(InvalidTransitionError):
        await DriverService.update(db_session, driver.id, DriverUpdate(status=DriverStatus.ON_DUTY))


@pytest.mark.asyncio
async def test_driver_on_trip_is_owned_by_trips(db_session, make_driver):
    on_duty = await make_driver(status=DriverStatus.ON_DUTY)
    on_trip = await make_driver(status=DriverStatus.ON_TRIP)

    with pytest.raises(PreconditionFailedError):
        await DriverService.update(db_session, on_duty.id, DriverUpdate(status=DriverStatus.ON_TRIP))
    with pytest.raises(PreconditionFailedError):
        await DriverService.update(db_session, on_trip.id, DriverUpdate(status=DriverStatus.ON_DUTY))

    # Suspension is not an edge out of ON_TRIP
    with pytest.raises(InvalidTransitionError):
        await DriverService.update(db_session, on_trip.id, DriverUpdate(status=DriverStatus.SUSPENDED))


@pytest.mark.asyncio
async def test_assignability(db_session, make_driver):
    ok = await make_driver()
    expired = await make_driver(status=DriverStatus.SUSPENDED, license_expiry_date=utctoday() - timedelta(days=2))

    assert await DriverService.check_assignable(db_session, ok.id) == []

    reasons = await DriverService.check_assignable(db_session, expired.id)
    assert len(reasons) == 2
    assert reasons[0] == "Driver is suspended"

    with pytest.raises(NotFoundError):
        await DriverService.check_assignable(db_session, 9999)


def test_license_valid_through_expiry_day():
    driver = SimpleNamespace(license_expiry_date=date(2030, 6, 30), status=DriverStatus.ON_DUTY)

    assert license_is_valid(driver, on=date(2030, 6, 30))
    assert not license_is_valid(driver, on=date(2030, 7, 1))
    assert assignability_reasons(driver, on=date(2030, 7, 1)) == ["Driver license expired on 2030-06-30"]
