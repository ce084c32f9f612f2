"""
Analytics aggregation tests.
"""

import pytest
from datetime import datetime, timedelta, timezone

from fleetops.app.core.rounding import round_half_up
from fleetops.app.core.timeutils import utcnow
from fleetops.app.domain.errors import InvalidInputError
from fleetops.app.domain.lifecycle.fuel_service import FuelLogService
from fleetops.app.domain.lifecycle.trip_service import TripService
from fleetops.app.models.expense import Expense
from fleetops.app.models.expense_enums import ExpenseCategory
from fleetops.app.models.fuel_enums import FuelType
from fleetops.app.models.vehicle_enums import VehicleStatus
from fleetops.app.schemas.fuel_log import FuelLogCreate
from fleetops.app.schemas.trip import TripCreate
from fleetops.app.services.analytics import AnalyticsService
from fleetops.app.services.expenses import ExpenseService


async def add_expense(db_session, vehicle_id, category, amount, incurred_at):
    expense = Expense(
        category=category,
        description=f"{category.value} charge",
        amount=amount,
        vehicle_id=vehicle_id,
        incurred_at=incurred_at,
    )
    db_session.add(expense)
    await db_session.commit()
    return expense


@pytest.mark.asyncio
async def test_fleet_utilization(db_session, make_vehicle):
    """{AVAILABLE, AVAILABLE, ON_TRIP, RETIRED} -> 1 of 3 active vehicles on trip."""
    for status in (VehicleStatus.AVAILABLE, VehicleStatus.AVAILABLE, VehicleStatus.ON_TRIP, VehicleStatus.RETIRED):
        await make_vehicle(status=status)

    stats = await AnalyticsService.fleet_utilization(db_session)

    assert stats.total == 4
    assert stats.active_fleet == 3
    assert stats.on_trip == 1
    assert stats.retired == 1
    assert stats.utilization_rate == 33.33


@pytest.mark.asyncio
async def test_fleet_utilization_empty_fleet(db_session, make_vehicle):
    await make_vehicle(status=VehicleStatus.RETIRED)

    stats = await AnalyticsService.fleet_utilization(db_session)
    assert stats.active_fleet == 0
    assert stats.utilization_rate == 0.0


@pytest.mark.asyncio
async def test_fuel_efficiency(db_session, make_vehicle):
    """Fills at 100/180/260 km with 20 and 25 L after the first: 160 km / 45 L."""
    vehicle = await make_vehicle(odometer_km=100.0)
    fills = [(100.0, 30.0, 300.0), (180.0, 20.0, 200.0), (260.0, 25.0, 260.0)]
    for odometer, liters, cost in fills:
        await FuelLogService.create(db_session, FuelLogCreate(
            vehicle_id=vehicle.id,
            fuel_type=FuelType.DIESEL,
            liters=liters,
            cost_per_liter=10.0,
            total_cost=cost,
            odometer_at_fill_km=odometer,
        ))

    [result] = await AnalyticsService.fuel_efficiency(db_session, vehicle_id=vehicle.id)

    assert result.fill_count == 3
    assert result.segments == 2
    assert result.total_km == 160.0
    assert result.total_liters == 45.0
    assert result.km_per_liter == 3.56
    assert result.total_fuel_cost == 760.0
    assert result.fuel_cost_per_km == 4.75


@pytest.mark.asyncio
async def test_fuel_efficiency_single_fill_has_no_ratio(db_session, make_vehicle):
    vehicle = await make_vehicle(odometer_km=0.0)
    await FuelLogService.create(db_session, FuelLogCreate(
        vehicle_id=vehicle.id, fuel_type=FuelType.PETROL, liters=10.0,
        cost_per_liter=1.5, total_cost=15.0, odometer_at_fill_km=50.0,
    ))

    [result] = await AnalyticsService.fuel_efficiency(db_session)
    assert result.km_per_liter is None
    assert result.fuel_cost_per_km is None


@pytest.mark.asyncio
async def test_cost_per_km(db_session, make_vehicle):
    vehicle = await make_vehicle(odometer_km=3000.0)
    idle = await make_vehicle(odometer_km=0.0)
    now = utcnow()
    await add_expense(db_session, vehicle.id, ExpenseCategory.TOLL, 250.0, now)
    await add_expense(db_session, vehicle.id, ExpenseCategory.INSURANCE, 750.0, now)
    await add_expense(db_session, idle.id, ExpenseCategory.PARKING, 40.0, now)

    results = {r.vehicle_id: r for r in await AnalyticsService.cost_per_km(db_session)}

    assert results[vehicle.id].total_expenses == 1000.0
    assert results[vehicle.id].expense_count == 2
    assert results[vehicle.id].cost_per_km == 0.3333
    assert results[idle.id].cost_per_km is None


@pytest.mark.asyncio
async def test_vehicle_roi_uses_completed_trip_distance(db_session, make_vehicle, make_driver):
    vehicle = await make_vehicle(odometer_km=100.0, acquisition_cost=10000.0)
    driver = await make_driver()
    trip = await TripService.create(db_session, TripCreate(
        vehicle_id=vehicle.id, driver_id=driver.id,
        origin_address="A", destination_address="B",
        cargo_weight_kg=100.0, scheduled_at=utcnow(),
    ), actor_id=None)
    await TripService.dispatch(db_session, trip.id, actor_id=None)
    await TripService.complete(db_session, trip.id, odometer_end_km=600.0)
    await add_expense(db_session, vehicle.id, ExpenseCategory.TOLL, 500.0, utcnow())

    [roi] = await AnalyticsService.vehicle_roi(db_session, vehicle_id=vehicle.id)

    assert roi.total_cost == 10500.0
    assert roi.completed_trips == 1
    assert roi.total_distance_km == 500.0
    assert roi.cost_per_km == 21.0


@pytest.mark.asyncio
async def test_monthly_expense_breakdown(db_session, make_vehicle):
    vehicle = await make_vehicle()
    await add_expense(db_session, vehicle.id, ExpenseCategory.TOLL, 10.0, datetime(2024, 1, 5, tzinfo=timezone.utc))
    await add_expense(db_session, vehicle.id, ExpenseCategory.FUEL, 100.0, datetime(2024, 1, 20, tzinfo=timezone.utc))
    await add_expense(db_session, vehicle.id, ExpenseCategory.FUEL, 50.255, datetime(2024, 3, 1, tzinfo=timezone.utc))
    await add_expense(db_session, vehicle.id, ExpenseCategory.FUEL, 999.0, datetime(2023, 12, 31, tzinfo=timezone.utc))

    breakdown = await AnalyticsService.monthly_expense_breakdown(db_session, year=2024)

    assert breakdown.year == 2024
    assert [m.month for m in breakdown.months] == ["2024-01", "2024-03"]
    january = breakdown.months[0]
    assert january.total == 110.0
    assert [c.category for c in january.categories] == [ExpenseCategory.FUEL, ExpenseCategory.TOLL]


@pytest.mark.asyncio
async def test_trip_analytics(db_session, make_vehicle, make_driver):
    vehicle = await make_vehicle(odometer_km=0.0)
    driver = await make_driver()

    def payload():
        return TripCreate(
            vehicle_id=vehicle.id, driver_id=driver.id,
            origin_address="A", destination_address="B",
            cargo_weight_kg=10.0, scheduled_at=utcnow(),
        )

    done = await TripService.create(db_session, payload(), actor_id=None)
    await TripService.dispatch(db_session, done.id, actor_id=None)
    await TripService.complete(db_session, done.id, odometer_end_km=80.0)
    cancelled = await TripService.create(db_session, payload(), actor_id=None)
    await TripService.cancel(db_session, cancelled.id)
    await TripService.create(db_session, payload(), actor_id=None)

    stats = await AnalyticsService.trip_analytics(db_session, vehicle_id=vehicle.id)

    assert stats.total_trips == 3
    assert stats.status_counts["COMPLETED"] == 1
    assert stats.status_counts["CANCELLED"] == 1
    assert stats.status_counts["DRAFT"] == 1
    assert stats.status_counts["DISPATCHED"] == 0
    assert stats.completed.count == 1
    assert stats.completed.total_distance_km == 80.0
    assert stats.completion_rate == 33.33

    future = await AnalyticsService.trip_analytics(db_session, date_from=utcnow() + timedelta(days=1))
    assert future.completed.count == 0
    assert future.completed.avg_distance_km is None


@pytest.mark.asyncio
async def test_inverted_window_rejected(db_session):
    now = utcnow()
    with pytest.raises(InvalidInputError):
        await AnalyticsService.fuel_efficiency(db_session, date_from=now, date_to=now - timedelta(days=1))


def test_round_half_up_matches_report_format():
    assert round_half_up(10.125) == 10.13
    assert round_half_up(0.005) == 0.01
    assert round_half_up(33.335, 1) == 33.3
    # 2.675 is stored just below the half
    assert round_half_up(2.675) == 2.67


@pytest.mark.asyncio
async def test_fuel_cost_total_rounds_halves_up(db_session, make_vehicle):
    vehicle = await make_vehicle(odometer_km=0.0)
    for odometer, cost in ((10.0, 5.0), (20.0, 5.125)):
        await FuelLogService.create(db_session, FuelLogCreate(
            vehicle_id=vehicle.id, fuel_type=FuelType.PETROL, liters=1.0,
            cost_per_liter=cost, total_cost=cost, odometer_at_fill_km=odometer,
        ))

    [result] = await AnalyticsService.fuel_efficiency(db_session, vehicle_id=vehicle.id)
    assert result.total_fuel_cost == 10.13


@pytest.mark.asyncio
async def test_expense_summary_rounds_halves_up(db_session, make_vehicle):
    vehicle = await make_vehicle()
    now = utcnow()
    await add_expense(db_session, vehicle.id, ExpenseCategory.TOLL, 1.0, now)
    await add_expense(db_session, vehicle.id, ExpenseCategory.TOLL, 0.125, now)

    [toll] = await ExpenseService.summary_by_category(db_session, vehicle_id=vehicle.id)
    assert toll.category == ExpenseCategory.TOLL
    assert toll.total_amount == 1.13
    assert toll.count == 2
