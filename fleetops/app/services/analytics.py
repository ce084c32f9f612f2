"""
Analytics Service.

Handles data aggregation for dashboards. Read-only: every figure is derived
fresh from current entity state, nothing is cached.

Rounding: currency and percentages 2 dp, km/L 2 dp, cost-per-km ratios 4 dp
(fuel cost per km stays at 2 dp).
"""

from collections import defaultdict
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from fleetops.app.core.timeutils import as_utc, utcnow
from fleetops.app.core.rounding import round_half_up
from fleetops.app.db.pagination import apply_window
from fleetops.app.models.expense import Expense
from fleetops.app.models.fuel_log import FuelLog
from fleetops.app.models.trip import Trip
from fleetops.app.models.trip_enums import TripStatus
from fleetops.app.models.vehicle import Vehicle
from fleetops.app.models.vehicle_enums import VehicleStatus
from fleetops.app.schemas.analytics import (
    FleetUtilization, FuelEfficiency, VehicleCostPerKm, VehicleROI,
    CategoryAmount, MonthlyExpenses, MonthlyExpenseBreakdown,
    CompletedTripStats, TripAnalytics,
)


def _ratio(numerator: float, denominator: float, places: int) -> Optional[float]:
    if not denominator or denominator <= 0:
        return None
    return round_half_up(numerator / denominator, places)


def summarize_fills(vehicle_id: int, fills: List[FuelLog]) -> FuelEfficiency:
    """
    Fold one vehicle's fills (sorted by odometer) into efficiency figures.

    Each positive odometer gap between consecutive fills counts its km and
    the later fill's liters. Every fill's cost counts toward the fuel cost.
    """
    total_km = 0.0
    total_liters = 0.0
    segments = 0
    for previous, current in zip(fills, fills[1:]):
        km_driven = current.odometer_at_fill_km - previous.odometer_at_fill_km
        if km_driven > 0:
            total_km += km_driven
            total_liters += current.liters
            segments += 1
    total_fuel_cost = sum(fill.total_cost for fill in fills)

    return FuelEfficiency(
        vehicle_id=vehicle_id,
        fill_count=len(fills),
        segments=segments,
        total_km=round_half_up(total_km, 2),
        total_liters=round_half_up(total_liters, 2),
        total_fuel_cost=round_half_up(total_fuel_cost, 2),
        km_per_liter=_ratio(total_km, total_liters, 2),
        fuel_cost_per_km=_ratio(total_fuel_cost, total_km, 2),
    )


class AnalyticsService:

    @staticmethod
    async def fleet_utilization(db: AsyncSession) -> FleetUtilization:
        """Snapshot of vehicle counts by status."""
        rows = (await db.execute(
            select(Vehicle.status, func.count(Vehicle.id)).group_by(Vehicle.status)
        )).all()
        counts = {status: 0 for status in VehicleStatus}
        for status, count in rows:
            counts[status] = count

        total = sum(counts.values())
        active = total - counts[VehicleStatus.RETIRED]
        rate = round_half_up(counts[VehicleStatus.ON_TRIP] / active * 100, 2) if active > 0 else 0.0

        return FleetUtilization(
            total=total,
            available=counts[VehicleStatus.AVAILABLE],
            on_trip=counts[VehicleStatus.ON_TRIP],
            in_shop=counts[VehicleStatus.IN_SHOP],
            retired=counts[VehicleStatus.RETIRED],
            active_fleet=active,
            utilization_rate=rate,
        )

    @staticmethod
    async def fuel_efficiency(
        db: AsyncSession,
        vehicle_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[FuelEfficiency]:
        """Per-vehicle km/L from fills in the window (filter on filled_at)."""
        query = select(FuelLog)
        if vehicle_id is not None:
            query = query.where(FuelLog.vehicle_id == vehicle_id)
        query = apply_window(query, FuelLog.filled_at, date_from, date_to)
        query = query.order_by(FuelLog.vehicle_id, FuelLog.odometer_at_fill_km, FuelLog.id)

        fills_by_vehicle = defaultdict(list)
        for fill in (await db.execute(query)).scalars().all():
            fills_by_vehicle[fill.vehicle_id].append(fill)

        return [summarize_fills(vid, fills) for vid, fills in fills_by_vehicle.items()]

    @staticmethod
    async def cost_per_km(
        db: AsyncSession,
        vehicle_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[VehicleCostPerKm]:
        """
        Windowed expense total per vehicle divided by its lifetime odometer.

        Null when the odometer is still 0.
        """
        query = (
            select(
                Expense.vehicle_id,
                func.sum(Expense.amount).label("total"),
                func.count(Expense.id).label("count"),
                Vehicle.license_plate,
                Vehicle.odometer_km,
            )
            .join(Vehicle, Vehicle.id == Expense.vehicle_id)
            .where(Expense.vehicle_id.is_not(None))
        )
        if vehicle_id is not None:
            query = query.where(Expense.vehicle_id == vehicle_id)
        query = apply_window(query, Expense.incurred_at, date_from, date_to)
        query = query.group_by(Expense.vehicle_id, Vehicle.license_plate, Vehicle.odometer_km).order_by(Expense.vehicle_id)

        results = []
        for row in (await db.execute(query)).all():
            total = row.total or 0.0
            results.append(VehicleCostPerKm(
                vehicle_id=row.vehicle_id,
                license_plate=row.license_plate,
                odometer_km=row.odometer_km,
                total_expenses=round_half_up(total, 2),
                expense_count=row.count,
                cost_per_km=_ratio(total, row.odometer_km, 4),
            ))
        return results

    @staticmethod
    async def vehicle_roi(db: AsyncSession, vehicle_id: Optional[int] = None) -> List[VehicleROI]:
        """
        total_cost = acquisition_cost + all expenses;
        cost_per_km = total_cost / distance of COMPLETED trips.
        """
        vehicle_query = select(Vehicle).order_by(Vehicle.id)
        if vehicle_id is not None:
            vehicle_query = vehicle_query.where(Vehicle.id == vehicle_id)
        vehicles = (await db.execute(vehicle_query)).scalars().all()
        if not vehicles:
            return []
        vehicle_ids = [v.id for v in vehicles]

        expense_rows = await db.execute(
            select(Expense.vehicle_id, func.sum(Expense.amount))
            .where(Expense.vehicle_id.in_(vehicle_ids))
            .group_by(Expense.vehicle_id)
        )
        expenses = {vid: total or 0.0 for vid, total in expense_rows.all()}

        trip_rows = await db.execute(
            select(Trip.vehicle_id, func.count(Trip.id), func.sum(Trip.distance_km))
            .where(Trip.vehicle_id.in_(vehicle_ids), Trip.status == TripStatus.COMPLETED)
            .group_by(Trip.vehicle_id)
        )
        trips = {vid: (count, distance or 0.0) for vid, count, distance in trip_rows.all()}

        results = []
        for vehicle in vehicles:
            operational = expenses.get(vehicle.id, 0.0)
            total_cost = vehicle.acquisition_cost + operational
            completed, distance = trips.get(vehicle.id, (0, 0.0))
            results.append(VehicleROI(
                vehicle_id=vehicle.id,
                license_plate=vehicle.license_plate,
                vehicle_type=vehicle.vehicle_type,
                acquisition_cost=vehicle.acquisition_cost,
                acquisition_date=vehicle.acquisition_date,
                operational_expenses=round_half_up(operational, 2),
                total_cost=round_half_up(total_cost, 2),
                odometer_km=vehicle.odometer_km,
                completed_trips=completed,
                total_distance_km=round_half_up(distance, 2),
                cost_per_km=_ratio(total_cost, distance, 4),
            ))
        return results

    @staticmethod
    async def monthly_expense_breakdown(
        db: AsyncSession,
        year: Optional[int] = None,
        vehicle_id: Optional[int] = None,
    ) -> MonthlyExpenseBreakdown:
        """Expenses of one UTC year grouped by YYYY-MM and category, both sorted."""
        year = year or utcnow().year
        start = datetime(year, 1, 1, tzinfo=timezone.utc)
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)

        query = select(Expense.category, Expense.amount, Expense.incurred_at).where(
            Expense.incurred_at >= start, Expense.incurred_at < end
        )
        if vehicle_id is not None:
            query = query.where(Expense.vehicle_id == vehicle_id)

        months = defaultdict(lambda: defaultdict(float))
        for category, amount, incurred_at in (await db.execute(query)).all():
            key = as_utc(incurred_at).strftime("%Y-%m")
            months[key][category] += amount

        breakdown = []
        for month in sorted(months):
            categories = months[month]
            breakdown.append(MonthlyExpenses(
                month=month,
                total=round_half_up(sum(categories.values()), 2),
                categories=[
                    CategoryAmount(category=category, amount=round_half_up(amount, 2))
                    for category, amount in sorted(categories.items(), key=lambda item: item[0].value)
                ],
            ))
        return MonthlyExpenseBreakdown(year=year, months=breakdown)

    @staticmethod
    async def trip_analytics(
        db: AsyncSession,
        vehicle_id: Optional[int] = None,
        driver_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> TripAnalytics:
        """
        Status counts over all matching trips, plus distance figures for
        COMPLETED trips whose completed_at falls in the window.
        """
        filters = []
        if vehicle_id is not None:
            filters.append(Trip.vehicle_id == vehicle_id)
        if driver_id is not None:
            filters.append(Trip.driver_id == driver_id)

        rows = (await db.execute(
            select(Trip.status, func.count(Trip.id)).where(*filters).group_by(Trip.status)
        )).all()
        status_counts = {status.value: 0 for status in TripStatus}
        for status, count in rows:
            status_counts[status.value] = count
        total = sum(status_counts.values())

        completed_query = select(
            func.count(Trip.id), func.sum(Trip.distance_km), func.avg(Trip.distance_km)
        ).where(*filters, Trip.status == TripStatus.COMPLETED)
        completed_query = apply_window(completed_query, Trip.completed_at, date_from, date_to)
        count, distance_sum, distance_avg = (await db.execute(completed_query)).one()

        completion_rate = round_half_up(status_counts[TripStatus.COMPLETED.value] / total * 100, 2) if total > 0 else 0.0

        return TripAnalytics(
            total_trips=total,
            status_counts=status_counts,
            completed=CompletedTripStats(
                count=count or 0,
                total_distance_km=round_half_up(distance_sum or 0.0, 2),
                avg_distance_km=round_half_up(distance_avg, 2) if distance_avg is not None else None,
            ),
            completion_rate=completion_rate,
        )
