"""
Status transition graphs.

One graph per entity with a status field. Orchestrators, direct status
edits and the /meta/transitions endpoint all read these same tables.
"""

from typing import Dict, FrozenSet, List

from fleetops.app.domain.errors import InvalidTransitionError
from fleetops.app.models.driver_enums import DriverStatus
from fleetops.app.models.maintenance_enums import MaintenanceStatus
from fleetops.app.models.trip_enums import TripStatus
from fleetops.app.models.vehicle_enums import VehicleStatus


# Current status -> statuses reachable in one step
VEHICLE_TRANSITIONS: Dict[VehicleStatus, FrozenSet[VehicleStatus]] = {
    VehicleStatus.AVAILABLE: frozenset({VehicleStatus.ON_TRIP, VehicleStatus.IN_SHOP, VehicleStatus.RETIRED}),
    VehicleStatus.ON_TRIP: frozenset({VehicleStatus.AVAILABLE}),
    VehicleStatus.IN_SHOP: frozenset({VehicleStatus.AVAILABLE}),
    VehicleStatus.RETIRED: frozenset(),  # terminal
}

DRIVER_TRANSITIONS: Dict[DriverStatus, FrozenSet[DriverStatus]] = {
    DriverStatus.OFF_DUTY: frozenset({DriverStatus.ON_DUTY, DriverStatus.SUSPENDED}),
    DriverStatus.ON_DUTY: frozenset({DriverStatus.OFF_DUTY, DriverStatus.ON_TRIP, DriverStatus.SUSPENDED}),
    DriverStatus.ON_TRIP: frozenset({DriverStatus.ON_DUTY}),
    DriverStatus.SUSPENDED: frozenset({DriverStatus.OFF_DUTY}),
}

TRIP_TRANSITIONS: Dict[TripStatus, FrozenSet[TripStatus]] = {
    TripStatus.DRAFT: frozenset({TripStatus.DISPATCHED, TripStatus.CANCELLED}),
    TripStatus.DISPATCHED: frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED}),
    TripStatus.COMPLETED: frozenset(),
    TripStatus.CANCELLED: frozenset(),
}

MAINTENANCE_TRANSITIONS: Dict[MaintenanceStatus, FrozenSet[MaintenanceStatus]] = {
    MaintenanceStatus.SCHEDULED: frozenset({MaintenanceStatus.IN_PROGRESS, MaintenanceStatus.CANCELLED}),
    MaintenanceStatus.IN_PROGRESS: frozenset({MaintenanceStatus.COMPLETED, MaintenanceStatus.CANCELLED}),
    MaintenanceStatus.COMPLETED: frozenset(),
    MaintenanceStatus.CANCELLED: frozenset(),
}

TRANSITION_GRAPHS = {
    "vehicle": VEHICLE_TRANSITIONS,
    "driver": DRIVER_TRANSITIONS,
    "trip": TRIP_TRANSITIONS,
    "maintenance_log": MAINTENANCE_TRANSITIONS,
}


def can_transition(graph: Dict, current, requested) -> bool:
    """True if `requested` is reachable from `current` in one step."""
    return requested in graph.get(current, frozenset())


def allowed_targets(graph: Dict, current) -> List[str]:
    return sorted(status.value for status in graph.get(current, frozenset()))


def is_terminal(graph: Dict, status) -> bool:
    return not graph.get(status)


def ensure_transition(entity: str, graph: Dict, current, requested) -> None:
    """
    Raise InvalidTransitionError naming the current status and the allowed
    set when `current -> requested` is not an edge of `graph`.
    """
    if not can_transition(graph, current, requested):
        raise InvalidTransitionError(entity, current, requested, allowed_targets(graph, current))


def serialize_graphs() -> Dict[str, Dict[str, List[str]]]:
    """Plain-JSON view of every graph for presentation layers."""
    return {
        entity: {status.value: allowed_targets(graph, status) for status in graph}
        for entity, graph in TRANSITION_GRAPHS.items()
    }
