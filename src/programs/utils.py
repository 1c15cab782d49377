from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence

from simulation.events import Direction

if TYPE_CHECKING:  # pragma: no cover - typing only
    from simulation import Elevator


def estimate_travel_time(elevator: "Elevator", floor: int) -> float:
    """Estimate seconds until an elevator could reach a floor.

    Movement is constant speed, so the estimate is the straight-line
    distance over cruise speed plus a door dwell for every stop already
    queued ahead of the new one.
    """

    distance = abs(elevator.position - floor)
    travel = distance / elevator.speed_floors_per_sec if elevator.speed_floors_per_sec > 0 else float("inf")
    return travel + len(elevator.destination_queue) * elevator.door_dwell_seconds


def closest_elevator(elevators: Sequence["Elevator"], floor: int) -> Optional["Elevator"]:
    if not elevators:
        return None
    return min(elevators, key=lambda e: (estimate_travel_time(e, floor), e.elevator_id))


def order_stops(floors: Iterable[int], position: float, direction: Direction) -> List[int]:
    """Sort stops to mirror SCAN behavior for a given direction.

    Floors ahead of the car come first in travel order, then the ones
    behind it on the way back.
    """

    unique = sorted(set(floors))
    if direction is Direction.DOWN:
        ahead = [f for f in reversed(unique) if f <= position]
        behind = [f for f in unique if f > position]
    else:
        ahead = [f for f in unique if f >= position]
        behind = [f for f in reversed(unique) if f < position]
    return ahead + behind
