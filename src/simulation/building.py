from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .config import ElevatorConstraints
from .elevator import Elevator
from .floor import Floor
from .passenger import Passenger


@dataclass
class Building:
    """Container for floors and elevators."""

    num_floors: int
    elevators: List[Elevator] = field(default_factory=list)
    elevator_constraints: ElevatorConstraints = field(default_factory=ElevatorConstraints)
    capacities: Optional[Sequence[int]] = None
    floors: List[Floor] = field(init=False)

    def __post_init__(self) -> None:
        if self.num_floors < 1:
            raise ValueError("a building needs at least one floor")
        self.floors = [Floor(i) for i in range(self.num_floors)]
        self._apply_constraints()

    @classmethod
    def create(
        cls,
        num_floors: int,
        elevator_count: int,
        constraints: Optional[ElevatorConstraints] = None,
        capacities: Optional[Sequence[int]] = None,
    ) -> "Building":
        return cls(
            num_floors=num_floors,
            elevators=[Elevator(i) for i in range(elevator_count)],
            elevator_constraints=constraints or ElevatorConstraints(),
            capacities=capacities,
        )

    def get_floor(self, floor_number: int) -> Optional[Floor]:
        if 0 <= floor_number < self.num_floors:
            return self.floors[floor_number]
        return None

    def add_passenger(self, passenger: Passenger) -> None:
        floor = self.get_floor(passenger.origin)
        if floor is None:
            raise ValueError(f"Passenger {passenger.passenger_id} starts on unknown floor {passenger.origin}")
        floor.add_passenger(passenger)

    def waiting_passengers(self) -> List[Passenger]:
        return [p for floor in self.floors for p in floor.waiting()]

    def riding_passengers(self) -> List[Passenger]:
        return [p for elevator in self.elevators for p in elevator.passengers]

    def snapshot(self) -> dict:
        return {
            "floors": [
                {
                    "floor": floor.number,
                    "waiting": len(floor),
                    "up_button": floor.up_button_active,
                    "down_button": floor.down_button_active,
                }
                for floor in self.floors
            ],
            "elevators": [
                {
                    "id": elevator.elevator_id,
                    "position": elevator.position,
                    "current_floor": elevator.current_floor(),
                    "state": elevator.state.value,
                    "destination_queue": list(elevator.destination_queue),
                    "destination_direction": elevator.destination_direction().value,
                    "going_up_indicator": elevator.going_up_indicator(),
                    "going_down_indicator": elevator.going_down_indicator(),
                    "pressed_floors": elevator.get_pressed_floors(),
                    "load_factor": elevator.load_factor(),
                    "passenger_count": len(elevator.passengers),
                    "max_passenger_count": elevator.max_passenger_count(),
                }
                for elevator in self.elevators
            ],
        }

    def _apply_constraints(self) -> None:
        constraints = self.elevator_constraints
        for index, elevator in enumerate(self.elevators):
            if self.capacities:
                elevator.max_passengers = self.capacities[index % len(self.capacities)]
            elif elevator.max_passengers is None:
                elevator.max_passengers = constraints.capacity
            elevator.floor_count = self.num_floors
            elevator.speed_floors_per_sec = constraints.speed_floors_per_sec
            elevator.door_dwell_seconds = constraints.door_dwell_seconds
            elevator.passing_floor_lookahead = constraints.passing_floor_lookahead
            elevator.weight_per_slot = constraints.weight_per_slot
