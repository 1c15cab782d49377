from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Sequence, Set

from simulation.events import (
    DOWN_BUTTON_PRESSED,
    FLOOR_BUTTON_PRESSED,
    IDLE,
    PASSING_FLOOR,
    STOPPED_AT_FLOOR,
    UP_BUTTON_PRESSED,
    Direction,
)

from .utils import closest_elevator, order_stops

if TYPE_CHECKING:  # pragma: no cover - typing only
    from simulation import Elevator, Floor


class CollectiveProgram:
    """Directional collective control driven entirely by events.

    Car calls are kept in SCAN order, cars pick up hall calls they pass in
    their travel direction while they have room, and idle cars are sent to
    the nearest outstanding hall call or parked.
    """

    def __init__(self, park_floor: int = 0, stop_load_limit: float = 0.7) -> None:
        self.park_floor = park_floor
        self.stop_load_limit = stop_load_limit
        self.hall_calls: Dict[Direction, Set[int]] = {Direction.UP: set(), Direction.DOWN: set()}
        self.elevators: List["Elevator"] = []

    def init(self, elevators: Sequence["Elevator"], floors: Sequence["Floor"]) -> None:
        self.elevators = list(elevators)
        for elevator in elevators:
            elevator.on(IDLE, lambda e=elevator: self._on_idle(e))
            elevator.on(FLOOR_BUTTON_PRESSED, lambda floor_num, e=elevator: self._on_floor_button(e, floor_num))
            elevator.on(
                PASSING_FLOOR,
                lambda floor_num, direction, e=elevator: self._on_passing_floor(e, floor_num, Direction(direction)),
            )
            elevator.on(STOPPED_AT_FLOOR, lambda floor_num, e=elevator: self._on_stopped(e, floor_num))
        for floor in floors:
            number = floor.floor_num()
            if floor.up_button_active:
                self.hall_calls[Direction.UP].add(number)
            if floor.down_button_active:
                self.hall_calls[Direction.DOWN].add(number)
            floor.on(UP_BUTTON_PRESSED, lambda n=number: self._on_hall_call(n, Direction.UP))
            floor.on(DOWN_BUTTON_PRESSED, lambda n=number: self._on_hall_call(n, Direction.DOWN))

    def update(self, dt: float, elevators: Sequence["Elevator"], floors: Sequence["Floor"]) -> None:
        # Hall calls that no car is heading to go to the closest free car.
        for floor_num in sorted(self.pending_calls()):
            if any(floor_num in e.destination_queue for e in elevators):
                continue
            candidate = closest_elevator(self._free_elevators(), floor_num)
            if candidate is not None:
                candidate.go_to_floor(floor_num)

    def pending_calls(self) -> Set[int]:
        return self.hall_calls[Direction.UP] | self.hall_calls[Direction.DOWN]

    def _free_elevators(self) -> List["Elevator"]:
        return [
            e
            for e in self.elevators
            if not e.destination_queue and e.destination_direction() is Direction.STOPPED and not e.is_busy()
        ]

    def _on_hall_call(self, floor_num: int, direction: Direction) -> None:
        self.hall_calls[direction].add(floor_num)
        candidate = closest_elevator(self._free_elevators(), floor_num)
        if candidate is not None:
            candidate.go_to_floor(floor_num)

    def _on_floor_button(self, elevator: "Elevator", floor_num: int) -> None:
        if floor_num in elevator.destination_queue:
            return
        elevator.destination_queue.append(floor_num)
        elevator.destination_queue[:] = order_stops(
            elevator.destination_queue, elevator.position, elevator.destination_direction()
        )
        elevator.check_destination_queue()

    def _on_passing_floor(self, elevator: "Elevator", floor_num: int, direction: Direction) -> None:
        wants_off = floor_num in elevator.get_pressed_floors()
        pickup = floor_num in self.hall_calls[direction] and elevator.load_factor() < self.stop_load_limit
        if wants_off or pickup:
            elevator.go_to_floor(floor_num, directly=True)

    def _on_stopped(self, elevator: "Elevator", floor_num: int) -> None:
        heading = elevator.destination_direction()
        elevator.set_going_up_indicator(heading is not Direction.DOWN)
        elevator.set_going_down_indicator(heading is not Direction.UP)
        if elevator.going_up_indicator():
            self.hall_calls[Direction.UP].discard(floor_num)
        if elevator.going_down_indicator():
            self.hall_calls[Direction.DOWN].discard(floor_num)

    def _on_idle(self, elevator: "Elevator") -> None:
        elevator.set_going_up_indicator(True)
        elevator.set_going_down_indicator(True)
        pending = self.pending_calls()
        if pending:
            elevator.go_to_floor(min(pending, key=lambda f: (abs(f - elevator.position), f)))
        elif elevator.current_floor() != self.park_floor:
            elevator.go_to_floor(self.park_floor)
