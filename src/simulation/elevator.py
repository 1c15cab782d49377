from __future__ import annotations

import math
import numbers
import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Dict, List, Optional, Set, Tuple

import structlog

from .errors import InvalidFloorError, QueueDesyncWarning
from .events import (
    FLOOR_BUTTON_PRESSED,
    IDLE,
    PASSING_FLOOR,
    STOPPED_AT_FLOOR,
    Direction,
    EventEmitter,
    Listener,
)
from .passenger import BoardingOutcome, Passenger

if TYPE_CHECKING:  # pragma: no cover - import cycle safe typing
    from .building import Building
    from .simulation import MetricsTracker

logger = structlog.get_logger(__name__)


class ElevatorState(str, Enum):
    IDLE = "idle"
    MOVING = "moving"
    STOPPED = "stopped"


def round_floor(position: float) -> int:
    """Round half up, so 2.5 reports as floor 3 regardless of direction."""
    return int(math.floor(position + 0.5))


@dataclass(eq=False)
class Elevator(EventEmitter):
    """An elevator car driven by its destination queue.

    ``destination_queue`` is a plain list that control programs may edit
    directly; ``check_destination_queue()`` makes such edits take effect.
    The head of the queue is always the floor the car travels to next.
    """

    EVENTS: ClassVar[Tuple[str, ...]] = (IDLE, FLOOR_BUTTON_PRESSED, PASSING_FLOOR, STOPPED_AT_FLOOR)

    elevator_id: int
    max_passengers: Optional[int] = None
    floor_count: int = 2
    speed_floors_per_sec: float = 2.6
    door_dwell_seconds: float = 1.0
    passing_floor_lookahead: float = 0.25
    weight_per_slot: float = 100.0
    position: float = 0.0
    destination_queue: List[int] = field(default_factory=list)
    passengers: List[Passenger] = field(default_factory=list)
    state: ElevatorState = ElevatorState.IDLE
    move_count: int = 0
    _going_up: bool = True
    _going_down: bool = True
    _pressed_floors: Set[int] = field(default_factory=set)
    _target: Optional[int] = None
    _announced_floor: Optional[int] = None
    _halt_requested: bool = False
    _dwell_remaining: float = 0.0
    _listeners: Dict[str, List[Listener]] = field(default_factory=dict, init=False, repr=False)

    # -- control program surface -------------------------------------------------

    def go_to_floor(self, floor_num: object, directly: bool = False) -> None:
        floor = self._accept_floor(floor_num)
        if floor is None:
            return
        queue = self.destination_queue
        if directly:
            if queue and queue[0] == floor:
                return
            if floor in queue:
                queue.remove(floor)
            queue.insert(0, floor)
        else:
            if queue and queue[-1] == floor:
                return
            queue.append(floor)
        self.check_destination_queue()

    def stop(self) -> None:
        self.destination_queue.clear()
        if self.state is ElevatorState.MOVING:
            self._halt_requested = True

    def check_destination_queue(self) -> None:
        if self.state is ElevatorState.STOPPED:
            # Re-run when the doors close.
            return
        self._sanitize_queue()
        if self.destination_queue:
            self._halt_requested = False
            self._set_target(self.destination_queue[0])
        elif self._target is None:
            self.state = ElevatorState.IDLE
            self.emit(IDLE)

    def current_floor(self) -> int:
        return round_floor(self.position)

    def going_up_indicator(self) -> bool:
        return self._going_up

    def set_going_up_indicator(self, state: bool) -> None:
        self._going_up = bool(state)

    def going_down_indicator(self) -> bool:
        return self._going_down

    def set_going_down_indicator(self, state: bool) -> None:
        self._going_down = bool(state)

    def max_passenger_count(self) -> int:
        return self.max_passengers or 0

    @property
    def capacity_weight(self) -> float:
        return self.max_passenger_count() * self.weight_per_slot

    @property
    def load(self) -> float:
        return sum(p.weight for p in self.passengers)

    def load_factor(self) -> float:
        if self.capacity_weight <= 0:
            return 0.0
        return min(1.0, self.load / self.capacity_weight)

    def destination_direction(self) -> Direction:
        # A pending halt discards the current leg.
        target = None if self._halt_requested else self._target
        if target is None and self.destination_queue:
            target = self.destination_queue[0]
        if target is None or target == self.position:
            return Direction.STOPPED
        return Direction.UP if target > self.position else Direction.DOWN

    def get_pressed_floors(self) -> List[int]:
        return sorted(self._pressed_floors)

    # -- passenger interaction --------------------------------------------------

    def is_suitable_for_travel(self, origin: int, destination: int) -> bool:
        if origin < destination:
            return self._going_up
        if origin > destination:
            return self._going_down
        return True

    def try_board(self, passenger: Passenger) -> BoardingOutcome:
        if not self.is_suitable_for_travel(passenger.origin, passenger.destination):
            return BoardingOutcome.WRONG_DIRECTION
        if len(self.passengers) >= self.max_passenger_count():
            return BoardingOutcome.OVERLOAD
        if self.load + passenger.weight > self.capacity_weight:
            return BoardingOutcome.OVERLOAD
        self.passengers.append(passenger)
        return BoardingOutcome.BOARDED

    def press_floor_button(self, floor_num: int) -> None:
        floor = self._accept_floor(floor_num)
        if floor is None or floor in self._pressed_floors:
            return
        self._pressed_floors.add(floor)
        logger.debug("car_call", elevator=self.elevator_id, floor=floor)
        self.emit(FLOOR_BUTTON_PRESSED, floor)

    def is_busy(self) -> bool:
        return self.state is ElevatorState.STOPPED

    # -- engine ------------------------------------------------------------------

    def step(self, building: "Building", dt: float, current_time: float, metrics: "MetricsTracker") -> None:
        if self.state is ElevatorState.STOPPED:
            self._dwell_remaining -= dt
            if self._dwell_remaining > 0:
                return
            self._dwell_remaining = 0.0
            self.state = ElevatorState.IDLE
            self.check_destination_queue()
            return

        self._reconcile_queue()
        self._advance(self.speed_floors_per_sec * dt, building, current_time, metrics)

    def _advance(self, travel: float, building: "Building", current_time: float, metrics: "MetricsTracker") -> None:
        # Bounded so listeners that keep reversing the car cannot spin forever.
        for _ in range(4 * self.floor_count + 8):
            if self._halt_requested:
                self._halt()
                return
            if self._target is None:
                return

            direction = self._direction_to(self._target)
            if direction is Direction.STOPPED:
                self._arrive(building, current_time, metrics)
                return

            passing = self._next_passing_floor(direction)
            if passing is not None:
                trigger_point = passing - direction.sign * self.passing_floor_lookahead
                distance = max(0.0, (trigger_point - self.position) * direction.sign)
                if distance <= travel:
                    self._move_by(distance * direction.sign)
                    travel -= distance
                    self._announced_floor = passing
                    self.emit(PASSING_FLOOR, passing, direction.value)
                    # Listeners may have diverted or stopped the car.
                    continue

            distance = abs(self._target - self.position)
            if distance <= travel:
                self._move_by(self._target - self.position)
                self._arrive(building, current_time, metrics)
                return
            self._move_by(travel * direction.sign)
            return
        logger.warning("retarget_limit_reached", elevator=self.elevator_id, position=self.position)

    def _next_passing_floor(self, direction: Direction) -> Optional[int]:
        if direction is Direction.UP:
            candidate = math.floor(self.position) + 1
            if candidate == self._announced_floor:
                candidate += 1
            return candidate if candidate < self._target else None
        candidate = math.ceil(self.position) - 1
        if candidate == self._announced_floor:
            candidate -= 1
        return candidate if candidate > self._target else None

    def _direction_to(self, floor: int) -> Direction:
        if floor > self.position:
            return Direction.UP
        if floor < self.position:
            return Direction.DOWN
        return Direction.STOPPED

    def _move_by(self, delta: float) -> None:
        before = self.current_floor()
        self.position += delta
        self.move_count += abs(self.current_floor() - before)

    def _set_target(self, floor: int) -> None:
        if self._target is not None and self._direction_to(floor) is not self._direction_to(self._target):
            self._announced_floor = None
        self._target = floor
        self.state = ElevatorState.MOVING

    def _arrive(self, building: "Building", current_time: float, metrics: "MetricsTracker") -> None:
        floor_number = round_floor(self.position)
        self.position = float(floor_number)
        self._target = None
        self._announced_floor = None
        self.state = ElevatorState.STOPPED
        self._dwell_remaining = self.door_dwell_seconds
        self._pressed_floors.discard(floor_number)
        if self.destination_queue and self.destination_queue[0] == floor_number:
            self.destination_queue.pop(0)
        logger.debug("stopped_at_floor", elevator=self.elevator_id, floor=floor_number)
        self.emit(STOPPED_AT_FLOOR, floor_number)
        self._handle_stop(building, floor_number, current_time, metrics)

    def _halt(self) -> None:
        logger.debug("halted", elevator=self.elevator_id, position=self.position)
        self._halt_requested = False
        self._target = None
        self._announced_floor = None
        self.state = ElevatorState.IDLE
        # Emits idle unless a listener already queued something new.
        self.check_destination_queue()

    def _handle_stop(
        self, building: "Building", floor_number: int, current_time: float, metrics: "MetricsTracker"
    ) -> None:
        floor = building.get_floor(floor_number)
        if floor is None:
            return

        # Alight
        remaining_passengers: List[Passenger] = []
        for passenger in self.passengers:
            if passenger.destination == floor_number:
                passenger.record_alighting(current_time)
                metrics.record_transported(passenger)
            else:
                remaining_passengers.append(passenger)
        self.passengers = remaining_passengers

        # Board
        floor.elevator_available(self)
        boarded, overloaded = floor.board_passengers(self)
        for passenger in boarded:
            passenger.record_boarding(current_time)
            metrics.record_boarding(passenger)
        for _ in overloaded:
            metrics.record_overload()
        for passenger in boarded:
            self.press_floor_button(passenger.destination)

    def _reconcile_queue(self) -> None:
        if not self.destination_queue:
            return
        if self.destination_queue[0] == self._target and not self._halt_requested:
            return
        warnings.warn(
            f"elevator {self.elevator_id}: destination_queue changed without check_destination_queue()",
            QueueDesyncWarning,
            stacklevel=2,
        )
        logger.warning("queue_desync", elevator=self.elevator_id, queue=list(self.destination_queue))
        self.check_destination_queue()

    def _sanitize_queue(self) -> None:
        cleaned: List[int] = []
        for entry in self.destination_queue:
            floor = self._accept_floor(entry)
            if floor is not None:
                cleaned.append(floor)
        if cleaned != self.destination_queue:
            self.destination_queue[:] = cleaned

    def _accept_floor(self, value: object) -> Optional[int]:
        try:
            return self.validate_floor(value)
        except InvalidFloorError as exc:
            if exc.nearest is None:
                logger.warning("floor_ignored", elevator=self.elevator_id, value=repr(value))
                return None
            logger.warning("floor_clamped", elevator=self.elevator_id, value=value, floor=exc.nearest)
            return exc.nearest

    def validate_floor(self, value: object) -> int:
        if isinstance(value, bool) or not isinstance(value, numbers.Real) or math.isnan(value):
            raise InvalidFloorError(value, self.floor_count)
        top = self.floor_count - 1
        if math.isinf(value):
            raise InvalidFloorError(value, self.floor_count, nearest=top if value > 0 else 0)
        floor = round_floor(float(value))
        if not 0 <= floor <= top:
            raise InvalidFloorError(value, self.floor_count, nearest=min(max(floor, 0), top))
        return floor
