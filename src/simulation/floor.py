from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Deque, Dict, List, Tuple

import structlog

from .events import DOWN_BUTTON_PRESSED, UP_BUTTON_PRESSED, Direction, EventEmitter, Listener
from .passenger import BoardingOutcome, Passenger

if TYPE_CHECKING:  # pragma: no cover - import cycle safe typing
    from .elevator import Elevator

logger = structlog.get_logger(__name__)


@dataclass(eq=False)
class Floor(EventEmitter):
    """A floor with up/down call buttons and directional waiting queues."""

    EVENTS: ClassVar[Tuple[str, ...]] = (UP_BUTTON_PRESSED, DOWN_BUTTON_PRESSED)

    number: int
    up_queue: Deque[Passenger] = field(default_factory=deque)
    down_queue: Deque[Passenger] = field(default_factory=deque)
    up_button_active: bool = False
    down_button_active: bool = False
    _listeners: Dict[str, List[Listener]] = field(default_factory=dict, init=False, repr=False)

    def floor_num(self) -> int:
        return self.number

    def add_passenger(self, passenger: Passenger) -> None:
        if passenger.direction is Direction.UP:
            self.up_queue.append(passenger)
        else:
            self.down_queue.append(passenger)
        self.press_button(passenger.direction)

    def press_button(self, direction: Direction) -> None:
        """Activate a call button; the event fires only when it lights up."""
        direction = Direction(direction)
        if direction is Direction.UP:
            if self.up_button_active:
                return
            self.up_button_active = True
            logger.debug("hall_call", floor=self.number, direction="up")
            self.emit(UP_BUTTON_PRESSED)
        elif direction is Direction.DOWN:
            if self.down_button_active:
                return
            self.down_button_active = True
            logger.debug("hall_call", floor=self.number, direction="down")
            self.emit(DOWN_BUTTON_PRESSED)

    def elevator_available(self, elevator: "Elevator") -> None:
        if elevator.going_up_indicator():
            self.up_button_active = False
        if elevator.going_down_indicator():
            self.down_button_active = False

    def waiting(self) -> List[Passenger]:
        """Waiting passengers of both directions in arrival order."""
        return sorted([*self.up_queue, *self.down_queue], key=lambda p: p.passenger_id)

    def board_passengers(self, elevator: "Elevator") -> Tuple[List[Passenger], List[Passenger]]:
        """Offer the elevator to everyone waiting.

        Returns ``(boarded, overloaded)``. Passengers that could not board
        stay queued and press their call button again.
        """
        boarded: List[Passenger] = []
        overloaded: List[Passenger] = []
        for passenger in self.waiting():
            outcome = elevator.try_board(passenger)
            if outcome is BoardingOutcome.BOARDED:
                queue = self.up_queue if passenger.direction is Direction.UP else self.down_queue
                queue.remove(passenger)
                boarded.append(passenger)
                continue
            if outcome is BoardingOutcome.OVERLOAD:
                overloaded.append(passenger)
            self.press_button(passenger.direction)
        return boarded, overloaded

    def __len__(self) -> int:  # pragma: no cover - convenience
        return len(self.up_queue) + len(self.down_queue)
