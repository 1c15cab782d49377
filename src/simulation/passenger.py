from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .events import Direction


class BoardingOutcome(Enum):
    BOARDED = "boarded"
    OVERLOAD = "overload"
    WRONG_DIRECTION = "wrong_direction"


@dataclass
class Passenger:
    """Represents a rider moving between floors."""

    passenger_id: int
    origin: int
    destination: int
    spawn_time: float
    weight: float = 70.0
    board_time: Optional[float] = None
    alight_time: Optional[float] = None

    @property
    def direction(self) -> Direction:
        return Direction.UP if self.destination > self.origin else Direction.DOWN

    def record_boarding(self, time: float) -> None:
        self.board_time = time

    def record_alighting(self, time: float) -> None:
        self.alight_time = time

    @property
    def wait_time(self) -> Optional[float]:
        if self.board_time is None:
            return None
        return self.board_time - self.spawn_time

    @property
    def ride_time(self) -> Optional[float]:
        if self.board_time is None or self.alight_time is None:
            return None
        return self.alight_time - self.board_time

    @property
    def travel_time(self) -> Optional[float]:
        """Seconds from appearing on the origin floor to leaving the car."""
        if self.alight_time is None:
            return None
        return self.alight_time - self.spawn_time


class PassengerFactory:
    """Creates randomly placed passengers with lobby-heavy traffic."""

    MIN_WEIGHT = 55
    MAX_WEIGHT = 100

    def __init__(self, floor_count: int, rng: random.Random) -> None:
        self.floor_count = floor_count
        self.random = rng
        self._next_id = 0

    def next_id(self) -> int:
        passenger_id = self._next_id
        self._next_id += 1
        return passenger_id

    def random_weight(self) -> float:
        return float(self.random.randint(self.MIN_WEIGHT, self.MAX_WEIGHT))

    def create(
        self, origin: int, destination: int, spawn_time: float, weight: Optional[float] = None
    ) -> Passenger:
        if origin == destination:
            raise ValueError("origin and destination must differ")
        return Passenger(
            passenger_id=self.next_id(),
            origin=origin,
            destination=destination,
            spawn_time=spawn_time,
            weight=self.random_weight() if weight is None else weight,
        )

    def create_random(self, spawn_time: float) -> Passenger:
        if self.floor_count < 2:
            raise ValueError("at least two floors are needed to spawn passengers")
        top = self.floor_count - 1
        origin = 0 if self.random.randint(0, 1) == 0 else self.random.randint(0, top)
        if origin == 0:
            destination = self.random.randint(1, top)
        elif self.random.randint(0, 10) == 0:
            # Occasional floor-to-floor trip instead of heading to the lobby.
            destination = (origin + self.random.randint(1, top)) % self.floor_count
        else:
            destination = 0
        return self.create(origin, destination, spawn_time)
