from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ElevatorConstraints:
    """Physical constraints applied to every elevator in a building."""

    capacity: int = 4
    speed_floors_per_sec: float = 2.6
    door_dwell_seconds: float = 1.0
    # Distance (in floors) before a floor at which passing_floor fires.
    passing_floor_lookahead: float = 0.25
    weight_per_slot: float = 100.0

    def __post_init__(self) -> None:
        if self.capacity <= 0:
            raise ValueError("capacity must be positive")
        if self.speed_floors_per_sec <= 0:
            raise ValueError("speed_floors_per_sec must be positive")
        if not 0 <= self.passing_floor_lookahead < 1:
            raise ValueError("passing_floor_lookahead must be in [0, 1)")
