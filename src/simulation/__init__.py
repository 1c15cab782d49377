"""Simulation primitives for liftsaga."""

from .building import Building
from .config import ElevatorConstraints
from .elevator import Elevator, ElevatorState
from .errors import ControlProgramError, InvalidFloorError, QueueDesyncWarning
from .events import Direction, EventEmitter
from .floor import Floor
from .passenger import BoardingOutcome, Passenger, PassengerFactory
from .simulation import ChallengeGoal, MetricsSnapshot, MetricsTracker, Simulation

__all__ = [
    "BoardingOutcome",
    "Building",
    "ChallengeGoal",
    "ControlProgramError",
    "Direction",
    "Elevator",
    "ElevatorConstraints",
    "ElevatorState",
    "EventEmitter",
    "Floor",
    "InvalidFloorError",
    "MetricsSnapshot",
    "MetricsTracker",
    "Passenger",
    "PassengerFactory",
    "QueueDesyncWarning",
    "Simulation",
]
