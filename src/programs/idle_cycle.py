from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from simulation.events import IDLE

if TYPE_CHECKING:  # pragma: no cover - typing only
    from simulation import Elevator, Floor


class IdleCycleProgram:
    """Sends every idle elevator on a full sweep of the building and back.

    No listeners other than ``idle`` are used, so every passenger is
    eventually served without any dispatch logic.
    """

    def init(self, elevators: Sequence["Elevator"], floors: Sequence["Floor"]) -> None:
        top = len(floors) - 1
        for elevator in elevators:
            elevator.on(IDLE, self._sweep(elevator, top))

    def update(self, dt: float, elevators: Sequence["Elevator"], floors: Sequence["Floor"]) -> None:
        return None

    @staticmethod
    def _sweep(elevator: "Elevator", top: int):
        def on_idle() -> None:
            for floor in range(top + 1):
                elevator.go_to_floor(floor)
            for floor in range(top - 1, -1, -1):
                elevator.go_to_floor(floor)

        return on_idle
