from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Sequence

if TYPE_CHECKING:  # pragma: no cover - typing only
    from simulation import Elevator, Floor


class ControlProgram(Protocol):
    """Dispatch strategy driving the simulation through elevator and floor objects."""

    def init(self, elevators: Sequence["Elevator"], floors: Sequence["Floor"]) -> None:
        """
        Called once before the first tick.

        Programs register their event listeners here.
        """
        ...

    def update(self, dt: float, elevators: Sequence["Elevator"], floors: Sequence["Floor"]) -> None:
        """Called after every tick with the simulated seconds that passed."""
        ...
