from __future__ import annotations

from typing import Callable, List, Optional, Sequence

import pytest

from simulation import Building, ElevatorConstraints, Simulation

# Quarter-second ticks at one floor per second keep positions exact in binary floating point.
DT = 0.25


class RecordingProgram:
    """Control program that records every event and otherwise stays passive."""

    def __init__(self, setup: Optional[Callable[["RecordingProgram", Sequence, Sequence], None]] = None) -> None:
        self.setup = setup
        self.log: List[tuple] = []
        self.init_calls = 0
        self.update_dts: List[float] = []

    def init(self, elevators, floors) -> None:
        self.init_calls += 1
        for elevator in elevators:
            eid = elevator.elevator_id
            elevator.on("idle", lambda eid=eid: self.log.append(("idle", eid)))
            elevator.on("floor_button_pressed", lambda f, eid=eid: self.log.append(("floor_button_pressed", eid, f)))
            elevator.on("passing_floor", lambda f, d, eid=eid: self.log.append(("passing_floor", eid, f, d)))
            elevator.on("stopped_at_floor", lambda f, eid=eid: self.log.append(("stopped_at_floor", eid, f)))
        for floor in floors:
            number = floor.floor_num()
            floor.on("up_button_pressed", lambda n=number: self.log.append(("up_button_pressed", n)))
            floor.on("down_button_pressed", lambda n=number: self.log.append(("down_button_pressed", n)))
        if self.setup is not None:
            self.setup(self, elevators, floors)

    def update(self, dt, elevators, floors) -> None:
        self.update_dts.append(dt)

    def events(self, name: str) -> List[tuple]:
        return [entry for entry in self.log if entry[0] == name]


def make_simulation(
    num_floors: int = 6,
    elevator_count: int = 1,
    capacity: int = 4,
    program=None,
    door_dwell_seconds: float = 1.0,
    **kwargs,
) -> Simulation:
    constraints = ElevatorConstraints(
        capacity=capacity,
        speed_floors_per_sec=1.0,
        door_dwell_seconds=door_dwell_seconds,
        passing_floor_lookahead=0.25,
    )
    building = Building.create(num_floors=num_floors, elevator_count=elevator_count, constraints=constraints)
    return Simulation(building=building, program=program, **kwargs)


def run_steps(simulation: Simulation, count: int, dt: float = DT) -> None:
    for _ in range(count):
        simulation.step(dt)


@pytest.fixture
def recorder() -> RecordingProgram:
    return RecordingProgram()


@pytest.fixture
def sim(recorder: RecordingProgram) -> Simulation:
    simulation = make_simulation(program=recorder)
    simulation.start()
    return simulation


@pytest.fixture
def elevator(sim: Simulation):
    return sim.building.elevators[0]
