from __future__ import annotations

import pytest

from conftest import make_simulation, run_steps
from programs import CollectiveProgram, IdleCycleProgram, get_program
from programs.utils import closest_elevator, estimate_travel_time, order_stops
from simulation import Direction


def test_get_program_known_and_unknown():
    assert isinstance(get_program("collective"), CollectiveProgram)
    assert isinstance(get_program("IDLE_CYCLE"), IdleCycleProgram)
    with pytest.raises(ValueError):
        get_program("telepathy")
    with pytest.raises(ValueError):
        get_program("idle_cycle", speed=3)


def test_order_stops_follows_travel_direction():
    assert order_stops([1, 6, 3, 4], 2.5, Direction.UP) == [3, 4, 6, 1]
    assert order_stops([1, 6, 3, 4], 4.0, Direction.DOWN) == [4, 3, 1, 6]
    assert order_stops([2, 2, 5], 0.0, Direction.STOPPED) == [2, 5]


def test_closest_elevator_prefers_short_queues():
    sim = make_simulation(num_floors=8, elevator_count=2)
    near, far = sim.building.elevators
    far.position = 4.0
    near.destination_queue.extend([7, 1, 6])

    assert estimate_travel_time(near, 3) == pytest.approx(3.0 + 3 * near.door_dwell_seconds)
    assert closest_elevator([near, far], 3) is far
    assert closest_elevator([], 3) is None


def test_idle_cycle_sweeps_every_floor():
    sim = make_simulation(num_floors=4, program=IdleCycleProgram())
    car = sim.building.elevators[0]
    stops = []
    sim.start()
    car.on("stopped_at_floor", stops.append)
    run_steps(sim, 80)
    assert stops[:7] == [0, 1, 2, 3, 2, 1, 0]


def test_idle_cycle_delivers_passengers():
    sim = make_simulation(num_floors=5, elevator_count=1, program=IdleCycleProgram(), spawn_rate=0.2, random_seed=4)
    run_steps(sim, 480)
    assert sim.metrics.transported > 0


def test_collective_answers_hall_call_and_delivers():
    program = CollectiveProgram()
    sim = make_simulation(num_floors=6, elevator_count=2, program=program)
    sim.start()
    rider = sim.spawn_passenger(4, 1)

    run_steps(sim, 60)

    assert rider.alight_time is not None
    assert program.pending_calls() == set()
    # Both cars park back at the lobby afterwards.
    assert [car.position for car in sim.building.elevators] == [0.0, 0.0]


def test_collective_picks_up_passing_hall_calls():
    program = CollectiveProgram()
    sim = make_simulation(num_floors=8, program=program)
    sim.start()
    car = sim.building.elevators[0]
    first = sim.spawn_passenger(0, 6)
    run_steps(sim, 2)
    assert car.passengers == [first]

    second = sim.spawn_passenger(3, 5)
    stops = []
    car.on("stopped_at_floor", stops.append)
    run_steps(sim, 60)

    assert stops[:3] == [3, 5, 6]
    assert second.alight_time is not None and first.alight_time is not None


def test_collective_seeds_hall_calls_lit_before_init():
    program = CollectiveProgram()
    sim = make_simulation(num_floors=4, program=program)
    sim.spawn_passenger(2, 0)
    sim.start()
    assert 2 in program.hall_calls[Direction.DOWN]


def test_collective_busy_building_keeps_moving():
    sim = make_simulation(
        num_floors=6, elevator_count=2, capacity=4, program=CollectiveProgram(), spawn_rate=0.4, random_seed=21
    )
    run_steps(sim, 480)
    snapshot = sim.metrics_snapshot()
    in_building = len(sim.building.waiting_passengers()) + len(sim.building.riding_passengers())
    assert snapshot.transported > in_building
    assert snapshot.move_count > 0
