from __future__ import annotations

import random

import pytest

from conftest import RecordingProgram, make_simulation, run_steps
from simulation import BoardingOutcome, Direction, Elevator, Floor, Passenger, PassengerFactory


def make_passenger(passenger_id: int, origin: int, destination: int, weight: float = 70.0) -> Passenger:
    return Passenger(passenger_id=passenger_id, origin=origin, destination=destination, spawn_time=0.0, weight=weight)


def test_floor_button_fires_once_per_press():
    floor = Floor(2)
    presses = []
    floor.on("up_button_pressed", lambda: presses.append("up"))
    floor.on("down_button_pressed", lambda: presses.append("down"))

    floor.add_passenger(make_passenger(0, 2, 4))
    floor.add_passenger(make_passenger(1, 2, 5))
    floor.add_passenger(make_passenger(2, 2, 0))

    assert floor.floor_num() == 2
    assert presses == ["up", "down"]
    assert floor.up_button_active and floor.down_button_active


def test_floor_waiting_is_in_arrival_order():
    floor = Floor(1)
    first, second, third = make_passenger(0, 1, 3), make_passenger(1, 1, 0), make_passenger(2, 1, 2)
    for passenger in (first, second, third):
        floor.add_passenger(passenger)
    assert floor.waiting() == [first, second, third]


def test_two_floor_trip_event_sequence():
    def setup(program, elevators, floors):
        car = elevators[0]
        floors[0].on("up_button_pressed", lambda: car.go_to_floor(0))
        car.on("floor_button_pressed", lambda floor: car.go_to_floor(floor))

    recorder = RecordingProgram(setup)
    sim = make_simulation(num_floors=2, capacity=1, program=recorder)
    sim.start()
    passenger = sim.spawn_passenger(0, 1, weight=80)
    run_steps(sim, 20)

    assert recorder.log == [
        ("idle", 0),
        ("up_button_pressed", 0),
        ("stopped_at_floor", 0, 0),
        ("floor_button_pressed", 0, 1),
        ("stopped_at_floor", 0, 1),
        ("idle", 0),
    ]
    assert passenger.alight_time is not None
    assert sim.metrics.transported == 1
    assert sim.building.elevators[0].load_factor() == 0.0


def test_full_car_refuses_boarding_and_passenger_presses_again():
    recorder = RecordingProgram()
    sim = make_simulation(num_floors=3, capacity=1, program=recorder)
    sim.start()
    first = sim.spawn_passenger(0, 2, weight=80)
    second = sim.spawn_passenger(0, 1, weight=60)
    car = sim.building.elevators[0]

    car.go_to_floor(0)
    run_steps(sim, 1)

    assert car.passengers == [first]
    assert car.load_factor() == pytest.approx(0.8)
    assert sim.building.floors[0].waiting() == [second]
    assert recorder.events("up_button_pressed") == [("up_button_pressed", 0), ("up_button_pressed", 0)]
    assert sim.metrics.overload_rejections == 1


def test_weight_limit_refuses_boarding():
    car = Elevator(0, max_passengers=2, floor_count=4)
    assert car.try_board(make_passenger(0, 0, 3, weight=120)) is BoardingOutcome.BOARDED
    assert car.try_board(make_passenger(1, 0, 2, weight=90)) is BoardingOutcome.OVERLOAD
    assert car.load_factor() == pytest.approx(0.6)


def test_indicator_off_keeps_passenger_waiting():
    recorder = RecordingProgram()
    sim = make_simulation(num_floors=3, program=recorder)
    sim.start()
    car = sim.building.elevators[0]
    car.set_going_up_indicator(False)
    rider = sim.spawn_passenger(0, 2)

    car.go_to_floor(0)
    run_steps(sim, 1)

    floor = sim.building.floors[0]
    assert car.passengers == []
    assert floor.waiting() == [rider]
    assert floor.up_button_active
    assert recorder.events("up_button_pressed") == [("up_button_pressed", 0)]
    assert car.try_board(rider) is BoardingOutcome.WRONG_DIRECTION


def test_stop_clears_only_lit_directions():
    floor = Floor(1)
    floor.add_passenger(make_passenger(0, 1, 3))
    floor.add_passenger(make_passenger(1, 1, 0))
    car = Elevator(0, max_passengers=4, floor_count=4)
    car.set_going_down_indicator(False)

    floor.elevator_available(car)

    assert not floor.up_button_active
    assert floor.down_button_active


def test_alighting_happens_before_boarding():
    recorder = RecordingProgram()
    sim = make_simulation(num_floors=3, capacity=1, program=recorder)
    sim.start()
    car = sim.building.elevators[0]
    rider = sim.spawn_passenger(0, 1)
    car.go_to_floor(0)
    run_steps(sim, 1)
    waiting = sim.spawn_passenger(1, 2)

    car.go_to_floor(1)
    run_steps(sim, 12)

    assert rider.alight_time is not None
    assert car.passengers == [waiting]
    assert car.get_pressed_floors() == [2]


def test_load_factor_stays_in_bounds_under_heavy_traffic():
    from programs import CollectiveProgram

    sim = make_simulation(num_floors=5, elevator_count=2, capacity=2, program=CollectiveProgram(), spawn_rate=3.0,
                          random_seed=11)
    for _ in range(400):
        sim.step(0.25)
        for car in sim.building.elevators:
            assert 0.0 <= car.load_factor() <= 1.0
            assert len(car.passengers) <= car.max_passenger_count()
    assert sim.metrics.overload_rejections > 0


def test_passenger_factory_follows_lobby_heavy_pattern():
    factory = PassengerFactory(6, random.Random(3))
    passengers = [factory.create_random(0.0) for _ in range(200)]

    assert [p.passenger_id for p in passengers] == list(range(200))
    for p in passengers:
        assert p.origin != p.destination
        assert 0 <= p.destination < 6
        assert PassengerFactory.MIN_WEIGHT <= p.weight <= PassengerFactory.MAX_WEIGHT
        if p.origin == 0:
            assert p.direction is Direction.UP
    assert sum(1 for p in passengers if p.destination == 0) > 50


def test_passenger_times():
    passenger = Passenger(passenger_id=0, origin=0, destination=3, spawn_time=2.0)
    assert passenger.wait_time is None
    passenger.record_boarding(5.0)
    passenger.record_alighting(9.0)
    assert passenger.wait_time == 3.0
    assert passenger.ride_time == 4.0
    assert passenger.travel_time == 7.0
