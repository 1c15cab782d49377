from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

import structlog

from .building import Building
from .errors import ControlProgramError
from .passenger import Passenger, PassengerFactory

if TYPE_CHECKING:  # pragma: no cover - import cycle safe typing
    from programs import ControlProgram

logger = structlog.get_logger(__name__)


@dataclass
class ChallengeGoal:
    """Transport ``user_count`` passengers within ``time_limit`` seconds."""

    user_count: int
    time_limit: float
    max_wait_time: Optional[float] = None

    def evaluate(self, elapsed: float, transported: int, max_travel_time: float) -> Optional[bool]:
        """Return True on success, False on failure, None while undecided."""
        if self.max_wait_time is not None and max_travel_time > self.max_wait_time:
            return False
        if elapsed >= self.time_limit:
            return transported >= self.user_count
        if transported >= self.user_count:
            return True
        return None


@dataclass
class MetricsSnapshot:
    elapsed_time: float
    transported: int
    transported_per_sec: float
    average_travel: float
    max_travel: float
    average_wait: float
    wait_p95: float
    max_waiting_now: float
    move_count: int
    overload_rejections: int


class MetricsTracker:
    def __init__(self, on_transported: Optional[Callable[[Passenger], None]] = None) -> None:
        self.wait_times: List[float] = []
        self.travel_times: List[float] = []
        self.transported: int = 0
        self.overload_rejections: int = 0
        self.on_transported = on_transported

    def record_boarding(self, passenger: Passenger) -> None:
        if passenger.wait_time is not None:
            self.wait_times.append(passenger.wait_time)

    def record_transported(self, passenger: Passenger) -> None:
        if passenger.travel_time is not None:
            self.travel_times.append(passenger.travel_time)
        self.transported += 1
        if self.on_transported is not None:
            self.on_transported(passenger)

    def record_overload(self) -> None:
        self.overload_rejections += 1

    @property
    def max_travel(self) -> float:
        return max(self.travel_times, default=0.0)

    def _average(self, values: List[float]) -> float:
        if not values:
            return 0.0
        return sum(values) / len(values)

    def _percentile(self, values: List[float], percentile: float) -> float:
        if not values:
            return 0.0
        sorted_vals = sorted(values)
        k = (len(sorted_vals) - 1) * percentile
        f = math.floor(k)
        c = math.ceil(k)
        if f == c:
            return float(sorted_vals[int(k)])
        d0 = sorted_vals[int(f)] * (c - k)
        d1 = sorted_vals[int(c)] * (k - f)
        return float(d0 + d1)

    def snapshot(self, elapsed_time: float, building: Building) -> MetricsSnapshot:
        in_building = building.waiting_passengers() + building.riding_passengers()
        return MetricsSnapshot(
            elapsed_time=elapsed_time,
            transported=self.transported,
            transported_per_sec=self.transported / elapsed_time if elapsed_time > 0 else 0.0,
            average_travel=self._average(self.travel_times),
            max_travel=self.max_travel,
            average_wait=self._average(self.wait_times),
            wait_p95=self._percentile(self.wait_times, 0.95),
            max_waiting_now=max((elapsed_time - p.spawn_time for p in in_building), default=0.0),
            move_count=sum(e.move_count for e in building.elevators),
            overload_rejections=self.overload_rejections,
        )


class Simulation:
    """Tick-driven elevator world that hosts one control program."""

    def __init__(
        self,
        building: Building,
        program: Optional["ControlProgram"] = None,
        spawn_rate: float = 0.0,
        random_seed: Optional[int] = None,
        max_substep: Optional[float] = None,
        challenge: Optional[ChallengeGoal] = None,
        metrics_hook_interval: int = 1,
        strict_program: bool = False,
    ) -> None:
        self.building = building
        self.program = program
        self.spawn_rate = spawn_rate
        self.random = random.Random(random_seed)
        self.max_substep = max_substep
        self.challenge = challenge
        self.metrics_hook_interval = max(1, metrics_hook_interval)
        self.strict_program = strict_program
        self.current_time: float = 0.0
        self.tick_count: int = 0
        self.metrics = MetricsTracker(on_transported=self._on_transported)
        self.event_hooks: Dict[str, List[Callable[[object], None]]] = {}
        self.passengers = PassengerFactory(building.num_floors, self.random)
        self.started = False
        self.outcome: Optional[bool] = None
        # Seeded with a full interval so the first passenger appears on the first tick.
        self._elapsed_since_spawn = 1.0 / spawn_rate if spawn_rate > 0 else 0.0

    @property
    def ended(self) -> bool:
        return self.outcome is not None

    def start(self) -> None:
        if self.started:
            return
        self.started = True
        self._invoke_program("init", self.building.elevators, self.building.floors)
        # Initial queue check lets idle elevators announce themselves.
        for elevator in self.building.elevators:
            elevator.check_destination_queue()
        logger.info(
            "simulation_started",
            floors=self.building.num_floors,
            elevators=len(self.building.elevators),
            program=type(self.program).__name__ if self.program else None,
        )

    def run(self, duration: float, dt: float = 1.0 / 60) -> None:
        steps = int(round(duration / dt))
        for _ in range(steps):
            if self.ended:
                break
            self.step(dt)

    def step(self, dt: float) -> None:
        if dt <= 0:
            raise ValueError("dt must be positive")
        if not self.started:
            self.start()
        if self.ended:
            return

        remaining = dt
        while remaining > 1e-12:
            substep = remaining if self.max_substep is None else min(self.max_substep, remaining)
            self._update_world(substep)
            remaining -= substep

        self._invoke_program("update", dt, self.building.elevators, self.building.floors)

        if self.tick_count % self.metrics_hook_interval == 0:
            self._emit_metrics()
        self.tick_count += 1
        self._evaluate_challenge()

    def spawn_passenger(self, origin: int, destination: int, weight: Optional[float] = None) -> Passenger:
        for floor in (origin, destination):
            if self.building.get_floor(floor) is None:
                raise ValueError(f"Unknown floor {floor}")
        passenger = self.passengers.create(origin, destination, self.current_time, weight)
        self._register_passenger(passenger)
        return passenger

    def spawn_passenger_batch(self, origin: int, count: int, destination: Optional[int] = None) -> int:
        if self.building.get_floor(origin) is None:
            raise ValueError(f"Unknown floor {origin}")
        if destination is not None and self.building.get_floor(destination) is None:
            raise ValueError(f"Unknown floor {destination}")
        spawned = 0
        for _ in range(max(0, count)):
            target = destination
            if target is None:
                target = self.random.choice([f for f in range(self.building.num_floors) if f != origin])
            self.spawn_passenger(origin, target)
            spawned += 1
        if spawned:
            self._emit("arrival", {"time": self.current_time, "count": spawned})
        return spawned

    def on_event(self, event: str, callback: Callable[[object], None]) -> None:
        self.event_hooks.setdefault(event, []).append(callback)

    def metrics_snapshot(self) -> MetricsSnapshot:
        return self.metrics.snapshot(self.current_time, self.building)

    def _update_world(self, dt: float) -> None:
        self.current_time += dt
        self._generate_passenger_arrivals(dt)
        for elevator in self.building.elevators:
            elevator.step(self.building, dt, self.current_time, self.metrics)

    def _generate_passenger_arrivals(self, dt: float) -> None:
        if self.spawn_rate <= 0:
            return
        self._elapsed_since_spawn += dt
        interval = 1.0 / self.spawn_rate
        arrivals = 0
        while self._elapsed_since_spawn >= interval:
            self._elapsed_since_spawn -= interval
            self._register_passenger(self.passengers.create_random(self.current_time))
            arrivals += 1
        if arrivals:
            self._emit("arrival", {"time": self.current_time, "count": arrivals})

    def _register_passenger(self, passenger: Passenger) -> None:
        logger.debug(
            "passenger_spawned",
            passenger=passenger.passenger_id,
            origin=passenger.origin,
            destination=passenger.destination,
        )
        self.building.add_passenger(passenger)

    def _invoke_program(self, hook: str, *args: object) -> None:
        if self.program is None:
            return
        try:
            getattr(self.program, hook)(*args)
        except Exception as exc:
            if self.strict_program:
                raise ControlProgramError(hook) from exc
            logger.exception("program_failed", hook=hook, time=self.current_time)

    def _evaluate_challenge(self) -> None:
        if self.challenge is None or self.ended:
            return
        outcome = self.challenge.evaluate(self.current_time, self.metrics.transported, self.metrics.max_travel)
        if outcome is None:
            return
        self.outcome = outcome
        logger.info("challenge_ended", succeeded=outcome, time=self.current_time)
        self._emit("challenge_ended", {"succeeded": outcome, "time": self.current_time})

    def _on_transported(self, passenger: Passenger) -> None:
        logger.debug("passenger_transported", passenger=passenger.passenger_id, travel=passenger.travel_time)
        self._emit("transported", {"time": self.current_time, "passenger": passenger})

    def _emit_metrics(self) -> None:
        if not self.event_hooks.get("metrics"):
            return
        self._emit("metrics", {"metrics": self.metrics_snapshot(), "building": self.building.snapshot()})

    def _emit(self, event: str, payload: object) -> None:
        for callback in self.event_hooks.get(event, []):
            callback(payload)
