"""Build and run simulations from JSON-style scenario dictionaries."""
from __future__ import annotations

from dataclasses import asdict
from typing import Dict, List

from programs import get_program

from .building import Building
from .config import ElevatorConstraints
from .simulation import ChallengeGoal, Simulation


def build_simulation(config: Dict) -> Simulation:
    building_cfg = config.get("building", {})
    num_floors = building_cfg.get("num_floors", 4)
    elevator_count = building_cfg.get("elevator_count", 1)
    constraints_cfg = building_cfg.get("constraints", {})
    constraints = ElevatorConstraints(**constraints_cfg)

    building = Building.create(
        num_floors=num_floors,
        elevator_count=elevator_count,
        constraints=constraints,
        capacities=building_cfg.get("capacities"),
    )

    program_cfg = config.get("program", {})
    program = get_program(program_cfg.get("name", "collective"), **program_cfg.get("options", {}))

    challenge_cfg = config.get("challenge")
    challenge = None
    if challenge_cfg:
        challenge = ChallengeGoal(
            user_count=challenge_cfg["user_count"],
            time_limit=challenge_cfg["time_limit"],
            max_wait_time=challenge_cfg.get("max_wait_time"),
        )

    return Simulation(
        building=building,
        program=program,
        spawn_rate=config.get("spawn_rate", 0.5),
        random_seed=config.get("random_seed"),
        max_substep=config.get("max_substep"),
        challenge=challenge,
        metrics_hook_interval=config.get("metrics_hook_interval", 60),
    )


def run_simulation(simulation: Simulation, config: Dict) -> List[Dict]:
    """Run for the configured duration and collect periodic metrics."""
    duration = config.get("duration", 120.0)
    dt = config.get("dt", 1.0 / 60)
    snapshots: List[Dict] = []
    simulation.on_event("metrics", lambda payload: snapshots.append(asdict(payload["metrics"])))

    simulation.run(duration, dt)
    return snapshots
