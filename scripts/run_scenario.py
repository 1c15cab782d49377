"""CLI for running offline liftsaga scenarios defined in JSON configs."""
from __future__ import annotations

import argparse
import json
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Optional

from simulation.log_config import configure_logging
from simulation.scenario import build_simulation, run_simulation


def save_results(output_path: Optional[Path], data: Dict) -> None:
    if not output_path:
        return
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(data, indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("config", type=Path, help="Path to a JSON scenario configuration file")
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional file path to write metrics snapshots as JSON",
    )
    parser.add_argument("--log-level", default="WARNING", help="Log level for engine events")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")
    args = parser.parse_args()

    configure_logging(args.log_level, json_output=args.json_logs)
    config = json.loads(args.config.read_text())
    simulation = build_simulation(config)
    snapshots = run_simulation(simulation, config)

    final_metrics = asdict(simulation.metrics_snapshot())
    results = {
        "scenario": config.get("name", args.config.stem),
        "description": config.get("description"),
        "duration": simulation.current_time,
        "program": config.get("program", {}).get("name", "collective"),
        "challenge_succeeded": simulation.outcome,
        "final_metrics": final_metrics,
        "metrics_over_time": snapshots,
    }

    save_results(args.output, results)

    print(f"Scenario: {results['scenario']}")
    if results["description"]:
        print(results["description"])
    print(f"Program: {results['program']}")
    print(f"Simulated: {results['duration']:.1f} s")
    if simulation.challenge is not None:
        verdict = {True: "passed", False: "failed", None: "undecided"}[simulation.outcome]
        print(f"Challenge: {verdict}")
    print("Final metrics:")
    for key, value in final_metrics.items():
        print(f"  {key}: {value}")
    if args.output:
        print(f"Saved metrics to {args.output}")


if __name__ == "__main__":
    main()
