from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, Optional

# Ensure project root is on path when running this script directly
_script_dir = Path(__file__).resolve().parent
_project_root = _script_dir.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from map_sim.config import SimConfig, load_sim_config
from map_sim.noise import NoiseModel
from map_sim.pose import Twist
from map_sim.simulation import Simulation
from telemetry.logger import TelemetryLogger


def build_simulation(cfg: SimConfig, telemetry: Optional[TelemetryLogger] = None) -> Simulation:
    sim = Simulation(
        grid=cfg.grid,
        noise=NoiseModel.from_seed(cfg.seed),
        bounded=cfg.bounded,
        telemetry=telemetry,
    )
    for robot_cfg in cfg.robots:
        sim.add_robot(robot_cfg.name, robot_cfg.spec, robot_cfg.pose, robot_cfg.policy)
    return sim


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless multi-robot grid simulation.")
    parser.add_argument(
        "--config",
        type=str,
        default="configs/sim.yaml",
        help="Path to sim YAML config.",
    )
    parser.add_argument("--steps", type=int, default=None, help="Override sim.steps.")
    parser.add_argument("--seed", type=int, default=None, help="Override the noise seed.")
    parser.add_argument(
        "--telemetry",
        type=str,
        default=None,
        help="JSONL output path (overrides telemetry.path).",
    )
    parser.add_argument("--no-scans", action="store_true", help="Omit scans from telemetry.")
    args = parser.parse_args()

    cfg = load_sim_config(args.config)
    if args.steps is not None:
        cfg.steps = args.steps
    if args.seed is not None:
        cfg.seed = args.seed
    telemetry_path = args.telemetry or cfg.telemetry_path

    telemetry = None
    if telemetry_path:
        telemetry = TelemetryLogger(telemetry_path, include_scans=not args.no_scans)

    sim = build_simulation(cfg, telemetry)
    commands: Dict[str, Twist] = {r.name: r.command for r in cfg.robots}
    collisions = {r.name: 0 for r in cfg.robots}

    print(f"Grid {cfg.grid}, {len(sim.robots)} robots, {cfg.steps} steps of {cfg.dt}s")
    try:
        for _ in range(cfg.steps):
            results = sim.tick(commands, cfg.dt)
            for name, result in results.items():
                if result.collided:
                    collisions[name] += 1
    finally:
        if telemetry is not None:
            telemetry.close()

    for robot in sim.robots:
        p = robot.pose
        line = f"{robot.name}: x={p.x:.3f} y={p.y:.3f} theta={p.theta:.3f} collisions={collisions[robot.name]}"
        if robot.last_scan is not None:
            ranges = robot.last_scan.ranges
            line += f" min_range={ranges.min():.3f}"
        print(line)
    if telemetry_path:
        print(f"Telemetry written to {telemetry_path}")


if __name__ == "__main__":
    main()
