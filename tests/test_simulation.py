from __future__ import annotations

import json

import pytest

from map_sim.errors import ConfigurationError
from map_sim.footprint import CircleShape, SquareShape
from map_sim.grid import OccupancyGrid
from map_sim.noise import NoiseModel
from map_sim.pose import Pose2D, Twist
from map_sim.robot import RobotSpec
from map_sim.sensors import ScanConfig
from map_sim.simulation import Simulation
from telemetry.logger import TelemetryLogger


def _scanner_spec(max_range: float = 5.0) -> RobotSpec:
    return RobotSpec(
        shape=CircleShape(0.2),
        scan=ScanConfig(fov=0.0, angular_resolution=0.1, max_range=max_range),
    )


def test_scans_observe_poses_committed_this_tick() -> None:
    grid = OccupancyGrid.empty(60, 20, resolution=0.1)
    sim = Simulation(grid, NoiseModel.from_seed(0))
    watcher = sim.add_robot("watcher", _scanner_spec(), Pose2D(1.0, 1.0, 0.0))
    sim.add_robot("mover", RobotSpec(shape=CircleShape(0.2)), Pose2D(3.0, 1.0, 0.0))

    results = sim.tick({"mover": Twist(linear=1.0)}, 0.5)

    # Mover surface is at 3.3 after the tick; 1.8 would mean a stale snapshot,
    # 0.0 would mean the watcher saw its own footprint.
    scan = results["watcher"].scan
    assert scan is watcher.last_scan
    assert abs(scan[0].range - 2.3) <= 0.05 + 1e-9
    assert results["mover"].scan is None
    assert sim.tick_count == 1


def test_robots_block_each_other() -> None:
    grid = OccupancyGrid.empty(60, 20, resolution=0.1)
    sim = Simulation(grid, NoiseModel.from_seed(0))
    sim.add_robot("a", RobotSpec(shape=CircleShape(0.2)), Pose2D(1.0, 1.0, 0.0))
    sim.add_robot("b", RobotSpec(shape=SquareShape(0.4)), Pose2D(1.5, 1.0, 0.0))

    results = sim.tick({"a": Twist(linear=1.0)}, 0.2)

    assert results["a"].collided
    assert results["a"].pose == Pose2D(1.0, 1.0, 0.0)
    assert not results["b"].collided


def test_touching_robots_at_rest_are_not_collided() -> None:
    grid = OccupancyGrid.empty(20, 20, resolution=0.1)
    sim = Simulation(grid, NoiseModel.from_seed(0))
    sim.add_robot("a", RobotSpec(shape=CircleShape(0.1)), Pose2D(0.2, 0.5, 0.0))
    sim.add_robot("b", RobotSpec(shape=CircleShape(0.2)), Pose2D(0.5, 0.5, 0.0))

    results = sim.tick({}, 0.1)

    assert not results["a"].collided
    assert not results["b"].collided

    results = sim.tick({"a": Twist(linear=-1.0)}, 0.1)
    assert not results["a"].collided
    assert results["a"].pose.x < 0.2


def test_later_robot_sees_earlier_robot_moved_position() -> None:
    grid = OccupancyGrid.empty(60, 20, resolution=0.1)
    sim = Simulation(grid, NoiseModel.from_seed(0))
    sim.add_robot("a", RobotSpec(shape=CircleShape(0.2)), Pose2D(1.0, 1.0, 0.0))
    sim.add_robot("b", RobotSpec(shape=CircleShape(0.2)), Pose2D(2.0, 1.0, 0.0))

    # a moves into the gap first, b then cannot take the same spot.
    results = sim.tick({"a": Twist(linear=1.0), "b": Twist(linear=-1.0)}, 0.4)

    assert not results["a"].collided
    assert results["b"].collided
    assert results["b"].pose == Pose2D(2.0, 1.0, 0.0)


def test_same_seed_same_trajectories() -> None:
    grid = OccupancyGrid.empty(100, 100, resolution=0.1)
    spec = RobotSpec(shape=CircleShape(0.2), linear_noise=0.05, angular_noise=0.05)

    def run(seed: int):
        sim = Simulation(grid, NoiseModel.from_seed(seed))
        sim.add_robot("a", spec, Pose2D(3.0, 3.0, 0.0))
        sim.add_robot("b", spec, Pose2D(7.0, 7.0, 3.0))
        commands = {"a": Twist(0.3, 0.1), "b": Twist(0.2, -0.1)}
        for _ in range(30):
            sim.tick(commands, 0.1)
        return [r.pose for r in sim.robots]

    assert run(11) == run(11)
    assert run(11) != run(12)


def test_duplicate_robot_name_rejected() -> None:
    sim = Simulation(OccupancyGrid.empty(10, 10, resolution=0.1))
    sim.add_robot("a", RobotSpec(shape=CircleShape(0.1)))
    with pytest.raises(ConfigurationError):
        sim.add_robot("a", RobotSpec(shape=CircleShape(0.1)))
    assert sim.robot("a").robot_id == 0
    with pytest.raises(KeyError):
        sim.robot("missing")


def test_footprints_exclude() -> None:
    sim = Simulation(OccupancyGrid.empty(10, 10, resolution=0.1))
    a = sim.add_robot("a", RobotSpec(shape=CircleShape(0.1)), Pose2D(0.2, 0.2))
    sim.add_robot("b", RobotSpec(shape=CircleShape(0.1)), Pose2D(0.6, 0.6))

    assert len(sim.footprints()) == 2
    assert sim.footprints(exclude=a) == [sim.robot("b").current_footprint()]


def test_tick_writes_telemetry(tmp_path) -> None:
    path = tmp_path / "run" / "telemetry.jsonl"
    grid = OccupancyGrid.empty(40, 40, resolution=0.1)
    with TelemetryLogger(str(path)) as telemetry:
        sim = Simulation(grid, NoiseModel.from_seed(0), telemetry=telemetry)
        sim.add_robot("scout", _scanner_spec(1.0), Pose2D(2.0, 2.0, 0.0))
        sim.add_robot("beacon", RobotSpec(shape=CircleShape(0.1)), Pose2D(1.0, 1.0, 0.0))
        for _ in range(3):
            sim.tick({"scout": Twist(linear=0.1)}, 0.1)

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 6
    records = [json.loads(line) for line in lines]
    assert [r["tick"] for r in records] == [1, 1, 2, 2, 3, 3]
    scout = records[-2]
    assert scout["robot"] == "scout"
    assert scout["id"] == 0
    assert scout["twist"] == {"linear": 0.1, "angular": 0.0}
    assert scout["scan"]["ranges"] == [1.0]
    assert "scan" not in records[-1]
    assert records[-1]["collided"] is False
