from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConfigurationError
from .footprint import Footprint
from .grid import OccupancyGrid
from .noise import NoiseModel
from .pose import Pose2D, Twist
from .robot import CollisionPolicy, Robot, RobotSpec
from .sensors import ScanSample


@dataclass
class TickResult:
    pose: Pose2D
    collided: bool
    scan: Optional[ScanSample]


class Simulation:
    """Steps every robot on a shared grid, one tick at a time.

    Within a tick all robots move first, in the order they were added, and
    only then does any robot scan, so every scan sees the poses committed in
    this tick. Noise is drawn from one generator in that same fixed order.

    Parameters
    ----------
    grid : OccupancyGrid
        Shared static map.
    noise : NoiseModel
        Seeded sampler shared by all robots.
    bounded : bool
        Treat leaving the grid as a collision.
    telemetry : TelemetryLogger, optional
        Receives one record per robot per tick.
    """

    def __init__(
        self,
        grid: OccupancyGrid,
        noise: Optional[NoiseModel] = None,
        bounded: bool = False,
        telemetry: Optional[Any] = None,
    ) -> None:
        self.grid = grid
        self.noise = noise if noise is not None else NoiseModel()
        self.bounded = bounded
        self.telemetry = telemetry
        self.robots: List[Robot] = []
        self.tick_count = 0
        self.time = 0.0

    def add_robot(
        self,
        name: str,
        spec: RobotSpec,
        pose: Pose2D = Pose2D(),
        policy: CollisionPolicy = CollisionPolicy.REJECT,
    ) -> Robot:
        robot = Robot(
            name=name,
            spec=spec,
            noise=self.noise,
            pose=pose,
            robot_id=len(self.robots),
            policy=policy,
            bounded=self.bounded,
        )
        if any(robot.is_twin(other) for other in self.robots):
            raise ConfigurationError(f"a robot named {name!r} already exists")
        self.robots.append(robot)
        return robot

    def robot(self, name: str) -> Robot:
        for robot in self.robots:
            if robot.name == name:
                return robot
        raise KeyError(name)

    def footprints(self, exclude: Optional[Robot] = None) -> List[Footprint]:
        """Current footprints of every robot except ``exclude``."""
        return [r.current_footprint() for r in self.robots if r is not exclude]

    def tick(self, commands: Mapping[str, Twist], dt: float) -> Dict[str, TickResult]:
        """Advance all robots by ``dt``; robots without a command get a zero twist."""
        # Footprints committed so far; refreshed as each robot moves.
        committed = [r.current_footprint() for r in self.robots]
        for i, robot in enumerate(self.robots):
            others = committed[:i] + committed[i + 1 :]
            robot.step(commands.get(robot.name, Twist()), dt, self.grid, others)
            committed[i] = robot.current_footprint()

        results: Dict[str, TickResult] = {}
        for i, robot in enumerate(self.robots):
            others = committed[:i] + committed[i + 1 :]
            scan = robot.sense(self.grid, others)
            results[robot.name] = TickResult(pose=robot.pose, collided=robot.collided, scan=scan)

        self.tick_count += 1
        self.time += max(dt, 0.0)
        if self.telemetry is not None:
            for robot in self.robots:
                self.telemetry.log_robot(self.tick_count, self.time, robot)
        return results
