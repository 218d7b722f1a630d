from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional
import math

from .errors import ConfigurationError
from .footprint import Footprint, Shape, collides_with_grid, collides_with_robot
from .grid import OccupancyGrid
from .noise import NoiseModel
from .pose import Pose2D, Twist
from .sensors import RangeScanner, ScanConfig, ScanSample


@dataclass(frozen=True)
class RobotSpec:
    """Static description of one robot.

    Attributes
    ----------
    shape : CircleShape or SquareShape
        Footprint variant, carrying the radius.
    sensor_offset : Pose2D
        Range sensor mount relative to the robot base.
    linear_noise : float
        Standard deviation added to the commanded linear velocity (m/s).
    angular_noise : float
        Standard deviation added to the commanded angular velocity (rad/s).
    scan : ScanConfig, optional
        Range sensor parameters; None for a robot without a sensor.
    """

    shape: Shape
    sensor_offset: Pose2D = Pose2D()
    linear_noise: float = 0.0
    angular_noise: float = 0.0
    scan: Optional[ScanConfig] = None

    def __post_init__(self) -> None:
        self.validate()

    @property
    def radius(self) -> float:
        return self.shape.radius

    def validate(self) -> None:
        if not self.radius > 0.0:
            raise ConfigurationError(f"robot radius must be positive, got {self.radius}")
        if not self.linear_noise >= 0.0:
            raise ConfigurationError(f"linear noise must be non-negative, got {self.linear_noise}")
        if not self.angular_noise >= 0.0:
            raise ConfigurationError(f"angular noise must be non-negative, got {self.angular_noise}")
        if self.scan is not None:
            self.scan.validate()


class CollisionPolicy(Enum):
    """What a robot does with a candidate pose that collides."""

    REJECT = "reject"  # keep the previous pose
    FLAG = "flag"  # commit the pose, report the collision


@dataclass(frozen=True)
class StepResult:
    pose: Pose2D
    collided: bool


# ---------------------------------------------------------------------------
# Motion integration
# ---------------------------------------------------------------------------


def integrate(
    pose: Pose2D,
    twist: Twist,
    spec: RobotSpec,
    dt: float,
    noise: NoiseModel,
) -> Pose2D:
    """Advance ``pose`` by one Euler step of unicycle kinematics.

    Linear noise is drawn before angular noise. Translation uses the heading
    before the update. The result is never checked for collisions here.
    """
    v = twist.linear + noise.sample(spec.linear_noise)
    w = twist.angular + noise.sample(spec.angular_noise)
    x = pose.x + v * dt * math.cos(pose.theta)
    y = pose.y + v * dt * math.sin(pose.theta)
    theta = pose.theta + w * dt
    return Pose2D(x=x, y=y, theta=theta)


class Robot:
    """One simulated robot: pose, footprint, optional range sensor.

    The robot owns its state; callers read it through properties and
    ``odometry()``. Collision checks run against a shared read-only grid and
    footprints of the other robots handed in by the caller.
    """

    def __init__(
        self,
        name: str,
        spec: RobotSpec,
        noise: NoiseModel,
        pose: Pose2D = Pose2D(),
        robot_id: int = 0,
        policy: CollisionPolicy = CollisionPolicy.REJECT,
        bounded: bool = False,
    ) -> None:
        self.name = name
        self.robot_id = robot_id
        self.noise = noise
        self.policy = policy
        self.bounded = bounded
        self.configure(spec)

        self.pose = pose
        self.last_twist = Twist()
        self.collided = False
        self.last_scan: Optional[ScanSample] = None

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------
    def configure(self, spec: RobotSpec) -> None:
        """Validate and install ``spec``; fails before any tick runs."""
        if not isinstance(spec, RobotSpec):
            raise ConfigurationError(f"expected RobotSpec, got {type(spec).__name__}")
        spec.validate()
        self.spec = spec
        self.scanner: Optional[RangeScanner] = RangeScanner(spec.scan) if spec.scan is not None else None

    def reset(self, pose: Pose2D) -> None:
        """Place the robot at ``pose`` and clear per-tick outputs."""
        self.pose = pose
        self.last_twist = Twist()
        self.collided = False
        self.last_scan = None

    @property
    def has_sensor(self) -> bool:
        return self.scanner is not None

    def is_twin(self, other: "Robot") -> bool:
        """Same name under a different id."""
        return self.name == other.name and self.robot_id != other.robot_id

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    def current_footprint(self) -> Footprint:
        return self.spec.shape.footprint(self.pose)

    def sensor_pose(self) -> Pose2D:
        return self.pose.compose(self.spec.sensor_offset)

    def collides(
        self,
        pose: Pose2D,
        grid: Optional[OccupancyGrid],
        other_footprints: Iterable[Footprint] = (),
    ) -> bool:
        """Whether the footprint at ``pose`` hits the grid or another robot."""
        footprint = self.spec.shape.footprint(pose)
        if grid is not None and collides_with_grid(footprint, grid, bounded=self.bounded):
            return True
        return any(collides_with_robot(footprint, other) for other in other_footprints)

    # ------------------------------------------------------------------
    # Per-tick operations
    # ------------------------------------------------------------------
    def step(
        self,
        twist: Twist,
        dt: float,
        grid: Optional[OccupancyGrid] = None,
        other_footprints: Iterable[Footprint] = (),
    ) -> StepResult:
        """Integrate ``twist`` over ``dt`` and validate the new pose.

        A non-positive ``dt`` leaves the robot untouched and draws no noise.
        """
        self.last_twist = twist
        if not dt > 0.0:
            self.collided = False
            return StepResult(pose=self.pose, collided=False)

        candidate = integrate(self.pose, twist, self.spec, dt, self.noise)
        collided = self.collides(candidate, grid, other_footprints)
        if not collided or self.policy is CollisionPolicy.FLAG:
            self.pose = candidate
        self.collided = collided
        return StepResult(pose=self.pose, collided=collided)

    def sense(
        self,
        grid: OccupancyGrid,
        other_footprints: Iterable[Footprint] = (),
    ) -> Optional[ScanSample]:
        """Scan from the current sensor pose; None when the robot has no sensor."""
        if self.scanner is None:
            self.last_scan = None
            return None
        self.last_scan = self.scanner.scan(grid, self.sensor_pose(), other_footprints)
        return self.last_scan

    # ------------------------------------------------------------------
    # Utility
    # ------------------------------------------------------------------
    def odometry(self) -> Dict[str, Any]:
        """Serialize pose and last command for logging/telemetry."""
        p = self.pose
        return {
            "x": p.x,
            "y": p.y,
            "theta": p.theta,
            "v": self.last_twist.linear,
            "w": self.last_twist.angular,
        }

    def __repr__(self) -> str:
        return f"Robot({self.name!r}, id={self.robot_id}, pose={self.pose})"
