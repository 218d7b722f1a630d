"""
Top-level package for the 2D occupancy-grid robot simulator.

Components:
- pose: Pose2D value type, frame composition, Twist commands
- noise: seeded Gaussian sampler shared by all robots
- grid: read-only occupancy grid and map loading
- footprint: circle/square footprints and collision predicates
- sensors: ray-marching range scanner
- robot: robot spec, motion integration, per-robot state
- simulation: multi-robot tick loop
- config: YAML/JSON configuration loading
- geometry_utils: angle/point/segment/polygon helpers
"""

from .errors import ConfigurationError
from .pose import Pose2D, Twist, compose
from .noise import NoiseModel
from .grid import OccupancyGrid, Obstacle
from .footprint import (
    CircleFootprint,
    CircleShape,
    PolygonFootprint,
    SquareShape,
    collides_with_grid,
    collides_with_robot,
    make_shape,
)
from .sensors import Ray, RangeScanner, ScanConfig, ScanSample
from .robot import CollisionPolicy, Robot, RobotSpec, StepResult, integrate
from .simulation import Simulation, TickResult

__all__ = [
    "ConfigurationError",
    "Pose2D",
    "Twist",
    "compose",
    "NoiseModel",
    "OccupancyGrid",
    "Obstacle",
    "CircleFootprint",
    "CircleShape",
    "PolygonFootprint",
    "SquareShape",
    "collides_with_grid",
    "collides_with_robot",
    "make_shape",
    "Ray",
    "RangeScanner",
    "ScanConfig",
    "ScanSample",
    "CollisionPolicy",
    "Robot",
    "RobotSpec",
    "StepResult",
    "integrate",
    "Simulation",
    "TickResult",
]
