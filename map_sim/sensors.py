from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple, Union
import math

import numpy as np

from .errors import ConfigurationError
from .footprint import Footprint
from .grid import OccupancyGrid
from .pose import Pose2D


@dataclass(frozen=True)
class ScanConfig:
    """Configuration for the simulated 2D range sensor.

    Attributes
    ----------
    fov : float
        Field of view (radians), centered on the sensor heading.
    angular_resolution : float
        Angle between consecutive rays (radians). ``fov`` must be an integer
        multiple of it.
    max_range : float
        Range reported when nothing is hit (meters).
    range_min : float
        Distance at which marching starts (meters).
    step : float, optional
        March step (meters). Defaults to half a grid cell and is never larger
        than one cell.
    """

    fov: float
    angular_resolution: float
    max_range: float
    range_min: float = 0.0
    step: Optional[float] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if not self.angular_resolution > 0.0:
            raise ConfigurationError(
                f"angular resolution must be positive, got {self.angular_resolution}"
            )
        if not 0.0 <= self.fov <= 2.0 * math.pi + 1e-9:
            raise ConfigurationError(f"field of view must lie in [0, 2*pi], got {self.fov}")
        ratio = self.fov / self.angular_resolution
        if abs(ratio - round(ratio)) > 1e-6:
            raise ConfigurationError(
                f"field of view {self.fov} is not a multiple of resolution {self.angular_resolution}"
            )
        if not self.max_range > 0.0:
            raise ConfigurationError(f"max range must be positive, got {self.max_range}")
        if not 0.0 <= self.range_min < self.max_range:
            raise ConfigurationError(
                f"min range must lie in [0, max_range), got {self.range_min}"
            )
        if self.step is not None and not self.step > 0.0:
            raise ConfigurationError(f"march step must be positive, got {self.step}")

    @property
    def num_rays(self) -> int:
        return int(round(self.fov / self.angular_resolution)) + 1

    def march_step(self, grid: OccupancyGrid) -> float:
        """Step used against ``grid``: at most one cell so thin walls are not skipped."""
        if self.step is None:
            return grid.resolution / 2.0
        return min(self.step, grid.resolution)


class Ray(NamedTuple):
    angle: float
    range: float


class ScanSample(Sequence):
    """Ordered rays of one scan, increasing angle.

    Ranges are computed on first access and memoized, so iterating the sample
    again yields the same values. The grid and obstacle footprints are the ones
    captured when the scan was taken.
    """

    def __init__(
        self,
        scanner: "RangeScanner",
        grid: OccupancyGrid,
        sensor_pose: Pose2D,
        obstacles: Tuple[Footprint, ...],
    ) -> None:
        self._scanner = scanner
        self._grid = grid
        self.sensor_pose = sensor_pose
        self._obstacles = obstacles
        cfg = scanner.config
        self.angle_min = sensor_pose.theta - cfg.fov / 2.0
        self.angle_increment = cfg.angular_resolution
        self._ranges: List[Optional[float]] = [None] * cfg.num_rays

    @property
    def angle_max(self) -> float:
        return self.angle_min + (len(self) - 1) * self.angle_increment

    def angle(self, index: int) -> float:
        return self.angle_min + index * self.angle_increment

    def _range(self, index: int) -> float:
        r = self._ranges[index]
        if r is None:
            r = self._scanner.cast_ray(self._grid, self.sensor_pose, self.angle(index), self._obstacles)
            self._ranges[index] = r
        return r

    def __len__(self) -> int:
        return len(self._ranges)

    def __getitem__(self, index: Union[int, slice]) -> Union[Ray, List[Ray]]:
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(len(self)))]
        n = len(self)
        if index < 0:
            index += n
        if not 0 <= index < n:
            raise IndexError(f"ray index {index} out of range for {n} rays")
        return Ray(angle=self.angle(index), range=self._range(index))

    def __iter__(self) -> Iterator[Ray]:
        for i in range(len(self)):
            yield self[i]

    @property
    def ranges(self) -> np.ndarray:
        """All ranges as a float array (forces evaluation)."""
        return np.array([self._range(i) for i in range(len(self))], dtype=np.float64)

    def to_dict(self) -> Dict[str, Any]:
        """LaserScan-like record for telemetry and message publishers."""
        cfg = self._scanner.config
        return {
            "angle_min": self.angle_min,
            "angle_max": self.angle_max,
            "angle_increment": self.angle_increment,
            "range_min": cfg.range_min,
            "range_max": cfg.max_range,
            "ranges": [float(r) for r in self.ranges],
        }


class RangeScanner:
    """Ray-marching range sensor over an occupancy grid.

    Rays start at the sensor pose and advance in fixed steps until they leave
    the grid, enter an occupied cell, enter another robot's footprint, or
    exceed ``max_range``. No noise is applied to the ranges.
    """

    def __init__(self, config: ScanConfig) -> None:
        self.config = config

    def scan(
        self,
        grid: OccupancyGrid,
        sensor_pose: Pose2D,
        other_footprints: Iterable[Footprint] = (),
    ) -> ScanSample:
        """Scan from ``sensor_pose``. ``other_footprints`` must not hold the scanning robot."""
        return ScanSample(self, grid, sensor_pose, tuple(other_footprints))

    # ------------------------------------------------------------------
    # Ray casting
    # ------------------------------------------------------------------
    def cast_ray(
        self,
        grid: OccupancyGrid,
        sensor_pose: Pose2D,
        angle: float,
        obstacles: Tuple[Footprint, ...] = (),
    ) -> float:
        """Distance travelled to the first blocked point, or ``max_range``."""
        cfg = self.config
        step = cfg.march_step(grid)
        dx = math.cos(angle)
        dy = math.sin(angle)
        num_steps = int(math.floor((cfg.max_range - cfg.range_min) / step + 1e-9))

        for k in range(num_steps + 1):
            d = cfg.range_min + k * step
            px = sensor_pose.x + d * dx
            py = sensor_pose.y + d * dy
            if grid.is_occupied(px, py, outside=True):
                return d
            for fp in obstacles:
                if fp.contains(px, py):
                    return d
        return cfg.max_range
