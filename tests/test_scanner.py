from __future__ import annotations

import math

import numpy as np
import pytest

from map_sim.errors import ConfigurationError
from map_sim.footprint import CircleShape, SquareShape
from map_sim.grid import OccupancyGrid
from map_sim.pose import Pose2D
from map_sim.sensors import RangeScanner, ScanConfig


def test_scan_hits_single_cell_on_first_ray() -> None:
    cells = np.zeros((20, 20), dtype=bool)
    cells[10, 15] = True  # x in [1.5, 1.6], y in [1.0, 1.1]
    grid = OccupancyGrid(cells, resolution=0.1)

    cfg = ScanConfig(fov=math.pi / 2.0, angular_resolution=math.pi / 4.0, max_range=5.0)
    scanner = RangeScanner(cfg)
    # Heading fov/2 puts ray 0 along +x.
    scan = scanner.scan(grid, Pose2D(0.55, 1.05, math.pi / 4.0), other_footprints=[])

    assert len(scan) == 3
    assert math.isclose(scan[0].angle, 0.0, abs_tol=1e-12)
    assert abs(scan[0].range - 0.95) <= cfg.march_step(grid) + 1e-9


def test_empty_grid_saturates_at_max_range() -> None:
    grid = OccupancyGrid.empty(40, 40, resolution=0.1)
    cfg = ScanConfig(fov=2.0 * math.pi, angular_resolution=math.pi / 8.0, max_range=1.5)
    scan = RangeScanner(cfg).scan(grid, Pose2D(2.0, 2.0, 0.3))

    assert len(scan) == 17
    assert all(ray.range == 1.5 for ray in scan)


def test_rays_are_symmetric_and_increasing() -> None:
    grid = OccupancyGrid.empty(10, 10, resolution=1.0)
    cfg = ScanConfig(fov=math.pi, angular_resolution=math.pi / 4.0, max_range=2.0)
    scan = RangeScanner(cfg).scan(grid, Pose2D(5.0, 5.0, 1.0))

    angles = [ray.angle for ray in scan]
    assert len(angles) == 5
    assert math.isclose(angles[0], 1.0 - math.pi / 2.0)
    assert math.isclose(angles[-1], 1.0 + math.pi / 2.0)
    assert math.isclose(angles[2], 1.0)
    assert all(b > a for a, b in zip(angles, angles[1:]))
    assert math.isclose(scan.angle_max, angles[-1])


def test_other_robot_blocks_ray() -> None:
    grid = OccupancyGrid.empty(40, 40, resolution=0.1)
    cfg = ScanConfig(fov=0.0, angular_resolution=0.1, max_range=2.5)
    scanner = RangeScanner(cfg)
    other = CircleShape(0.5).footprint(Pose2D(2.5, 2.0))

    blocked = scanner.scan(grid, Pose2D(1.0, 2.0, 0.0), [other])
    clear = scanner.scan(grid, Pose2D(1.0, 2.0, 0.0), [])

    assert abs(blocked[0].range - 1.0) <= cfg.march_step(grid) + 1e-9
    assert clear[0].range == 2.5


def test_square_robot_blocks_ray() -> None:
    grid = OccupancyGrid.empty(40, 40, resolution=0.1)
    cfg = ScanConfig(fov=0.0, angular_resolution=0.1, max_range=3.0)
    other = SquareShape(1.0).footprint(Pose2D(3.0, 2.0))

    scan = RangeScanner(cfg).scan(grid, Pose2D(1.0, 2.0, 0.0), [other])

    assert abs(scan[0].range - 1.5) <= cfg.march_step(grid) + 1e-9


def test_grid_edge_blocks_ray() -> None:
    grid = OccupancyGrid.empty(20, 20, resolution=0.1)
    cfg = ScanConfig(fov=0.0, angular_resolution=0.1, max_range=5.0)

    scan = RangeScanner(cfg).scan(grid, Pose2D(1.0, 1.0, 0.0))

    assert abs(scan[0].range - 1.0) <= cfg.march_step(grid) + 1e-9


def test_scan_is_restartable_and_deterministic() -> None:
    cells = np.zeros((30, 30), dtype=bool)
    cells[5:25, 22] = True
    grid = OccupancyGrid(cells, resolution=0.1)
    cfg = ScanConfig(fov=math.pi / 2.0, angular_resolution=math.pi / 16.0, max_range=3.0)
    scanner = RangeScanner(cfg)
    pose = Pose2D(1.0, 1.5, 0.0)

    scan = scanner.scan(grid, pose)
    first = list(scan)
    assert list(scan) == first
    assert list(scanner.scan(grid, pose)) == first
    assert np.array_equal(scan.ranges, np.array([r.range for r in first]))


def test_range_min_and_step_clamp() -> None:
    grid = OccupancyGrid.empty(20, 20, resolution=0.1)
    cfg = ScanConfig(fov=0.0, angular_resolution=0.1, max_range=1.0, range_min=0.2, step=10.0)

    assert cfg.march_step(grid) == 0.1
    scan = RangeScanner(cfg).scan(grid, Pose2D(1.0, 1.0, math.pi))
    # Edge at x=0 is 1.0 away, exactly max range.
    assert scan[0].range <= 1.0


def test_scan_to_dict() -> None:
    grid = OccupancyGrid.empty(20, 20, resolution=0.1)
    cfg = ScanConfig(fov=math.pi / 2.0, angular_resolution=math.pi / 4.0, max_range=0.5, range_min=0.05)
    record = RangeScanner(cfg).scan(grid, Pose2D(1.0, 1.0, 0.0)).to_dict()

    assert record["range_min"] == 0.05
    assert record["range_max"] == 0.5
    assert math.isclose(record["angle_min"], -math.pi / 4.0)
    assert math.isclose(record["angle_max"], math.pi / 4.0)
    assert record["ranges"] == [0.5, 0.5, 0.5]


def test_index_out_of_range() -> None:
    grid = OccupancyGrid.empty(5, 5, resolution=1.0)
    scan = RangeScanner(ScanConfig(fov=0.0, angular_resolution=0.1, max_range=1.0)).scan(grid, Pose2D(2.5, 2.5))

    assert scan[-1] == scan[0]
    with pytest.raises(IndexError):
        scan[1]


@pytest.mark.parametrize(
    "kwargs",
    [
        {"fov": 1.0, "angular_resolution": 0.0, "max_range": 1.0},
        {"fov": 1.0, "angular_resolution": 0.3, "max_range": 1.0},
        {"fov": 1.0, "angular_resolution": 0.5, "max_range": 0.0},
        {"fov": 1.0, "angular_resolution": 0.5, "max_range": 1.0, "range_min": 1.0},
        {"fov": 1.0, "angular_resolution": 0.5, "max_range": 1.0, "step": 0.0},
        {"fov": 7.0, "angular_resolution": 0.5, "max_range": 1.0},
    ],
)
def test_invalid_scan_config(kwargs) -> None:
    with pytest.raises(ConfigurationError):
        ScanConfig(**kwargs)
