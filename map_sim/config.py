"""
Configuration loading for the grid simulator.

Simulation settings live in a YAML document; maps are JSON files (or inline
dicts) understood by ``OccupancyGrid.from_map_dict``. Every malformed value
surfaces as ``ConfigurationError`` before any tick runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import math
import os

import yaml

from .errors import ConfigurationError
from .footprint import make_shape
from .grid import OccupancyGrid
from .pose import Pose2D, Twist
from .robot import CollisionPolicy, RobotSpec
from .sensors import ScanConfig


def load_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a mapping at the top level")
    return data


# ---------------------------------------------------------------------------
# Field readers
# ---------------------------------------------------------------------------


def _float(data: Dict[str, Any], key: str, default: Optional[float] = None) -> float:
    if key not in data:
        if default is None:
            raise ConfigurationError(f"missing required key {key!r}")
        return default
    try:
        return float(data[key])
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key!r} must be a number, got {data[key]!r}") from exc


def _angle(data: Dict[str, Any], key: str) -> float:
    """Read ``key`` in radians, or ``<key>_deg`` in degrees."""
    if f"{key}_deg" in data:
        return math.radians(_float(data, f"{key}_deg"))
    return _float(data, key)


def pose_from_dict(data: Optional[Dict[str, Any]]) -> Pose2D:
    if data is None:
        return Pose2D()
    if not isinstance(data, dict):
        raise ConfigurationError(f"pose must be a mapping, got {data!r}")
    theta = _angle(data, "theta") if ("theta" in data or "theta_deg" in data) else 0.0
    return Pose2D(x=_float(data, "x", 0.0), y=_float(data, "y", 0.0), theta=theta)


def twist_from_dict(data: Optional[Dict[str, Any]]) -> Twist:
    if data is None:
        return Twist()
    if not isinstance(data, dict):
        raise ConfigurationError(f"command must be a mapping, got {data!r}")
    return Twist(linear=_float(data, "linear", 0.0), angular=_float(data, "angular", 0.0))


def scan_config_from_dict(data: Dict[str, Any]) -> ScanConfig:
    if not isinstance(data, dict):
        raise ConfigurationError(f"scan must be a mapping, got {data!r}")
    step = _float(data, "step") if "step" in data else None
    return ScanConfig(
        fov=_angle(data, "fov"),
        angular_resolution=_angle(data, "resolution"),
        max_range=_float(data, "max_range"),
        range_min=_float(data, "range_min", 0.0),
        step=step,
    )


def robot_spec_from_dict(data: Dict[str, Any]) -> RobotSpec:
    """Build a validated ``RobotSpec`` from an already-parsed robot description."""
    if not isinstance(data, dict):
        raise ConfigurationError(f"robot description must be a mapping, got {data!r}")
    shape = make_shape(data.get("shape", "circle"), _float(data, "radius"))
    scan_data = data.get("scan")
    return RobotSpec(
        shape=shape,
        sensor_offset=pose_from_dict(data.get("sensor_offset")),
        linear_noise=_float(data, "linear_noise", 0.0),
        angular_noise=_float(data, "angular_noise", 0.0),
        scan=scan_config_from_dict(scan_data) if scan_data is not None else None,
    )


def grid_from_dict(data: Dict[str, Any], base_dir: str = ".") -> OccupancyGrid:
    """Grid from a ``map`` section: either ``{path: file.json}`` or an inline map."""
    if not isinstance(data, dict):
        raise ConfigurationError(f"map section must be a mapping, got {data!r}")
    if "path" in data:
        path = str(data["path"])
        if not os.path.isabs(path):
            path = os.path.join(base_dir, path)
        if not os.path.isfile(path):
            raise ConfigurationError(f"map file not found: {path}")
        return OccupancyGrid.from_map_file(path)
    return OccupancyGrid.from_map_dict(data)


# ---------------------------------------------------------------------------
# Simulation config
# ---------------------------------------------------------------------------


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"{key} section must be a mapping, got {section!r}")
    return section


@dataclass
class RobotConfig:
    name: str
    spec: RobotSpec
    pose: Pose2D
    policy: CollisionPolicy = CollisionPolicy.REJECT
    command: Twist = Twist()


@dataclass
class SimConfig:
    grid: OccupancyGrid
    robots: List[RobotConfig] = field(default_factory=list)
    dt: float = 0.1
    steps: int = 100
    seed: Optional[int] = 0
    bounded: bool = False
    telemetry_path: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: str = ".") -> "SimConfig":
        sim = _section(data, "sim")
        if "map" not in data:
            raise ConfigurationError("missing required section 'map'")
        grid = grid_from_dict(data["map"], base_dir=base_dir)

        robot_list = data.get("robots") or []
        if not isinstance(robot_list, list):
            raise ConfigurationError(f"robots must be a list, got {robot_list!r}")
        robots: List[RobotConfig] = []
        for i, robot_data in enumerate(robot_list):
            if not isinstance(robot_data, dict):
                raise ConfigurationError(f"robots[{i}] must be a mapping")
            policy_name = str(robot_data.get("policy", "reject")).lower()
            try:
                policy = CollisionPolicy(policy_name)
            except ValueError:
                raise ConfigurationError(f"robots[{i}]: unknown collision policy {policy_name!r}") from None
            robots.append(
                RobotConfig(
                    name=str(robot_data.get("name", f"robot_{i}")),
                    spec=robot_spec_from_dict(robot_data),
                    pose=pose_from_dict(robot_data.get("pose")),
                    policy=policy,
                    command=twist_from_dict(robot_data.get("command")),
                )
            )

        dt = _float(sim, "dt", 0.1)
        if not dt > 0.0:
            raise ConfigurationError(f"sim.dt must be positive, got {dt}")
        steps = int(_float(sim, "steps", 100.0))
        if steps < 0:
            raise ConfigurationError(f"sim.steps must be non-negative, got {steps}")

        telemetry = _section(data, "telemetry")
        seed = data.get("seed", 0)
        if seed is not None:
            try:
                seed = int(seed)
            except (TypeError, ValueError):
                raise ConfigurationError(f"seed must be an integer, got {seed!r}") from None
        bounded = sim.get("bounded", False)
        if not isinstance(bounded, bool):
            raise ConfigurationError(f"sim.bounded must be true or false, got {bounded!r}")
        return cls(
            grid=grid,
            robots=robots,
            dt=dt,
            steps=steps,
            seed=seed,
            bounded=bounded,
            telemetry_path=telemetry.get("path"),
        )


def load_sim_config(path: str) -> SimConfig:
    """Load a simulation YAML file; relative map paths resolve against its directory."""
    return SimConfig.from_dict(load_yaml(path), base_dir=os.path.dirname(os.path.abspath(path)))
