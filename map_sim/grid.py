from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple
import json
import math

import numpy as np

from .errors import ConfigurationError


@dataclass
class Obstacle:
    """Axis-aligned rectangular obstacle in world coordinates.

    Coordinates are defined with origin at bottom-left of the world:
    - x increases to the right
    - y increases upward

    Attributes
    ----------
    x : float
        X coordinate of the rectangle center (meters).
    y : float
        Y coordinate of the rectangle center (meters).
    w : float
        Width of the rectangle (meters).
    h : float
        Height of the rectangle (meters).
    """

    x: float
    y: float
    w: float
    h: float

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Return (xmin, ymin, xmax, ymax)."""
        half_w = self.w / 2.0
        half_h = self.h / 2.0
        return (self.x - half_w, self.y - half_h, self.x + half_w, self.y + half_h)


class OccupancyGrid:
    """Read-only 2D occupancy map shared by every robot.

    Parameters
    ----------
    cells : array-like of bool, shape (rows, cols)
        ``cells[row, col]`` is True for an occupied cell. Row index grows with
        world y, column index with world x.
    resolution : float
        Cell edge length in meters.
    origin : tuple[float, float]
        World (x, y) of the lower-left corner of cell (0, 0).
    """

    def __init__(
        self,
        cells: Any,
        resolution: float,
        origin: Tuple[float, float] = (0.0, 0.0),
    ) -> None:
        arr = np.array(cells, dtype=bool)
        if arr.ndim != 2 or arr.size == 0:
            raise ConfigurationError(f"grid cells must be a non-empty 2D array, got shape {arr.shape}")
        if not resolution > 0.0:
            raise ConfigurationError(f"grid resolution must be positive, got {resolution}")
        arr.setflags(write=False)
        self.cells = arr
        self.resolution = float(resolution)
        self.origin = (float(origin[0]), float(origin[1]))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def empty(
        cls,
        width: int,
        height: int,
        resolution: float,
        origin: Tuple[float, float] = (0.0, 0.0),
    ) -> "OccupancyGrid":
        """Grid of ``width`` x ``height`` free cells."""
        return cls(np.zeros((int(height), int(width)), dtype=bool), resolution, origin)

    @classmethod
    def from_obstacles(
        cls,
        width: int,
        height: int,
        resolution: float,
        obstacles: Sequence[Obstacle],
        origin: Tuple[float, float] = (0.0, 0.0),
    ) -> "OccupancyGrid":
        """Rasterize rectangular obstacles: every cell sharing area with one is occupied."""
        cells = np.zeros((int(height), int(width)), dtype=bool)
        ox, oy = origin
        for obs in obstacles:
            xmin, ymin, xmax, ymax = obs.bounds
            c0 = max(0, math.floor((xmin - ox) / resolution))
            c1 = min(int(width), math.ceil((xmax - ox) / resolution))
            r0 = max(0, math.floor((ymin - oy) / resolution))
            r1 = min(int(height), math.ceil((ymax - oy) / resolution))
            if c0 < c1 and r0 < r1:
                cells[r0:r1, c0:c1] = True
        return cls(cells, resolution, origin)

    @classmethod
    def from_map_dict(cls, data: Dict[str, Any]) -> "OccupancyGrid":
        """Create a grid from a map description.

        Recognized keys: ``resolution`` (required), ``origin`` ({x, y}),
        ``rows`` (strings listed top row first, ``#`` marks occupied),
        ``width``/``height`` in cells with optional ``occupied`` [[col, row], ...]
        and ``obstacles`` [{x, y, w, h}] rectangles in meters.
        """
        try:
            resolution = float(data["resolution"])
            origin_data = data.get("origin", {"x": 0.0, "y": 0.0})
            origin = (float(origin_data["x"]), float(origin_data["y"]))
            rows: Optional[List[str]] = list(data["rows"]) if "rows" in data else None
            if rows is None:
                width, height = int(data["width"]), int(data["height"])
            obstacles = [
                Obstacle(float(o["x"]), float(o["y"]), float(o["w"]), float(o["h"]))
                for o in data.get("obstacles", [])
            ]
            occupied = [(int(c), int(r)) for c, r in data.get("occupied", [])]
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigurationError(f"malformed map description: {exc!r}") from exc

        if rows is not None:
            if not rows or len({len(row) for row in rows}) != 1:
                raise ConfigurationError("map rows must be non-empty and of equal length")
            # Text rows are drawn top (max y) first.
            cells = np.array([[ch == "#" for ch in row] for row in reversed(rows)], dtype=bool)
            height, width = cells.shape
        else:
            if width <= 0 or height <= 0:
                raise ConfigurationError(f"grid size must be positive, got {width}x{height}")
            cells = np.zeros((height, width), dtype=bool)

        if not resolution > 0.0:
            raise ConfigurationError(f"grid resolution must be positive, got {resolution}")
        grid_cells = cls.from_obstacles(width, height, resolution, obstacles, origin).cells.copy()
        grid_cells |= cells
        for col, row in occupied:
            if not (0 <= col < width and 0 <= row < height):
                raise ConfigurationError(f"occupied cell ({col}, {row}) outside {width}x{height} grid")
            grid_cells[row, col] = True
        return cls(grid_cells, resolution, origin)

    @classmethod
    def from_map_file(cls, path: str) -> "OccupancyGrid":
        """Create a grid from a JSON map file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_map_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the grid as a map description (row strings, top row first)."""
        rows = ["".join("#" if c else "." for c in row) for row in self.cells[::-1]]
        return {
            "resolution": self.resolution,
            "origin": {"x": self.origin[0], "y": self.origin[1]},
            "rows": rows,
        }

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    @property
    def width(self) -> int:
        """Number of columns."""
        return int(self.cells.shape[1])

    @property
    def height(self) -> int:
        """Number of rows."""
        return int(self.cells.shape[0])

    @property
    def extent(self) -> Tuple[float, float, float, float]:
        """World (xmin, ymin, xmax, ymax) covered by the grid."""
        ox, oy = self.origin
        return (ox, oy, ox + self.width * self.resolution, oy + self.height * self.resolution)

    def world_to_cell(self, x: float, y: float) -> Tuple[int, int]:
        """Convert world coordinates to (col, row) indices, possibly out of bounds."""
        col = math.floor((x - self.origin[0]) / self.resolution)
        row = math.floor((y - self.origin[1]) / self.resolution)
        return col, row

    def cell_bounds(self, col: int, row: int) -> Tuple[float, float, float, float]:
        xmin = self.origin[0] + col * self.resolution
        ymin = self.origin[1] + row * self.resolution
        return (xmin, ymin, xmin + self.resolution, ymin + self.resolution)

    def in_bounds(self, col: int, row: int) -> bool:
        return 0 <= col < self.width and 0 <= row < self.height

    # ------------------------------------------------------------------
    # Occupancy queries
    # ------------------------------------------------------------------
    def is_occupied_cell(self, col: int, row: int, outside: bool = True) -> bool:
        """Occupancy of a cell; ``outside`` is returned for indices off the grid."""
        if not self.in_bounds(col, row):
            return outside
        return bool(self.cells[row, col])

    def is_occupied(self, x: float, y: float, outside: bool = True) -> bool:
        """Occupancy at a world point. Off-grid points block by default."""
        col, row = self.world_to_cell(x, y)
        return self.is_occupied_cell(col, row, outside=outside)

    def occupied_cells_in(
        self,
        xmin: float,
        ymin: float,
        xmax: float,
        ymax: float,
    ) -> Iterator[Tuple[int, int]]:
        """Yield (col, row) of occupied in-bounds cells touching a world rectangle."""
        c0, r0 = self.world_to_cell(xmin, ymin)
        c1, r1 = self.world_to_cell(xmax, ymax)
        c0, r0 = max(c0, 0), max(r0, 0)
        c1, r1 = min(c1, self.width - 1), min(r1, self.height - 1)
        if c0 > c1 or r0 > r1:
            return
        window = self.cells[r0 : r1 + 1, c0 : c1 + 1]
        for row, col in np.argwhere(window):
            yield c0 + int(col), r0 + int(row)

    def contains_rect(self, xmin: float, ymin: float, xmax: float, ymax: float) -> bool:
        """True if a world rectangle lies within the grid extent."""
        gx0, gy0, gx1, gy1 = self.extent
        return gx0 <= xmin and gy0 <= ymin and xmax <= gx1 and ymax <= gy1

    def occupied_count(self) -> int:
        return int(np.count_nonzero(self.cells))

    def __repr__(self) -> str:
        return (
            f"OccupancyGrid({self.width}x{self.height}, resolution={self.resolution}, "
            f"origin={self.origin})"
        )
