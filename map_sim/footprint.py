"""
Robot footprints and collision predicates.

A robot shape is one of two variants: ``CircleShape`` or ``SquareShape``.
Both carry a ``radius`` and produce a footprint at a given pose. For the
square the radius is a diagonal measure: its corners sit at
``radius / sqrt(2)`` from the center along ``theta + 45deg + k * 90deg``, so
the edge length equals ``radius``.

All predicates are pure and treat exact contact (shared edge, tangent circles)
as free space.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union
import math

from .errors import ConfigurationError
from .geometry_utils import (
    CONTACT_EPS,
    Point,
    circle_polygon_overlap,
    convex_polygons_overlap,
    point_in_polygon,
    rect_vertices,
)
from .grid import OccupancyGrid
from .pose import Pose2D


# ---------------------------------------------------------------------------
# Footprints
# ---------------------------------------------------------------------------


class _FootprintBase:
    def overlaps_rect(self, xmin: float, ymin: float, xmax: float, ymax: float) -> bool:
        raise NotImplementedError

    def overlaps_cell(self, grid: OccupancyGrid, col: int, row: int) -> bool:
        """True if this footprint covers part of an occupied cell."""
        if not grid.is_occupied_cell(col, row, outside=False):
            return False
        return self.overlaps_rect(*grid.cell_bounds(col, row))


@dataclass(frozen=True)
class CircleFootprint(_FootprintBase):
    x: float
    y: float
    radius: float

    @property
    def center(self) -> Point:
        return self.x, self.y

    def bounds(self) -> Tuple[float, float, float, float]:
        r = self.radius
        return (self.x - r, self.y - r, self.x + r, self.y + r)

    def contains(self, px: float, py: float) -> bool:
        return math.hypot(px - self.x, py - self.y) < self.radius - CONTACT_EPS

    def overlaps_rect(self, xmin: float, ymin: float, xmax: float, ymax: float) -> bool:
        return circle_polygon_overlap(
            self.x, self.y, self.radius, rect_vertices(xmin, ymin, xmax, ymax)
        )


@dataclass(frozen=True)
class PolygonFootprint(_FootprintBase):
    """Convex polygon footprint, vertices in counter-clockwise order."""

    vertices: Tuple[Point, ...]
    center: Point

    def bounds(self) -> Tuple[float, float, float, float]:
        xs = [v[0] for v in self.vertices]
        ys = [v[1] for v in self.vertices]
        return (min(xs), min(ys), max(xs), max(ys))

    def contains(self, px: float, py: float) -> bool:
        return point_in_polygon(px, py, self.vertices)

    def overlaps_rect(self, xmin: float, ymin: float, xmax: float, ymax: float) -> bool:
        return convex_polygons_overlap(self.vertices, rect_vertices(xmin, ymin, xmax, ymax))


Footprint = Union[CircleFootprint, PolygonFootprint]


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CircleShape:
    radius: float
    kind = "circle"

    def footprint(self, pose: Pose2D) -> CircleFootprint:
        return CircleFootprint(pose.x, pose.y, self.radius)


@dataclass(frozen=True)
class SquareShape:
    """Square with corners at ``radius / sqrt(2)`` from its center."""

    radius: float
    kind = "square"

    def footprint(self, pose: Pose2D) -> PolygonFootprint:
        half_diagonal = self.radius / math.sqrt(2.0)
        corners = []
        for k in range(4):
            angle = pose.theta + math.pi / 4.0 + k * math.pi / 2.0
            corners.append(
                (pose.x + half_diagonal * math.cos(angle), pose.y + half_diagonal * math.sin(angle))
            )
        return PolygonFootprint(vertices=tuple(corners), center=(pose.x, pose.y))


Shape = Union[CircleShape, SquareShape]

_SHAPES = {cls.kind: cls for cls in (CircleShape, SquareShape)}


def make_shape(kind: str, radius: float) -> Shape:
    """Build a shape variant from its name ("circle" or "square")."""
    try:
        cls = _SHAPES[str(kind).lower()]
    except KeyError:
        raise ConfigurationError(
            f"unknown robot shape {kind!r}, expected one of {sorted(_SHAPES)}"
        ) from None
    return cls(float(radius))


# ---------------------------------------------------------------------------
# Collision predicates
# ---------------------------------------------------------------------------


def collides_with_grid(
    footprint: Footprint,
    grid: OccupancyGrid,
    bounded: bool = False,
) -> bool:
    """True if the footprint shares area with any occupied cell.

    Space outside the grid is free unless ``bounded`` is set, in which case a
    footprint reaching past the grid extent collides.
    """
    xmin, ymin, xmax, ymax = footprint.bounds()
    if bounded and not grid.contains_rect(xmin, ymin, xmax, ymax):
        return True
    for col, row in grid.occupied_cells_in(xmin, ymin, xmax, ymax):
        if footprint.overlaps_rect(*grid.cell_bounds(col, row)):
            return True
    return False


def collides_with_robot(a: Footprint, b: Footprint) -> bool:
    """Symmetric overlap test between two robot footprints."""
    if isinstance(a, CircleFootprint) and isinstance(b, CircleFootprint):
        return math.hypot(a.x - b.x, a.y - b.y) < a.radius + b.radius - CONTACT_EPS
    if isinstance(a, CircleFootprint):
        return circle_polygon_overlap(a.x, a.y, a.radius, b.vertices)
    if isinstance(b, CircleFootprint):
        return circle_polygon_overlap(b.x, b.y, b.radius, a.vertices)
    return convex_polygons_overlap(a.vertices, b.vertices)
