"""
Geometry utilities for the grid simulator.

Provides angle normalization, frame transforms, point-segment distance,
point-in-polygon and convex overlap tests used by footprints, collision
checks and the range scanner.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple
import math


Point = Tuple[float, float]

# Contact tolerance for overlap tests (meters).
CONTACT_EPS = 1e-9


# ---------------------------------------------------------------------------
# Angle and coordinate helpers
# ---------------------------------------------------------------------------


def wrap_angle(theta: float) -> float:
    """Wrap angle to [-pi, pi) radians."""
    return (theta + math.pi) % (2.0 * math.pi) - math.pi


def body_to_world(
    bx: float,
    by: float,
    ox: float,
    oy: float,
    yaw: float,
) -> Tuple[float, float]:
    """Transform body frame (bx, by) to world with origin (ox, oy) and heading yaw."""
    c = math.cos(yaw)
    s = math.sin(yaw)
    wx = ox + c * bx - s * by
    wy = oy + s * bx + c * by
    return wx, wy


def world_to_body(
    wx: float,
    wy: float,
    ox: float,
    oy: float,
    yaw: float,
) -> Tuple[float, float]:
    """
    Transform world point (wx, wy) to body frame with origin (ox, oy) and heading yaw.
    Body +x is forward (cos(yaw), sin(yaw)).
    """
    dx = wx - ox
    dy = wy - oy
    c = math.cos(yaw)
    s = math.sin(yaw)
    bx = c * dx + s * dy
    by = -s * dx + c * dy
    return bx, by


# ---------------------------------------------------------------------------
# Point-to-segment distance
# ---------------------------------------------------------------------------


def point_to_segment_distance(
    px: float,
    py: float,
    x1: float,
    y1: float,
    x2: float,
    y2: float,
) -> Tuple[float, float, float]:
    """
    Distance from point to line segment, and closest point on segment.

    Returns
    -------
    (distance, closest_x, closest_y)
    """
    dx = x2 - x1
    dy = y2 - y1
    length_sq = dx * dx + dy * dy
    if length_sq < 1e-12:
        return math.hypot(px - x1, py - y1), x1, y1
    t = ((px - x1) * dx + (py - y1) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    cx = x1 + t * dx
    cy = y1 + t * dy
    return math.hypot(px - cx, py - cy), cx, cy


def point_to_polygon_distance(px: float, py: float, vertices: Sequence[Point]) -> float:
    """Distance from a point to the boundary of a polygon."""
    n = len(vertices)
    best = math.inf
    for i in range(n):
        x1, y1 = vertices[i]
        x2, y2 = vertices[(i + 1) % n]
        d, _, _ = point_to_segment_distance(px, py, x1, y1, x2, y2)
        best = min(best, d)
    return best


# ---------------------------------------------------------------------------
# Polygon helpers
# ---------------------------------------------------------------------------


def point_in_polygon(px: float, py: float, vertices: Sequence[Point]) -> bool:
    """
    Ray-casting test: True if (px, py) is inside polygon (list of (x,y) in order).
    """
    n = len(vertices)
    if n < 3:
        return False
    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = vertices[i]
        xj, yj = vertices[j]
        if ((yi > py) != (yj > py)) and (
            px < (xj - xi) * (py - yi) / (yj - yi) + xi
        ):
            inside = not inside
        j = i
    return inside


def rect_vertices(xmin: float, ymin: float, xmax: float, ymax: float) -> List[Point]:
    """Counter-clockwise corners of an axis-aligned rectangle."""
    return [(xmin, ymin), (xmax, ymin), (xmax, ymax), (xmin, ymax)]


def _edge_normals(vertices: Sequence[Point]) -> List[Point]:
    normals: List[Point] = []
    n = len(vertices)
    for i in range(n):
        x1, y1 = vertices[i]
        x2, y2 = vertices[(i + 1) % n]
        nx, ny = -(y2 - y1), x2 - x1
        length = math.hypot(nx, ny)
        if length < 1e-12:
            continue
        normals.append((nx / length, ny / length))
    return normals


def _project(vertices: Sequence[Point], axis: Point) -> Tuple[float, float]:
    ax, ay = axis
    dots = [x * ax + y * ay for x, y in vertices]
    return min(dots), max(dots)


def convex_polygons_overlap(a: Sequence[Point], b: Sequence[Point]) -> bool:
    """Separating-axis test for two convex polygons.

    Polygons whose projections merely touch on some axis are separated, so
    shared edges or corners do not count as overlap.
    """
    for axis in _edge_normals(a) + _edge_normals(b):
        a_min, a_max = _project(a, axis)
        b_min, b_max = _project(b, axis)
        if a_max <= b_min + CONTACT_EPS or b_max <= a_min + CONTACT_EPS:
            return False
    return True


def circle_polygon_overlap(
    cx: float,
    cy: float,
    radius: float,
    vertices: Sequence[Point],
) -> bool:
    """True if a circle and a convex polygon share interior area."""
    if point_in_polygon(cx, cy, vertices):
        return True
    return point_to_polygon_distance(cx, cy, vertices) < radius - CONTACT_EPS

