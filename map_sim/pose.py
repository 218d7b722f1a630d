from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from .geometry_utils import body_to_world, world_to_body, wrap_angle


@dataclass(frozen=True)
class Pose2D:
    """Planar pose in world coordinates.

    Attributes
    ----------
    x : float
        X position (meters).
    y : float
        Y position (meters).
    theta : float
        Heading (radians), CCW from +x. Never wrapped implicitly.
    """

    x: float = 0.0
    y: float = 0.0
    theta: float = 0.0

    def compose(self, offset: "Pose2D") -> "Pose2D":
        """Pose of a child frame mounted at ``offset`` relative to this pose."""
        x, y = body_to_world(offset.x, offset.y, self.x, self.y, self.theta)
        return Pose2D(x=x, y=y, theta=self.theta + offset.theta)

    def inverse(self) -> "Pose2D":
        """Pose ``p`` such that ``self.compose(p)`` is the identity."""
        x, y = world_to_body(0.0, 0.0, self.x, self.y, self.theta)
        return Pose2D(x=x, y=y, theta=-self.theta)

    def wrapped(self) -> "Pose2D":
        """Same pose with heading normalized to [-pi, pi)."""
        return Pose2D(x=self.x, y=self.y, theta=wrap_angle(self.theta))

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "theta": self.theta}


@dataclass(frozen=True)
class Twist:
    """Commanded linear (m/s) and angular (rad/s) velocity."""

    linear: float = 0.0
    angular: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"linear": self.linear, "angular": self.angular}


def compose(parent: Pose2D, offset: Pose2D) -> Pose2D:
    """Rotate-then-translate ``offset`` into the frame of ``parent``."""
    return parent.compose(offset)
