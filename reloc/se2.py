from __future__ import annotations
import numpy as np
from dataclasses import dataclass


def wrap_angle(theta: float) -> float:
    """Wrap angles to (-pi, pi]."""
    wrapped = float((theta + np.pi) % (2.0 * np.pi) - np.pi)
    if wrapped <= -np.pi:
        wrapped += 2.0 * np.pi
    return wrapped


def rot2(theta: float) -> np.ndarray:
    """2x2 rotation matrix."""
    c, s = np.cos(theta), np.sin(theta)
    return np.array([[c, -s], [s, c]], dtype=float)


def transform_points(pose, pts_xy: np.ndarray) -> np.ndarray:
    """
    pose: Pose or (3,) -> [x, y, theta]
    pts_xy: (N,2) points in sensor frame
    return: (N,2) points in world frame
    """
    if isinstance(pose, Pose):
        pose = pose.as_array()
    x, y, th = float(pose[0]), float(pose[1]), float(pose[2])
    R = rot2(th)
    return np.asarray(pts_xy, dtype=float) @ R.T + np.array([x, y], dtype=float)


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Pose:
    """
    Planar pose. yaw is kept in (-pi, pi] on construction; poses are never
    mutated in place, every "update" builds a new one.
    """
    x: float = 0.0
    y: float = 0.0
    yaw: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "x", float(self.x))
        object.__setattr__(self, "y", float(self.y))
        object.__setattr__(self, "yaw", wrap_angle(self.yaw))

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.yaw], dtype=float)

    @staticmethod
    def from_array(p) -> "Pose":
        return Pose(float(p[0]), float(p[1]), float(p[2]))

    def compose(self, other: "Pose") -> "Pose":
        """
        self (+) other: express `other`, given in this pose's frame,
        in the parent frame.
        """
        c, s = np.cos(self.yaw), np.sin(self.yaw)
        return Pose(
            self.x + other.x * c - other.y * s,
            self.y + other.x * s + other.y * c,
            self.yaw + other.yaw,
        )

    def inverse_compose(self, other: "Pose") -> "Pose":
        """
        self (-) other: the pose P with P (+) other == self.
        Used to go from a sensor pose back to the body pose carrying it.
        """
        yaw = self.yaw - other.yaw
        c, s = np.cos(yaw), np.sin(yaw)
        return Pose(
            self.x - other.x * c + other.y * s,
            self.y - other.x * s - other.y * c,
            yaw,
        )

    def distance_to(self, other: "Pose") -> float:
        return float(np.hypot(self.x - other.x, self.y - other.y))
