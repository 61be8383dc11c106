from __future__ import annotations
import numpy as np
from dataclasses import dataclass


@dataclass
class LaserScan:
    """
    Polar 2D LiDAR scan.

    ranges: (N,) array (meters)
    angle_min: angle of first beam (rad)
    angle_increment: angular step (rad)
    range_min/range_max: sensor limits (meters)
    """
    ranges: np.ndarray
    angle_min: float
    angle_max: float
    angle_increment: float
    range_min: float
    range_max: float

    def __post_init__(self):
        self.ranges = np.asarray(self.ranges, dtype=float).reshape(-1)

    def angles(self) -> np.ndarray:
        return self.angle_min + np.arange(self.ranges.size) * self.angle_increment

    def in_range(self) -> np.ndarray:
        """Readings within [range_min, range_max] (NaN never is)."""
        r = self.ranges
        return (r >= self.range_min) & (r <= self.range_max)


def valid_scan_rate(scan: LaserScan) -> float:
    """Fraction of in-range readings, 0 for an empty scan."""
    if scan.ranges.size == 0:
        return 0.0
    return float(np.count_nonzero(scan.in_range())) / float(scan.ranges.size)


def valid_beams(scan: LaserScan, min_dist: float = 0.0) -> np.ndarray:
    """
    Mask of beams usable for mapping and scoring: in sensor range and not
    closer than `min_dist`.
    """
    return scan.in_range() & (scan.ranges >= min_dist)


def scan_to_points(scan: LaserScan, min_dist: float = 0.0) -> np.ndarray:
    """
    Convert the valid beams of a scan to Nx2 points in sensor frame.

    returns: (M,2) points [x,y] in meters
    """
    valid = valid_beams(scan, min_dist)
    r = scan.ranges[valid]
    a = scan.angles()[valid]
    x = r * np.cos(a)
    y = r * np.sin(a)
    return np.stack([x, y], axis=1)
