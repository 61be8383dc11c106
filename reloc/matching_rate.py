from __future__ import annotations
import numpy as np

from .gridmap import OccupancyGrid, OCCUPIED
from .lidar import LaserScan, scan_to_points
from .se2 import Pose, transform_points

# rate reported when a scan has no usable beam
NO_BEAMS_RATE = 0.0


def compute_matching_rate(
    grid: OccupancyGrid,
    scan: LaserScan,
    pose: Pose,
    base_to_laser: Pose,
    min_dist: float,
) -> float:
    """
    Fraction of valid beams whose hitpoint, with the body at `pose`, lands
    on or 4-next to an occupied cell of `grid`.

    Hits outside the grid interior count as misses. With no valid beam at
    all the rate is NO_BEAMS_RATE.
    """
    pts = scan_to_points(scan, min_dist)
    if pts.shape[0] == 0:
        return NO_BEAMS_RATE

    hits = transform_points(pose.compose(base_to_laser), pts)
    uv = grid.world_to_grid(hits)
    u, v = uv[:, 0], uv[:, 1]
    inside = grid.in_interior(u, v)
    u, v = u[inside], v[inside]

    d = grid.data
    near = (
        (d[v, u] == OCCUPIED)
        | (d[v - 1, u] == OCCUPIED)
        | (d[v + 1, u] == OCCUPIED)
        | (d[v, u - 1] == OCCUPIED)
        | (d[v, u + 1] == OCCUPIED)
    )
    return float(np.count_nonzero(near)) / float(pts.shape[0])
