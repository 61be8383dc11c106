from __future__ import annotations
import numpy as np

from .gridmap import OccupancyGrid, FREE, OCCUPIED
from .keyscans import KeyScanWindow
from .lidar import LaserScan, valid_beams
from .se2 import Pose


def integrate_scan(
    grid: OccupancyGrid,
    scan: LaserScan,
    sensor_pose: Pose,
    min_dist: float,
):
    """
    Ray-carve one scan into `grid`:
      - walk each valid beam in resolution-sized steps up to
        (range - resolution), marking cells free
      - mark the endpoint cell occupied
    Beams are processed in order, so a later ray may clear an earlier
    endpoint.
    """
    res = grid.resolution
    valid = valid_beams(scan, min_dist)
    ranges = scan.ranges[valid]
    angles = scan.angles()[valid] + sensor_pose.yaw
    sx, sy = sensor_pose.x, sensor_pose.y

    for r_end, t in zip(ranges, angles):
        c, s = np.cos(t), np.sin(t)

        # free cells along ray
        steps = np.arange(0.0, r_end - res, res)
        if steps.size > 0:
            ray = np.stack([sx + steps * c, sy + steps * s], axis=1)
            grid.set_cells(grid.world_to_grid(ray), FREE)

        # endpoint
        end = np.array([[sx + r_end * c, sy + r_end * s]])
        grid.set_cells(grid.world_to_grid(end), OCCUPIED)


def build_local_map(
    window: KeyScanWindow,
    base_to_laser: Pose,
    resolution: float,
    min_dist_from_map: float,
) -> OccupancyGrid:
    """
    Rasterize the key scans into a square grid in the odometry frame.

    Side = 3 x range_max of the newest scan, centered on the oldest key
    pose; untouched cells stay unknown.
    """
    if len(window) == 0:
        raise ValueError("cannot build a local map from an empty key scan window")

    newest_scan, _ = window.newest
    _, oldest_pose = window.oldest
    range_max = float(newest_scan.range_max)

    size = int(range_max * 3.0 / resolution)
    origin = Pose(oldest_pose.x - range_max * 1.5, oldest_pose.y - range_max * 1.5, 0.0)
    grid = OccupancyGrid.unknown(size, size, resolution, origin)

    for scan, pose in window:
        integrate_scan(grid, scan, pose.compose(base_to_laser), min_dist_from_map)
    return grid
