import numpy as np
import pytest

from reloc.gridmap import OccupancyGrid, FREE, OCCUPIED
from reloc.lidar import LaserScan
from reloc.se2 import Pose


def make_scan(ranges, angle_min=0.0, angle_inc=np.deg2rad(2.0), rmin=0.1, rmax=4.0):
    ranges = np.asarray(ranges, dtype=float)
    return LaserScan(
        ranges=ranges,
        angle_min=angle_min,
        angle_max=angle_min + (len(ranges) - 1) * angle_inc,
        angle_increment=angle_inc,
        range_min=rmin,
        range_max=rmax,
    )


def free_grid(width, height, resolution, origin=None):
    data = np.full((height, width), FREE, dtype=np.int8)
    return OccupancyGrid(width, height, resolution, origin if origin is not None else Pose(), data)


def room_grid(size_m=8.0, resolution=0.1):
    """Square room with walls on the border and a pillar off-centre."""
    n = int(round(size_m / resolution))
    grid = free_grid(n, n, resolution)
    grid.data[0, :] = OCCUPIED
    grid.data[-1, :] = OCCUPIED
    grid.data[:, 0] = OCCUPIED
    grid.data[:, -1] = OCCUPIED
    grid.data[50:58, 20:26] = OCCUPIED
    return grid


def cast_scan(grid, pose, n_beams=180, rmax=4.0, step=0.02):
    """Ray-cast a full-circle scan; misses come back beyond rmax."""
    angles = np.linspace(-np.pi, np.pi, n_beams, endpoint=False)
    inc = angles[1] - angles[0]
    ranges = np.full(n_beams, rmax + 1.0)
    for i, a in enumerate(angles):
        t = pose.yaw + a
        for r in np.arange(step, rmax, step):
            u, v = grid.xy2uv(pose.x + r * np.cos(t), pose.y + r * np.sin(t))
            if not grid.in_bounds(u, v):
                break
            if grid.data[v, u] == OCCUPIED:
                ranges[i] = r
                break
    return LaserScan(ranges, angles[0], angles[-1], inc, 0.05, rmax)


@pytest.fixture
def room():
    return room_grid()
