import numpy as np
import pytest

from reloc.gridmap import UNKNOWN, FREE, OCCUPIED
from reloc.keyscans import KeyScanWindow
from reloc.local_map import build_local_map
from reloc.se2 import Pose

from conftest import make_scan

RES = 0.25


def single_scan_window(scan, pose):
    w = KeyScanWindow(1, 0.5, 0.1)
    w.offer(scan, pose)
    return w


def test_ray_carving_and_endpoint():
    # beam 0 along +x, beam 1 along +y but too short to use
    scan = make_scan([2.0, 0.3], angle_min=0.0, angle_inc=np.pi / 2, rmax=4.0)
    grid = build_local_map(single_scan_window(scan, Pose()), Pose(), RES, min_dist_from_map=0.5)

    assert (grid.width, grid.height) == (48, 48)
    assert (grid.origin.x, grid.origin.y, grid.origin.yaw) == (-6.0, -6.0, 0.0)

    row = grid.data[24]
    # free from the sensor up to range - resolution
    assert np.all(row[24:31] == FREE)
    assert row[31] == UNKNOWN
    assert row[32] == OCCUPIED
    assert grid.data[25:, 24].tolist() == [UNKNOWN] * (48 - 25)
    assert grid.data[0, 0] == UNKNOWN


def test_sensor_offset_is_applied():
    scan = make_scan([2.0], angle_min=0.0, angle_inc=0.1, rmax=4.0)
    w = single_scan_window(scan, Pose(0.0, 0.0, np.pi / 2))
    grid = build_local_map(w, Pose(0.5, 0.0, -np.pi / 2), RES, min_dist_from_map=0.5)
    # sensor sits at (0, 0.5) looking along +x
    u, v = grid.xy2uv(2.0 + 1e-6, 0.5 + 1e-6)
    assert grid.data[v, u] == OCCUPIED


def test_window_centred_on_oldest_pose():
    w = KeyScanWindow(2, 0.5, 0.1)
    w.offer(make_scan([1.0], rmax=4.0), Pose(0.0, 0.0, 0.0))
    w.offer(make_scan([1.0], rmax=4.0), Pose(1.0, 0.0, 0.0))
    grid = build_local_map(w, Pose(), RES, min_dist_from_map=0.5)
    assert grid.origin.x == pytest.approx(-6.0)


def test_empty_window_is_an_error():
    with pytest.raises(ValueError):
        build_local_map(KeyScanWindow(2, 0.5, 0.1), Pose(), RES, 0.5)
