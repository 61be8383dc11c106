import numpy as np
import pytest

from reloc.gridmap import OCCUPIED
from reloc.matching_rate import NO_BEAMS_RATE, compute_matching_rate
from reloc.se2 import Pose, transform_points
from reloc.lidar import scan_to_points

from conftest import free_grid, make_scan

POSE = Pose(5.0, 5.0, 0.3)
OFFSET = Pose(0.1, 0.0, 0.0)


def scan(r=2.0, n=19):
    return make_scan([r] * n, angle_min=-np.pi / 2, angle_inc=np.pi / (n - 1), rmax=10.0)


def test_all_endpoints_occupied():
    grid = free_grid(100, 100, 0.1)
    s = scan()
    hits = transform_points(POSE.compose(OFFSET), scan_to_points(s, 0.5))
    grid.set_cells(grid.world_to_grid(hits), OCCUPIED)
    assert compute_matching_rate(grid, s, POSE, OFFSET, 0.5) == pytest.approx(1.0)


def test_neighbour_cells_count():
    grid = free_grid(100, 100, 0.1)
    s = scan()
    hits = transform_points(POSE.compose(OFFSET), scan_to_points(s, 0.5))
    uv = grid.world_to_grid(hits)
    grid.set_cells(uv + np.array([1, 0]), OCCUPIED)
    assert compute_matching_rate(grid, s, POSE, OFFSET, 0.5) == pytest.approx(1.0)


def test_empty_map():
    grid = free_grid(100, 100, 0.1)
    assert compute_matching_rate(grid, scan(), POSE, OFFSET, 0.5) == 0.0


def test_partial():
    grid = free_grid(100, 100, 0.1)
    s = scan(n=20)
    hits = transform_points(POSE.compose(OFFSET), scan_to_points(s, 0.5))
    grid.set_cells(grid.world_to_grid(hits[:5]), OCCUPIED)
    rate = compute_matching_rate(grid, s, POSE, OFFSET, 0.5)
    assert 5 / 20 <= rate < 1.0


def test_zero_valid_beams_is_defined():
    grid = free_grid(100, 100, 0.1)
    # every beam is inside the clearance floor
    rate = compute_matching_rate(grid, scan(r=0.3), POSE, OFFSET, 0.5)
    assert rate == NO_BEAMS_RATE == 0.0


def test_beams_off_the_map_are_misses():
    grid = free_grid(100, 100, 0.1)
    grid.data[:] = OCCUPIED
    # 8 m from the centre of a 10 m map lands outside for every beam here
    rate = compute_matching_rate(grid, scan(r=8.0), Pose(5.0, 5.0, 0.0), Pose(), 0.5)
    assert rate == 0.0


def test_large_map_matches_full_mask_count():
    rng = np.random.default_rng(3)
    grid = free_grid(2000, 2000, 0.05)
    grid.data[rng.random((2000, 2000)) < 0.2] = OCCUPIED
    s = make_scan(rng.uniform(0.6, 20.0, 360), angle_min=-np.pi, angle_inc=np.deg2rad(1.0), rmax=30.0)
    pose = Pose(50.0, 50.0, 0.4)

    pts = scan_to_points(s, 0.5)
    uv = grid.world_to_grid(transform_points(pose.compose(OFFSET), pts))
    u, v = uv[:, 0], uv[:, 1]
    keep = grid.in_interior(u, v)
    u, v = u[keep], v[keep]
    occ = grid.data == OCCUPIED
    near = occ[v, u] | occ[v - 1, u] | occ[v + 1, u] | occ[v, u - 1] | occ[v, u + 1]
    expected = np.count_nonzero(near) / pts.shape[0]

    assert compute_matching_rate(grid, s, pose, OFFSET, 0.5) == pytest.approx(expected)
    assert 0.0 < expected < 1.0
