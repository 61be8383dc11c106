import numpy as np
import pytest

from reloc.distance_field import build_distance_field
from reloc.gridmap import OccupancyGrid, OCCUPIED, UNKNOWN

from conftest import free_grid


def test_metric_distances_to_single_obstacle():
    grid = free_grid(11, 11, 0.5)
    grid.data[5, 5] = OCCUPIED
    field = build_distance_field(grid, blur=False)

    assert field.values.shape == (11, 11)
    assert field.values[5, 5] == pytest.approx(0.0)
    assert field.values[5, 8] == pytest.approx(1.5)
    # 3-4-5 triangle
    assert field.values[8, 9] == pytest.approx(2.5)


def test_unknown_cells_count_as_free():
    grid = OccupancyGrid.unknown(7, 7, 1.0)
    grid.data[0, 0] = OCCUPIED
    field = build_distance_field(grid, blur=False)
    assert field.values[0, 3] == pytest.approx(3.0)
    assert grid.data[0, 3] == UNKNOWN


def test_obstacle_free_grid_stays_finite():
    grid = free_grid(9, 9, 0.5)
    field = build_distance_field(grid, blur=False)
    assert np.all(np.isfinite(field.values))
    # nearest virtual obstacle is just outside the border
    assert field.values[0, 0] == pytest.approx(0.5)
    assert field.values[4, 4] == pytest.approx(2.5)


def test_blur_keeps_shape_and_non_negative():
    grid = free_grid(30, 20, 0.1)
    grid.data[10, :] = OCCUPIED
    raw = build_distance_field(grid, blur=False)
    blurred = build_distance_field(grid, blur=True)

    assert blurred.values.shape == raw.values.shape
    assert np.all(blurred.values >= 0.0)
    # smoothing lifts the zero line
    assert blurred.values[10, 15] > raw.values[10, 15]
    assert blurred.resolution == grid.resolution
    assert blurred.origin == grid.origin
