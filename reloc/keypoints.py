from __future__ import annotations
import numpy as np
from dataclasses import dataclass
from enum import IntEnum
from typing import List

from .distance_field import DistanceField
from .gridmap import OccupancyGrid, FREE


class KeypointType(IntEnum):
    INVALID = -2
    LOCAL_MINIMUM = -1
    SADDLE = 0
    LOCAL_MAXIMUM = 1


@dataclass(frozen=True)
class Keypoint:
    u: int
    v: int
    x: float
    y: float
    type: KeypointType = KeypointType.INVALID


def sobel_gradients(values: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    First derivatives over the interior of `values` (shape (H-2, W-2)).

    Signed 3x3 sums, unit weights:
      dx = right column - left column
      dy = bottom row - top row
    """
    f = np.asarray(values, dtype=np.float64)
    dx = (f[:-2, 2:] + f[1:-1, 2:] + f[2:, 2:]) - (f[:-2, :-2] + f[1:-1, :-2] + f[2:, :-2])
    dy = (f[2:, :-2] + f[2:, 1:-1] + f[2:, 2:]) - (f[:-2, :-2] + f[:-2, 1:-1] + f[:-2, 2:])
    return dx, dy


def hessian(values: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Second derivatives over the interior by central differences.
    Returns (dxx, dyy, dxy), each (H-2, W-2).
    """
    f = np.asarray(values, dtype=np.float64)
    c = f[1:-1, 1:-1]
    dxx = f[1:-1, :-2] - 2.0 * c + f[1:-1, 2:]
    dyy = f[:-2, 1:-1] - 2.0 * c + f[2:, 1:-1]
    dxy = (
        f[:-2, :-2] - f[:-2, 1:-1] - f[1:-1, :-2]
        + 2.0 * c
        - f[1:-1, 2:] - f[2:, 1:-1] + f[2:, 2:]
    )
    return dxx, dyy, dxy


def classify(dxx: np.ndarray, det: np.ndarray) -> np.ndarray:
    """Hessian test; INVALID where the critical point is degenerate."""
    types = np.full(det.shape, int(KeypointType.INVALID), dtype=np.int8)
    types[(det > 0.0) & (dxx < 0.0)] = int(KeypointType.LOCAL_MAXIMUM)
    types[(det > 0.0) & (dxx > 0.0)] = int(KeypointType.LOCAL_MINIMUM)
    types[det < 0.0] = int(KeypointType.SADDLE)
    return types


def detect_keypoints(
    grid: OccupancyGrid,
    field: DistanceField,
    gradient_square_threshold: float,
    min_dist_from_map: float,
) -> List[Keypoint]:
    """
    Critical points of the distance field (near-zero gradient) on free cells
    with enough clearance, classified by the Hessian.

    The outermost cell ring is never examined. Keypoints are ordered by u,
    then v.
    """
    values = field.values
    H, W = values.shape
    if H < 3 or W < 3:
        return []

    dx, dy = sobel_gradients(values)
    dxx, dyy, dxy = hessian(values)
    det = dxx * dyy - dxy * dxy

    center = values[1:-1, 1:-1]
    candidates = (grid.data[1:-1, 1:-1] == FREE) & (center >= min_dist_from_map)
    flat = (dx * dx < gradient_square_threshold) & (dy * dy < gradient_square_threshold)
    types = classify(dxx, det)
    accepted = candidates & flat & (types != int(KeypointType.INVALID))

    vv, uu = np.nonzero(accepted)
    order = np.lexsort((vv, uu))
    vv, uu = vv[order], uu[order]
    types = types[vv, uu]

    # back to full-grid indices
    uu = uu + 1
    vv = vv + 1
    if uu.size == 0:
        return []
    xy = grid.grid_to_world(np.stack([uu, vv], axis=1))

    return [
        Keypoint(int(u), int(v), float(p[0]), float(p[1]), KeypointType(int(t)))
        for u, v, p, t in zip(uu, vv, xy, types)
    ]
