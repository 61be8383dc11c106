from __future__ import annotations
import numpy as np
from dataclasses import dataclass
from scipy.ndimage import distance_transform_edt, gaussian_filter

import config as cfg
from .gridmap import OccupancyGrid, OCCUPIED
from .se2 import Pose


@dataclass
class DistanceField:
    """
    Euclidean distance (meters) from each cell to the nearest occupied cell.
    Same extents and origin as the grid it was built from; values >= 0.
    Storage is array [v, u].
    """
    values: np.ndarray
    resolution: float
    origin: Pose

    @property
    def height(self) -> int:
        return int(self.values.shape[0])

    @property
    def width(self) -> int:
        return int(self.values.shape[1])


def _blur(dist: np.ndarray, size: int, sigma: float) -> np.ndarray:
    """
    Separable Gaussian over a size x size window, mirrored borders.
    """
    radius = size // 2
    return gaussian_filter(dist, sigma=sigma, mode="mirror", truncate=radius / sigma)


def build_distance_field(
    grid: OccupancyGrid,
    blur: bool = cfg.SDF_BLUR,
    blur_size: int = cfg.SDF_BLUR_SIZE,
    blur_sigma: float = cfg.SDF_BLUR_SIGMA,
) -> DistanceField:
    """
    Binarize (occupied -> 0, everything else -> 1), run an exact EDT and
    scale by resolution. With no obstacle at all, distances are taken to a
    virtual obstacle ring just outside the grid so the field stays finite.
    """
    free = grid.data != OCCUPIED

    if free.size == 0:
        dist = np.zeros(free.shape, dtype=np.float64)
    elif free.all():
        padded = np.pad(free, 1, mode="constant", constant_values=False)
        dist = distance_transform_edt(padded)[1:-1, 1:-1]
    else:
        dist = distance_transform_edt(free)

    dist = dist.astype(np.float32) * np.float32(grid.resolution)

    if blur and dist.size > 0:
        dist = _blur(dist, blur_size, blur_sigma)
        np.clip(dist, 0.0, None, out=dist)

    return DistanceField(values=dist.astype(np.float32), resolution=grid.resolution, origin=grid.origin)
