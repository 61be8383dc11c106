# dataio/maps.py
from __future__ import annotations
import json
import os
import numpy as np

import config as cfg
from reloc.gridmap import OccupancyGrid, UNKNOWN, FREE, OCCUPIED
from reloc.se2 import Pose


def grid_from_prob(
    prob: np.ndarray,
    resolution: float,
    origin: Pose | None = None,
    occ_th: float = cfg.MAP_OCC_TH,
    free_th: float = cfg.MAP_FREE_TH,
) -> OccupancyGrid:
    """
    Occupancy probabilities (H, W), row = y, -> ternary grid.
    p >= occ_th -> occupied, p <= free_th -> free, else unknown.
    """
    prob = np.asarray(prob, dtype=float)
    data = np.full(prob.shape, UNKNOWN, dtype=np.int8)
    data[prob <= free_th] = FREE
    data[prob >= occ_th] = OCCUPIED
    H, W = prob.shape
    return OccupancyGrid(W, H, resolution, origin if origin is not None else Pose(), data)


def _meta_path(path: str) -> str:
    return os.path.splitext(path)[0] + ".json"


def save_grid(path: str, grid: OccupancyGrid):
    """Cells to `path` (.npy), resolution/origin to a sidecar .json."""
    np.save(path, grid.data)
    meta = {
        "resolution": grid.resolution,
        "origin": [grid.origin.x, grid.origin.y, grid.origin.yaw],
    }
    with open(_meta_path(path), "w") as f:
        json.dump(meta, f, indent=2)


def load_grid(path: str, resolution: float | None = None, origin: Pose | None = None) -> OccupancyGrid:
    """
    Load a grid saved by save_grid, or a probability map (float .npy, e.g.
    a SLAM run's final_map.npy) which is thresholded with grid_from_prob.

    Without a sidecar, `resolution` must be given; the map is then assumed
    to be centred on the world origin.
    """
    arr = np.load(path)
    meta_path = _meta_path(path)
    if os.path.exists(meta_path):
        with open(meta_path, "r") as f:
            meta = json.load(f)
        resolution = float(meta["resolution"])
        origin = Pose(*meta["origin"])
    elif resolution is None:
        raise ValueError(f"{path}: no metadata sidecar and no resolution given")

    if origin is None:
        H, W = arr.shape
        origin = Pose(-W / 2.0 * resolution, -H / 2.0 * resolution, 0.0)

    if np.issubdtype(arr.dtype, np.floating):
        return grid_from_prob(arr, resolution, origin)
    H, W = arr.shape
    return OccupancyGrid(W, H, resolution, origin, arr.astype(np.int8))
