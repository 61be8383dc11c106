from __future__ import annotations
import numpy as np
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .distance_field import DistanceField
from .keypoints import Keypoint, sobel_gradients
from .se2 import wrap_angle

ORIENTATION_BIN_DEG = 10.0
ORIENTATION_BINS = 36         # 0..360 deg
RELATIVE_BINS = 17            # |delta| in 0..170 deg


@dataclass(frozen=True)
class SDFOrientationFeature:
    """
    Shape descriptor attached to one keypoint.

    dominant_orientation: rad, map frame
    average_sdf: mean distance value over the window (m)
    relative_orientation_hist: RELATIVE_BINS counts of |angle - dominant|
    valid: False when the window held no cell; such features never match
    """
    dominant_orientation: float
    average_sdf: float
    relative_orientation_hist: Tuple[int, ...]
    valid: bool = True


INVALID_FEATURE = SDFOrientationFeature(0.0, 0.0, (0,) * RELATIVE_BINS, valid=False)


def gradient_orientations(values: np.ndarray) -> np.ndarray:
    """
    Gradient angle in degrees, [0, 360), for every interior cell
    (shape (H-2, W-2)).
    """
    dx, dy = sobel_gradients(values)
    t = np.degrees(np.arctan2(dy, dx))
    t[t < 0.0] += 360.0
    return t


def describe_window(dists: np.ndarray, angles: np.ndarray, origin_yaw: float = 0.0) -> SDFOrientationFeature:
    """
    Build one feature from the distance values and gradient angles (deg)
    sampled in a window.
    """
    dists = np.asarray(dists, dtype=np.float64).reshape(-1)
    angles = np.asarray(angles, dtype=np.float64).reshape(-1)
    if dists.size == 0:
        return INVALID_FEATURE

    average_sdf = float(dists.sum() / dists.size)

    idx = np.floor(angles / ORIENTATION_BIN_DEG).astype(np.int64)
    keep = (idx >= 0) & (idx < ORIENTATION_BINS)
    idx = idx[keep]
    angles = angles[keep]
    hist = np.bincount(idx, minlength=ORIENTATION_BINS)

    # np.argmax returns the first maximum
    dom_bin = int(np.argmax(hist))
    dom_deg = (dom_bin + 0.5) * ORIENTATION_BIN_DEG

    dt = dom_deg - angles
    dt = (dt + 180.0) % 360.0 - 180.0
    rel_idx = np.floor(np.abs(dt) / ORIENTATION_BIN_DEG).astype(np.int64)
    rel_idx = rel_idx[rel_idx < RELATIVE_BINS]
    rel_hist = np.bincount(rel_idx, minlength=RELATIVE_BINS)

    return SDFOrientationFeature(
        dominant_orientation=wrap_angle(np.radians(dom_deg) + origin_yaw),
        average_sdf=average_sdf,
        relative_orientation_hist=tuple(int(c) for c in rel_hist),
    )


def compute_features(
    field: DistanceField,
    keypoints: Sequence[Keypoint],
    window_size: float,
) -> List[SDFOrientationFeature]:
    """
    One feature per keypoint (same order). The window is the square of
    half-width int(window_size / resolution) cells around the keypoint,
    clipped to interior cells 1 <= u <= W-2, 1 <= v <= H-2.
    """
    values = field.values
    H, W = values.shape
    if H < 3 or W < 3:
        return [INVALID_FEATURE for _ in keypoints]

    r = int(window_size / field.resolution)
    angles = gradient_orientations(values)
    interior = values[1:-1, 1:-1]

    features = []
    for kp in keypoints:
        u0 = max(kp.u - r, 1)
        u1 = min(kp.u + r, W - 2)
        v0 = max(kp.v - r, 1)
        v1 = min(kp.v + r, H - 2)
        if u0 > u1 or v0 > v1:
            features.append(INVALID_FEATURE)
            continue
        # interior arrays are offset by one cell
        win = (slice(v0 - 1, v1), slice(u0 - 1, u1))
        features.append(describe_window(interior[win], angles[win], field.origin.yaw))
    return features
