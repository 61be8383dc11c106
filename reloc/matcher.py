from __future__ import annotations
import numpy as np
from typing import List, Sequence

from .descriptor import SDFOrientationFeature
from .keypoints import Keypoint

UNMATCHED = -1

# best must beat second best by this factor
RATIO = 1.5


def histogram_distance(a: Sequence[int], b: Sequence[int]) -> int:
    """L1 distance between two relative orientation histograms."""
    return int(np.abs(np.asarray(a, dtype=np.int64) - np.asarray(b, dtype=np.int64)).sum())


def ratio_test(min1: int | None, min2: int | None) -> bool:
    """
    Accept the best candidate if it is unambiguous: either the only one,
    or RATIO times better than the runner-up.
    """
    if min1 is None:
        return False
    if min2 is None:
        return True
    return min1 * RATIO < min2


def best_two(
    local_kp: Keypoint,
    local_feat: SDFOrientationFeature,
    global_kps: Sequence[Keypoint],
    global_feats: Sequence[SDFOrientationFeature],
    average_sdf_delta_threshold: float,
) -> tuple[int | None, int, int | None, int]:
    """
    Single pass over the global set; strict less-than replacement so the
    earliest index wins ties. Returns (min1, idx1, min2, idx2), None where
    no candidate was seen.
    """
    min1 = min2 = None
    idx1 = idx2 = UNMATCHED
    for j, (gkp, gfeat) in enumerate(zip(global_kps, global_feats)):
        if gkp.type != local_kp.type or not gfeat.valid:
            continue
        if abs(local_feat.average_sdf - gfeat.average_sdf) > average_sdf_delta_threshold:
            continue

        d = histogram_distance(local_feat.relative_orientation_hist, gfeat.relative_orientation_hist)
        if min1 is None or d < min1:
            min2, idx2 = min1, idx1
            min1, idx1 = d, j
        elif min2 is None or d < min2:
            min2, idx2 = d, j
    return min1, idx1, min2, idx2


def find_correspondences(
    local_kps: Sequence[Keypoint],
    local_feats: Sequence[SDFOrientationFeature],
    global_kps: Sequence[Keypoint],
    global_feats: Sequence[SDFOrientationFeature],
    average_sdf_delta_threshold: float,
) -> List[int]:
    """
    For every local keypoint, the index of its global match or UNMATCHED.
    """
    correspondences = []
    for kp, feat in zip(local_kps, local_feats):
        if not feat.valid:
            correspondences.append(UNMATCHED)
            continue
        min1, idx1, min2, _ = best_two(kp, feat, global_kps, global_feats, average_sdf_delta_threshold)
        correspondences.append(idx1 if ratio_test(min1, min2) else UNMATCHED)
    return correspondences
