from __future__ import annotations
import logging
import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Sequence

import config as cfg
from .descriptor import SDFOrientationFeature
from .gridmap import OccupancyGrid
from .keypoints import Keypoint
from .lidar import LaserScan
from .matcher import UNMATCHED
from .matching_rate import compute_matching_rate
from .se2 import Pose, rot2

log = logging.getLogger(__name__)


class NoiseSource:
    """
    Zero-mean Gaussian noise by Box-Muller over a seedable generator.
    Same seed, same sequence.
    """

    def __init__(self, seed: Optional[int] = None):
        self.rng = np.random.default_rng(seed)

    def normal(self, std: float) -> float:
        u1 = 1.0 - self.rng.random()   # (0, 1], keeps log finite
        u2 = self.rng.random()
        return float(std * np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2))


@dataclass
class HypothesisParams:
    add_random_samples: bool = cfg.ADD_RANDOM_SAMPLES
    add_opposite_samples: bool = cfg.ADD_OPPOSITE_SAMPLES
    random_samples_num: int = cfg.RANDOM_SAMPLES_NUM
    positional_random_noise: float = cfg.POSITIONAL_RANDOM_NOISE
    angular_random_noise: float = cfg.ANGULAR_RANDOM_NOISE
    matching_rate_threshold: float = cfg.MATCHING_RATE_TH
    min_dist_from_map: float = cfg.KEYPOINTS_MIN_DIST_FROM_MAP


def recover_sensor_pose(
    sensor_odom: Pose,
    local_kp: Keypoint,
    local_feat: SDFOrientationFeature,
    global_kp: Keypoint,
    global_feat: SDFOrientationFeature,
) -> Pose:
    """
    Map-frame sensor pose implied by one keypoint correspondence.

    The odom -> map rotation is the difference of the dominant
    orientations; the sensor's offset from the local keypoint is rotated
    by it and re-anchored on the global keypoint.
    """
    theta = global_feat.dominant_orientation - local_feat.dominant_orientation
    offset = np.array([sensor_odom.x - local_kp.x, sensor_odom.y - local_kp.y])
    p = rot2(theta) @ offset + np.array([global_kp.x, global_kp.y])
    return Pose(p[0], p[1], sensor_odom.yaw + theta)


class PoseHypothesisGenerator:
    def __init__(
        self,
        grid: OccupancyGrid,
        base_to_laser: Pose,
        params: HypothesisParams | None = None,
        noise: NoiseSource | None = None,
    ):
        self.grid = grid
        self.base_to_laser = base_to_laser
        self.params = params if params is not None else HypothesisParams()
        self.noise = noise if noise is not None else NoiseSource()

    def passes_matching_rate(self, pose: Pose, scan: LaserScan) -> bool:
        th = self.params.matching_rate_threshold
        if th <= 0.0:
            return True
        rate = compute_matching_rate(self.grid, scan, pose, self.base_to_laser, self.params.min_dist_from_map)
        return rate >= th

    def candidate(
        self,
        odom_pose: Pose,
        local_kp: Keypoint,
        local_feat: SDFOrientationFeature,
        global_kp: Keypoint,
        global_feat: SDFOrientationFeature,
    ) -> Optional[Pose]:
        """
        Body pose in the map frame for one correspondence, None when it
        lands off the map or on a non-free cell.
        """
        sensor_odom = odom_pose.compose(self.base_to_laser)
        sensor_map = recover_sensor_pose(sensor_odom, local_kp, local_feat, global_kp, global_feat)
        base = sensor_map.inverse_compose(self.base_to_laser)

        u, v = self.grid.xy2uv(base.x, base.y)
        if not self.grid.is_free(u, v):
            return None
        return base

    def perturb(self, base: Pose, j: int) -> Pose:
        p = self.params
        x = base.x + self.noise.normal(p.positional_random_noise)
        y = base.y + self.noise.normal(p.positional_random_noise)
        yaw = base.yaw + self.noise.normal(p.angular_random_noise)
        if p.add_opposite_samples and j % 2 == 1:
            yaw += np.pi
        return Pose(x, y, yaw)

    def generate(
        self,
        odom_pose: Pose,
        scan: LaserScan,
        local_kps: Sequence[Keypoint],
        local_feats: Sequence[SDFOrientationFeature],
        global_kps: Sequence[Keypoint],
        global_feats: Sequence[SDFOrientationFeature],
        correspondences: Sequence[int],
    ) -> List[Pose]:
        """
        All accepted map-frame body poses for one cycle, in correspondence
        order. `scan` is the key scan used for the matching-rate gate.
        """
        poses = []
        for i, idx in enumerate(correspondences):
            if idx == UNMATCHED:
                continue
            base = self.candidate(odom_pose, local_kps[i], local_feats[i], global_kps[idx], global_feats[idx])
            if base is None:
                continue

            if not self.params.add_random_samples:
                if self.passes_matching_rate(base, scan):
                    poses.append(base)
                continue

            for j in range(self.params.random_samples_num):
                pose = self.perturb(base, j)
                if self.passes_matching_rate(pose, scan):
                    poses.append(pose)

        log.debug("%d pose hypotheses from %d correspondences",
                  len(poses), sum(1 for c in correspondences if c != UNMATCHED))
        return poses
