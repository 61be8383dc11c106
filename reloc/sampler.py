from __future__ import annotations
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import config as cfg
from .descriptor import SDFOrientationFeature, compute_features
from .distance_field import DistanceField, build_distance_field
from .gridmap import OccupancyGrid
from .hypotheses import NoiseSource, PoseHypothesisGenerator
from .keypoints import Keypoint, detect_keypoints
from .keyscans import KeyScanWindow, is_valid_scan
from .lidar import LaserScan
from .local_map import build_local_map
from .matcher import find_correspondences
from .params import SamplerParams
from .se2 import Pose

log = logging.getLogger(__name__)


class InitState(Enum):
    AWAITING_MAP = "awaiting_map"
    AWAITING_ODOMETRY = "awaiting_odometry"
    READY = "ready"


class LivenessError(RuntimeError):
    """Map or odometry never arrived."""


@dataclass
class Landmarks:
    """Keypoints and their features (same order) extracted from one grid."""
    grid: OccupancyGrid
    field: DistanceField
    keypoints: List[Keypoint]
    features: List[SDFOrientationFeature]


@dataclass
class CycleResult:
    poses: List[Pose]
    local_map: OccupancyGrid
    local_keypoints: List[Keypoint]
    correspondences: List[int] = field(default_factory=list)


def extract_landmarks(grid: OccupancyGrid, params: SamplerParams) -> Landmarks:
    """grid -> distance field -> keypoints -> features."""
    dist = build_distance_field(grid)
    keypoints = detect_keypoints(
        grid,
        dist,
        gradient_square_threshold=params.gradient_square_threshold,
        min_dist_from_map=params.keypoints_min_dist_from_map,
    )
    features = compute_features(dist, keypoints, params.sdf_feature_window_size)
    return Landmarks(grid, dist, keypoints, features)


def keypoint_markers(keypoints: Sequence[Keypoint]) -> List[Tuple[float, float, int]]:
    """(x, y, type) per keypoint, for visualization."""
    return [(kp.x, kp.y, int(kp.type)) for kp in keypoints]


class LivenessClock:
    """Tells when the next periodic liveness check is due."""

    def __init__(self, period: float = cfg.LIVENESS_PERIOD):
        self.period = float(period)
        self.next_check: Optional[float] = None

    def due(self, now: float) -> bool:
        if self.next_check is None:
            self.next_check = now + self.period
            return False
        if now < self.next_check:
            return False
        self.next_check = now + self.period
        return True


class GLPoseSampler:
    """
    Global localization pose sampler.

    The global landmark set is built once from the first map and frozen.
    Each admitted key scan that fills the window triggers one synchronous
    cycle: local map -> landmarks -> correspondences -> pose hypotheses.
    """

    def __init__(
        self,
        base_to_laser: Pose,
        params: SamplerParams | None = None,
        noise: NoiseSource | None = None,
    ):
        self.params = params if params is not None else SamplerParams()
        self.params.validate()
        self.base_to_laser = base_to_laser
        self.noise = noise if noise is not None else NoiseSource()

        self.window = KeyScanWindow(
            capacity=self.params.key_scans_num,
            interval_dist=self.params.key_scan_interval_dist,
            interval_yaw=self.params.key_scan_interval_yaw_rad,
        )
        self.global_landmarks: Optional[Landmarks] = None
        self.generator: Optional[PoseHypothesisGenerator] = None
        self.odom_pose: Optional[Pose] = None

        self._state = InitState.AWAITING_MAP
        self._build_lock = threading.Lock()

    # ---------------- state ----------------
    @property
    def state(self) -> InitState:
        return self._state

    def _advance(self):
        # odometry may arrive before the map; READY needs both
        if self.global_landmarks is None:
            self._state = InitState.AWAITING_MAP
        elif self.odom_pose is None:
            self._state = InitState.AWAITING_ODOMETRY
        else:
            self._state = InitState.READY

    def check_liveness(self):
        """Raise LivenessError unless both map and odometry have arrived."""
        if self._state is InitState.READY:
            return
        if self._state is InitState.AWAITING_ODOMETRY:
            msg = "no odometry received yet"
        elif self.odom_pose is None:
            msg = "no map or odometry received yet"
        else:
            msg = "no map received yet"
        log.error(msg)
        raise LivenessError(msg)

    # ---------------- inputs ----------------
    def on_map(self, grid: OccupancyGrid) -> bool:
        """
        Build the global landmark set from the first map. Returns False
        (and changes nothing) for any later map.
        """
        with self._build_lock:
            if self.global_landmarks is not None:
                log.warning("map update ignored, global landmarks are already built")
                return False
            landmarks = extract_landmarks(grid, self.params)
            self.generator = PoseHypothesisGenerator(
                grid, self.base_to_laser, self.params.hypothesis_params(), self.noise
            )
            self.global_landmarks = landmarks
            self._advance()
        log.info("global map %dx%d @ %.3f m: %d keypoints",
                 grid.width, grid.height, grid.resolution, len(landmarks.keypoints))
        return True

    def on_odometry(self, pose: Pose):
        self.odom_pose = pose
        self._advance()

    def on_scan(self, scan: LaserScan) -> Optional[CycleResult]:
        """
        Feed one scan. Returns the cycle result when the key scan window was
        updated and is full, otherwise None.
        """
        if not is_valid_scan(scan):
            log.warning("scan dropped: too few readings within sensor range")
            return None
        if self.odom_pose is None:
            return None

        updated = self.window.offer(scan, self.odom_pose)
        if not (updated and self.window.is_full):
            return None
        if self.global_landmarks is None:
            log.debug("key scan window full but no global map yet")
            return None
        return self.run_cycle()

    # ---------------- one cycle ----------------
    def run_cycle(self) -> CycleResult:
        p = self.params
        g = self.global_landmarks
        local_map = build_local_map(
            self.window, self.base_to_laser, g.grid.resolution, p.keypoints_min_dist_from_map
        )
        local = extract_landmarks(local_map, p)
        correspondences = find_correspondences(
            local.keypoints, local.features, g.keypoints, g.features, p.average_sdf_delta_threshold
        )
        newest_scan, newest_pose = self.window.newest
        poses = self.generator.generate(
            newest_pose,
            newest_scan,
            local.keypoints,
            local.features,
            g.keypoints,
            g.features,
            correspondences,
        )
        log.debug("cycle: %d local keypoints, %d poses", len(local.keypoints), len(poses))
        return CycleResult(poses, local_map, local.keypoints, correspondences)
