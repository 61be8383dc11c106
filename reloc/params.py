from __future__ import annotations
import numpy as np
from dataclasses import dataclass, fields
from typing import Any, Mapping

import config as cfg
from .hypotheses import HypothesisParams

# option names as they appear in parameter files
OPTION_NAMES = {
    "keyScansNum": "key_scans_num",
    "keyScanIntervalDist": "key_scan_interval_dist",
    "keyScanIntervalYaw": "key_scan_interval_yaw",
    "gradientSquareThreshold": "gradient_square_threshold",
    "keypointsMinDistFromMap": "keypoints_min_dist_from_map",
    "sdfFeatureWindowSize": "sdf_feature_window_size",
    "averageSDFDeltaThreshold": "average_sdf_delta_threshold",
    "addRandomSamples": "add_random_samples",
    "addOppositeSamples": "add_opposite_samples",
    "randomSamplesNum": "random_samples_num",
    "positionalRandomNoise": "positional_random_noise",
    "angularRandomNoise": "angular_random_noise",
    "matchingRateThreshold": "matching_rate_threshold",
}


@dataclass
class SamplerParams:
    key_scans_num: int = cfg.KEY_SCANS_NUM
    key_scan_interval_dist: float = cfg.KEY_SCAN_INTERVAL_DIST
    key_scan_interval_yaw: float = cfg.KEY_SCAN_INTERVAL_YAW   # degrees
    gradient_square_threshold: float = cfg.GRADIENT_SQUARE_TH
    keypoints_min_dist_from_map: float = cfg.KEYPOINTS_MIN_DIST_FROM_MAP
    sdf_feature_window_size: float = cfg.SDF_FEATURE_WINDOW_SIZE
    average_sdf_delta_threshold: float = cfg.AVERAGE_SDF_DELTA_TH
    add_random_samples: bool = cfg.ADD_RANDOM_SAMPLES
    add_opposite_samples: bool = cfg.ADD_OPPOSITE_SAMPLES
    random_samples_num: int = cfg.RANDOM_SAMPLES_NUM
    positional_random_noise: float = cfg.POSITIONAL_RANDOM_NOISE
    angular_random_noise: float = cfg.ANGULAR_RANDOM_NOISE
    matching_rate_threshold: float = cfg.MATCHING_RATE_TH

    @staticmethod
    def from_dict(options: Mapping[str, Any]) -> "SamplerParams":
        """
        Build from a mapping keyed by either the camelCase option names or
        the attribute names. Unknown keys are rejected.
        """
        known = {f.name for f in fields(SamplerParams)}
        kwargs = {}
        for key, value in options.items():
            name = OPTION_NAMES.get(key, key)
            if name not in known:
                raise ValueError(f"unknown option '{key}'")
            kwargs[name] = value
        params = SamplerParams(**kwargs)
        params.validate()
        return params

    def validate(self):
        if int(self.key_scans_num) < 1:
            raise ValueError(f"keyScansNum must be >= 1, got {self.key_scans_num}")
        if self.random_samples_num < 0:
            raise ValueError(f"randomSamplesNum must be >= 0, got {self.random_samples_num}")
        for name in ("key_scan_interval_dist", "key_scan_interval_yaw", "gradient_square_threshold",
                     "keypoints_min_dist_from_map", "average_sdf_delta_threshold",
                     "positional_random_noise", "angular_random_noise"):
            if getattr(self, name) < 0.0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.sdf_feature_window_size <= 0.0:
            raise ValueError(f"sdfFeatureWindowSize must be > 0, got {self.sdf_feature_window_size}")
        if self.matching_rate_threshold > 1.0:
            raise ValueError(f"matchingRateThreshold must be <= 1, got {self.matching_rate_threshold}")

    @property
    def key_scan_interval_yaw_rad(self) -> float:
        return float(np.deg2rad(self.key_scan_interval_yaw))

    def hypothesis_params(self) -> HypothesisParams:
        return HypothesisParams(
            add_random_samples=bool(self.add_random_samples),
            add_opposite_samples=bool(self.add_opposite_samples),
            random_samples_num=int(self.random_samples_num),
            positional_random_noise=float(self.positional_random_noise),
            angular_random_noise=float(self.angular_random_noise),
            matching_rate_threshold=float(self.matching_rate_threshold),
            min_dist_from_map=float(self.keypoints_min_dist_from_map),
        )
