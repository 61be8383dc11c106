import numpy as np
import pytest

from reloc.descriptor import (
    RELATIVE_BINS,
    compute_features,
    describe_window,
    gradient_orientations,
)
from reloc.distance_field import DistanceField
from reloc.keypoints import Keypoint, KeypointType
from reloc.se2 import Pose, wrap_angle

N = 21
C = 10


def tilted_plane(angle_deg, noise=0.005, seed=3):
    vv, uu = np.mgrid[0:N, 0:N].astype(float)
    a = np.deg2rad(angle_deg)
    rng = np.random.default_rng(seed)
    return 5.0 + 0.2 * (np.cos(a) * uu + np.sin(a) * vv) + noise * rng.random((N, N))


def field_of(values, resolution=1.0, origin=None):
    return DistanceField(np.asarray(values, dtype=np.float32), resolution, origin if origin is not None else Pose())


def center_kp():
    return Keypoint(C, C, 0.0, 0.0, KeypointType.SADDLE)


def test_dominant_orientation_is_bin_center():
    feat = compute_features(field_of(tilted_plane(23.0)), [center_kp()], window_size=3.0)[0]
    assert feat.valid
    # 23 deg falls in the 20-30 bin
    assert feat.dominant_orientation == pytest.approx(np.deg2rad(25.0))
    assert sum(feat.relative_orientation_hist) == 49
    assert len(feat.relative_orientation_hist) == RELATIVE_BINS


def test_rotated_window_rotates_orientation_only():
    values = tilted_plane(23.0)
    rotated = np.rot90(values, k=-1).copy()   # +90 deg in (u, v)

    a = compute_features(field_of(values), [center_kp()], window_size=3.0)[0]
    b = compute_features(field_of(rotated), [center_kp()], window_size=3.0)[0]

    assert wrap_angle(b.dominant_orientation - a.dominant_orientation) == pytest.approx(np.pi / 2)
    assert a.relative_orientation_hist == b.relative_orientation_hist
    assert a.average_sdf == pytest.approx(b.average_sdf, rel=1e-6)


def test_average_sdf_is_window_mean():
    values = np.full((N, N), 2.0)
    values[C, C] = 11.0
    feat = compute_features(field_of(values), [center_kp()], window_size=1.0)[0]
    # 3x3 window
    assert feat.average_sdf == pytest.approx((8 * 2.0 + 11.0) / 9.0)


def test_window_is_clipped_to_interior():
    values = tilted_plane(43.0)
    corner = Keypoint(1, 1, 0.0, 0.0, KeypointType.SADDLE)
    feat = compute_features(field_of(values), [corner], window_size=2.0)[0]
    # u, v in [1, 3]
    assert sum(feat.relative_orientation_hist) == 9


def test_empty_window_is_invalid_not_nan():
    far = Keypoint(50, 50, 0.0, 0.0, KeypointType.SADDLE)
    feat = compute_features(field_of(np.ones((5, 5))), [far], window_size=1.0)[0]
    assert not feat.valid
    assert feat.average_sdf == 0.0
    assert not np.isnan(feat.dominant_orientation)

    assert not describe_window(np.array([]), np.array([])).valid


def test_window_size_scales_with_resolution():
    values = tilted_plane(23.0)
    # 1 m at 0.5 m/cell -> half-width 2 -> 5x5
    feat = compute_features(field_of(values, resolution=0.5), [center_kp()], window_size=1.0)[0]
    assert sum(feat.relative_orientation_hist) == 25


def test_map_yaw_is_added_to_orientation():
    values = tilted_plane(23.0)
    feat = compute_features(field_of(values, origin=Pose(0.0, 0.0, 0.5)), [center_kp()], window_size=3.0)[0]
    assert feat.dominant_orientation == pytest.approx(np.deg2rad(25.0) + 0.5)


def test_relative_histogram_of_opposite_gradients():
    # half the samples point at 5 deg, half at 185 deg
    angles = np.array([5.0] * 6 + [185.0] * 4)
    feat = describe_window(np.ones(10), angles)
    assert feat.dominant_orientation == pytest.approx(np.deg2rad(5.0))
    hist = feat.relative_orientation_hist
    assert hist[0] == 6
    # |180| lands past the last bin
    assert sum(hist) == 6


def test_gradient_orientations_range():
    values = np.random.default_rng(7).random((12, 12))
    t = gradient_orientations(values)
    assert t.shape == (10, 10)
    assert np.all(t >= 0.0) and np.all(t < 360.0 + 1e-9)
