import numpy as np
import pytest

from reloc.keyscans import KeyScanWindow, is_valid_scan
from reloc.lidar import valid_scan_rate
from reloc.se2 import Pose

from conftest import make_scan


def window(capacity=3):
    return KeyScanWindow(capacity, interval_dist=0.5, interval_yaw=np.deg2rad(5.0))


def test_capacity_keeps_newest_first():
    w = window(3)
    scans = [make_scan([1.0] * 10) for _ in range(4)]
    for i, s in enumerate(scans):
        assert w.offer(s, Pose(float(i), 0.0, 0.0))

    assert len(w) == 3
    assert w.is_full
    assert [p.x for p in w.poses] == [3.0, 2.0, 1.0]
    assert w.scans[0] is scans[3]
    assert w.oldest[1].x == 1.0
    assert w.newest[0] is scans[3]


def test_first_scan_seeds_unconditionally():
    w = window()
    assert w.last_pose is None
    assert w.offer(make_scan([1.0]), Pose(0.0, 0.0, 0.0))
    assert len(w) == 1


def test_needs_movement_or_rotation():
    w = window()
    w.offer(make_scan([1.0]), Pose(0.0, 0.0, 0.0))

    assert not w.offer(make_scan([1.0]), Pose(0.3, 0.3, 0.0))   # 0.42 m
    assert len(w) == 1
    assert w.offer(make_scan([1.0]), Pose(0.4, 0.4, 0.0))       # 0.57 m
    assert w.last_pose == Pose(0.4, 0.4, 0.0)
    assert w.offer(make_scan([1.0]), Pose(0.4, 0.4, 0.1))       # 5.7 deg
    assert len(w) == 3


def test_yaw_difference_is_wrapped():
    w = window()
    w.offer(make_scan([1.0]), Pose(0.0, 0.0, 3.1))
    # 3.1 -> -3.1 is a 0.08 rad turn, below 5 deg
    assert not w.offer(make_scan([1.0]), Pose(0.0, 0.0, -3.1))


def test_clear():
    w = window()
    w.offer(make_scan([1.0]), Pose())
    w.clear()
    assert len(w) == 0 and w.last_pose is None


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        KeyScanWindow(0, 0.5, 0.1)


def test_valid_scan_rate():
    ranges = [np.nan] * 9 + [1.0]
    assert valid_scan_rate(make_scan(ranges)) == pytest.approx(0.1)
    assert is_valid_scan(make_scan(ranges))
    assert not is_valid_scan(make_scan([np.inf] * 10))
    assert not is_valid_scan(make_scan([0.05] * 10))
    assert not is_valid_scan(make_scan([]))
