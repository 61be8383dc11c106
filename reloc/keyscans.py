from __future__ import annotations
import logging
from collections import deque
from typing import Iterator, List, Optional, Tuple

import config as cfg
from .lidar import LaserScan, valid_scan_rate
from .se2 import Pose, wrap_angle

log = logging.getLogger(__name__)


def is_valid_scan(scan: LaserScan, min_rate: float = cfg.MIN_VALID_SCAN_RATE) -> bool:
    return valid_scan_rate(scan) >= min_rate


class KeyScanWindow:
    """
    Bounded buffer of (scan, odometry pose) pairs, newest first.

    A new pair is pushed when the odometry moved more than `interval_dist`
    or turned more than `interval_yaw` (rad) since the last admitted scan;
    the first scan is always admitted. Once `capacity` is exceeded the
    oldest pair falls off the back.
    """

    def __init__(self, capacity: int, interval_dist: float, interval_yaw: float):
        if capacity < 1:
            raise ValueError(f"key scan window capacity must be >= 1, got {capacity}")
        self.capacity = int(capacity)
        self.interval_dist = float(interval_dist)
        self.interval_yaw = float(interval_yaw)
        self._entries: deque[Tuple[LaserScan, Pose]] = deque(maxlen=self.capacity)
        self.last_pose: Optional[Pose] = None

    def moved_enough(self, pose: Pose) -> bool:
        if self.last_pose is None:
            return True
        dl = pose.distance_to(self.last_pose)
        dyaw = wrap_angle(pose.yaw - self.last_pose.yaw)
        return dl > self.interval_dist or abs(dyaw) > self.interval_yaw

    def offer(self, scan: LaserScan, pose: Pose) -> bool:
        """
        Push (scan, pose) if it qualifies as a key scan.
        Returns True when the window changed.
        """
        if not self.moved_enough(pose):
            return False
        self._entries.appendleft((scan, pose))
        self.last_pose = pose
        log.debug("key scan admitted at (%.3f, %.3f, %.3f), window %d/%d",
                  pose.x, pose.y, pose.yaw, len(self._entries), self.capacity)
        return True

    def clear(self):
        self._entries.clear()
        self.last_pose = None

    @property
    def is_full(self) -> bool:
        return len(self._entries) == self.capacity

    @property
    def newest(self) -> Tuple[LaserScan, Pose]:
        return self._entries[0]

    @property
    def oldest(self) -> Tuple[LaserScan, Pose]:
        return self._entries[-1]

    @property
    def scans(self) -> List[LaserScan]:
        return [s for s, _ in self._entries]

    @property
    def poses(self) -> List[Pose]:
        return [p for _, p in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Tuple[LaserScan, Pose]]:
        return iter(self._entries)
