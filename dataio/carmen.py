# dataio/carmen.py
from __future__ import annotations
import numpy as np

import config as cfg
from reloc.lidar import LaserScan
from reloc.se2 import Pose


def parse_flaser(tokens: list[str]) -> dict | None:
    """
    One FLASER record, or None when it is truncated or malformed.

    FLASER n r0..r(n-1) x y theta odom_x odom_y odom_theta ipc_timestamp hostname logger_timestamp
    The pose used is the first (x, y, theta) triple following the ranges.
    """
    try:
        n = int(tokens[1])
    except (ValueError, IndexError):
        return None
    pose_at = 2 + n
    if n < 0 or len(tokens) < pose_at + 3:
        return None

    try:
        ranges = np.asarray(tokens[2:pose_at], dtype=float)
        odom = tuple(float(s) for s in tokens[pose_at:pose_at + 3])
        # ipc timestamp is 3rd from the end when the trailer is present
        stamp = float(tokens[-3]) if len(tokens) >= pose_at + 6 else float("nan")
    except ValueError:
        return None
    return {"ranges": ranges, "odom": odom, "t": stamp}


def read_carmen_log(path: str) -> list[dict]:
    """
    FLASER records of a CARMEN log, in file order, as dicts with
    "ranges" (np.ndarray), "odom" (x, y, theta) and "t" (nan if absent).
    Other message types and broken lines are skipped.
    """
    entries = []
    with open(path, "r", errors="ignore") as f:
        for line in f:
            tokens = line.split()
            if not tokens or tokens[0] != "FLASER":
                continue
            entry = parse_flaser(tokens)
            if entry is not None:
                entries.append(entry)
    return entries


def to_scan(
    entry: dict,
    angle_min: float = cfg.LIDAR_ANGLE_MIN,
    angle_inc: float = cfg.LIDAR_ANGLE_INC,
    rmin: float = cfg.LIDAR_MIN_RANGE,
    rmax: float = cfg.LIDAR_MAX_RANGE,
) -> LaserScan:
    ranges = entry["ranges"]
    return LaserScan(
        ranges=ranges,
        angle_min=angle_min,
        angle_max=angle_min + (len(ranges) - 1) * angle_inc,
        angle_increment=angle_inc,
        range_min=rmin,
        range_max=rmax,
    )


def to_pose(entry: dict) -> Pose:
    x, y, th = entry["odom"]
    return Pose(x, y, th)
