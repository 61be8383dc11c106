from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import config as cfg
from .se2 import Pose

log = logging.getLogger(__name__)


class TransformTimeoutError(RuntimeError):
    """The sensor-to-body offset could not be obtained in time."""


@dataclass(frozen=True)
class OffsetResult:
    offset: Optional[Pose]
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.offset is not None


class StaticOffset:
    """Lookup that always answers with a fixed offset."""

    def __init__(self, pose: Pose):
        self.pose = pose

    def __call__(self) -> Pose:
        return self.pose


def wait_for_offset(
    lookup: Callable[[], Optional[Pose]],
    timeout: float = cfg.TRANSFORM_TIMEOUT,
    poll_interval: float = 0.05,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> OffsetResult:
    """
    Poll `lookup` until it returns a pose or `timeout` seconds pass.
    Lookup errors are retried; the last one is reported on timeout.
    """
    deadline = clock() + timeout
    last_error = None
    while True:
        try:
            offset = lookup()
        except Exception as e:  # lookup backends raise their own types
            offset = None
            last_error = f"{type(e).__name__}: {e}"
        if offset is not None:
            log.info("sensor offset ready: (%.3f, %.3f, %.3f)", offset.x, offset.y, offset.yaw)
            return OffsetResult(offset)
        if clock() >= deadline:
            break
        sleep(poll_interval)

    msg = f"no sensor-to-body offset within {timeout:.1f} s"
    if last_error is not None:
        msg += f" (last error: {last_error})"
    return OffsetResult(None, msg)


def require_offset(
    lookup: Callable[[], Optional[Pose]],
    timeout: float = cfg.TRANSFORM_TIMEOUT,
    **kwargs,
) -> Pose:
    """wait_for_offset, raising TransformTimeoutError on failure."""
    result = wait_for_offset(lookup, timeout=timeout, **kwargs)
    if not result.ok:
        log.error("%s", result.error)
        raise TransformTimeoutError(result.error)
    return result.offset
