from __future__ import annotations
import numpy as np
from dataclasses import dataclass, field

from .se2 import Pose

UNKNOWN = -1
FREE = 0
OCCUPIED = 100


@dataclass
class OccupancyGrid:
    """
    2D ternary occupancy grid {-1 unknown, 0 free, 100 occupied}.
    Coordinate convention:
      - World frame is meters (x, y).
      - Grid coords are (u, v); u runs along the origin's x axis,
        v along its y axis. Cell (0, 0) sits at the origin pose.
      - Storage is array [v, u] (row-major).
    """
    width: int
    height: int
    resolution: float
    origin: Pose = field(default_factory=Pose)
    data: np.ndarray | None = None

    def __post_init__(self):
        self.width = int(self.width)
        self.height = int(self.height)
        self.resolution = float(self.resolution)
        if self.resolution <= 0.0:
            raise ValueError(f"resolution must be > 0, got {self.resolution}")
        if self.width < 0 or self.height < 0:
            raise ValueError(f"invalid grid size {self.width}x{self.height}")

        if self.data is None:
            self.data = np.full((self.height, self.width), UNKNOWN, dtype=np.int8)
        else:
            data = np.asarray(self.data, dtype=np.int8)
            if data.size != self.width * self.height:
                raise ValueError(
                    f"grid data has {data.size} cells, expected {self.width * self.height}"
                )
            self.data = data.reshape(self.height, self.width)

    @staticmethod
    def unknown(width: int, height: int, resolution: float, origin: Pose | None = None) -> "OccupancyGrid":
        return OccupancyGrid(width, height, resolution, origin if origin is not None else Pose())

    # ---------------- Coordinate transforms ----------------
    def xy2uv(self, x: float, y: float) -> tuple[int, int]:
        """World meters -> integer cell (truncated toward zero)."""
        dx = x - self.origin.x
        dy = y - self.origin.y
        yaw = -self.origin.yaw
        xx = dx * np.cos(yaw) - dy * np.sin(yaw)
        yy = dx * np.sin(yaw) + dy * np.cos(yaw)
        return int(xx / self.resolution), int(yy / self.resolution)

    def uv2xy(self, u: int, v: int) -> tuple[float, float]:
        """Integer cell -> world meters."""
        xx = u * self.resolution
        yy = v * self.resolution
        yaw = self.origin.yaw
        x = xx * np.cos(yaw) - yy * np.sin(yaw) + self.origin.x
        y = xx * np.sin(yaw) + yy * np.cos(yaw) + self.origin.y
        return float(x), float(y)

    def world_to_grid(self, xy: np.ndarray) -> np.ndarray:
        """
        xy: (N,2) world meters -> (N,2) integer cells (u, v)
        """
        xy = np.asarray(xy, dtype=float)
        d = xy - np.array([self.origin.x, self.origin.y])
        c, s = np.cos(-self.origin.yaw), np.sin(-self.origin.yaw)
        xx = d[:, 0] * c - d[:, 1] * s
        yy = d[:, 0] * s + d[:, 1] * c
        u = np.trunc(xx / self.resolution).astype(np.int64)
        v = np.trunc(yy / self.resolution).astype(np.int64)
        return np.stack([u, v], axis=1)

    def grid_to_world(self, uv: np.ndarray) -> np.ndarray:
        """
        uv: (N,2) cells -> (N,2) world meters
        """
        uv = np.asarray(uv, dtype=float)
        xx = uv[:, 0] * self.resolution
        yy = uv[:, 1] * self.resolution
        c, s = np.cos(self.origin.yaw), np.sin(self.origin.yaw)
        x = xx * c - yy * s + self.origin.x
        y = xx * s + yy * c + self.origin.y
        return np.stack([x, y], axis=1)

    # ---------------- Bounds ----------------
    def in_bounds(self, u, v):
        """Closed grid bounds: 0 <= u < width, 0 <= v < height."""
        return (u >= 0) & (v >= 0) & (u < self.width) & (v < self.height)

    def in_interior(self, u, v):
        """
        Cells with a full 4-neighbourhood (1-cell margin).
        """
        return (u >= 1) & (v >= 1) & (u < self.width - 1) & (v < self.height - 1)

    # ---------------- Cell access ----------------
    def value(self, u: int, v: int) -> int:
        return int(self.data[v, u])

    def is_free(self, u: int, v: int) -> bool:
        return bool(self.in_bounds(u, v)) and self.data[v, u] == FREE

    def is_occupied(self, u: int, v: int) -> bool:
        return bool(self.in_bounds(u, v)) and self.data[v, u] == OCCUPIED

    def set_cells(self, uv: np.ndarray, value: int):
        """
        Write `value` to integer cells (u, v), dropping those outside the grid.
        uv: (N,2) int indices
        """
        uv = np.asarray(uv, dtype=np.int64).reshape(-1, 2)
        u = uv[:, 0]
        v = uv[:, 1]
        m = self.in_bounds(u, v)
        self.data[v[m], u[m]] = value
