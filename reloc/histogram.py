from __future__ import annotations
import numpy as np
from typing import Optional, Sequence


class Histogram:
    """
    Fixed-width histogram of scalar values with per-bin probabilities.

    Bins cover [min_value, max_value] in steps of bin_width; when no range
    is given it is taken from the data.
    """

    def __init__(
        self,
        values: Sequence[float],
        bin_width: float,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
    ):
        if bin_width <= 0.0:
            raise ValueError(f"bin_width must be > 0, got {bin_width}")
        values = np.asarray(values, dtype=float).reshape(-1)
        if (min_value is None or max_value is None) and values.size == 0:
            raise ValueError("cannot infer histogram range from no values")

        self.bin_width = float(bin_width)
        self.min_value = float(values.min()) if min_value is None else float(min_value)
        self.max_value = float(values.max()) if max_value is None else float(max_value)
        self.size = int((self.max_value - self.min_value) / self.bin_width) + 1

        bins = self._bins(values)
        bins = bins[bins >= 0]
        self.counts = np.bincount(bins, minlength=self.size).astype(float)
        self.value_num = int(bins.size)
        if self.value_num > 0:
            self.probabilities = self.counts / self.value_num
        else:
            self.probabilities = np.zeros(self.size, dtype=float)

    def _bins(self, values: np.ndarray) -> np.ndarray:
        b = np.floor((values - self.min_value) / self.bin_width).astype(np.int64)
        b[(b < 0) | (b >= self.size)] = -1
        return b

    def probability(self, value: float) -> float:
        """
        Probability of the bin holding `value`, -1.0 outside the range.
        The upper edge is folded into the last bin.
        """
        if value >= self.max_value:
            value -= self.bin_width
        b = int(self._bins(np.array([value]))[0])
        if b < 0:
            return -1.0
        return float(self.probabilities[b])

    def smooth(self):
        """
        3-tap moving average of the counts (edge bins repeated); the
        probabilities are recomputed from the result.
        """
        padded = np.concatenate([self.counts[:1], self.counts, self.counts[-1:]])
        vals = (padded[:-2] + padded[1:-1] + padded[2:]) / 3.0
        total = vals.sum()
        self.counts = vals
        if total > 0.0:
            self.probabilities = vals / total

    def to_dict(self) -> dict:
        return {
            "bin_width": self.bin_width,
            "min_value": self.min_value,
            "max_value": self.max_value,
            "value_num": self.value_num,
            "counts": self.counts.tolist(),
            "probabilities": self.probabilities.tolist(),
        }

    @staticmethod
    def from_dict(d: dict) -> "Histogram":
        """Rebuild a histogram written by to_dict (smoothing included)."""
        h = Histogram([], d["bin_width"], d["min_value"], d["max_value"])
        counts = np.asarray(d["counts"], dtype=float)
        if counts.size != h.size:
            raise ValueError(f"expected {h.size} bins, got {counts.size}")
        h.counts = counts
        h.probabilities = np.asarray(d["probabilities"], dtype=float)
        h.value_num = int(d["value_num"])
        return h
