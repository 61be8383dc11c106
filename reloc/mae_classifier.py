from __future__ import annotations
import json
import logging
import os
import numpy as np
from typing import Optional, Sequence

from .histogram import Histogram

log = logging.getLogger(__name__)

PARAMS_FILE = "mae_classifier.json"


class MAEClassifier:
    """
    Accept/reject a pose estimate from its scan residual errors.

    The mean absolute error of the (clipped) residuals is compared against a
    failure threshold, which can be learned from labelled residual sets.
    """

    def __init__(
        self,
        max_residual_error: float = 1.0,
        histogram_bin_width: float = 0.01,
        failure_threshold: Optional[float] = None,
    ):
        self.max_residual_error = float(max_residual_error)
        self.histogram_bin_width = float(histogram_bin_width)
        self.failure_threshold = failure_threshold
        self.success_hist: Optional[Histogram] = None
        self.failure_hist: Optional[Histogram] = None

    def mae(self, residuals: Sequence[float]) -> float:
        r = np.abs(np.asarray(residuals, dtype=float).reshape(-1))
        r = r[np.isfinite(r)]
        if r.size == 0:
            return self.max_residual_error
        return float(np.minimum(r, self.max_residual_error).mean())

    def classify(self, residuals: Sequence[float]) -> bool:
        """True when the estimate is accepted (MAE below the threshold)."""
        if self.failure_threshold is None:
            raise RuntimeError("failure threshold is not set; call learn_threshold first")
        return self.mae(residuals) < self.failure_threshold

    def failure_probability(self, residuals: Sequence[float]) -> float:
        """
        Share of the learned failure density at this MAE, from the smoothed
        histograms; 0.5 where neither set has mass.
        """
        if self.success_hist is None or self.failure_hist is None:
            raise RuntimeError("histograms are not built; call learn_threshold first")
        e = min(self.mae(residuals), self.max_residual_error)
        p_ok = max(self.success_hist.probability(e), 0.0)
        p_bad = max(self.failure_hist.probability(e), 0.0)
        if p_ok + p_bad == 0.0:
            return 0.5
        return p_bad / (p_ok + p_bad)

    def learn_threshold(
        self,
        success_residuals: Sequence[Sequence[float]],
        failure_residuals: Sequence[Sequence[float]],
    ) -> float:
        """
        Pick the MAE threshold that best separates the two labelled sets
        (maximum of true-positive rate + true-negative rate; lowest wins on
        ties).
        """
        if not success_residuals or not failure_residuals:
            raise ValueError("need both success and failure samples to learn a threshold")

        ok = np.array([self.mae(r) for r in success_residuals])
        bad = np.array([self.mae(r) for r in failure_residuals])

        self.success_hist = Histogram(ok, self.histogram_bin_width, 0.0, self.max_residual_error)
        self.failure_hist = Histogram(bad, self.histogram_bin_width, 0.0, self.max_residual_error)
        self.success_hist.smooth()
        self.failure_hist.smooth()

        candidates = np.arange(0.0, self.max_residual_error + self.histogram_bin_width, self.histogram_bin_width)
        best_th, best_score = float(candidates[0]), -1.0
        for th in candidates:
            score = np.mean(ok < th) + np.mean(bad >= th)
            if score > best_score:
                best_th, best_score = float(th), float(score)

        self.failure_threshold = best_th
        return best_th

    # ---------------- persistence ----------------
    def params_path(self, classifier_dir: str) -> str:
        return os.path.join(classifier_dir, PARAMS_FILE)

    def write_params(self, classifier_dir: str):
        """Threshold and smoothed histograms to <classifier_dir>/mae_classifier.json."""
        if self.failure_threshold is None or self.success_hist is None or self.failure_hist is None:
            raise RuntimeError("nothing learned yet; call learn_threshold first")
        os.makedirs(classifier_dir, exist_ok=True)
        params = {
            "max_residual_error": self.max_residual_error,
            "histogram_bin_width": self.histogram_bin_width,
            "failure_threshold": self.failure_threshold,
            "success_hist": self.success_hist.to_dict(),
            "failure_hist": self.failure_hist.to_dict(),
        }
        with open(self.params_path(classifier_dir), "w") as f:
            json.dump(params, f, indent=2)
        log.info("classifier params written to %s", classifier_dir)

    def read_params(self, classifier_dir: str):
        path = self.params_path(classifier_dir)
        with open(path, "r") as f:
            params = json.load(f)
        self.max_residual_error = float(params["max_residual_error"])
        self.histogram_bin_width = float(params["histogram_bin_width"])
        self.failure_threshold = float(params["failure_threshold"])
        self.success_hist = Histogram.from_dict(params["success_hist"])
        self.failure_hist = Histogram.from_dict(params["failure_hist"])
        log.info("classifier params read from %s (threshold %.3f)", path, self.failure_threshold)
