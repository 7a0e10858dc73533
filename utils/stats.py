"""
utils.stats: Summary statistics for per-image metric scores
"""
import math
from typing import Any, Dict, List, Tuple

import numpy as np
from scipy import stats


class RunningStats:
    """Running mean/variance (Welford) without storing the values."""

    def __init__(self):
        self.n = 0
        self.mean = 0.0
        self.M2 = 0.0
        self.min_val = float('inf')
        self.max_val = float('-inf')

    def update(self, x: float) -> None:
        """Add one value; NaN is ignored."""
        if math.isnan(x):
            return
        self.n += 1
        delta = x - self.mean
        self.mean += delta / self.n
        self.M2 += delta * (x - self.mean)
        self.min_val = min(self.min_val, x)
        self.max_val = max(self.max_val, x)

    def update_batch(self, values: List[float]) -> None:
        for x in values:
            self.update(x)

    @property
    def variance(self) -> float:
        if self.n < 2:
            return 0.0
        return self.M2 / (self.n - 1)

    @property
    def std(self) -> float:
        return self.variance ** 0.5

    def to_dict(self) -> Dict[str, float]:
        return {
            "count": self.n,
            "mean": self.mean if self.n else float('nan'),
            "std": self.std,
            "min": self.min_val if self.n else float('nan'),
            "max": self.max_val if self.n else float('nan'),
        }


def compute_basic_stats(data: List[float]) -> Dict[str, float]:
    """Count, mean, sample std, median, min, max and quartiles (NaN when empty)."""
    values = np.asarray([v for v in data if not math.isnan(v)], dtype=np.float64)
    if values.size == 0:
        return {key: (0 if key == "count" else np.nan)
                for key in ("count", "mean", "std", "median", "min", "max", "q25", "q75")}

    q25, median, q75 = np.percentile(values, [25, 50, 75])
    return {
        "count": int(values.size),
        "mean": float(values.mean()),
        "std": float(values.std(ddof=1)) if values.size > 1 else 0.0,
        "median": float(median),
        "min": float(values.min()),
        "max": float(values.max()),
        "q25": float(q25),
        "q75": float(q75),
    }


def compute_confidence_interval(data: List[float], alpha: float = 0.95) -> Tuple[float, float]:
    """
    Student-t confidence interval for the mean.

    Args:
        data: Numerical values
        alpha: Confidence level (0.95 for a 95% interval)

    Returns:
        (lower, upper); (nan, nan) for fewer than two values
    """
    values = np.asarray(data, dtype=np.float64)
    values = values[~np.isnan(values)]
    if values.size < 2:
        return (np.nan, np.nan)

    mean = values.mean()
    stderr = stats.sem(values)
    if stderr == 0:
        return (float(mean), float(mean))
    lower, upper = stats.t.interval(alpha, values.size - 1, loc=mean, scale=stderr)
    return (float(lower), float(upper))


def summarise_metrics(per_image_results: Dict[str, Dict[str, float]], alpha: float = 0.95) -> Dict[str, Any]:
    """
    Per-metric statistics over all images.

    Args:
        per_image_results: {image_name: {metric_name: score}}
        alpha: Confidence level for the interval on the mean

    Returns:
        {metric_name: {count, mean, std, ..., confidence_interval}}
    """
    by_metric: Dict[str, List[float]] = {}
    for scores in per_image_results.values():
        for metric_name, score in scores.items():
            by_metric.setdefault(metric_name, []).append(float(score))

    summary = {}
    for metric_name, scores in by_metric.items():
        lower, upper = compute_confidence_interval(scores, alpha)
        summary[metric_name] = {
            **compute_basic_stats(scores),
            "confidence_interval": {
                "alpha": alpha,
                "lower": None if np.isnan(lower) else lower,
                "upper": None if np.isnan(upper) else upper,
            },
        }
    return summary
