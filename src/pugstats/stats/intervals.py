"""
Prediction intervals for per-game performance differentials.

A prediction interval bounds a *future* single observation rather than the
mean, so the Student-t spread is widened by sqrt(1 + 1/n). The band is the
one-standard-deviation equivalent (16th to 84th percentile).
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from scipy import stats as scipy_stats

from ..core.models import ScoreInterval

ONE_DEVIATION_LOWER_BOUND = 0.16
ONE_DEVIATION_UPPER_BOUND = 0.84


def calculate_prediction_interval(samples: Sequence[float]) -> ScoreInterval:
    """
    Compute a (low, center, high) prediction interval for a sample.

    Args:
        samples: Per-game differentials

    Returns:
        ScoreInterval; low/high are None for fewer than two samples and
        every field is None for an empty sample.
    """
    n = len(samples)

    if n == 0:
        return ScoreInterval()

    values = np.asarray(samples, dtype=float)
    mean = float(values.mean())

    if n == 1:
        return ScoreInterval(center=mean)

    deviation = float(values.std(ddof=1))
    distribution = scipy_stats.t(df=n - 1)
    spread = deviation * math.sqrt(1 + (1 / n))

    low = mean + float(distribution.ppf(ONE_DEVIATION_LOWER_BOUND)) * spread
    high = mean + float(distribution.ppf(ONE_DEVIATION_UPPER_BOUND)) * spread

    return ScoreInterval(low=low, center=mean, high=high)
