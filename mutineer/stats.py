"""
Calibration Statistics
======================
Checks that an observed failure count is consistent with a configured
rate, for the ``simulate`` command and for tests.
"""

import math
from dataclasses import dataclass
from typing import Tuple

from scipy import stats


@dataclass
class ProportionResult:
    """Observed proportion with its confidence interval"""
    proportion: float
    ci_lower: float
    ci_upper: float
    n: int
    confidence_level: float = 0.95

    def contains(self, rate: float) -> bool:
        return self.ci_lower <= rate <= self.ci_upper


def wilson_interval(
    successes: int,
    total: int,
    confidence: float = 0.95
) -> ProportionResult:
    """
    Wilson score interval for a proportion (e.g. observed failure rate).

    Args:
        successes: Number of triggered failures
        total: Total number of trials
        confidence: Confidence level

    Returns:
        ProportionResult with proportion and CI bounds
    """
    if total == 0:
        return ProportionResult(0.0, 0.0, 0.0, 0, confidence)

    p = successes / total
    z = stats.norm.ppf((1 + confidence) / 2)

    denominator = 1 + z**2 / total
    center = (p + z**2 / (2 * total)) / denominator
    spread = z * math.sqrt((p * (1 - p) + z**2 / (4 * total)) / total) / denominator

    return ProportionResult(
        proportion=p,
        ci_lower=max(0.0, center - spread),
        ci_upper=min(1.0, center + spread),
        n=total,
        confidence_level=confidence
    )


def expected_band(trials: int, rate: float, sigmas: float = 4.0) -> Tuple[int, int]:
    """
    Range of failure counts within ``sigmas`` standard deviations.

    Uses the exact binomial quantiles matching a two-sided normal
    tail of ``sigmas``.
    """
    tail = stats.norm.sf(sigmas)
    low = int(stats.binom.ppf(tail, trials, rate))
    high = int(stats.binom.isf(tail, trials, rate))
    return low, high
