"""Combining the results of many runs of the same check.

Three views of a batch of runs:

1. the proportion of passing runs must fall inside a 3-sigma band
   around ``1 - significance``;
2. the p-values must be spread uniformly over ten equal bins;
3. Fisher's method folds the p-values into a single p-value.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from math import inf, log, sqrt
from typing import Sequence

import numpy as np

from bitsieve.errors import InvalidArgumentError
from bitsieve.stats import igamc

HISTOGRAM_BINS = 10
UNIFORMITY_THRESHOLD = 0.0001


class Proportion(Enum):
    TOO_LOW = "fail (too low)"
    PASS = "pass"
    TOO_HIGH = "fail (too high)"


@dataclass
class ProportionResult:
    outcome: Proportion
    minimum: float
    maximum: float
    observed: float

    @property
    def passed(self) -> bool:
        return self.outcome is Proportion.PASS


@dataclass
class UniformityResult:
    is_uniform: bool
    chi_squared: float
    p_value: float
    counts: list[int]


def passing_proportion(flags: Sequence[bool], significance: float) -> ProportionResult:
    """Classify the observed proportion of passing runs."""
    n = len(flags)
    if n == 0:
        raise InvalidArgumentError("passing proportion needs at least one run")
    p_hat = 1.0 - significance
    t = 3.0 * sqrt(p_hat * (1.0 - p_hat) / n)
    minimum, maximum = p_hat - t, p_hat + t
    observed = sum(1 for f in flags if f) / n
    if observed < minimum:
        outcome = Proportion.TOO_LOW
    elif observed > maximum:
        outcome = Proportion.TOO_HIGH
    else:
        outcome = Proportion.PASS
    return ProportionResult(outcome, minimum, maximum, observed)


def histogram_uniformity(p_values: Sequence[float],
                         significance: float = 0.01) -> UniformityResult:
    """Chi-squared of the p-values over ten equal-width bins of [0, 1).

    A p-value of exactly 1.0 is counted in the top bin. *significance* does
    not move the verdict, which always uses the fixed 0.0001 threshold.
    """
    n = len(p_values)
    if n == 0:
        raise InvalidArgumentError("uniformity check needs at least one p-value")
    bins = np.minimum(np.floor(np.asarray(p_values, dtype=np.float64) * HISTOGRAM_BINS),
                      HISTOGRAM_BINS - 1).astype(np.int64)
    counts = np.bincount(bins, minlength=HISTOGRAM_BINS)
    expected = n / HISTOGRAM_BINS
    chi2 = float(np.sum((counts - expected) ** 2 / expected))
    p = igamc((HISTOGRAM_BINS - 1) / 2.0, chi2 / 2.0)
    return UniformityResult(p >= UNIFORMITY_THRESHOLD, chi2, p, counts.tolist())


class CombinedPValues:
    """Naive pass ratio and Fisher's combined p-value for a set of p-values.

    Usage::

        combined = CombinedPValues([0.2, 0.7, 0.04], significance=0.01)
        combined.fisher_p_value
        combined.naive_passed
    """

    def __init__(self, p_values: Sequence[float], significance: float) -> None:
        if len(p_values) == 0:
            raise InvalidArgumentError("cannot combine an empty set of p-values")
        self.significance = significance
        self.count = len(p_values)
        self.pass_count = sum(1 for p in p_values if p >= significance)
        self.pass_ratio = self.pass_count / self.count
        self.naive_passed = self.pass_ratio >= 1.0 - significance

        if any(p <= 0.0 for p in p_values):
            # ln(0) diverges; the combined evidence is then conclusive
            self.fisher_statistic = inf
            self.fisher_p_value = 0.0
        else:
            self.fisher_statistic = -2.0 * sum(log(p) for p in p_values)
            self.fisher_p_value = igamc(self.count, self.fisher_statistic / 2.0)
        self.fisher_passed = self.fisher_p_value >= significance

    def __repr__(self) -> str:
        return (f"<CombinedPValues n={self.count} fisher_p={self.fisher_p_value:.6f} "
                f"pass_ratio={self.pass_ratio:.4f}>")


# ── report lines ──

def proportion_lines(result: ProportionResult) -> list[str]:
    return [
        f"Acceptable proportion of passing sequences is from "
        f"{result.minimum:.6f} to {result.maximum:.6f}",
        f"Observed proportion: {result.observed:.6f}",
        f"Result: {result.outcome.value}",
    ]


def uniformity_lines(result: UniformityResult) -> list[str]:
    verdict = "p-Values are uniformly distributed." if result.is_uniform \
        else "p-Values are NOT uniformly distributed."
    return [
        f"Chi-Squared: {result.chi_squared:.6f}",
        f"Uniformity p-Value: {result.p_value:.6f}",
        verdict,
    ]


def fisher_lines(combined: CombinedPValues) -> list[str]:
    return [
        f"Fisher chi-squared: {combined.fisher_statistic:.6f} on {2 * combined.count} df",
        f"Fisher combined p-Value: {combined.fisher_p_value:.6f}",
        f"Naive pass ratio: {combined.pass_ratio:.6f} "
        f"({'pass' if combined.naive_passed else 'fail'})",
    ]
