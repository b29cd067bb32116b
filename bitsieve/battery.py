"""Registry of checks and the runners built on it."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from bitsieve.checks import (
    CheckResult,
    CusumMode,
    LongestRunBlockSize,
    approximate_entropy,
    cumulative_sums,
    frequency_block,
    linear_complexity,
    longest_run,
    matrix_rank,
    maurer,
    monobit,
    non_overlapping,
    overlapping,
    random_excursions,
    random_excursions_variant,
    runs,
    serial,
    spectral,
    uniform,
)
from bitsieve.checks.result import DEFAULT_SIGNIFICANCE
from bitsieve.combining import (
    CombinedPValues,
    ProportionResult,
    UniformityResult,
    histogram_uniformity,
    passing_proportion,
)
from bitsieve.errors import InvalidArgumentError
from bitsieve.sources.base import BitSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckSpec:
    """A registered check and the parameters it runs with by default."""
    name: str
    title: str
    func: Callable[..., CheckResult]
    defaults: dict[str, Any] = field(default_factory=dict)
    description: str = ""
    uses_integers: bool = False  # draws next_int() rather than bits


CHECKS: dict[str, CheckSpec] = {spec.name: spec for spec in (
    CheckSpec("uniform", "Uniform", uniform,
              {"bin_count": 2, "call_count": 100_000, "output": None},
              "Chi-squared over equal-width bins of integer draws.", uses_integers=True),
    CheckSpec("monobit", "Monobit", monobit,
              {"call_count": 100_000},
              "Proportion of ones over the whole sequence."),
    CheckSpec("frequencyblock", "Frequency Within Block", frequency_block,
              {"block_size": 31, "block_count": 100},
              "Proportion of ones within fixed-size blocks."),
    CheckSpec("runs", "Runs", runs,
              {"call_count": 100},
              "Number of runs of identical bits."),
    CheckSpec("longestrun", "Longest Run of Ones", longest_run,
              {"block_size": LongestRunBlockSize.SMALL, "call_count": 100_000},
              "Longest run of ones per block."),
    CheckSpec("matrixrank", "Binary Matrix Rank", matrix_rank,
              {"matrix_size": 32, "call_count": 100_000},
              "Rank of square GF(2) matrices."),
    CheckSpec("spectral", "Spectral (DFT)", spectral,
              {"call_count": 1024},
              "Peaks of the discrete Fourier transform."),
    CheckSpec("nonoverlapping", "Non-overlapping Template", non_overlapping,
              {"call_count": 8000},
              "Non-periodic templates of lengths 2 to 10, matches consume bits."),
    CheckSpec("overlapping", "Overlapping Template", overlapping,
              {"block_count": 968, "block_length": 1032, "template_length": 9},
              "All-ones template, overlapping matches."),
    CheckSpec("maurer", "Maurer Universal", maurer,
              {"block_size": 6},
              "Compressibility via distances between repeated L-bit blocks."),
    CheckSpec("linear", "Linear Complexity", linear_complexity,
              {"block_size": 500, "block_count": 200},
              "Berlekamp-Massey linear complexity per block."),
    CheckSpec("serial", "Serial", serial,
              {"block_size": 3, "call_count": 1_000_000},
              "Frequencies of overlapping m, m-1 and m-2 bit patterns."),
    CheckSpec("entropy", "Approximate Entropy", approximate_entropy,
              {"block_size": 3, "call_count": 1_000_000},
              "Approximate entropy of overlapping m and m+1 bit patterns."),
    CheckSpec("cusum", "Cumulative Sums", cumulative_sums,
              {"call_count": 1_000_000, "mode": CusumMode.FORWARD},
              "Maximal excursion of the random walk."),
    CheckSpec("excursions", "Random Excursions", random_excursions,
              {"call_count": 1_000_000},
              "Visits to states -4..4 per cycle of the random walk."),
    CheckSpec("excursionsvariant", "Random Excursions Variant", random_excursions_variant,
              {"call_count": 1_000_000},
              "Total visits to states -9..9 of the random walk."),
)}


def get_check(name: str) -> CheckSpec:
    try:
        return CHECKS[name.lower()]
    except KeyError:
        raise InvalidArgumentError(
            f"Unknown check {name!r}; choose from {', '.join(CHECKS)}"
        ) from None


def resolve_params(spec: CheckSpec, overrides: dict[str, Any]) -> dict[str, Any]:
    """Defaults of *spec* updated with the non-None *overrides*."""
    params = dict(spec.defaults)
    for key, value in overrides.items():
        if value is None:
            continue
        if key not in params:
            raise InvalidArgumentError(f"Check {spec.name!r} takes no parameter {key!r}")
        params[key] = value
    return params


def run_check(name: str, source: BitSource, significance: float = DEFAULT_SIGNIFICANCE,
              **overrides: Any) -> CheckResult:
    """Run one registered check with its defaults, updated by *overrides*."""
    spec = get_check(name)
    params = resolve_params(spec, overrides)
    logger.info("Running %s with %s", spec.title, params)
    return spec.func(source, significance=significance, **params)


@dataclass
class RepeatedRun:
    """Results of running one check several times on disjoint bits."""
    name: str
    significance: float
    results: list[CheckResult]

    @property
    def p_values(self) -> list[float]:
        return [r.p_value for r in self.results]

    @property
    def proportion(self) -> ProportionResult:
        return passing_proportion([r.passed for r in self.results], self.significance)

    @property
    def uniformity(self) -> UniformityResult:
        return histogram_uniformity(self.p_values, self.significance)

    @property
    def combined(self) -> CombinedPValues:
        return CombinedPValues(self.p_values, self.significance)


def run_repeated(name: str, source: BitSource, repeat: int,
                 significance: float = DEFAULT_SIGNIFICANCE, **overrides: Any) -> RepeatedRun:
    """Run a check *repeat* times in sequence against the same source."""
    if repeat < 1:
        raise InvalidArgumentError(f"repeat must be at least 1, got {repeat}")
    spec = get_check(name)
    results = []
    for i in range(repeat):
        result = run_check(spec.name, source, significance, **overrides)
        logger.info("%s run %d/%d: p=%.6f %s", spec.title, i + 1, repeat,
                    result.p_value, "pass" if result.passed else "FAIL")
        results.append(result)
    return RepeatedRun(spec.name, significance, results)


def run_battery(source: BitSource, significance: float = DEFAULT_SIGNIFICANCE,
                names: Sequence[str] | None = None) -> list[CheckResult]:
    """Run several checks with their defaults, one after the other.

    Without *names*, every check that consumes bits runs (the uniform
    check draws integers and is only run when named).
    """
    if names is None:
        names = [spec.name for spec in CHECKS.values() if not spec.uses_integers]
    results = []
    for name in names:
        results.append(run_check(name, source, significance))
    passed = sum(1 for r in results if r.passed)
    logger.info("Battery finished: %d/%d passed", passed, len(results))
    return results
