"""Uniform check: chi-squared over equal-width bins of integer draws."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

import numpy as np

from bitsieve.checks.result import DEFAULT_SIGNIFICANCE, CheckResult, make_result
from bitsieve.errors import InvalidArgumentError
from bitsieve.sources.base import BitSource
from bitsieve.stats import chi_prob

logger = logging.getLogger(__name__)

BIN_FILE_HEADER = ("Bin", "Observed", "Expected")


def uniform(source: BitSource, bin_count: int = 2, call_count: int = 100_000,
            significance: float = DEFAULT_SIGNIFICANCE,
            output: str | Path | None = None) -> CheckResult:
    """Draw ``next_int(bin_count)`` *call_count* times and test the bin counts."""
    name = "Uniform"
    if bin_count < 2:
        raise InvalidArgumentError(f"bin_count must be at least 2, got {bin_count}")
    if call_count < 1:
        raise InvalidArgumentError(f"call_count must be positive, got {call_count}")

    observed = np.zeros(bin_count, dtype=np.int64)
    for _ in range(call_count):
        observed[source.next_int(bin_count)] += 1

    expected = call_count / bin_count
    chi2 = float(np.sum((observed - expected) ** 2) / expected)
    p = chi_prob(chi2, bin_count - 1)

    if output is not None:
        write_bin_file(output, observed, expected)
        logger.info("Wrote %d bins to %s", bin_count, output)

    return make_result(name, p, chi2, significance, call_count=call_count,
                       details=f"bins={bin_count}, expected_per_bin={expected:.2f}",
                       params={"bin_count": bin_count, "observed": observed.tolist()})


def write_bin_file(path: str | Path, observed, expected: float) -> None:
    """Write one ``index;observed;expected`` line per bin, after a header row."""
    path = Path(path)
    with path.open("w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh, delimiter=";", lineterminator="\n")
        writer.writerow(BIN_FILE_HEADER)
        for index, count in enumerate(observed):
            writer.writerow((index, int(count), _format_expected(expected)))


def _format_expected(value: float) -> str:
    """At most two decimals, trailing zeros dropped."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return text or "0"
