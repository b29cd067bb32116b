"""Run-based checks: runs and longest run of ones in a block."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from enum import Enum
from math import sqrt

import numpy as np

from bitsieve.checks.result import DEFAULT_SIGNIFICANCE, CheckResult, make_result
from bitsieve.errors import InvalidArgumentError
from bitsieve.sources.base import BitSource
from bitsieve.stats import erfc, igamc

logger = logging.getLogger(__name__)


# ═══════════════════════ RUNS ═══════════════════════

def runs(source: BitSource, call_count: int = 100,
         significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Number of uninterrupted runs of identical bits.

    When the proportion of ones is already too far from one half the run
    count is meaningless; the check then rejects outright with
    ``statistic = sys.float_info.max``, ``p_value = 0`` and
    ``rejected_early = True``.
    """
    name = "Runs"
    if call_count < 2:
        raise InvalidArgumentError(f"call_count must be at least 2, got {call_count}")
    bits = source.bits(call_count)
    n = call_count
    prop = int(np.sum(bits, dtype=np.int64)) / n

    tau = 2.0 / sqrt(n)
    # a constant sequence slips past tau when n < 16
    if abs(prop - 0.5) >= tau or prop in (0.0, 1.0):
        logger.warning("Runs pre-test failed: proportion of ones %.4f, tau %.4f", prop, tau)
        return CheckResult(name=name, passed=False, p_value=0.0, statistic=sys.float_info.max,
                           details=f"Pre-test failed: proportion={prop:.4f}",
                           call_count=n, rejected_early=True, params={"proportion": prop})

    v_obs = 1 + int(np.count_nonzero(bits[:-1] != bits[1:]))
    spread = prop * (1.0 - prop)
    p = erfc(abs(v_obs - 2.0 * n * spread) / (2.0 * sqrt(2.0 * n) * spread))
    return make_result(name, p, float(v_obs), significance, call_count=n,
                       details=f"runs={v_obs}, proportion={prop:.4f}",
                       params={"proportion": prop})


# ═══════════════════════ LONGEST RUN OF ONES ═══════════════════════

class LongestRunBlockSize(Enum):
    """Block length used by the longest-run check."""
    SMALL = 8
    MEDIUM = 128
    LARGE = 10_000


@dataclass(frozen=True)
class _LongestRunTable:
    minimum_bits: int
    shortest_class: int  # runs <= this fall in class 0; the last class is open ended
    pi: tuple[float, ...]


_TABLES = {
    LongestRunBlockSize.SMALL: _LongestRunTable(
        128, 1, (0.2148, 0.3672, 0.2305, 0.1875)),
    LongestRunBlockSize.MEDIUM: _LongestRunTable(
        6272, 4, (0.1174, 0.2430, 0.2493, 0.1752, 0.1027, 0.1124)),
    LongestRunBlockSize.LARGE: _LongestRunTable(
        750_000, 10, (0.0882, 0.2092, 0.2483, 0.1933, 0.1208, 0.0675, 0.0727)),
}


def longest_run(source: BitSource,
                block_size: LongestRunBlockSize = LongestRunBlockSize.SMALL,
                call_count: int = 128,
                significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Longest run of ones per block, classified against the NIST table."""
    name = "Longest Run of Ones"
    try:
        block_size = LongestRunBlockSize(block_size)
    except ValueError:
        raise InvalidArgumentError(
            f"longest run block size must be 8, 128 or 10000, got {block_size!r}"
        ) from None
    table = _TABLES[block_size]
    block_length = block_size.value

    if call_count < table.minimum_bits:
        logger.debug("Longest run call count raised from %d to %d", call_count, table.minimum_bits)
        call_count = table.minimum_bits
    block_count = call_count // block_length

    k = len(table.pi)
    v = np.zeros(k, dtype=np.int64)
    for _ in range(block_count):
        longest = longest_run_of_ones(source, block_length)
        v[min(max(longest - table.shortest_class, 0), k - 1)] += 1

    expected = block_count * np.asarray(table.pi)
    chi2 = float(np.sum((v - expected) ** 2 / expected))
    p = igamc((k - 1) / 2.0, chi2 / 2.0)
    return make_result(name, p, chi2, significance, call_count=call_count,
                       details=f"M={block_length}, blocks={block_count}, v={v.tolist()}",
                       params={"block_size": block_size, "block_count": block_count,
                               "v": v.tolist()})


def longest_run_of_ones(source: BitSource, block_length: int) -> int:
    """Draw *block_length* bits and return the longest run of ones among them."""
    return _longest_run(source.bits(block_length))


def _longest_run(bits: np.ndarray) -> int:
    padded = np.concatenate(([0], bits, [0])).astype(np.int8)
    edges = np.diff(padded)
    starts = np.flatnonzero(edges == 1)
    if len(starts) == 0:
        return 0
    ends = np.flatnonzero(edges == -1)
    return int(np.max(ends - starts))
