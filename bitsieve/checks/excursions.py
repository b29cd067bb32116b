"""Random excursions checks.

The +/-1 random walk of the sequence is cut into cycles at every return
to zero; a walk that has not returned to zero by the end of the sequence
forms one last, unfinished cycle.
"""

from __future__ import annotations

import logging
from math import sqrt

import numpy as np

from bitsieve.checks.result import DEFAULT_SIGNIFICANCE, CheckResult, make_result, plus_minus
from bitsieve.combining import CombinedPValues
from bitsieve.errors import InvalidArgumentError
from bitsieve.sources.base import BitSource
from bitsieve.stats import erfc, igamc

logger = logging.getLogger(__name__)

DEFAULT_CALL_COUNT = 1_000_000
MINIMUM_CYCLES = 500
EXCURSION_STATES = (-4, -3, -2, -1, 1, 2, 3, 4)
MAX_CLASS = 5
MIN_STATE = -9
MAX_STATE = 9

# P(state x visited exactly k times in a cycle), k = 0..4 and >= 5; symmetric in x
_PI_BY_DISTANCE = {
    1: (0.5, 0.25, 0.125, 0.0625, 0.03125, 0.03125),
    2: (0.75, 0.0625, 0.0469, 0.0352, 0.0264, 0.0791),
    3: (0.8333, 0.0278, 0.0231, 0.0193, 0.0161, 0.0804),
    4: (0.875, 0.0156, 0.0137, 0.012, 0.0105, 0.0733),
}


# ── helpers ──

def _walk(source: BitSource, n: int) -> np.ndarray:
    return np.cumsum(plus_minus(source.bits(n)))


def _cycle_count(walk: np.ndarray) -> int:
    return int(np.count_nonzero(walk == 0)) + (1 if walk[-1] != 0 else 0)


def _cycle_ids(walk: np.ndarray) -> np.ndarray:
    """Index of the cycle each step of the walk belongs to."""
    zeros = (walk == 0).astype(np.int64)
    return np.concatenate(([0], np.cumsum(zeros)[:-1]))


def build_cycles(bits) -> list[np.ndarray]:
    """Partial sums of each cycle, each starting and ending with 0."""
    walk = np.cumsum(plus_minus(np.asarray(bits, dtype=np.uint8)))
    if len(walk) == 0:
        return []
    ids = _cycle_ids(walk)
    cycles = []
    for k in range(_cycle_count(walk)):
        body = walk[ids == k]
        if body[-1] != 0:
            body = np.append(body, 0)
        cycles.append(np.concatenate(([0], body)))
    return cycles


def state_to_index(x: int) -> int:
    """Position of state *x* in the variant check's per-state arrays."""
    return x - MIN_STATE if x < 0 else x - MIN_STATE - 1


# ═══════════════════════ RANDOM EXCURSIONS ═══════════════════════

def random_excursions(source: BitSource, call_count: int = DEFAULT_CALL_COUNT,
                      significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Visits to states -4..4 per cycle, one chi-squared per state.

    With fewer than ``max(0.005 * sqrt(n), 500)`` cycles the data cannot
    support the check: it rejects with ``p_value = 0``, no per-state
    results and ``rejected_early = True``. Otherwise the eight per-state
    p-values are combined with Fisher's method.
    """
    name = "Random Excursions"
    if call_count < 1:
        raise InvalidArgumentError(f"call_count must be positive, got {call_count}")
    walk = _walk(source, call_count)
    j = _cycle_count(walk)

    needed = max(0.005 * sqrt(call_count), MINIMUM_CYCLES)
    if j < needed:
        logger.warning("Random excursions rejected: %d cycles, need %.0f", j, needed)
        return CheckResult(name=name, passed=False, p_value=0.0, statistic=None,
                           details=f"Insufficient cycles: need {needed:.0f}, got {j}",
                           call_count=call_count, rejected_early=True, params={"cycles": j})

    ids = _cycle_ids(walk)
    statistics, p_values, table = [], [], []
    for x in EXCURSION_STATES:
        visits = np.bincount(ids[walk == x], minlength=j)
        v = np.bincount(np.minimum(visits, MAX_CLASS), minlength=MAX_CLASS + 1)
        expected = j * np.asarray(_PI_BY_DISTANCE[abs(x)])
        chi2 = float(np.sum((v - expected) ** 2 / expected))
        statistics.append(chi2)
        p_values.append(igamc(MAX_CLASS / 2.0, chi2 / 2.0))
        table.append(v.tolist())

    combined = CombinedPValues(p_values, significance)
    return make_result(name, combined.fisher_p_value, combined.fisher_statistic, significance,
                       call_count=call_count, statistics=statistics, p_values=p_values,
                       details=f"J={j}, per-state passes={combined.pass_count}/{combined.count}",
                       params={"cycles": j, "states": list(EXCURSION_STATES), "v": table})


# ═══════════════════════ RANDOM EXCURSIONS VARIANT ═══════════════════════

def random_excursions_variant(source: BitSource, call_count: int = DEFAULT_CALL_COUNT,
                              significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Total visits to states -9..9 against the cycle count, one p-value per state.

    ``statistics`` and ``p_values`` are indexed by :func:`state_to_index`;
    the overall p-value is their Fisher combination.
    """
    name = "Random Excursions Variant"
    if call_count < 1:
        raise InvalidArgumentError(f"call_count must be positive, got {call_count}")
    walk = _walk(source, call_count)
    j = _cycle_count(walk)

    states = [x for x in range(MIN_STATE, MAX_STATE + 1) if x != 0]
    counts = [int(np.count_nonzero(walk == x)) for x in states]
    p_values = [erfc(abs(count - j) / sqrt(2.0 * j * (4.0 * abs(x) - 2.0)))
                for x, count in zip(states, counts)]

    combined = CombinedPValues(p_values, significance)
    return make_result(name, combined.fisher_p_value, combined.fisher_statistic, significance,
                       call_count=call_count, statistics=[float(c) for c in counts],
                       p_values=p_values,
                       details=f"J={j}, per-state passes={combined.pass_count}/{combined.count}",
                       params={"cycles": j, "states": states})
