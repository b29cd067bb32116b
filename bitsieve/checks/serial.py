"""Overlapping-pattern checks: serial and approximate entropy.

Both wrap the sequence around (its first bits are appended to its end) so
that every position starts a complete pattern. A pattern's value has the
first bit in its least significant position.
"""

from __future__ import annotations

import logging
from math import log

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from bitsieve.checks.result import DEFAULT_SIGNIFICANCE, CheckResult, make_result
from bitsieve.sources.base import BitSource
from bitsieve.stats import igamc

logger = logging.getLogger(__name__)

MINIMUM_BLOCK_SIZE = 2
MAXIMUM_BLOCK_SIZE = 16
DEFAULT_BLOCK_SIZE = 3
DEFAULT_CALL_COUNT = 1_000_000


def pattern_counts(sequence: np.ndarray, n: int, width: int) -> np.ndarray:
    """Occurrences of each *width*-bit pattern starting at positions ``0..n-1``."""
    if width == 0:
        return np.array([n], dtype=np.int64)
    windows = sliding_window_view(sequence[:n + width - 1].astype(np.int64), width)
    values = windows @ (np.int64(1) << np.arange(width, dtype=np.int64))
    return np.bincount(values, minlength=1 << width)


def _clamp_block_size(block_size: int, label: str) -> int:
    clamped = min(MAXIMUM_BLOCK_SIZE, max(MINIMUM_BLOCK_SIZE, block_size))
    if clamped != block_size:
        logger.debug("%s block size clamped from %d to %d", label, block_size, clamped)
    return clamped


def _floor_call_count(call_count: int, minimum: int, label: str) -> int:
    if call_count < minimum:
        logger.debug("%s call count raised from %d to %d", label, call_count, minimum)
        return minimum
    return call_count


# ═══════════════════════ SERIAL ═══════════════════════

def serial(source: BitSource, block_size: int = DEFAULT_BLOCK_SIZE,
           call_count: int = DEFAULT_CALL_COUNT,
           significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Serial check; block size clamped to [2, 16], call count at least 2**(m+2)."""
    block_size = _clamp_block_size(block_size, "Serial")
    call_count = _floor_call_count(call_count, 1 << (block_size + 2), "Serial")
    return serial_internal(source, block_size, call_count, significance)


def serial_internal(source: BitSource, block_size: int, call_count: int,
                    significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Serial check without parameter adjustment.

    Both p-values must pass; ``p_value`` is the smaller of the two.
    """
    name = "Serial"
    m, n = block_size, call_count
    bits = source.bits(n)
    sequence = np.concatenate((bits, bits[:m - 1]))

    psi = []
    for j in range(3):
        width = m - j
        counts = pattern_counts(sequence, n, width)
        total = float(np.sum(counts * counts))
        psi.append(total * (1 << width) / n - n)

    delta1 = psi[0] - psi[1]
    delta2 = psi[0] - 2.0 * psi[1] + psi[2]
    p1 = igamc(2.0 ** (m - 2), max(delta1, 0.0) / 2.0)
    p2 = igamc(2.0 ** (m - 3), max(delta2, 0.0) / 2.0)
    return make_result(name, min(p1, p2), delta1, significance, call_count=n,
                       statistics=[delta1, delta2], p_values=[p1, p2],
                       details=f"m={m}, del_psi2={delta1:.4f} (p={p1:.4f}), "
                               f"del2_psi2={delta2:.4f} (p={p2:.4f})",
                       params={"block_size": m, "psi_squared": psi})


# ═══════════════════════ APPROXIMATE ENTROPY ═══════════════════════

def approximate_entropy(source: BitSource, block_size: int = DEFAULT_BLOCK_SIZE,
                        call_count: int = DEFAULT_CALL_COUNT,
                        significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Approximate entropy check; call count at least 2**(m+5)."""
    block_size = _clamp_block_size(block_size, "Approximate entropy")
    call_count = _floor_call_count(call_count, 1 << (block_size + 5), "Approximate entropy")
    return approximate_entropy_internal(source, block_size, call_count, significance)


def _phi(counts: np.ndarray, n: int) -> float:
    phi = 0.0
    for count in counts.tolist():
        if count:
            c = count / n
            phi += c * log(c)
    return phi


def approximate_entropy_internal(source: BitSource, block_size: int, call_count: int,
                                 significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Approximate entropy check without parameter adjustment."""
    name = "Approximate Entropy"
    m, n = block_size, call_count
    bits = source.bits(n)
    sequence = np.concatenate((bits, bits[:m]))

    phi_m = _phi(pattern_counts(sequence, n, m), n)
    phi_m1 = _phi(pattern_counts(sequence, n, m + 1), n)
    ap_en = phi_m - phi_m1
    chi2 = 2.0 * n * (log(2.0) - ap_en)
    p = igamc(2.0 ** (m - 1), max(chi2, 0.0) / 2.0)
    return make_result(name, p, chi2, significance, call_count=n,
                       details=f"m={m}, ApEn={ap_en:.6f}",
                       params={"block_size": m, "ap_en": ap_en})
