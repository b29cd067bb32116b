"""Linear complexity check and Berlekamp-Massey shift-register synthesis."""

from __future__ import annotations

import logging
from math import ldexp

import numpy as np

from bitsieve.checks.result import DEFAULT_SIGNIFICANCE, CheckResult, make_result
from bitsieve.errors import AlgorithmLimitError, InvalidArgumentError
from bitsieve.sources.base import BitSource
from bitsieve.stats import igamc

logger = logging.getLogger(__name__)

MINIMUM_BLOCK_COUNT = 200
MINIMUM_BLOCK_SIZE = 500
MAXIMUM_BLOCK_SIZE = 5000

# classes T <= -2.5, (-2.5, -1.5], ..., (1.5, 2.5], T > 2.5
CLASS_EDGES = (-2.5, -1.5, -0.5, 0.5, 1.5, 2.5)
PI = (0.010417, 0.03125, 0.125, 0.5, 0.25, 0.0625, 0.020833)


def _discrepancy(s: np.ndarray, c: np.ndarray, n: int, length: int) -> int:
    """s[n] + sum(c[i] * s[n - i], i = 1..length) over GF(2)."""
    taps = min(length, n)
    window = s[n - taps:n][::-1]
    return (int(s[n]) + int(np.count_nonzero(c[1:taps + 1] & window))) & 1


def berlekamp_massey(bits) -> tuple[int, np.ndarray]:
    """Shortest LFSR generating *bits*.

    Returns the linear complexity ``L`` and the connection polynomial
    coefficients ``C[0..L]`` (``C[0] == 1``), such that for every
    ``n >= L``: ``s[n] == sum(C[i] * s[n - i] for i in 1..L) mod 2``.

    Raises
    ------
    InvalidArgumentError
        If the sequence contains no one bit.
    AlgorithmLimitError
        If an update fails to annihilate the discrepancy it was made for.
    """
    s = np.asarray(bits, dtype=np.uint8) & 1
    n = len(s)
    if not s.any():
        raise InvalidArgumentError("Berlekamp-Massey needs at least one 1 bit; sequence is all zeroes")

    c = np.zeros(n + 1, dtype=np.uint8)  # current connection polynomial C(D)
    b = np.zeros(n + 1, dtype=np.uint8)  # C(D) before the last length change
    c[0] = b[0] = 1
    length = 0  # L
    shift = 1   # steps since the last length change

    for pos in range(n):
        d = _discrepancy(s, c, pos, length)
        if d == 0:
            shift += 1
            continue

        verifiable = length > 0
        if 2 * length <= pos:
            previous = c.copy()
            c[shift:] ^= b[:n + 1 - shift]
            length = pos + 1 - length
            b = previous
            shift = 1
        else:
            c[shift:] ^= b[:n + 1 - shift]
            shift += 1

        if verifiable and _discrepancy(s, c, pos, length):
            raise AlgorithmLimitError(f"Annihilation violation at position {pos}")

    return length, c[:length + 1].copy()


def theoretical_mean(block_size: int) -> float:
    """Expected linear complexity of a random block of *block_size* bits."""
    m = block_size
    sign = -1.0 if m % 2 == 0 else 1.0  # (-1)**(M + 1)
    return m / 2.0 + (9.0 + sign) / 36.0 - ldexp(m / 3.0 + 2.0 / 9.0, -m)


def linear_complexity(source: BitSource, block_size: int = MINIMUM_BLOCK_SIZE,
                      block_count: int = MINIMUM_BLOCK_COUNT,
                      significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Linear complexity of each block, classified into seven bins around the mean."""
    name = "Linear Complexity"
    adjusted_size = min(max(block_size, MINIMUM_BLOCK_SIZE), MAXIMUM_BLOCK_SIZE)
    adjusted_count = max(block_count, MINIMUM_BLOCK_COUNT)
    if (adjusted_size, adjusted_count) != (block_size, block_count):
        logger.debug("Linear complexity M, N adjusted from (%d, %d) to (%d, %d)",
                     block_size, block_count, adjusted_size, adjusted_count)
    m, n = adjusted_size, adjusted_count

    mu = theoretical_mean(m)
    sign = 1.0 if m % 2 == 0 else -1.0  # (-1)**M
    v = np.zeros(len(PI), dtype=np.int64)
    for _ in range(n):
        li, _coefficients = berlekamp_massey(source.bits(m))
        t = sign * (li - mu) + 2.0 / 9.0
        v[int(np.searchsorted(CLASS_EDGES, t, side="left"))] += 1

    expected = n * np.asarray(PI)
    chi2 = float(np.sum((v - expected) ** 2 / expected))
    p = igamc((len(PI) - 1) / 2.0, chi2 / 2.0)
    return make_result(name, p, chi2, significance, call_count=m * n,
                       details=f"M={m}, N={n}, v={v.tolist()}",
                       params={"block_size": m, "block_count": n, "v": v.tolist()})