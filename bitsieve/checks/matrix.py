"""Binary matrix rank check and the GF(2) matrix it is built on."""

from __future__ import annotations

import logging
from math import exp

import numpy as np

from bitsieve.checks.result import DEFAULT_SIGNIFICANCE, CheckResult, make_result
from bitsieve.errors import InvalidArgumentError
from bitsieve.sources.base import BitSource

logger = logging.getLogger(__name__)

MINIMUM_MATRIX_COUNT = 38
# full rank, rank - 1, rank <= size - 2
RANK_PROBABILITIES = (0.2888, 0.5776, 0.1336)


class BitMatrix:
    """Square matrix over GF(2).

    Rank computation reduces the matrix in place, so a matrix is filled,
    ranked once and discarded.
    """

    def __init__(self, size: int) -> None:
        if size < 1:
            raise InvalidArgumentError(f"matrix size must be positive, got {size}")
        self.size = size
        self.rows = np.zeros((size, size), dtype=np.uint8)

    @classmethod
    def from_source(cls, source: BitSource, size: int) -> BitMatrix:
        """Fill a new matrix row by row with the next ``size**2`` bits."""
        matrix = cls(size)
        matrix.rows[:] = source.bits(size * size).reshape(size, size)
        return matrix

    @classmethod
    def from_rows(cls, rows) -> BitMatrix:
        data = np.asarray(rows, dtype=np.uint8)
        if data.ndim != 2 or data.shape[0] != data.shape[1]:
            raise InvalidArgumentError(f"expected a square matrix, got shape {data.shape}")
        matrix = cls(data.shape[0])
        matrix.rows[:] = data & 1
        return matrix

    def rank(self) -> int:
        """Rank by forward Gaussian elimination over GF(2)."""
        m = self.rows
        n = self.size
        cur = 0
        for col in range(n):
            if cur >= n:
                break
            if not m[cur, col]:
                below = np.flatnonzero(m[cur + 1:, col])
                if len(below) == 0:
                    continue
                swap = cur + 1 + int(below[0])
                m[[cur, swap]] = m[[swap, cur]]
            lower = cur + 1 + np.flatnonzero(m[cur + 1:, col])
            m[lower] ^= m[cur]
            cur += 1
        return int(np.count_nonzero(m.any(axis=1)))

    def __repr__(self) -> str:
        return f"<BitMatrix size={self.size}>"


def matrix_rank(source: BitSource, matrix_size: int = 32, call_count: int = 100_000,
                significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Ranks of disjoint square sub-matrices compared with the GF(2) rank distribution."""
    name = "Binary Matrix Rank"
    if matrix_size < 3:
        raise InvalidArgumentError(f"matrix_size must be at least 3, got {matrix_size}")
    bits_per_matrix = matrix_size * matrix_size
    minimum = MINIMUM_MATRIX_COUNT * bits_per_matrix
    if call_count < minimum:
        logger.debug("Matrix rank call count raised from %d to %d", call_count, minimum)
        call_count = minimum
    matrix_count = call_count // bits_per_matrix
    unused_bit_count = call_count - matrix_count * bits_per_matrix

    f = np.zeros(3, dtype=np.int64)
    for _ in range(matrix_count):
        rank = BitMatrix.from_source(source, matrix_size).rank()
        f[min(matrix_size - rank, 2)] += 1

    expected = matrix_count * np.asarray(RANK_PROBABILITIES)
    chi2 = float(np.sum((f - expected) ** 2 / expected))
    p = exp(-chi2 / 2.0)
    return make_result(name, p, chi2, significance, call_count=call_count,
                       details=f"matrices={matrix_count}, ranks(full, -1, rest)={f.tolist()}",
                       params={"matrix_size": matrix_size, "matrix_count": matrix_count,
                               "unused_bit_count": unused_bit_count})
