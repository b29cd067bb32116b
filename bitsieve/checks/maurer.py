"""Maurer's universal statistical check."""

from __future__ import annotations

import logging
from math import sqrt

import numpy as np

from bitsieve.checks.result import DEFAULT_SIGNIFICANCE, CheckResult, make_result
from bitsieve.errors import InvalidArgumentError
from bitsieve.sources.base import BitSource
from bitsieve.stats import erfc

logger = logging.getLogger(__name__)

BLOCK_SIZE_MIN = 6
BLOCK_SIZE_MAX = 16

# expected value and variance of f_n per block length L; L = 2 serves the worked example
EXPECTED_VALUE = {
    2: 1.5374383,
    6: 5.2177052, 7: 6.1962507, 8: 7.1836656, 9: 8.1764248, 10: 9.1723243,
    11: 10.170032, 12: 11.168765, 13: 12.168070, 14: 13.167693, 15: 14.167488,
    16: 15.167379,
}
VARIANCE = {
    2: 1.338,
    6: 2.954, 7: 3.125, 8: 3.238, 9: 3.311, 10: 3.356,
    11: 3.384, 12: 3.401, 13: 3.410, 14: 3.416, 15: 3.419,
    16: 3.421,
}


def maurer(source: BitSource, block_size: int = BLOCK_SIZE_MIN,
           significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Universal statistical check with Q = 10 * 2**L and K = 1000 * 2**L blocks."""
    clamped = min(max(block_size, BLOCK_SIZE_MIN), BLOCK_SIZE_MAX)
    if clamped != block_size:
        logger.debug("Maurer block size clamped from %d to %d", block_size, clamped)
    return maurer_internal(source, clamped, 10 * (1 << clamped), 1000 * (1 << clamped),
                           significance)


def maurer_internal(source: BitSource, block_size: int, init_blocks: int, test_blocks: int,
                    significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Universal statistical check with explicit segment sizes.

    The first bit of each L-bit block is its most significant bit.
    """
    name = "Maurer Universal"
    if block_size not in EXPECTED_VALUE:
        raise InvalidArgumentError(f"no reference values for block size {block_size}")
    if init_blocks < 1 or test_blocks < 1:
        raise InvalidArgumentError(
            f"segment sizes must be positive, got Q={init_blocks}, K={test_blocks}"
        )
    n_blocks = init_blocks + test_blocks
    bits = source.bits(n_blocks * block_size).reshape(n_blocks, block_size)
    weights = np.int64(1) << np.arange(block_size - 1, -1, -1, dtype=np.int64)
    blocks = bits.astype(np.int64) @ weights

    # index of the previous occurrence of each block value, -1 if none
    order = np.argsort(blocks, kind="stable")
    ordered = blocks[order]
    prev_ordered = np.full(n_blocks, -1, dtype=np.int64)
    same = ordered[1:] == ordered[:-1]
    prev_ordered[1:][same] = order[:-1][same]
    prev = np.empty(n_blocks, dtype=np.int64)
    prev[order] = prev_ordered

    index = np.arange(init_blocks, n_blocks, dtype=np.int64)
    fn = float(np.sum(np.log2(index - prev[init_blocks:]))) / test_blocks

    expected = EXPECTED_VALUE[block_size]
    variance = VARIANCE[block_size]
    p = erfc(abs((fn - expected) / sqrt(2.0 * variance)))
    return make_result(name, p, fn, significance, call_count=n_blocks * block_size,
                       details=f"L={block_size}, Q={init_blocks}, K={test_blocks}",
                       params={"block_size": block_size, "init_blocks": init_blocks,
                               "test_blocks": test_blocks})
