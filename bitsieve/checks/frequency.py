"""Frequency checks: monobit and frequency within a block."""

from __future__ import annotations

from math import sqrt

import numpy as np

from bitsieve.checks.result import DEFAULT_SIGNIFICANCE, CheckResult, make_result, plus_minus
from bitsieve.errors import InvalidArgumentError
from bitsieve.sources.base import BitSource
from bitsieve.stats import erfc, igamc


def monobit(source: BitSource, call_count: int = 100,
            significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Proportion of ones and zeros over the whole sequence should be ~50%."""
    name = "Monobit"
    if call_count < 1:
        raise InvalidArgumentError(f"call_count must be positive, got {call_count}")
    bits = source.bits(call_count)
    s = int(np.sum(plus_minus(bits)))
    s_obs = abs(s) / sqrt(call_count)
    p = erfc(s_obs / sqrt(2))
    return make_result(name, p, s_obs, significance, call_count=call_count,
                       details=f"S={s}, n={call_count}")


def frequency_block(source: BitSource, block_size: int = 31, block_count: int = 100,
                    significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Proportion of ones within each of *block_count* blocks of *block_size* bits."""
    name = "Frequency Within Block"
    if block_size < 1 or block_count < 1:
        raise InvalidArgumentError(
            f"block_size and block_count must be positive, got {block_size} and {block_count}"
        )
    bits = source.bits(block_size * block_count)
    blocks = bits.reshape(block_count, block_size)
    proportions = blocks.sum(axis=1, dtype=np.int64) / block_size
    chi2 = 4.0 * block_size * float(np.sum((proportions - 0.5) ** 2))
    p = igamc(block_count / 2.0, chi2 / 2.0)
    return make_result(name, p, chi2, significance, call_count=block_size * block_count,
                       details=f"blocks={block_count}, M={block_size}",
                       params={"block_size": block_size, "block_count": block_count})
