"""Cumulative sums check."""

from __future__ import annotations

from enum import Enum
from math import floor, sqrt

import numpy as np

from bitsieve.checks.result import DEFAULT_SIGNIFICANCE, CheckResult, make_result, plus_minus
from bitsieve.errors import InvalidArgumentError
from bitsieve.sources.base import BitSource
from bitsieve.stats import gauss


class CusumMode(Enum):
    FORWARD = "forward"
    BACKWARD = "backward"


def cumulative_sums(source: BitSource, call_count: int = 1_000_000,
                    mode: CusumMode = CusumMode.FORWARD,
                    significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Maximal excursion of the +/-1 random walk, from the start or from the end."""
    mode = CusumMode(mode)
    name = f"Cumulative Sums ({mode.value})"
    if call_count < 1:
        raise InvalidArgumentError(f"call_count must be positive, got {call_count}")
    n = call_count
    steps = plus_minus(source.bits(n))
    if mode is CusumMode.BACKWARD:
        steps = steps[::-1]
    z = int(np.max(np.abs(np.cumsum(steps))))
    root_n = sqrt(n)

    p = 1.0
    for k in range(floor((-n / z + 1.0) / 4.0), floor((n / z - 1.0) / 4.0) + 1):
        p -= gauss((4 * k + 1) * z / root_n) - gauss((4 * k - 1) * z / root_n)
    for k in range(floor((-n / z - 3.0) / 4.0), floor((n / z - 1.0) / 4.0) + 1):
        p += gauss((4 * k + 3) * z / root_n) - gauss((4 * k + 1) * z / root_n)

    return make_result(name, p, z / root_n, significance, call_count=n,
                       details=f"z={z}, n={n}", params={"mode": mode, "z": z})
