"""Result record shared by every check."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np

DEFAULT_SIGNIFICANCE = 0.01


@dataclass
class CheckResult:
    """Outcome of a single check.

    ``passed`` is always ``p_value >= significance``. Checks that produce
    several statistics (per state, per template length, ...) also fill
    ``statistics``/``p_values`` or ``parts``; ``call_count`` and ``params``
    carry any parameters the check adjusted.
    """
    name: str
    passed: bool
    p_value: float
    statistic: float | None
    details: str = ""
    call_count: int | None = None
    statistics: list[float] | None = None
    p_values: list[float] | None = None
    params: dict[str, Any] = field(default_factory=dict)
    parts: list[CheckResult] = field(default_factory=list)
    rejected_early: bool = False

    @property
    def grade(self) -> str:
        return grade_from_p(self.p_value)


def grade_from_p(p: float | None) -> str:
    if p is None:
        return "F"
    if p >= 0.1:
        return "A"
    if p >= 0.01:
        return "B"
    if p >= 0.001:
        return "C"
    if p >= 0.0001:
        return "D"
    return "F"


def make_result(name: str, p: float, statistic: float | None, significance: float,
                **kwargs: Any) -> CheckResult:
    """Build a result whose pass flag follows from *p* and *significance*."""
    return CheckResult(name=name, passed=p >= significance, p_value=p,
                       statistic=statistic, **kwargs)


def plus_minus(bits: np.ndarray) -> np.ndarray:
    """Map 0/1 bits to -1/+1 as int64."""
    return bits.astype(np.int64) * 2 - 1
