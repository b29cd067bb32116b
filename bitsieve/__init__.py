"""
bitsieve: statistical randomness checks for bit streams.

The NIST SP 800-22 battery (frequency, runs, matrix rank, spectral,
template, Maurer, linear complexity, serial, entropy, cumulative sums and
random excursions checks) plus a uniform bin check, run against any
pluggable bit source.
"""

__version__ = "0.3.0"

from bitsieve.errors import (
    AlgorithmLimitError,
    BitsieveError,
    InvalidArgumentError,
    SourceExhaustedError,
)
from bitsieve.sources.base import BitSource

__all__ = [
    "AlgorithmLimitError",
    "BitSource",
    "BitsieveError",
    "InvalidArgumentError",
    "SourceExhaustedError",
    "run_battery",
    "run_check",
    "__version__",
]


def run_check(name, source, significance=0.01, **overrides):
    """Lazy import to avoid loading every check at package import.

    Example::

        from bitsieve import run_check
        from bitsieve.sources import GeneratorBitSource
        result = run_check("monobit", GeneratorBitSource(seed=1), call_count=10_000)
        result.p_value
    """
    from bitsieve.battery import run_check as _run_check
    return _run_check(name, source, significance, **overrides)


def run_battery(source, significance=0.01, names=None):
    """Run the default battery; see :func:`bitsieve.battery.run_battery`."""
    from bitsieve.battery import run_battery as _run_battery
    return _run_battery(source, significance, names)
