"""Spectral (discrete Fourier transform) check and its radix-2 FFT."""

from __future__ import annotations

import logging
from math import log, pi, sin, sqrt

import numpy as np

from bitsieve.checks.result import DEFAULT_SIGNIFICANCE, CheckResult, make_result, plus_minus
from bitsieve.sources.base import BitSource
from bitsieve.stats import erfc

logger = logging.getLogger(__name__)

MINIMUM_CALL_COUNT = 1024


def fft(data, isign: int = 1) -> np.ndarray:
    """Iterative radix-2 Cooley-Tukey transform of *data*.

    ``isign=1`` uses the kernel ``exp(+2*pi*i*j*k/n)``, ``isign=-1`` the
    ``exp(-2*pi*i*j*k/n)`` kernel used by ``numpy.fft``. Neither direction
    is normalised.

    The length of *data* must be an exact power of two. This is not
    checked: any other length silently produces a wrong transform.
    """
    a = np.array(data, dtype=np.complex128)
    n = len(a)
    if n < 2:
        return a
    a = a[_bit_reversal(n)]

    # Danielson-Lanczos passes; twiddles come from the trigonometric recurrence
    half = 1
    while half < n:
        step = half << 1
        theta = isign * (2.0 * pi / step)
        wtemp = sin(0.5 * theta)
        wpr = -2.0 * wtemp * wtemp
        wpi = sin(theta)
        wr, wi = 1.0, 0.0
        w = np.empty(half, dtype=np.complex128)
        for k in range(half):
            w[k] = complex(wr, wi)
            wtemp = wr
            wr = wr * wpr - wi * wpi + wr
            wi = wi * wpr + wtemp * wpi + wi

        blocks = a.reshape(n // step, step)
        top = blocks[:, :half].copy()
        t = w * blocks[:, half:]
        blocks[:, half:] = top - t
        blocks[:, :half] = top + t
        half = step
    return a


def _bit_reversal(n: int) -> np.ndarray:
    bits = n.bit_length() - 1
    idx = np.arange(n)
    rev = np.zeros(n, dtype=np.int64)
    for b in range(bits):
        rev |= ((idx >> b) & 1) << (bits - 1 - b)
    return rev


def next_power_of_two(value: int) -> int:
    if value <= 1:
        return 1
    return 1 << (value - 1).bit_length()


def spectral(source: BitSource, call_count: int = 1024,
             significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Count DFT peaks below the 95% threshold and compare with the expected 0.95*n/2."""
    name = "Spectral (DFT)"
    if call_count < MINIMUM_CALL_COUNT:
        adjusted = MINIMUM_CALL_COUNT
    else:
        adjusted = next_power_of_two(call_count)
    if adjusted != call_count:
        logger.debug("Spectral call count adjusted from %d to %d", call_count, adjusted)
    n = adjusted

    x = plus_minus(source.bits(n)).astype(np.float64)
    spectrum = fft(x, isign=1)
    magnitudes = np.abs(spectrum[: n // 2])

    threshold = sqrt(log(1.0 / 0.05) * n)
    n0 = 0.95 * n / 2.0
    n1 = int(np.count_nonzero(magnitudes < threshold))
    d = (n1 - n0) / sqrt(n * 0.95 * 0.05 / 4.0)
    p = erfc(abs(d) / sqrt(2.0))
    return make_result(name, p, d, significance, call_count=n,
                       details=f"N1={n1}, N0={n0:.1f}, threshold={threshold:.3f}",
                       params={"n1": n1, "n0": n0, "threshold": threshold})
