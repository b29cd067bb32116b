"""Shared fixtures: reference bit sequences from the NIST worked examples."""

from __future__ import annotations

import numpy as np
import pytest

from bitsieve.sources import StringBitSource

# 100-bit sequence used throughout NIST SP 800-22 section 2
NIST_100 = (
    "11001001000011111101101010100010001000010110100011"
    "00001000110100110001001100011001100010100010111000"
)

E_BIT_COUNT = 1_000_000


def _series(a: int, b: int) -> tuple[int, int]:
    """Sum of 1/k! for the factorial tail between a and b, as P/Q."""
    if b - a == 1:
        return 1, b
    m = (a + b) // 2
    p_am, q_am = _series(a, m)
    p_mb, q_mb = _series(m, b)
    return p_am * q_mb + p_mb, q_am * q_mb


def e_bits(n: int) -> str:
    """First *n* bits of the binary expansion of e ("10.10110111111...")."""
    terms = 2
    log_fact = 0.0
    while log_fact < n + 64:
        terms += 1
        log_fact += np.log2(terms)
    p, q = _series(0, terms)
    # e = 1 + p/q; keep n - 2 fractional bits beyond the two integer bits
    value = ((q + p) << (n - 2)) // q
    return bin(value)[2:][:n]


@pytest.fixture(scope="session")
def e_million() -> str:
    return e_bits(E_BIT_COUNT)


@pytest.fixture
def e_source(e_million):
    return StringBitSource(e_million)


@pytest.fixture
def nist_100():
    return StringBitSource(NIST_100)
