"""Template matching checks: non-overlapping and overlapping.

Templates are integers whose bit ``j`` (least significant first) is the
``j``-th bit of the pattern searched for.
"""

from __future__ import annotations

import logging
import threading
from functools import lru_cache
from math import exp, log

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from bitsieve.checks.result import DEFAULT_SIGNIFICANCE, CheckResult, make_result
from bitsieve.combining import CombinedPValues
from bitsieve.errors import InvalidArgumentError
from bitsieve.sources.base import BitSource
from bitsieve.stats import igamc

logger = logging.getLogger(__name__)

NON_OVERLAPPING_BLOCK_COUNT = 8
TEMPLATE_LENGTHS = range(2, 11)
MAX_TEMPLATE_LENGTH = 24


# ── helpers ──

def template_to_string(template: int, m: int) -> str:
    """Bits of *template* in match order."""
    return "".join("1" if template & (1 << j) else "0" for j in range(m))


def _window_values(bits: np.ndarray, m: int) -> np.ndarray:
    """Integer value of the m-bit window starting at each searched position.

    Only positions ``0 .. len(bits) - m - 1`` are searched, so a match
    ending on the last bit of a block is never counted.
    """
    count = len(bits) - m
    if count <= 0:
        return np.empty(0, dtype=np.int64)
    windows = sliding_window_view(bits[:count + m - 1].astype(np.int64), m)
    return windows @ (np.int64(1) << np.arange(m, dtype=np.int64))


def _greedy_count(positions: np.ndarray, m: int) -> int:
    """Count matches, skipping any that overlap the previously counted one."""
    count = 0
    next_free = 0
    for pos in positions.tolist():
        if pos >= next_free:
            count += 1
            next_free = pos + m
    return count


# ═══════════════════════ TEMPLATE LIBRARY ═══════════════════════

_library_lock = threading.Lock()
_libraries: dict[int, tuple[int, ...]] = {}


def is_periodic(bits: int, m: int) -> bool:
    """True if the m-bit pattern repeats itself with some period shorter than m."""
    for mask_length in range(1, m):
        mask = ((1 << mask_length) - 1) << (m - mask_length)
        repeat_bits = bits & mask
        while True:
            mask >>= mask_length
            repeat_bits >>= mask_length
            periodic = repeat_bits == (bits & mask)
            if not periodic or mask == 0:
                break
        if periodic:
            return True
    return False


def _build_library(m: int) -> tuple[int, ...]:
    full = (1 << m) - 1
    # a pattern with a leading and trailing zero is periodic, so only odd values can qualify
    templates = [j for j in range(1, 1 << m, 2) if not is_periodic(j, m)]
    templates += [~j & full for j in templates]
    return tuple(sorted(templates))


def template_library(m: int) -> tuple[int, ...]:
    """All non-periodic templates of length *m*, sorted.

    Built once per length and shared process-wide.
    """
    if not 1 <= m <= MAX_TEMPLATE_LENGTH:
        raise InvalidArgumentError(f"template length must be in [1, {MAX_TEMPLATE_LENGTH}], got {m}")
    with _library_lock:
        library = _libraries.get(m)
        if library is None:
            library = _build_library(m)
            _libraries[m] = library
            logger.debug("Built template library for m=%d (%d templates)", m, len(library))
    return library


# ═══════════════════════ NON-OVERLAPPING ═══════════════════════

def count_matches(bits, m: int, template: int) -> int:
    """Non-overlapping occurrences of *template* in *bits*; a match consumes its m bits."""
    bits = np.asarray(bits, dtype=np.uint8)
    positions = np.flatnonzero(_window_values(bits, m) == template)
    return _greedy_count(positions, m)


def _template_statistic(w: np.ndarray, block_length: int, m: int) -> tuple[float, float]:
    block_count = len(w)
    mu = (block_length - m + 1) / 2.0 ** m
    variance = block_length * (1.0 / 2.0 ** m - (2 * m - 1) / 2.0 ** (2 * m))
    chi2 = float(np.sum((w - mu) ** 2) / variance)
    return chi2, igamc(block_count / 2.0, chi2 / 2.0)


def check_template_blocks(bits, block_count: int, m: int, template: int,
                          significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Chi-squared of one template's match counts over *block_count* equal blocks."""
    bits = np.asarray(bits, dtype=np.uint8)
    block_length = len(bits) // block_count
    w = np.array([
        count_matches(bits[i * block_length:(i + 1) * block_length], m, template)
        for i in range(block_count)
    ], dtype=np.int64)
    chi2, p = _template_statistic(w, block_length, m)
    return make_result(f"Template {template_to_string(template, m)}", p, chi2, significance,
                       params={"template": template, "w": w.tolist()})


def non_overlapping(source: BitSource, call_count: int = 8000,
                    significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Every non-periodic template of lengths 2..10 against 8 blocks of the stream.

    Per length, the per-template p-values are combined with Fisher's method;
    the check passes when every length does. Each length is reported as a
    part carrying the per-template p-values and the plain pass ratio.
    """
    name = "Non-overlapping Template"
    block_count = NON_OVERLAPPING_BLOCK_COUNT
    if call_count < block_count:
        raise InvalidArgumentError(f"call_count must be at least {block_count}, got {call_count}")
    if call_count % block_count:
        adjusted = call_count + block_count - call_count % block_count
        logger.debug("Non-overlapping call count rounded from %d to %d", call_count, adjusted)
        call_count = adjusted

    bits = source.bits(call_count)
    block_length = call_count // block_count
    blocks = bits.reshape(block_count, block_length)

    parts = []
    for m in TEMPLATE_LENGTHS:
        windows = [_window_values(block, m) for block in blocks]
        library = template_library(m)
        statistics, p_values = [], []
        for template in library:
            w = np.array([_greedy_count(np.flatnonzero(vals == template), m) for vals in windows],
                         dtype=np.int64)
            chi2, p = _template_statistic(w, block_length, m)
            statistics.append(chi2)
            p_values.append(p)
        combined = CombinedPValues(p_values, significance)
        parts.append(make_result(
            f"Template length {m}", combined.fisher_p_value, combined.fisher_statistic,
            significance, statistics=statistics, p_values=p_values,
            details=f"templates={len(library)}, pass_ratio={combined.pass_ratio:.4f}",
            params={"template_length": m, "templates": list(library),
                    "pass_ratio": combined.pass_ratio,
                    "naive_passed": (1.0 - significance) < combined.pass_ratio},
        ))

    p = min(part.p_value for part in parts)
    failing = [part.params["template_length"] for part in parts if not part.passed]
    return make_result(name, p, None, significance, call_count=call_count, parts=parts,
                       details=f"N={block_count}, M={block_length}, failing lengths={failing or 'none'}",
                       params={"block_count": block_count, "block_length": block_length})


# ═══════════════════════ OVERLAPPING ═══════════════════════

def count_overlapping_matches(bits, m: int, template: int) -> int:
    """Occurrences of *template* in *bits*, overlaps allowed."""
    bits = np.asarray(bits, dtype=np.uint8)
    return int(np.count_nonzero(_window_values(bits, m) == template))


@lru_cache(maxsize=None)
def hamano_kaneko_pi(k: int, n: int, m: int) -> tuple[float, ...]:
    """Class probabilities for the overlapping check (Hamano & Kaneko, 2007).

    ``pi[i]`` is the probability that an all-ones template of length *m*
    occurs exactly ``i`` times in *n* random bits, the last class being
    "k - 1 or more". The counts ``T[a][n]`` overflow floats, so they are
    computed as Python integers and divided by ``2**n`` in the log domain.
    Index ``n + 1`` of each row holds ``T[a](n)``, rows start at ``n = -1``.
    """
    if k < 3:
        raise InvalidArgumentError(f"k must be at least 3, got {k}")
    size = n + 2
    t0 = [0] * size
    for i in range(-1, n + 1):
        if i in (-1, 0):
            t0[i + 1] = 1
        elif i <= m - 1:
            t0[i + 1] = 2 * t0[i]
        else:
            t0[i + 1] = 2 * t0[i] - t0[i - m]

    t1 = [0] * size
    for i in range(-1, n + 1):
        if i <= m - 1:
            t1[i + 1] = 0
        elif i == m:
            t1[i + 1] = 1
        elif i == m + 1:
            t1[i + 1] = 2
        else:
            t1[i + 1] = sum(t0[j] * t0[i - m - j] for j in range(i - m + 1))

    rows = [t0, t1]
    for a in range(2, k - 1):
        prev = rows[a - 1]
        row = [0] * size
        for i in range(-1, n + 1):
            total = sum(t0[j] * prev[i - m - j] for j in range(i - 2 * m - a + 2))
            row[i + 1] = (prev[i] if i >= 0 else 0) + total
        rows.append(row)

    den_log = log(2.0) * n
    pi = []
    for row in rows:
        count = row[n + 1]
        pi.append(exp(log(count) - den_log) if count > 0 else 0.0)
    pi.append(1.0 - sum(pi))
    return tuple(pi)


def overlapping(source: BitSource, block_count: int = 968, block_length: int = 1032,
                template_length: int = 9,
                significance: float = DEFAULT_SIGNIFICANCE) -> CheckResult:
    """Overlapping occurrences of an all-ones template per block, in K = 6 classes."""
    name = "Overlapping Template"
    if block_count < 1 or block_length <= template_length or template_length < 1:
        raise InvalidArgumentError(
            f"invalid overlapping parameters: blocks={block_count}, "
            f"block_length={block_length}, m={template_length}"
        )
    m = template_length
    template = (1 << m) - 1
    pi = np.asarray(hamano_kaneko_pi(6, block_length, m))
    k = len(pi)

    bits = source.bits(block_count * block_length).reshape(block_count, block_length)
    v = np.zeros(k, dtype=np.int64)
    for block in bits:
        v[min(count_overlapping_matches(block, m, template), k - 1)] += 1

    expected = block_count * pi
    chi2 = float(np.sum((v - expected) ** 2 / expected))
    p = igamc((k - 1) / 2.0, chi2 / 2.0)
    return make_result(name, p, chi2, significance, call_count=block_count * block_length,
                       details=f"N={block_count}, M={block_length}, m={m}, v={v.tolist()}",
                       params={"v": v.tolist(), "pi": pi.tolist(), "template_length": m})
