"""Tests for the template matching checks."""

import numpy as np
import pytest
from scipy import stats

from bitsieve.checks import non_overlapping, overlapping, template_library
from bitsieve.checks.templates import (
    check_template_blocks,
    count_matches,
    count_overlapping_matches,
    hamano_kaneko_pi,
    is_periodic,
    template_to_string,
)
from bitsieve.errors import InvalidArgumentError
from bitsieve.sources import GeneratorBitSource, StringBitSource
from bitsieve.sources.replay import parse_bit_string


class TestTemplateLibrary:
    def test_length_three(self):
        assert template_library(3) == (1, 3, 4, 6)

    @pytest.mark.parametrize("m, size", [(2, 2), (9, 148), (10, 284)])
    def test_sizes(self, m, size):
        assert len(template_library(m)) == size

    def test_cached(self):
        assert template_library(9) is template_library(9)

    def test_periodicity(self):
        assert not is_periodic(3, 3)
        assert is_periodic(5, 3)
        assert is_periodic(0, 4)

    def test_out_of_range(self):
        with pytest.raises(InvalidArgumentError):
            template_library(0)
        with pytest.raises(InvalidArgumentError):
            template_library(25)

    def test_template_to_string(self):
        assert template_to_string(1, 3) == "100"
        assert template_to_string(6, 3) == "011"


class TestNonOverlapping:
    def test_count_matches(self):
        assert count_matches([1, 0, 1, 0, 0, 1, 0, 0, 1, 0], 3, 1) == 2
        assert count_matches([1, 1, 1, 0, 0, 1, 0, 1, 1, 0], 3, 1) == 1

    def test_last_position_not_searched(self):
        assert count_matches([0, 0, 1, 1], 2, 3) == 0

    def test_nist_example(self):
        bits = parse_bit_string("10100100101110010110")
        r = check_template_blocks(bits, 2, 3, 1)
        assert r.params["w"] == [2, 1]
        assert r.statistic == pytest.approx(2.133333, abs=1e-6)
        assert r.p_value == pytest.approx(0.344154, abs=1e-6)
        assert r.passed

    def test_parts_per_length(self):
        r = non_overlapping(GeneratorBitSource(seed=12), call_count=8000)
        assert [p.params["template_length"] for p in r.parts] == list(range(2, 11))
        assert [len(p.p_values) for p in r.parts] == [len(template_library(m)) for m in range(2, 11)]
        assert r.p_value == min(p.p_value for p in r.parts)
        assert r.statistic is None
        assert r.params["block_length"] == 1000

    def test_call_count_rounded_to_blocks(self):
        r = non_overlapping(GeneratorBitSource(seed=12), call_count=8001)
        assert r.call_count == 8008

    def test_periodic_stream_fails(self):
        r = non_overlapping(StringBitSource("0011" * 2000), call_count=8000)
        assert not r.passed


class TestOverlapping:
    def test_hamano_kaneko(self):
        pi = hamano_kaneko_pi(6, 1032, 9)
        expected = [0.364091, 0.185659, 0.139381, 0.100571, 0.0704323, 0.139865]
        assert pi == pytest.approx(expected, abs=1e-6)
        assert sum(pi) == pytest.approx(1.0)

    def test_overlapping_count(self):
        assert count_overlapping_matches([1, 1, 1, 1, 0], 2, 3) == 3

    def test_e_reference(self, e_source):
        r = overlapping(e_source)
        v = np.array(r.params["v"])
        expected = 968 * np.array(hamano_kaneko_pi(6, 1032, 9))
        assert v.tolist() == [330, 163, 150, 111, 78, 136]
        assert r.statistic == pytest.approx(float(np.sum((v - expected) ** 2 / expected)), abs=1e-9)
        assert r.statistic == pytest.approx(8.0, abs=0.05)
        assert r.p_value == pytest.approx(stats.chi2.sf(r.statistic, 5), abs=1e-6)
        assert r.passed

    def test_invalid(self):
        with pytest.raises(InvalidArgumentError):
            overlapping(GeneratorBitSource(seed=1), block_length=9, template_length=9)
