"""Tests for the random excursions checks."""

import pytest
from scipy import stats

from bitsieve.checks import random_excursions, random_excursions_variant
from bitsieve.checks.excursions import build_cycles, state_to_index
from bitsieve.sources import StringBitSource
from bitsieve.sources.replay import parse_bit_string

E_STATE_MINUS_4_V = [1296, 24, 14, 22, 18, 116]
# states -1 and +1 use exact class probabilities
E_UNIT_STATISTICS = [15.692617, 2.485906]
E_UNIT_P_VALUES = [0.007779, 0.778616]

E_VARIANT_COUNTS = [1450, 1435, 1380, 1366, 1412, 1475, 1480, 1468, 1502,
                    1409, 1369, 1396, 1479, 1599, 1628, 1619, 1620, 1610]
E_VARIANT_P_VALUES = [0.858946, 0.794755, 0.576249, 0.493417, 0.633873, 0.917283,
                      0.934708, 0.816012, 0.826009, 0.137861, 0.200642, 0.441254,
                      0.939291, 0.505683, 0.445935, 0.512207, 0.538635, 0.59393]


class TestCycles:
    def test_nist_example(self):
        cycles = build_cycles(parse_bit_string("0110110101"))
        assert [c.tolist() for c in cycles] == [[0, -1, 0], [0, 1, 0], [0, 1, 2, 1, 2, 1, 2, 0]]

    def test_state_to_index(self):
        assert state_to_index(-9) == 0
        assert state_to_index(-1) == 8
        assert state_to_index(1) == 9
        assert state_to_index(9) == 17


class TestRandomExcursions:
    def test_too_few_cycles(self):
        r = random_excursions(StringBitSource("0110110101"), 10)
        assert r.rejected_early
        assert not r.passed
        assert r.p_value == 0.0
        assert r.statistics is None
        assert r.p_values is None
        assert r.params["cycles"] == 3

    def test_e_reference(self, e_source):
        r = random_excursions(e_source, 1_000_000)
        assert not r.rejected_early
        assert r.params["cycles"] == 1490
        assert r.params["v"][0] == E_STATE_MINUS_4_V
        assert r.statistics[0] == pytest.approx(3.810488, abs=1e-6)
        assert r.statistics[3:5] == pytest.approx(E_UNIT_STATISTICS, abs=1e-6)
        assert r.p_values[3:5] == pytest.approx(E_UNIT_P_VALUES, abs=1e-6)
        assert r.p_values == pytest.approx([stats.chi2.sf(s, 5) for s in r.statistics], abs=1e-6)
        assert [p >= 0.01 for p in r.p_values].count(False) == 1


class TestRandomExcursionsVariant:
    def test_nist_example(self):
        r = random_excursions_variant(StringBitSource("0110110101"), 10)
        assert r.p_values[state_to_index(1)] == pytest.approx(0.683091, abs=1e-6)
        assert r.statistics[state_to_index(1)] == 4

    def test_e_reference(self, e_source):
        r = random_excursions_variant(e_source, 1_000_000)
        assert r.statistics == E_VARIANT_COUNTS
        assert r.p_values == pytest.approx(E_VARIANT_P_VALUES, abs=1e-6)
        assert r.passed
