"""Tests for the check registry and runners."""

import pytest

from bitsieve import run_check as lazy_run_check
from bitsieve.battery import CHECKS, get_check, run_battery, run_check, run_repeated
from bitsieve.checks import CheckResult
from bitsieve.combining import Proportion
from bitsieve.errors import InvalidArgumentError
from bitsieve.sources import GeneratorBitSource, StringBitSource

NAMES = [
    "uniform", "monobit", "frequencyblock", "runs", "longestrun", "matrixrank",
    "spectral", "nonoverlapping", "overlapping", "maurer", "linear", "serial",
    "entropy", "cusum", "excursions", "excursionsvariant",
]


class TestRegistry:
    def test_names_in_order(self):
        assert list(CHECKS) == NAMES

    def test_lookup_is_case_insensitive(self):
        assert get_check("MonoBit").name == "monobit"

    def test_unknown_check(self):
        with pytest.raises(InvalidArgumentError):
            get_check("dieharder")

    def test_only_uniform_draws_integers(self):
        assert [s.name for s in CHECKS.values() if s.uses_integers] == ["uniform"]


class TestRunCheck:
    def test_overrides(self):
        r = run_check("monobit", GeneratorBitSource(seed=1), 0.01, call_count=1000)
        assert isinstance(r, CheckResult)
        assert r.call_count == 1000

    def test_none_override_keeps_default(self):
        r = run_check("runs", GeneratorBitSource(seed=1), 0.01, call_count=None)
        assert r.call_count == 100

    def test_unknown_parameter(self):
        with pytest.raises(InvalidArgumentError):
            run_check("monobit", GeneratorBitSource(seed=1), 0.01, bin_count=4)

    def test_uniform_on_replayed_bits(self):
        with pytest.raises(InvalidArgumentError):
            run_check("uniform", StringBitSource("0110" * 100), 0.01, call_count=10)

    def test_package_level_helper(self, nist_100):
        r = lazy_run_check("monobit", nist_100, call_count=100)
        assert r.p_value == pytest.approx(0.109599, abs=1e-6)


class TestRunRepeated:
    def test_consumes_successive_bits(self):
        src = StringBitSource("1100100100001111110110101010001000100001011010001100001000110100" * 4)
        batch = run_repeated("monobit", src, 4, 0.01, call_count=64)
        assert len(batch.results) == 4
        assert src.remaining == 0
        assert len({r.p_value for r in batch.results}) == 1

    def test_summaries(self):
        batch = run_repeated("frequencyblock", GeneratorBitSource(seed=5), 50, 0.01,
                             block_size=20, block_count=10)
        assert len(batch.p_values) == 50
        assert batch.proportion.outcome in set(Proportion)
        assert sum(batch.uniformity.counts) == 50
        assert batch.combined.count == 50

    def test_repeat_must_be_positive(self):
        with pytest.raises(InvalidArgumentError):
            run_repeated("monobit", GeneratorBitSource(seed=5), 0)


class TestRunBattery:
    def test_selected_checks(self):
        results = run_battery(GeneratorBitSource(seed=3), 0.01, names=["monobit", "runs", "cusum"])
        assert [r.name for r in results] == ["Monobit", "Runs", "Cumulative Sums (forward)"]

    def test_default_skips_uniform(self):
        results = run_battery(GeneratorBitSource(seed=3), 0.01)
        assert len(results) == len(NAMES) - 1
        assert "Uniform" not in [r.name for r in results]


def _replay(name, e_million):
    if CHECKS[name].uses_integers:
        return GeneratorBitSource(seed=17)
    return StringBitSource(e_million)


class TestEveryCheck:
    @pytest.mark.parametrize("name", NAMES)
    def test_same_bits_same_result(self, name, e_million):
        first = run_check(name, _replay(name, e_million), 0.01)
        second = run_check(name, _replay(name, e_million), 0.01)
        assert first.statistic == second.statistic
        assert first.p_value == second.p_value
        assert first.statistics == second.statistics
        assert first.p_values == second.p_values
        assert first.passed == second.passed

    @pytest.mark.parametrize("name", NAMES)
    def test_passed_follows_p_value(self, name, e_million):
        for significance in (0.01, 0.2):
            r = run_check(name, _replay(name, e_million), significance)
            assert 0.0 <= r.p_value <= 1.0
            assert r.passed == (r.p_value >= significance)
