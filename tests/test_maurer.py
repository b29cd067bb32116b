"""Tests for Maurer's universal statistical check."""

import pytest

from bitsieve.checks import maurer
from bitsieve.checks.maurer import maurer_internal
from bitsieve.errors import InvalidArgumentError
from bitsieve.sources import GeneratorBitSource, StringBitSource


class TestMaurer:
    def test_worked_example(self):
        r = maurer_internal(StringBitSource("01011010011101010111"), 2, 4, 6)
        assert r.statistic == pytest.approx(1.1949875, abs=1e-6)
        assert r.p_value == pytest.approx(0.767189, abs=1e-4)

    def test_e_passes(self, e_source):
        r = maurer(e_source, block_size=7)
        assert r.passed
        assert r.call_count == (10 + 1000) * 128 * 7

    def test_block_size_clamped(self):
        r = maurer(GeneratorBitSource(seed=6), block_size=3)
        assert r.params["block_size"] == 6
        assert r.params["init_blocks"] == 640
        assert r.params["test_blocks"] == 64_000

    def test_constant_stream_fails(self):
        r = maurer(StringBitSource("0" * 400_000), block_size=6)
        assert not r.passed

    def test_no_reference_values(self):
        with pytest.raises(InvalidArgumentError):
            maurer_internal(GeneratorBitSource(seed=6), 3, 10, 10)
