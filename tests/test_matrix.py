"""Tests for the binary matrix rank check."""

import numpy as np
import pytest

from bitsieve.checks import BitMatrix, matrix_rank
from bitsieve.errors import InvalidArgumentError
from bitsieve.sources import GeneratorBitSource, StringBitSource


class TestBitMatrix:
    def test_identity_full_rank(self):
        assert BitMatrix.from_rows(np.eye(8, dtype=np.uint8)).rank() == 8

    def test_zero_matrix(self):
        assert BitMatrix(5).rank() == 0

    def test_duplicate_rows(self):
        rows = [[1, 0, 1], [1, 0, 1], [0, 1, 1]]
        assert BitMatrix.from_rows(rows).rank() == 2

    def test_xor_dependent_row(self):
        rows = [[1, 1, 0, 0], [0, 1, 1, 0], [1, 0, 1, 0], [0, 0, 0, 1]]
        assert BitMatrix.from_rows(rows).rank() == 3

    def test_nist_example(self):
        src = StringBitSource("01011001001010101101")
        assert BitMatrix.from_source(src, 3).rank() == 2
        assert BitMatrix.from_source(src, 3).rank() == 3

    def test_not_square(self):
        with pytest.raises(InvalidArgumentError):
            BitMatrix.from_rows([[1, 0, 1], [0, 1, 1]])


class TestMatrixRank:
    def test_e_reference(self, e_million):
        assert e_million.startswith("1010110111111000010101000101100010100010101110110100101010011")
        r = matrix_rank(StringBitSource(e_million[:100_000]), matrix_size=32, call_count=100_000)
        assert r.statistic == pytest.approx(1.2625804, abs=1e-6)
        assert r.p_value == pytest.approx(0.531905, abs=1e-6)
        assert r.params["matrix_count"] == 97
        assert r.params["unused_bit_count"] == 100_000 - 97 * 1024

    def test_call_count_floored(self):
        r = matrix_rank(GeneratorBitSource(seed=8), matrix_size=8, call_count=100)
        assert r.call_count == 38 * 64
        assert r.params["matrix_count"] == 38

    def test_too_small(self):
        with pytest.raises(InvalidArgumentError):
            matrix_rank(GeneratorBitSource(seed=8), matrix_size=2)

    def test_low_rank_stream_fails(self):
        r = matrix_rank(StringBitSource("0" * 38 * 1024), matrix_size=32, call_count=38 * 1024)
        assert not r.passed
