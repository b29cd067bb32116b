"""Tests for the bit sources."""

import gzip

import numpy as np
import pytest

from bitsieve.errors import InvalidArgumentError, SourceExhaustedError
from bitsieve.sources import (
    BitFileSource,
    BitSource,
    ByteFileSource,
    GeneratorBitSource,
    StringBitSource,
)
from bitsieve.sources.replay import parse_bit_string


class TestGeneratorBitSource:
    def test_is_bit_source(self):
        assert isinstance(GeneratorBitSource(seed=1), BitSource)

    def test_seeded_is_reproducible(self):
        a = GeneratorBitSource(seed=42).bits(5000)
        b = GeneratorBitSource(seed=42).bits(5000)
        assert np.array_equal(a, b)

    def test_different_seeds_differ(self):
        a = GeneratorBitSource(seed=1).bits(1000)
        b = GeneratorBitSource(seed=2).bits(1000)
        assert not np.array_equal(a, b)

    def test_bits_matches_next_bit(self):
        bulk = GeneratorBitSource(seed=7).bits(300)
        src = GeneratorBitSource(seed=7)
        single = np.array([src.next_bit() for _ in range(300)], dtype=np.uint8)
        assert np.array_equal(bulk, single)

    def test_bits_spans_refills(self):
        src = GeneratorBitSource(seed=3)
        bits = src.bits(200_000)
        assert bits.dtype == np.uint8
        assert len(bits) == 200_000
        assert set(np.unique(bits).tolist()) <= {0, 1}
        assert 0.49 < bits.mean() < 0.51

    def test_next_int_range(self):
        src = GeneratorBitSource(seed=5)
        values = [src.next_int(6) for _ in range(1000)]
        assert min(values) == 0
        assert max(values) == 5

    def test_next_int_rejects_non_positive(self):
        with pytest.raises(InvalidArgumentError):
            GeneratorBitSource(seed=5).next_int(0)

    def test_state(self):
        state = GeneratorBitSource(seed=9).state
        assert state["bit_generator"] == "PCG64"
        assert state["seed"] == 9


class TestStringBitSource:
    def test_parse_skips_other_characters(self):
        bits = parse_bit_string("10 1\n1x0")
        assert bits.tolist() == [1, 0, 1, 1, 0]

    def test_replays_in_order(self):
        src = StringBitSource("1100")
        assert [src.next_bit() for _ in range(4)] == [True, True, False, False]

    def test_bits_and_remaining(self):
        src = StringBitSource("101100")
        assert len(src) == 6
        assert src.bits(4).tolist() == [1, 0, 1, 1]
        assert src.remaining == 2

    def test_exhausted(self):
        src = StringBitSource("10")
        src.bits(2)
        with pytest.raises(SourceExhaustedError):
            src.next_bit()
        with pytest.raises(SourceExhaustedError):
            StringBitSource("10").bits(3)

    def test_no_integers(self):
        with pytest.raises(InvalidArgumentError):
            StringBitSource("10").next_int(2)


class TestFileSources:
    def test_bit_file(self, tmp_path):
        path = tmp_path / "bits.txt"
        path.write_text("0110\n1001\n")
        assert BitFileSource(path).bits(8).tolist() == [0, 1, 1, 0, 1, 0, 0, 1]

    def test_gzip_bit_file(self, tmp_path):
        path = tmp_path / "bits.txt.gz"
        with gzip.open(path, "wt") as fh:
            fh.write("111000")
        assert BitFileSource(path).bits(6).tolist() == [1, 1, 1, 0, 0, 0]

    def test_gzip_forced(self, tmp_path):
        path = tmp_path / "bits.dat"
        with gzip.open(path, "wt") as fh:
            fh.write("01")
        assert BitFileSource(path, compressed=True).bits(2).tolist() == [0, 1]

    def test_byte_file_msb_first(self, tmp_path):
        path = tmp_path / "data.bin"
        path.write_bytes(b"\x80\x01")
        src = ByteFileSource(path)
        assert len(src) == 16
        assert src.bits(16).tolist() == [1] + [0] * 14 + [1]
