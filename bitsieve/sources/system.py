"""Bit source backed by a NumPy ``Generator``.

Usage::

    from bitsieve.sources import GeneratorBitSource
    src = GeneratorBitSource()          # seedless, OS entropy
    src = GeneratorBitSource(seed=42)   # reproducible
    src.next_bit()
    src.next_int(10)
"""

from __future__ import annotations

import numpy as np

from bitsieve.errors import InvalidArgumentError
from bitsieve.sources.base import BitSource

WORD_BITS = 31
_CHUNK_WORDS = 4096
_SHIFTS = np.arange(WORD_BITS, dtype=np.int64)


class GeneratorBitSource(BitSource):
    """Bits from a PCG64 generator, handed out least-significant bit first.

    Each 31-bit integer drawn from the generator supplies 31 successive bits.

    Parameters
    ----------
    seed : int or None
        ``None`` seeds from the operating system (seedless mode); an integer
        gives a reproducible stream (seeded mode).
    """

    name = "generator"
    description = "numpy PCG64 generator"

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._rng = np.random.Generator(np.random.PCG64(seed))
        self._buf = np.empty(0, dtype=np.uint8)
        self._pos = 0

    def _refill(self) -> None:
        words = self._rng.integers(0, 1 << WORD_BITS, size=_CHUNK_WORDS, dtype=np.int64)
        self._buf = ((words[:, None] >> _SHIFTS) & 1).astype(np.uint8).ravel()
        self._pos = 0

    def next_bit(self) -> bool:
        if self._pos >= len(self._buf):
            self._refill()
        bit = self._buf[self._pos]
        self._pos += 1
        return bool(bit)

    def bits(self, n: int) -> np.ndarray:
        chunks = []
        need = n
        while need > 0:
            if self._pos >= len(self._buf):
                self._refill()
            take = min(need, len(self._buf) - self._pos)
            chunks.append(self._buf[self._pos:self._pos + take])
            self._pos += take
            need -= take
        if not chunks:
            return np.empty(0, dtype=np.uint8)
        return np.concatenate(chunks)

    def next_int(self, max_value: int) -> int:
        if max_value < 1:
            raise InvalidArgumentError(f"max_value must be positive, got {max_value}")
        return int(self._rng.integers(0, max_value))

    @property
    def state(self) -> dict:
        return {
            "bit_generator": "PCG64",
            "seed": self.seed,
            "buffered_bits": len(self._buf) - self._pos,
        }
