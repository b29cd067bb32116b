"""Sources that replay a fixed, recorded bit sequence.

These make every check deterministic: feeding the same sequence twice
yields identical statistics and p-values. Running past the end raises
:class:`~bitsieve.errors.SourceExhaustedError`.
"""

from __future__ import annotations

import gzip
from pathlib import Path

import numpy as np

from bitsieve.errors import InvalidArgumentError, SourceExhaustedError
from bitsieve.sources.base import BitSource


def parse_bit_string(text: str) -> np.ndarray:
    """Convert the ``'0'``/``'1'`` characters of *text* to a uint8 array.

    Any other character (whitespace, newlines) is skipped.
    """
    raw = np.frombuffer(text.encode("ascii", errors="ignore"), dtype=np.uint8)
    keep = (raw == ord("0")) | (raw == ord("1"))
    return (raw[keep] - ord("0")).astype(np.uint8)


class _ReplayBitSource(BitSource):
    """Shared cursor logic over a pre-loaded bit array."""

    def __init__(self, bits: np.ndarray) -> None:
        self._bits = bits
        self._pos = 0

    def __len__(self) -> int:
        return len(self._bits)

    @property
    def remaining(self) -> int:
        return len(self._bits) - self._pos

    def next_bit(self) -> bool:
        if self._pos >= len(self._bits):
            raise SourceExhaustedError(f"{self.name}: all {len(self._bits)} bits consumed")
        bit = self._bits[self._pos]
        self._pos += 1
        return bool(bit)

    def bits(self, n: int) -> np.ndarray:
        if n > self.remaining:
            raise SourceExhaustedError(
                f"{self.name}: requested {n} bits, only {self.remaining} left"
            )
        out = self._bits[self._pos:self._pos + n].copy()
        self._pos += n
        return out

    def next_int(self, max_value: int) -> int:
        raise InvalidArgumentError(f"{self.__class__.__name__} only replays bits")


class StringBitSource(_ReplayBitSource):
    """Replay the bits of a ``'0'``/``'1'`` string."""

    name = "string"
    description = "replayed bit string"

    def __init__(self, text: str) -> None:
        super().__init__(parse_bit_string(text))


class BitFileSource(_ReplayBitSource):
    """Replay a text file of ``'0'``/``'1'`` characters.

    The file is read through gzip when *compressed* is true, or when it is
    left as ``None`` and the name ends in ``.gz``.
    """

    name = "bitfile"
    description = "replayed text bit file"

    def __init__(self, path: str | Path, compressed: bool | None = None) -> None:
        self.path = Path(path)
        if compressed is None:
            compressed = self.path.suffix == ".gz"
        if compressed:
            with gzip.open(self.path, "rt", encoding="ascii") as fh:
                text = fh.read()
        else:
            text = self.path.read_text(encoding="ascii")
        super().__init__(parse_bit_string(text))


class ByteFileSource(_ReplayBitSource):
    """Replay a binary file, most significant bit of each byte first."""

    name = "bytefile"
    description = "replayed binary file"

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        data = np.fromfile(self.path, dtype=np.uint8)
        super().__init__(np.unpackbits(data))
