"""Bit sources consumed by the checks."""

from bitsieve.sources.base import BitSource
from bitsieve.sources.replay import BitFileSource, ByteFileSource, StringBitSource
from bitsieve.sources.system import GeneratorBitSource

__all__ = [
    "BitSource",
    "BitFileSource",
    "ByteFileSource",
    "GeneratorBitSource",
    "StringBitSource",
]
