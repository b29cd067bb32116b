"""Exception types raised by bitsieve."""

from __future__ import annotations


class BitsieveError(Exception):
    """Base error type for bitsieve failures."""


class InvalidArgumentError(BitsieveError, ValueError):
    """Raised when a caller passes parameters outside a routine's domain."""


class AlgorithmLimitError(BitsieveError, RuntimeError):
    """Raised when an internal algorithm limit is exceeded.

    This signals an implementation or parameter-domain problem (for example a
    series that did not converge within its iteration cap), never bad input.
    """


class SourceExhaustedError(BitsieveError, EOFError):
    """Raised when a replay bit source has no bits left."""
